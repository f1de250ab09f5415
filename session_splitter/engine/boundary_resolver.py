"""
Boundary resolver for logon sessions.

Computes the start and end epoch of one session identifier from its matching
records, falling back through progressively weaker evidence when the
canonical logon and logoff markers are missing:

    start: earliest strict logon -> earliest non-logoff activity -> skip
    end:   latest logoff -> latest matching activity of any kind
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config.session_config import EventCodeConfig
from .data_structures import EventRecord, SessionAnchor, SessionBoundary

logger = logging.getLogger(__name__)


@dataclass
class _MinimumTracker:
    """Earliest epoch seen so far and the anchor of the record carrying it."""
    epoch: Optional[int] = None
    anchor: Optional[SessionAnchor] = None

    def offer(self, record: EventRecord):
        # Strict comparison keeps the first record on ties
        if self.epoch is None or record.epoch_time < self.epoch:
            self.epoch = record.epoch_time
            self.anchor = SessionAnchor.from_record(record)

    @property
    def found(self) -> bool:
        return self.epoch is not None


class BoundaryResolver:
    """Resolve session boundaries under the tiered fallback policy."""

    def __init__(self, event_codes: Optional[EventCodeConfig] = None):
        """
        Initialize boundary resolver.

        Args:
            event_codes: Event code configuration (Windows Security defaults if None)
        """
        self.event_codes = event_codes or EventCodeConfig()
        self._strict_logon_codes = self.event_codes.strict_logon_codes
        self._logoff_codes = self.event_codes.logoff_code_set

    def resolve(self, identifier: str, records: Iterable[EventRecord]) -> Optional[SessionBoundary]:
        """
        Resolve the boundaries of one session identifier.

        Records that do not carry the identifier, and records whose epoch time
        is malformed, are ignored. Iteration order decides ties.

        Args:
            identifier: Session identifier
            records: Records to scan (all records, or the identifier's index)

        Returns:
            SessionBoundary, or None if no start condition is met
        """
        absolute_min = _MinimumTracker()
        first_logon = _MinimumTracker()
        last_logoff: Optional[int] = None
        last_activity: Optional[int] = None
        malformed = 0

        for record in records:
            if not record.matches(identifier):
                continue
            if not record.has_epoch:
                malformed += 1
                continue

            epoch = record.epoch_time
            if last_activity is None or epoch > last_activity:
                last_activity = epoch

            code = record.event_code
            if code in self._logoff_codes:
                if last_logoff is None or epoch > last_logoff:
                    last_logoff = epoch
            else:
                absolute_min.offer(record)

            if code in self._strict_logon_codes:
                first_logon.offer(record)

        if malformed:
            logger.debug(f"Session {identifier}: ignored {malformed} record(s) with malformed epoch time")

        if first_logon.found:
            start_epoch, anchor, via_fallback = first_logon.epoch, first_logon.anchor, False
        elif absolute_min.found:
            start_epoch, anchor, via_fallback = absolute_min.epoch, absolute_min.anchor, True
        else:
            logger.info(f"Skipping session {identifier}: no logon or activity events found")
            return None

        end_epoch = last_logoff if last_logoff is not None else last_activity

        if start_epoch > end_epoch:
            logger.debug(
                f"Session {identifier}: end {end_epoch} precedes start {start_epoch}, clamping"
            )
            end_epoch = start_epoch

        return SessionBoundary(
            identifier=identifier,
            start_epoch=start_epoch,
            end_epoch=end_epoch,
            anchor=anchor,
            started_via_fallback=via_fallback
        )
