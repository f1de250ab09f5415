"""
Window materializer.

Turns a resolved SessionBoundary into a SessionWindow by collecting the member
records and classifying whether the session contains activity beyond logon,
logoff, privilege assignment and group membership noise.
"""

import logging
from typing import Iterable, Optional, Sequence

from ..config.session_config import EventCodeConfig
from .data_structures import EventRecord, SessionBoundary, SessionWindow

logger = logging.getLogger(__name__)


class WindowMaterializer:
    """Extract session members and compute the significant-activity flag."""

    def __init__(self, event_codes: Optional[EventCodeConfig] = None):
        self.event_codes = event_codes or EventCodeConfig()
        self._ignored_codes = self.event_codes.ignored_codes

    def collect_members(self, boundary: SessionBoundary,
                        records: Iterable[EventRecord]) -> tuple:
        """
        Collect records carrying the identifier with epoch in [start, end].

        Args:
            boundary: Resolved session boundary
            records: Records to scan, in source order

        Returns:
            Tuple of member records in source order
        """
        return tuple(
            record for record in records
            if record.matches(boundary.identifier) and boundary.contains(record.epoch_time)
        )

    def is_significant(self, members: Sequence[EventRecord]) -> bool:
        """Check if any member's event code is outside the ignore set."""
        return any(record.event_code not in self._ignored_codes for record in members)

    def materialize(self, boundary: SessionBoundary,
                    records: Iterable[EventRecord]) -> SessionWindow:
        """
        Build the session window for a boundary.

        Args:
            boundary: Resolved session boundary
            records: Records to scan, in source order

        Returns:
            SessionWindow with members and classification
        """
        members = self.collect_members(boundary, records)
        significant = self.is_significant(members)

        logger.debug(
            f"Session {boundary.identifier}: {len(members)} member(s), "
            f"significant={significant}"
        )

        return SessionWindow(
            identifier=boundary.identifier,
            start_epoch=boundary.start_epoch,
            end_epoch=boundary.end_epoch,
            anchor_user_name=boundary.anchor.user_name,
            anchor_logon_type=boundary.anchor.logon_type,
            anchor_timestamp=boundary.anchor.timestamp,
            started_via_fallback=boundary.started_via_fallback,
            members=members,
            is_significant=significant
        )
