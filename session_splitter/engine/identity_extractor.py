"""
Identity extractor for discovering session identifiers.

This module normalizes logon id values and enumerates the distinct session
identifiers carried by a record sequence, in first-seen order.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .data_structures import EventRecord, PLACEHOLDER_VALUE

logger = logging.getLogger(__name__)


class IdentityExtractor:
    """
    Discover session identifiers and index records by identifier.

    Handles:
    - Identifier normalization (trimming, placeholder rejection)
    - First-seen ordered identifier discovery
    - Per-identifier record index preserving source order
    """

    def normalize_identifier(self, value: Optional[str]) -> Optional[str]:
        """
        Normalize a logon id value.

        Args:
            value: Raw id value

        Returns:
            Trimmed identifier, or None if empty or the '-' placeholder
        """
        if not value or not isinstance(value, str):
            return None

        value = value.strip()

        if not value or value == PLACEHOLDER_VALUE:
            return None

        return value

    def extract_identifiers(self, records: Iterable[EventRecord]) -> List[str]:
        """
        Extract distinct session identifiers.

        Target, subject and legacy logon ids are considered for every record.
        The returned order is the order in which each identifier is first
        seen, so identical input always yields the same enumeration.

        Args:
            records: Record sequence

        Returns:
            List of distinct identifiers
        """
        seen = {}
        for record in records:
            for value in (record.target_logon_id, record.subject_logon_id, record.legacy_logon_id):
                identifier = self.normalize_identifier(value)
                if identifier is not None and identifier not in seen:
                    seen[identifier] = len(seen)

        identifiers = list(seen)
        logger.debug(f"Discovered {len(identifiers)} session identifiers")
        return identifiers

    def build_record_index(self, records: Sequence[EventRecord]) -> Dict[str, List[EventRecord]]:
        """
        Group records by the identifiers they carry.

        A record naming several identifiers is listed under each of them, and
        only once per identifier even when two of its id fields agree.

        Args:
            records: Record sequence

        Returns:
            Mapping of identifier to its matching records in source order
        """
        index: Dict[str, List[EventRecord]] = {}
        for record in records:
            for identifier in dict.fromkeys(record.session_ids()):
                index.setdefault(identifier, []).append(record)
        return index
