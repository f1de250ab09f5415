"""
Ledger of sessions routed to the ignored location.

Entries may be appended from several worker threads; the ledger is sorted
once, after all workers finish, by the full formatted line.
"""

import threading
from typing import List

from .data_structures import LedgerEntry


class SkipLedger:
    """Append-only, thread-safe collection of ledger entries."""

    def __init__(self):
        self._entries: List[LedgerEntry] = []
        self._lock = threading.Lock()

    def add(self, entry: LedgerEntry):
        """Append one entry."""
        with self._lock:
            self._entries.append(entry)

    def sorted_lines(self) -> List[str]:
        """Formatted ledger lines, sorted lexicographically ascending."""
        with self._lock:
            lines = [entry.format() for entry in self._entries]
        return sorted(lines)
