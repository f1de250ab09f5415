"""
Core data structures for the session splitting engine.

This module defines the fundamental data structures used throughout the engine:
- EventRecord: One normalized security-audit event
- SessionAnchor: Username/logon-type/timestamp captured from a boundary record
- SessionBoundary: Resolved start/end epochs for one session identifier
- SessionWindow: Materialized logon session with its member records
- SessionArtifact: Named, routed window ready for emission
- LedgerEntry: Descriptor of a window classified as insignificant
- SessionSplitResult: Everything one engine run produces
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple


PLACEHOLDER_VALUE = "-"


def parse_epoch(value: Any) -> Optional[int]:
    """
    Parse an epoch time value.

    Args:
        value: Raw epoch value (string or integer)

    Returns:
        Integer epoch, or None if the value is malformed
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def is_absent(value: Optional[str]) -> bool:
    """Check if a value is missing, empty or the '-' placeholder."""
    if value is None:
        return True
    value = value.strip()
    return not value or value == PLACEHOLDER_VALUE


@dataclass(frozen=True)
class EventRecord:
    """
    Normalized security-audit event.

    Records are produced once by the record loader and only read afterwards.
    Optional fields are None when the source has no column for them.
    """
    row_number: int  # Position in the source sequence
    epoch_time: Optional[int]  # None when the source value was malformed
    event_code: str
    timestamp: str = ""
    target_user_name: str = ""
    logon_type: str = ""
    target_logon_id: str = ""
    subject_logon_id: str = ""
    subject_user_name: Optional[str] = None
    legacy_logon_id: Optional[str] = None
    raw: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)  # Source row

    @property
    def has_epoch(self) -> bool:
        """Check if the record carries a usable epoch time."""
        return self.epoch_time is not None

    def session_ids(self) -> Tuple[str, ...]:
        """
        Candidate session identifiers carried by this record.

        Returns:
            Trimmed target, subject and legacy logon ids, in that order,
            excluding empty and placeholder values
        """
        ids = []
        for value in (self.target_logon_id, self.subject_logon_id, self.legacy_logon_id):
            if value is None:
                continue
            value = value.strip()
            if value and value != PLACEHOLDER_VALUE:
                ids.append(value)
        return tuple(ids)

    def matches(self, identifier: str) -> bool:
        """Check if any id field of this record equals the identifier."""
        return identifier in self.session_ids()


@dataclass(frozen=True)
class SessionAnchor:
    """Username, logon type and timestamp taken from the record defining a boundary."""
    user_name: str = ""
    logon_type: str = ""
    timestamp: str = ""

    @classmethod
    def from_record(cls, record: EventRecord) -> 'SessionAnchor':
        """Capture the anchor triple of a record."""
        return cls(
            user_name=record.target_user_name or "",
            logon_type=record.logon_type or "",
            timestamp=record.timestamp or ""
        )


@dataclass(frozen=True)
class SessionBoundary:
    """Resolved temporal boundaries of one session identifier."""
    identifier: str
    start_epoch: int
    end_epoch: int
    anchor: SessionAnchor
    started_via_fallback: bool  # True when no logon marker existed

    def __post_init__(self):
        """Validate boundary ordering."""
        if self.start_epoch > self.end_epoch:
            raise ValueError(
                f"start_epoch {self.start_epoch} is after end_epoch {self.end_epoch}"
            )

    def contains(self, epoch: Optional[int]) -> bool:
        """Check if an epoch falls within [start_epoch, end_epoch]."""
        if epoch is None:
            return False
        return self.start_epoch <= epoch <= self.end_epoch


@dataclass(frozen=True)
class SessionWindow:
    """
    One logon session: boundaries, anchors and member records.

    Windows are immutable; the fallback annotator returns an updated copy.
    """
    identifier: str
    start_epoch: int
    end_epoch: int
    anchor_user_name: str
    anchor_logon_type: str
    anchor_timestamp: str
    started_via_fallback: bool
    members: Tuple[EventRecord, ...] = ()
    is_significant: bool = False

    @property
    def duration_seconds(self) -> int:
        """Session duration in seconds."""
        return self.end_epoch - self.start_epoch

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class LedgerEntry:
    """Descriptor of a window that was routed to the ignored location."""
    output_name: str
    reason: str

    def format(self) -> str:
        """Format as a ledger line: '<name> | Reason: <reason>'."""
        return f"{self.output_name} | Reason: {self.reason}"


@dataclass(frozen=True)
class SessionArtifact:
    """Named and routed session window."""
    window: SessionWindow
    base_name: str  # Derived name without prefix or extension
    file_name: str  # Final file name, including IGNORED_ prefix and extension
    ignored: bool = False
    ledger_entry: Optional[LedgerEntry] = None

    @property
    def identifier(self) -> str:
        return self.window.identifier

    @property
    def members(self) -> Tuple[EventRecord, ...]:
        return self.window.members


@dataclass
class SessionSplitResult:
    """Output of one engine run."""
    artifacts: List[SessionArtifact] = field(default_factory=list)
    ledger_lines: List[str] = field(default_factory=list)  # Sorted ascending
    skipped_identifiers: List[str] = field(default_factory=list)
    identifiers: List[str] = field(default_factory=list)  # Processing order

    @property
    def main_artifacts(self) -> List[SessionArtifact]:
        return [a for a in self.artifacts if not a.ignored]

    @property
    def ignored_artifacts(self) -> List[SessionArtifact]:
        return [a for a in self.artifacts if a.ignored]

    def get_artifact(self, identifier: str) -> Optional[SessionArtifact]:
        """Find the artifact produced for an identifier."""
        for artifact in self.artifacts:
            if artifact.identifier == identifier:
                return artifact
        return None

    def to_summary(self) -> Dict[str, Any]:
        """Summarize counts for logging."""
        return {
            'identifiers': len(self.identifiers),
            'windows': len(self.artifacts),
            'main': len(self.main_artifacts),
            'ignored': len(self.ignored_artifacts),
            'skipped': len(self.skipped_identifiers),
            'ledger_lines': len(self.ledger_lines)
        }
