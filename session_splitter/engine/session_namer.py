"""
Session namer.

Derives the deterministic file name of a session window and routes it to the
main or ignored output location:

    <user>-<identifier>-<logonType>[-nologon][-<timestamp>]-Duration-<HH_MM_SS><ext>

Windows without significant activity are prefixed IGNORED_ and produce a
ledger entry.
"""

import logging
import re
from typing import Optional

from .data_structures import LedgerEntry, SessionArtifact, SessionWindow

logger = logging.getLogger(__name__)

IGNORED_PREFIX = "IGNORED_"
MISSING_LOGON_TYPE = "missing"
NOLOGON_MARKER = "nologon"
IGNORED_REASON = "No Intermediate Activity (Only Logon/Logoff/Admin events)"

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_NON_USERNAME = re.compile(r"[^A-Za-z0-9_-]")


def format_duration(seconds: int) -> str:
    """
    Format a duration as HH_MM_SS.

    Hours are not wrapped at 24; negative durations are treated as zero.
    """
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}".replace(":", "_")


def timestamp_token(timestamp: Optional[str], max_length: int = 50) -> str:
    """Reduce a human-readable timestamp to [A-Za-z0-9_], trimmed and truncated."""
    if not timestamp:
        return ""
    token = _NON_ALNUM.sub("_", timestamp).strip("_")
    return token[:max_length]


def sanitize_user_name(user_name: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _NON_USERNAME.sub("_", user_name or "")


class SessionNamer:
    """Build names and routing decisions for session windows."""

    def __init__(self, file_extension: str = ".csv", timestamp_max_length: int = 50):
        """
        Initialize session namer.

        Args:
            file_extension: Extension appended to every file name
            timestamp_max_length: Maximum length of the timestamp token
        """
        self.file_extension = file_extension
        self.timestamp_max_length = timestamp_max_length

    def build_name(self, window: SessionWindow) -> str:
        """
        Build the base name of a window (no prefix, no extension).

        Args:
            window: Annotated session window

        Returns:
            Derived name
        """
        logon_type = window.anchor_logon_type or MISSING_LOGON_TYPE
        parts = [sanitize_user_name(window.anchor_user_name), window.identifier, logon_type]

        if window.started_via_fallback:
            parts.append(NOLOGON_MARKER)

        token = timestamp_token(window.anchor_timestamp, self.timestamp_max_length)
        if token:
            parts.append(token)

        parts.append("Duration")
        parts.append(format_duration(window.duration_seconds))
        return "-".join(parts)

    def name(self, window: SessionWindow) -> SessionArtifact:
        """
        Name and route a window.

        Args:
            window: Annotated session window

        Returns:
            SessionArtifact; ignored artifacts carry their ledger entry
        """
        base_name = self.build_name(window)

        if window.is_significant:
            return SessionArtifact(
                window=window,
                base_name=base_name,
                file_name=f"{base_name}{self.file_extension}",
                ignored=False
            )

        file_name = f"{IGNORED_PREFIX}{base_name}{self.file_extension}"
        logger.debug(f"Session {window.identifier} has no intermediate activity, routing to ignored")
        return SessionArtifact(
            window=window,
            base_name=base_name,
            file_name=file_name,
            ignored=True,
            ledger_entry=LedgerEntry(output_name=file_name, reason=IGNORED_REASON)
        )
