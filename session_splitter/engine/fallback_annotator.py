"""
Fallback annotator.

Fills in a window's username and logon type from its members when the record
that defined the session start did not carry them.
"""

import logging
from dataclasses import replace
from typing import Optional

from .data_structures import SessionWindow, is_absent

logger = logging.getLogger(__name__)

UNKNOWN_USER_PREFIX = "UNKNOWN_USER_"


class FallbackAnnotator:
    """Resolve missing username and logon-type anchors."""

    def resolve_user_name(self, window: SessionWindow) -> str:
        """
        Resolve the username of a window.

        Order: the anchor itself, the first usable target username among
        members, the first usable subject username among members (when the
        source has that column), then a synthesized UNKNOWN_USER_<identifier>.
        """
        if not is_absent(window.anchor_user_name):
            return window.anchor_user_name

        for record in window.members:
            if not is_absent(record.target_user_name):
                return record.target_user_name.strip()

        for record in window.members:
            if record.subject_user_name is not None and not is_absent(record.subject_user_name):
                return record.subject_user_name.strip()

        return f"{UNKNOWN_USER_PREFIX}{window.identifier}"

    def resolve_logon_type(self, window: SessionWindow) -> str:
        """Resolve the logon type; stays empty when no member has one."""
        if window.anchor_logon_type and window.anchor_logon_type.strip():
            return window.anchor_logon_type

        for record in window.members:
            if record.logon_type and record.logon_type.strip():
                return record.logon_type.strip()

        return ""

    def annotate(self, window: SessionWindow) -> SessionWindow:
        """
        Return a copy of the window with resolved anchors.

        Args:
            window: Materialized session window

        Returns:
            Window with anchor_user_name and anchor_logon_type filled in
        """
        user_name = self.resolve_user_name(window)
        logon_type = self.resolve_logon_type(window)

        if user_name == window.anchor_user_name and logon_type == window.anchor_logon_type:
            return window

        if user_name != window.anchor_user_name:
            logger.debug(f"Session {window.identifier}: username resolved to '{user_name}'")

        return replace(window, anchor_user_name=user_name, anchor_logon_type=logon_type)
