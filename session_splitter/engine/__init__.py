"""
Session Engine Package
Core engine for discovering session identifiers, resolving session boundaries
and naming session windows.
"""

from .data_structures import (
    EventRecord, SessionAnchor, SessionBoundary, SessionWindow,
    SessionArtifact, LedgerEntry, SessionSplitResult
)
from .identity_extractor import IdentityExtractor
from .boundary_resolver import BoundaryResolver
from .window_materializer import WindowMaterializer
from .fallback_annotator import FallbackAnnotator
from .session_namer import SessionNamer
from .skip_ledger import SkipLedger
from .session_engine import SessionEngine, split_sessions

__all__ = [
    'EventRecord',
    'SessionAnchor',
    'SessionBoundary',
    'SessionWindow',
    'SessionArtifact',
    'LedgerEntry',
    'SessionSplitResult',
    'IdentityExtractor',
    'BoundaryResolver',
    'WindowMaterializer',
    'FallbackAnnotator',
    'SessionNamer',
    'SkipLedger',
    'SessionEngine',
    'split_sessions'
]
