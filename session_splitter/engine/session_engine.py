"""
Session Engine

Orchestrates the per-identifier pipeline:

    Discovered -> BoundaryResolved (or Skipped) -> Materialized -> Annotated -> Named

Identifiers only read the shared record sequence, so they can be processed on
a thread pool. Results are always returned in identifier discovery order and
the ledger is sorted once after every identifier has been processed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from ..config.session_config import SessionSplitterConfig
from .boundary_resolver import BoundaryResolver
from .data_structures import EventRecord, SessionArtifact, SessionSplitResult
from .fallback_annotator import FallbackAnnotator
from .identity_extractor import IdentityExtractor
from .session_namer import SessionNamer
from .skip_ledger import SkipLedger
from .window_materializer import WindowMaterializer

logger = logging.getLogger(__name__)


class SessionEngine:
    """Split a record sequence into named logon session windows."""

    def __init__(self, config: Optional[SessionSplitterConfig] = None,
                 max_workers: Optional[int] = None):
        """
        Initialize session engine.

        Args:
            config: Session splitter configuration (defaults if None)
            max_workers: Worker thread count, overriding config.max_workers
        """
        self.config = config or SessionSplitterConfig()
        self.max_workers = max_workers if max_workers is not None else self.config.max_workers
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

        self.identity_extractor = IdentityExtractor()
        self.boundary_resolver = BoundaryResolver(self.config.event_codes)
        self.window_materializer = WindowMaterializer(self.config.event_codes)
        self.fallback_annotator = FallbackAnnotator()
        self.namer = SessionNamer(
            file_extension=self.config.output.file_extension,
            timestamp_max_length=self.config.timestamp_token_max_length
        )

    def process_identifier(self, identifier: str,
                           records: Sequence[EventRecord]) -> Optional[SessionArtifact]:
        """
        Run one identifier through the pipeline.

        Args:
            identifier: Session identifier
            records: Records to scan, in source order

        Returns:
            SessionArtifact, or None if the identifier was skipped
        """
        boundary = self.boundary_resolver.resolve(identifier, records)
        if boundary is None:
            return None

        window = self.window_materializer.materialize(boundary, records)
        window = self.fallback_annotator.annotate(window)
        return self.namer.name(window)

    def run(self, records: Sequence[EventRecord]) -> SessionSplitResult:
        """
        Split records into session artifacts.

        Args:
            records: Normalized records in source order

        Returns:
            SessionSplitResult with artifacts in identifier order and sorted ledger lines
        """
        records = list(records)
        identifiers = self.identity_extractor.extract_identifiers(records)
        result = SessionSplitResult(identifiers=identifiers)

        if not identifiers:
            logger.info("No session identifiers found, nothing to split")
            return result

        index = self.identity_extractor.build_record_index(records)
        ledger = SkipLedger()

        def work(identifier: str) -> Optional[SessionArtifact]:
            artifact = self.process_identifier(identifier, index.get(identifier, []))
            if artifact is not None and artifact.ledger_entry is not None:
                ledger.add(artifact.ledger_entry)
            return artifact

        logger.info(
            f"Processing {len(identifiers)} session identifier(s) "
            f"from {len(records)} record(s) with {self.max_workers} worker(s)"
        )

        if self.max_workers == 1:
            outcomes = [work(identifier) for identifier in identifiers]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix="session-worker") as executor:
                outcomes = list(executor.map(work, identifiers))

        for identifier, artifact in zip(identifiers, outcomes):
            if artifact is None:
                result.skipped_identifiers.append(identifier)
            else:
                result.artifacts.append(artifact)

        result.ledger_lines = ledger.sorted_lines()

        logger.info(
            f"Resolved {len(result.artifacts)} session(s): "
            f"{len(result.main_artifacts)} with activity, "
            f"{len(result.ignored_artifacts)} ignored, "
            f"{len(result.skipped_identifiers)} skipped"
        )
        return result


def split_sessions(records: Sequence[EventRecord],
                   config: Optional[SessionSplitterConfig] = None) -> SessionSplitResult:
    """Convenience wrapper running a SessionEngine once."""
    return SessionEngine(config).run(records)
