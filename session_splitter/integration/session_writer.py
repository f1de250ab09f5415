"""
Session Writer

Writes session artifacts to disk: one delimited file per session window in the
main or ignored directory, plus the ledger of ignored sessions.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from ..config.session_config import OutputConfig
from ..engine.data_structures import SessionArtifact, SessionSplitResult
from ..engine.session_namer import IGNORED_PREFIX

logger = logging.getLogger(__name__)

_PATH_SEPARATORS = re.compile(r"[/\\]")


def safe_file_name(file_name: str) -> str:
    """Replace path separators so a session name cannot address a subdirectory."""
    return _PATH_SEPARATORS.sub("_", file_name)


@dataclass
class WriteSummary:
    """Paths produced by one write pass."""
    main_files: List[Path] = field(default_factory=list)
    ignored_files: List[Path] = field(default_factory=list)
    ledger_file: Optional[Path] = None
    overwritten_files: List[Path] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.main_files) + len(self.ignored_files)


class SessionWriter:
    """Emit session artifacts and the ignored-session ledger"""

    def __init__(self, output_config: Optional[OutputConfig] = None,
                 delimiter: str = ",", encoding: str = "utf-8"):
        """
        Initialize session writer.

        Args:
            output_config: Output locations and naming options
            delimiter: Delimiter for written files
            encoding: Encoding for written files
        """
        self.output_config = output_config or OutputConfig()
        self.delimiter = delimiter
        self.encoding = encoding
        # Names produced by this tool: ...-Duration-HH_MM_SS<ext>
        self._session_file_pattern = re.compile(
            r".+-Duration-\d{2,}_\d{2}_\d{2}" + re.escape(self.output_config.file_extension) + r"$"
        )

    @property
    def main_directory(self) -> Path:
        return Path(self.output_config.output_directory)

    @property
    def ignored_directory(self) -> Path:
        return self.main_directory / self.output_config.ignored_subdirectory

    @property
    def ledger_path(self) -> Path:
        return self.main_directory / self.output_config.ledger_filename

    def resolve_path(self, artifact: SessionArtifact) -> Path:
        """Output path of an artifact according to its routing."""
        directory = self.ignored_directory if artifact.ignored else self.main_directory
        file_name = safe_file_name(artifact.file_name)
        if file_name != artifact.file_name:
            logger.warning(
                f"Session {artifact.identifier}: name '{artifact.file_name}' contains a path "
                f"separator, writing it as '{file_name}'"
            )
        return directory / file_name

    def is_session_file(self, path: Path, ignored: bool = False) -> bool:
        """True if the file name follows the session naming scheme."""
        name = path.name
        if ignored and not name.startswith(IGNORED_PREFIX):
            return False
        return bool(self._session_file_pattern.match(name))

    def prepare(self, preserve: Iterable[str] = ()):
        """
        Create output directories, removing output from a previous run if configured.

        Only files named like session files and the previous ledger are removed.
        Paths in preserve (typically the input export) are never removed.

        Args:
            preserve: Paths that must survive cleanup
        """
        if self.output_config.clean_output_directory:
            removed = self._clean({Path(p).resolve() for p in preserve})
            if removed:
                logger.info(f"Removed {removed} file(s) from previous run in {self.main_directory}")

        self.main_directory.mkdir(parents=True, exist_ok=True)
        self.ignored_directory.mkdir(parents=True, exist_ok=True)

    def _clean(self, preserve: Set[Path]) -> int:
        removed = 0
        candidates = []
        for directory, ignored in ((self.main_directory, False), (self.ignored_directory, True)):
            if not directory.is_dir():
                continue
            candidates.extend(p for p in directory.iterdir()
                              if p.is_file() and self.is_session_file(p, ignored))
        if self.ledger_path.is_file():
            candidates.append(self.ledger_path)

        for path in candidates:
            if path.resolve() in preserve:
                logger.warning(f"Not removing {path}: it is an input of this run")
                continue
            path.unlink()
            removed += 1
        return removed

    def write_artifact(self, artifact: SessionArtifact, fieldnames: Sequence[str],
                       path: Optional[Path] = None) -> Path:
        """
        Write the member rows of one session.

        Args:
            artifact: Named session window
            fieldnames: Source header order
            path: Already resolved output path (resolved from the artifact if None)

        Returns:
            Path of the written file
        """
        path = path or self.resolve_path(artifact)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding=self.encoding, newline='') as f:
            writer = csv.DictWriter(f, fieldnames=list(fieldnames),
                                    delimiter=self.delimiter, extrasaction='ignore')
            writer.writeheader()
            for record in artifact.members:
                writer.writerow(record.raw)

        logger.debug(f"Wrote {len(artifact.members)} row(s) to {path}")
        return path

    def write_ledger(self, lines: Sequence[str]) -> Optional[Path]:
        """
        Write the ignored-session ledger.

        Args:
            lines: Formatted ledger lines, already sorted

        Returns:
            Path of the ledger, or None when there is nothing to record
        """
        if not lines:
            return None

        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.ledger_path, 'w', encoding=self.encoding) as f:
            for line in lines:
                f.write(line + "\n")

        logger.info(f"Recorded {len(lines)} ignored session(s) in {self.ledger_path}")
        return self.ledger_path

    def write_all(self, result: SessionSplitResult, fieldnames: Sequence[str],
                  preserve: Iterable[str] = ()) -> WriteSummary:
        """
        Prepare directories and write every artifact and the ledger.

        Args:
            result: Engine output
            fieldnames: Source header order
            preserve: Paths that cleanup must not remove

        Returns:
            WriteSummary
        """
        preserve = list(preserve)
        self.prepare(preserve)
        protected = {Path(p).resolve() for p in preserve}
        summary = WriteSummary()
        written: Set[Path] = set()

        for artifact in result.artifacts:
            path = self.resolve_path(artifact)
            if path.resolve() in protected:
                raise FileExistsError(
                    f"Session {artifact.identifier} would overwrite input file {path}"
                )
            if path in written:
                logger.warning(
                    f"Session {artifact.identifier} has the same file name as an earlier "
                    f"session, {path} is overwritten"
                )
                summary.overwritten_files.append(path)
            path = self.write_artifact(artifact, fieldnames, path)
            written.add(path)
            if artifact.ignored:
                summary.ignored_files.append(path)
            else:
                summary.main_files.append(path)

        summary.ledger_file = self.write_ledger(result.ledger_lines)
        return summary
