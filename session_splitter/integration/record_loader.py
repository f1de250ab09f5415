"""
Record Loader
Reads delimited security-log exports and normalizes them into EventRecords.

Column names vary between export tools, so each canonical field is located
through a list of accepted header aliases. Resolution happens once per file;
nothing downstream of the loader sees alias names.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..config.session_config import ColumnMappingConfig, MANDATORY_FIELDS, OPTIONAL_FIELDS
from ..engine.data_structures import EventRecord, parse_epoch

logger = logging.getLogger(__name__)


# Exception hierarchy for RecordLoader errors
class RecordLoaderError(Exception):
    """Base exception for RecordLoader errors"""
    pass


class MissingColumnError(RecordLoaderError):
    """One or more mandatory canonical columns could not be resolved"""

    def __init__(self, missing: Dict[str, List[str]], source: str = ""):
        self.missing = missing
        self.source = source
        details = "; ".join(
            f"{canonical} (accepted: {', '.join(aliases)})"
            for canonical, aliases in missing.items()
        )
        location = f" in {source}" if source else ""
        super().__init__(f"Missing mandatory column(s){location}: {details}")


class RecordFormatError(RecordLoaderError):
    """The source cannot be decoded or parsed as delimited text"""

    def __init__(self, message: str, source: str = "", line: Optional[int] = None):
        self.source = source
        self.line = line
        location = source
        if line:
            location += f", line {line}"
        super().__init__(f"{location}: {message}" if location else message)


_HEADER_NOISE = re.compile(r"[^a-z0-9@]")


def normalize_header(header: str) -> str:
    """Normalize a header for matching: lowercase, no whitespace or punctuation."""
    return _HEADER_NOISE.sub("", (header or "").lower())


@dataclass
class ColumnMap:
    """Canonical field -> source header. Optional fields map to None when absent."""
    columns: Dict[str, Optional[str]] = field(default_factory=dict)

    def get(self, canonical: str) -> Optional[str]:
        return self.columns.get(canonical)

    def has(self, canonical: str) -> bool:
        return self.columns.get(canonical) is not None


@dataclass
class LoadedRecords:
    """Records read from one source together with its header information."""
    records: List[EventRecord]
    fieldnames: List[str]
    column_map: ColumnMap
    malformed_epoch_count: int = 0
    source: str = ""

    def __len__(self) -> int:
        return len(self.records)


class RecordLoader:
    """Loads delimited exports and resolves header aliases"""

    def __init__(self, column_config: Optional[ColumnMappingConfig] = None):
        """
        Initialize record loader.

        Args:
            column_config: Alias and delimiter configuration (defaults if None)
        """
        self.column_config = column_config or ColumnMappingConfig()

    def resolve_columns(self, headers: Sequence[str], source: str = "") -> ColumnMap:
        """
        Map canonical fields onto source headers.

        The first alias present in the headers wins. Matching ignores case,
        whitespace and punctuation.

        Args:
            headers: Source header row
            source: Source description for error messages

        Returns:
            ColumnMap

        Raises:
            MissingColumnError: If a mandatory field has no matching header
        """
        available: Dict[str, str] = {}
        for header in headers or []:
            if header is None:
                continue
            available.setdefault(normalize_header(header), header)

        columns: Dict[str, Optional[str]] = {}
        missing: Dict[str, List[str]] = {}

        for canonical in MANDATORY_FIELDS + OPTIONAL_FIELDS:
            aliases = self.column_config.get_aliases(canonical)
            match = None
            for alias in aliases:
                match = available.get(normalize_header(alias))
                if match is not None:
                    break

            columns[canonical] = match
            if match is None and canonical in MANDATORY_FIELDS:
                missing[canonical] = aliases
            elif match is not None:
                logger.debug(f"Column '{match}' resolved as {canonical}")

        if missing:
            raise MissingColumnError(missing, source)

        for canonical in OPTIONAL_FIELDS:
            if columns[canonical] is None:
                logger.info(f"Optional column {canonical} not present{' in ' + source if source else ''}")

        return ColumnMap(columns)

    def build_record(self, row_number: int, row: Dict[str, Optional[str]],
                     column_map: ColumnMap) -> EventRecord:
        """
        Build an EventRecord from one source row.

        Args:
            row_number: Position of the row in the source (0-based)
            row: Row keyed by source header
            column_map: Resolved columns

        Returns:
            Normalized EventRecord
        """
        def value(canonical: str) -> Optional[str]:
            header = column_map.get(canonical)
            if header is None:
                return None
            raw = row.get(header)
            return raw.strip() if isinstance(raw, str) else ""

        epoch_text = value("epoch_time")
        raw_row = {k: ("" if v is None else v) for k, v in row.items() if k is not None}

        return EventRecord(
            row_number=row_number,
            epoch_time=parse_epoch(epoch_text),
            event_code=value("event_code"),
            timestamp=value("timestamp"),
            target_user_name=value("target_user_name"),
            logon_type=value("logon_type"),
            target_logon_id=value("target_logon_id"),
            subject_logon_id=value("subject_logon_id"),
            subject_user_name=value("subject_user_name"),
            legacy_logon_id=value("legacy_logon_id"),
            raw=raw_row
        )

    def records_from_rows(self, rows: Iterable[Dict[str, Optional[str]]],
                          fieldnames: Sequence[str], source: str = "") -> LoadedRecords:
        """
        Normalize in-memory rows.

        Args:
            rows: Rows keyed by source header, in source order
            fieldnames: Source header row
            source: Source description for messages

        Returns:
            LoadedRecords
        """
        column_map = self.resolve_columns(fieldnames, source)
        records = []
        malformed = 0

        for row_number, row in enumerate(rows):
            record = self.build_record(row_number, row, column_map)
            if not record.has_epoch:
                malformed += 1
            records.append(record)

        if malformed:
            logger.warning(
                f"{malformed} of {len(records)} record(s){' in ' + source if source else ''} "
                f"have a malformed epoch time and will not be assigned to sessions"
            )

        return LoadedRecords(
            records=records,
            fieldnames=[f for f in fieldnames if f is not None],
            column_map=column_map,
            malformed_epoch_count=malformed,
            source=source
        )

    def load(self, path: str) -> LoadedRecords:
        """
        Load a delimited export.

        Args:
            path: Path to the export

        Returns:
            LoadedRecords

        Raises:
            FileNotFoundError: If the file does not exist
            MissingColumnError: If the header lacks mandatory columns or the file is empty
            RecordFormatError: If the file cannot be decoded or a row cannot be parsed
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")

        # Exports with long message columns exceed the csv module's default limit
        csv.field_size_limit(self.column_config.max_field_size)
        encoding = self.column_config.encoding

        with open(file_path, 'r', encoding=encoding, newline='') as f:
            reader = csv.DictReader(f, delimiter=self.column_config.delimiter)
            try:
                fieldnames = reader.fieldnames or []
                loaded = self.records_from_rows(reader, fieldnames, source=str(file_path))
            except UnicodeDecodeError as e:
                raise RecordFormatError(
                    f"cannot decode as {encoding} ({e.reason}); "
                    f"set columns.encoding to the export's encoding",
                    str(file_path), reader.line_num + 1
                ) from e
            except csv.Error as e:
                raise RecordFormatError(str(e), str(file_path), reader.line_num) from e

        logger.info(f"Loaded {len(loaded.records)} record(s) from {file_path}")
        return loaded
