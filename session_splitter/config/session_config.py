"""
Configuration for session splitting.

This module defines the configuration schema for the session splitter: the
event codes that mark logon, privileged logon, logoff and group membership
events, the header aliases used to locate canonical columns in an export,
output locations and logging options.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any, FrozenSet
from pathlib import Path

import yaml

from ..integration.integration_logging import LoggingConfig

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Configuration values are invalid or the file cannot be parsed"""
    pass


MANDATORY_FIELDS = [
    "epoch_time",
    "event_code",
    "timestamp",
    "target_user_name",
    "logon_type",
    "target_logon_id",
    "subject_logon_id",
]

OPTIONAL_FIELDS = [
    "subject_user_name",
    "legacy_logon_id",
]

DEFAULT_COLUMN_ALIASES = {
    "epoch_time": ["EpochTime", "Epoch", "epoch_time", "TimeCreatedEpoch", "UnixTime", "TimestampEpoch"],
    "event_code": ["EventID", "EventId", "Event ID", "event_id", "EventCode", "Id"],
    "timestamp": ["TimeCreated", "Timestamp", "TimeGenerated", "Date and Time", "SystemTime", "@timestamp"],
    "target_user_name": ["TargetUserName", "Target User Name", "target_user_name", "TargetUser"],
    "subject_user_name": ["SubjectUserName", "Subject User Name", "subject_user_name", "SubjectUser"],
    "logon_type": ["LogonType", "Logon Type", "logon_type"],
    "target_logon_id": ["TargetLogonId", "Target Logon ID", "target_logon_id", "TargetLogonID"],
    "subject_logon_id": ["SubjectLogonId", "Subject Logon ID", "subject_logon_id", "SubjectLogonID"],
    "legacy_logon_id": ["LogonId", "Logon ID", "logon_id", "LogonID"],
}


@dataclass
class EventCodeConfig:
    """Event codes recognised as session markers."""
    logon_codes: List[str] = field(default_factory=lambda: ["4624"])
    privileged_logon_codes: List[str] = field(default_factory=lambda: ["4672"])
    logoff_codes: List[str] = field(default_factory=lambda: ["4634"])
    group_membership_codes: List[str] = field(default_factory=lambda: ["4627"])

    @property
    def strict_logon_codes(self) -> FrozenSet[str]:
        """Codes establishing an authoritative session start."""
        return frozenset(self.logon_codes) | frozenset(self.privileged_logon_codes)

    @property
    def logoff_code_set(self) -> FrozenSet[str]:
        return frozenset(self.logoff_codes)

    @property
    def ignored_codes(self) -> FrozenSet[str]:
        """Codes that never make a session significant."""
        return (self.strict_logon_codes | self.logoff_code_set
                | frozenset(self.group_membership_codes))

    def validate(self) -> List[str]:
        errors = []
        for name in ("logon_codes", "privileged_logon_codes", "logoff_codes", "group_membership_codes"):
            if not getattr(self, name):
                errors.append(f"event_codes.{name} cannot be empty")
        overlap = self.strict_logon_codes & self.logoff_code_set
        if overlap:
            errors.append(f"codes cannot be both logon and logoff markers: {sorted(overlap)}")
        return errors


@dataclass
class ColumnMappingConfig:
    """Header aliases per canonical field and delimited-text options."""
    aliases: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_COLUMN_ALIASES.items()}
    )
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    max_field_size: int = 16 * 1024 * 1024

    def get_aliases(self, canonical: str) -> List[str]:
        """Get aliases for a canonical field (the canonical name itself is always accepted)."""
        aliases = list(self.aliases.get(canonical, []))
        if canonical not in aliases:
            aliases.append(canonical)
        return aliases

    def validate(self) -> List[str]:
        errors = []
        unknown = set(self.aliases) - set(MANDATORY_FIELDS) - set(OPTIONAL_FIELDS)
        if unknown:
            errors.append(f"Unknown canonical fields in columns.aliases: {sorted(unknown)}")
        if len(self.delimiter) != 1:
            errors.append(f"columns.delimiter must be a single character, got '{self.delimiter}'")
        if not isinstance(self.max_field_size, int) or self.max_field_size < 1:
            errors.append("columns.max_field_size must be a positive integer")
        return errors


@dataclass
class OutputConfig:
    """Where and how session files are written."""
    output_directory: str = "sessions"
    ignored_subdirectory: str = "ignored"
    ledger_filename: str = "ignored_sessions.txt"
    file_extension: str = ".csv"
    clean_output_directory: bool = True

    def validate(self) -> List[str]:
        errors = []
        if not self.output_directory:
            errors.append("output.output_directory cannot be empty")
        if not self.ignored_subdirectory:
            errors.append("output.ignored_subdirectory cannot be empty")
        if not self.ledger_filename:
            errors.append("output.ledger_filename cannot be empty")
        if not self.file_extension.startswith("."):
            errors.append(f"output.file_extension must start with '.', got '{self.file_extension}'")
        return errors


@dataclass
class SessionSplitterConfig:
    """
    Session splitter configuration.

    Defines how records are read, how sessions are bounded and named, and where
    the resulting files go.
    """
    event_codes: EventCodeConfig = field(default_factory=EventCodeConfig)
    columns: ColumnMappingConfig = field(default_factory=ColumnMappingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    max_workers: int = 1
    timestamp_token_max_length: int = 50

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionSplitterConfig':
        """Create SessionSplitterConfig from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        codes_data = data.get('event_codes', {})
        default_codes = EventCodeConfig()
        event_codes = EventCodeConfig(
            logon_codes=_as_code_list(codes_data.get('logon_codes', default_codes.logon_codes)),
            privileged_logon_codes=_as_code_list(
                codes_data.get('privileged_logon_codes', default_codes.privileged_logon_codes)),
            logoff_codes=_as_code_list(codes_data.get('logoff_codes', default_codes.logoff_codes)),
            group_membership_codes=_as_code_list(
                codes_data.get('group_membership_codes', default_codes.group_membership_codes))
        )

        # Aliases given in the file extend or replace the defaults per field
        columns_data = data.get('columns', {})
        aliases = {k: list(v) for k, v in DEFAULT_COLUMN_ALIASES.items()}
        for canonical, names in columns_data.get('aliases', {}).items():
            aliases[canonical] = [str(n) for n in names]
        columns = ColumnMappingConfig(
            aliases=aliases,
            delimiter=columns_data.get('delimiter', ','),
            encoding=columns_data.get('encoding', 'utf-8-sig'),
            max_field_size=columns_data.get('max_field_size', 16 * 1024 * 1024)
        )

        output_data = data.get('output', {})
        default_output = OutputConfig()
        output = OutputConfig(
            output_directory=output_data.get('output_directory', default_output.output_directory),
            ignored_subdirectory=output_data.get('ignored_subdirectory', default_output.ignored_subdirectory),
            ledger_filename=output_data.get('ledger_filename', default_output.ledger_filename),
            file_extension=output_data.get('file_extension', default_output.file_extension),
            clean_output_directory=output_data.get('clean_output_directory',
                                                   default_output.clean_output_directory)
        )

        config = cls(
            event_codes=event_codes,
            columns=columns,
            output=output,
            logging=LoggingConfig.from_dict(data.get('logging', {})),
            max_workers=data.get('max_workers', 1),
            timestamp_token_max_length=data.get('timestamp_token_max_length', 50)
        )
        config.validate_or_raise()
        return config

    @classmethod
    def load_from_file(cls, config_path: str) -> 'SessionSplitterConfig':
        """Load configuration from a JSON or YAML file."""
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yaml', '.yml'):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}") from e

        logger.debug(f"Loaded configuration from {config_path}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'event_codes': asdict(self.event_codes),
            'columns': asdict(self.columns),
            'output': asdict(self.output),
            'logging': asdict(self.logging),
            'max_workers': self.max_workers,
            'timestamp_token_max_length': self.timestamp_token_max_length
        }

    def save_to_file(self, config_path: str):
        """Save configuration to a JSON or YAML file."""
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    def validate(self) -> List[str]:
        """
        Validate the whole configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        errors.extend(self.event_codes.validate())
        errors.extend(self.columns.validate())
        errors.extend(self.output.validate())
        errors.extend(self.logging.validate())
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            errors.append(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not isinstance(self.timestamp_token_max_length, int) or self.timestamp_token_max_length < 1:
            errors.append("timestamp_token_max_length must be a positive integer")
        return errors

    def validate_or_raise(self):
        """Raise ConfigurationError listing every validation problem."""
        errors = self.validate()
        if errors:
            raise ConfigurationError("Invalid configuration:\n" + "\n".join(f"- {e}" for e in errors))


def _as_code_list(value: Any) -> List[str]:
    """Accept a single code or a list of codes, as strings."""
    if value is None:
        return []
    if isinstance(value, (str, int)):
        value = [value]
    return [str(v).strip() for v in value]


def create_default_config(output_directory: Optional[str] = None) -> SessionSplitterConfig:
    """Create a default configuration, optionally with a custom output directory."""
    config = SessionSplitterConfig()
    if output_directory:
        config.output.output_directory = output_directory
    return config
