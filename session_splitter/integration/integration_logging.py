"""
Logging Configuration

Provides logging configuration for the session splitter: console logging,
optional rotating file logging and simple, detailed or JSON formatting.
"""

import logging
import logging.handlers
import json
from datetime import datetime
from typing import Dict, Any, Optional
from pathlib import Path
from dataclasses import dataclass


PACKAGE_LOGGER = "session_splitter"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["simple", "detailed", "json"]


@dataclass
class LoggingConfig:
    """Configuration for session splitter logging"""
    log_level: str = "INFO"
    log_format: str = "simple"  # simple, detailed, json
    enable_file_logging: bool = False
    enable_console_logging: bool = True
    log_directory: str = "logs"
    log_filename: str = "session_splitter.log"
    max_file_size_mb: int = 10
    backup_count: int = 5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoggingConfig':
        """Create LoggingConfig from dictionary."""
        defaults = cls()
        return cls(
            log_level=str(data.get('log_level', defaults.log_level)).upper(),
            log_format=data.get('log_format', defaults.log_format),
            enable_file_logging=data.get('enable_file_logging', defaults.enable_file_logging),
            enable_console_logging=data.get('enable_console_logging', defaults.enable_console_logging),
            log_directory=data.get('log_directory', defaults.log_directory),
            log_filename=data.get('log_filename', defaults.log_filename),
            max_file_size_mb=data.get('max_file_size_mb', defaults.max_file_size_mb),
            backup_count=data.get('backup_count', defaults.backup_count)
        )

    def validate(self) -> list:
        """
        Validate logging configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {VALID_LOG_LEVELS}, got '{self.log_level}'")
        if self.log_format not in VALID_LOG_FORMATS:
            errors.append(f"log_format must be one of {VALID_LOG_FORMATS}, got '{self.log_format}'")
        if self.max_file_size_mb <= 0:
            errors.append("max_file_size_mb must be positive")
        if self.backup_count < 0:
            errors.append("backup_count must be non-negative")
        return errors


class SessionLogFormatter(logging.Formatter):
    """Custom formatter for session splitter logging"""

    def __init__(self, format_type: str = "simple"):
        self.format_type = format_type

        if format_type == "json":
            super().__init__()
        elif format_type == "detailed":
            fmt = (
                "%(asctime)s | %(levelname)-8s | %(name)-40s | "
                "%(funcName)-20s:%(lineno)-4d | %(message)s"
            )
            super().__init__(fmt)
        else:
            super().__init__("%(asctime)s [%(levelname)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if self.format_type != "json":
            return super().format(record)

        payload = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage()
        }
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(config: Optional[LoggingConfig] = None,
                  level: Optional[int] = None) -> logging.Logger:
    """
    Configure the package logger.

    Existing handlers installed by a previous call are replaced, so calling
    this twice does not duplicate output.

    Args:
        config: Logging configuration (defaults used if None)
        level: Explicit level overriding config.log_level

    Returns:
        The configured package logger
    """
    config = config or LoggingConfig()
    if level is None:
        level = getattr(logging, config.log_level.upper(), logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = SessionLogFormatter(config.log_format)

    if config.enable_console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.enable_file_logging:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / config.log_filename,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.propagate = False
    return logger
