"""
Configuration Package
Handles loading and saving session splitter configuration.
"""

from .session_config import (
    SessionSplitterConfig, EventCodeConfig, ColumnMappingConfig,
    OutputConfig, ConfigurationError, create_default_config
)

__all__ = [
    'SessionSplitterConfig',
    'EventCodeConfig',
    'ColumnMappingConfig',
    'OutputConfig',
    'ConfigurationError',
    'create_default_config'
]
