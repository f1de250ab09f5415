"""
Integration Package
Reading exports, writing session files and logging setup.

The record loader and session writer depend on the configuration package, so
they are imported from their modules directly.
"""

from .integration_logging import LoggingConfig, setup_logging

__all__ = [
    'LoggingConfig',
    'setup_logging'
]
