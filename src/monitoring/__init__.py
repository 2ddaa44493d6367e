"""
Monitoring Package

Structured logging setup for the derived field validation package.
"""

from .logging import (
    LoggingConfig,
    get_logger,
    setup_structured_logging,
)

__all__ = [
    'LoggingConfig',
    'get_logger',
    'setup_structured_logging',
]
