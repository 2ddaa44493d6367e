"""
Structured Logging Implementation using structlog

This module configures structlog on top of the standard library logging module so
that every logger in the package (``structlog.get_logger("business.rules")`` and
friends) produces structured records. The output format, level and optional
rotating log file come from the active configuration class.

Key Features:
- JSON rendering for log aggregation, console rendering for local work
- ISO timestamps, logger names and levels on every record
- Application metadata (name, version, environment) bound to every record
- Optional rotating file handler

Usage:
    from src.monitoring.logging import setup_structured_logging, get_logger

    setup_structured_logging()
    logger = get_logger("business.rules")
    logger.debug("Derived field rule violated", property="panNo", rule="min_length")
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type

import structlog

from src.config.settings import BaseConfig, get_config


class LoggingConfig:
    """
    Logging settings resolved from a configuration class.

    Attributes mirror the LOG_* settings of the configuration classes so that the
    setup function does not depend on which environment is active.
    """

    LOG_FILE_MAX_SIZE = 100 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT = 5

    def __init__(self, config: Optional[Type[BaseConfig]] = None):
        config = config or get_config()
        self.log_level = config.LOG_LEVEL
        self.log_format = config.LOG_FORMAT
        self.log_file_path = config.LOG_FILE_PATH
        self.application_name = config.APP_NAME
        self.application_version = config.APP_VERSION
        self.environment = config.ENVIRONMENT


def create_application_context_processor(logging_config: LoggingConfig) -> Callable:
    """
    Create structlog processor adding application metadata to each record.

    Args:
        logging_config: Resolved logging settings

    Returns:
        Processor function for structlog
    """
    def processor(logger, method_name, event_dict):
        event_dict.setdefault('application', logging_config.application_name)
        event_dict.setdefault('version', logging_config.application_version)
        event_dict.setdefault('environment', logging_config.environment)
        return event_dict

    return processor


def build_logging_dict_config(logging_config: LoggingConfig) -> Dict[str, Any]:
    """Build the ``logging.config.dictConfig`` payload for the stdlib handlers."""
    dict_config: Dict[str, Any] = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'plain': {
                'format': '%(message)s'
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'plain',
                'stream': 'ext://sys.stdout'
            }
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': logging_config.log_level,
            }
        }
    }

    if logging_config.log_file_path:
        dict_config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'plain',
            'filename': logging_config.log_file_path,
            'maxBytes': LoggingConfig.LOG_FILE_MAX_SIZE,
            'backupCount': LoggingConfig.LOG_FILE_BACKUP_COUNT,
            'encoding': 'utf-8'
        }
        dict_config['loggers']['']['handlers'].append('file')

    return dict_config


def setup_structured_logging(
    config: Optional[Type[BaseConfig]] = None
) -> structlog.stdlib.BoundLogger:
    """
    Setup structured logging from a configuration class.

    Args:
        config: Configuration class, defaults to the one selected by APP_ENV

    Returns:
        Configured structured logger instance
    """
    logging_config = LoggingConfig(config)

    if logging_config.log_file_path:
        Path(logging_config.log_file_path).parent.mkdir(parents=True, exist_ok=True)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        create_application_context_processor(logging_config),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if logging_config.log_format == 'console':
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(build_logging_dict_config(logging_config))

    logger = structlog.get_logger(logging_config.application_name)
    logger.info(
        "Structured logging initialized",
        log_level=logging_config.log_level,
        log_format=logging_config.log_format,
        file_logging=bool(logging_config.log_file_path),
    )

    return logger


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance with optional name.

    Args:
        name: Logger name, defaults to the application name

    Returns:
        Structured logger
    """
    return structlog.get_logger(name or BaseConfig.APP_NAME)


__all__ = [
    'LoggingConfig',
    'create_application_context_processor',
    'build_logging_dict_config',
    'setup_structured_logging',
    'get_logger',
]
