"""
Configuration Classes for Derived Field Validation

This module implements environment-specific settings (Development, Testing, Production)
for the validation package. Values are read from environment variables, which are
loaded from a ``.env`` file via python-dotenv when one is present.

Key Components:
- BaseConfig: Settings shared by every environment
- DevelopmentConfig / TestingConfig / ProductionConfig: Environment overrides
- get_config: Selects the configuration class for an environment name
- validate_configuration: Reports inconsistent settings

Environment Variables:
    APP_ENV: development | testing | production (default: development)
    APP_NAME, APP_VERSION: Application metadata used in log records
    LOG_LEVEL: Standard logging level name (default: INFO)
    LOG_FORMAT: json | console (default: json)
    LOG_FILE_PATH: Optional rotating log file location
    LOG_VALIDATION_FAILURES: Log which property and rule failed (default: true)
    DERIVED_FIELD_ERROR_TEMPLATE: Message attached to failed derived fields
"""

import os
import logging
from typing import Dict, List, Optional, Type

from dotenv import load_dotenv

# Load environment variables early
load_dotenv()

logger = logging.getLogger(__name__)

SUPPORTED_LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')
SUPPORTED_LOG_FORMATS = ('json', 'console')
DEFAULT_ERROR_TEMPLATE = "{source_field}:{source_value} has invalid value in {derived_field}"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'on')


class BaseConfig:
    """
    Base configuration class providing common settings for all environments.
    """

    # Application Metadata
    APP_NAME = os.getenv('APP_NAME', 'derived-field-validation')
    APP_VERSION = os.getenv('APP_VERSION', '1.0.0')
    ENVIRONMENT = 'base'

    DEBUG = False
    TESTING = False

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json').lower()
    LOG_FILE_PATH = os.getenv('LOG_FILE_PATH') or None

    # Validation Configuration
    LOG_VALIDATION_FAILURES = _env_flag('LOG_VALIDATION_FAILURES', 'true')
    DERIVED_FIELD_ERROR_TEMPLATE = os.getenv(
        'DERIVED_FIELD_ERROR_TEMPLATE', DEFAULT_ERROR_TEMPLATE
    )


class DevelopmentConfig(BaseConfig):
    """Development configuration with verbose, human-readable logging."""

    ENVIRONMENT = 'development'
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'console').lower()


class TestingConfig(BaseConfig):
    """
    Testing configuration.

    Keeps output on the console and never writes log files so that test runs
    leave no artifacts behind.
    """

    ENVIRONMENT = 'testing'
    DEBUG = True
    TESTING = True
    LOG_LEVEL = 'DEBUG'
    LOG_FORMAT = 'console'
    LOG_FILE_PATH = None
    LOG_VALIDATION_FAILURES = True


class ProductionConfig(BaseConfig):
    """Production configuration with JSON logs for log aggregation."""

    ENVIRONMENT = 'production'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json').lower()


config_map: Dict[str, Type[BaseConfig]] = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(environment: Optional[str] = None) -> Type[BaseConfig]:
    """
    Get configuration class for the specified environment.

    Args:
        environment: Target environment name (defaults to APP_ENV)

    Returns:
        Configuration class for the specified environment

    Raises:
        ValueError: If environment is not supported
    """
    if environment is None:
        environment = os.getenv('APP_ENV', 'development')

    environment = environment.lower()

    if environment not in config_map:
        raise ValueError(
            f"Unsupported environment '{environment}'. "
            f"Supported environments: {list(config_map.keys())}"
        )

    config_class = config_map[environment]

    logger.debug(
        "Configuration class selected",
        extra={
            'environment': environment,
            'config_class': config_class.__name__
        }
    )

    return config_class


def validate_configuration(config: Type[BaseConfig]) -> List[str]:
    """
    Validate configuration settings and return list of issues.

    Args:
        config: Configuration class (or instance) to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if config.LOG_LEVEL not in SUPPORTED_LOG_LEVELS:
        issues.append(
            f"LOG_LEVEL must be one of {', '.join(SUPPORTED_LOG_LEVELS)}"
        )

    if config.LOG_FORMAT not in SUPPORTED_LOG_FORMATS:
        issues.append(
            f"LOG_FORMAT must be one of {', '.join(SUPPORTED_LOG_FORMATS)}"
        )

    template = config.DERIVED_FIELD_ERROR_TEMPLATE
    try:
        template.format(source_field='', source_value='', derived_field='')
    except (KeyError, IndexError, ValueError, AttributeError):
        issues.append(
            "DERIVED_FIELD_ERROR_TEMPLATE may only use the {source_field}, "
            "{source_value} and {derived_field} placeholders"
        )

    logger.debug(
        "Configuration validation completed",
        extra={
            'config_class': getattr(config, '__name__', config.__class__.__name__),
            'issues_found': len(issues),
        }
    )

    return issues


__all__ = [
    'BaseConfig',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'config_map',
    'get_config',
    'validate_configuration',
    'DEFAULT_ERROR_TEMPLATE',
]
