"""
Configuration Package

Centralized access to the environment-specific configuration classes.

Usage Examples:
    >>> from src.config import get_config
    >>> config_class = get_config('production')
    >>> config_class.LOG_FORMAT
    'json'
"""

from .settings import (
    BaseConfig,
    DevelopmentConfig,
    TestingConfig,
    ProductionConfig,
    DEFAULT_ERROR_TEMPLATE,
    config_map,
    get_config,
    validate_configuration,
)

__all__ = [
    'BaseConfig',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'DEFAULT_ERROR_TEMPLATE',
    'config_map',
    'get_config',
    'validate_configuration',
]
