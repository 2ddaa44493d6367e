"""
Derived Field Validation Package
================================

Conditional cross-field validation for records whose composite "derived" field must
satisfy rules selected by the value of a sibling "source" field.

Package Structure:
- business: rule models, rule evaluator, marshmallow integration and exceptions
- config: environment-specific configuration classes
- monitoring: structured logging setup
"""

# Package metadata and version information
__version__ = "1.0.0"
__title__ = "Derived Field Validation"
__description__ = "Conditional cross-field validation of derived record fields"

PACKAGE_NAME = "src"
APPLICATION_NAME = "derived-field-validation"
SUPPORTED_ENVIRONMENTS = ["development", "testing", "production"]

__all__ = [
    '__version__',
    '__title__',
    '__description__',
    'PACKAGE_NAME',
    'APPLICATION_NAME',
    'SUPPORTED_ENVIRONMENTS',
]
