"""
Business Logic Package for Derived Field Validation

This package holds the conditional cross-field validation rule: the properties a
derived field must carry, and the constraints on them, depend on the value of a
sibling source field in the same record.

Package Components:
    Rule Models (models.py):
        - FieldRule / PropertyRule declarations validated with Pydantic
        - RuleTable, the read-only discriminator to rule set mapping

    Rule Evaluator (rules.py):
        - check / evaluate for one derived field and discriminator value
        - DerivedFieldEvaluator bound to a single rule table

    Record Validation (validators.py):
        - derived_field_validator hook for marshmallow schemas
        - BaseRecordValidator and validate_record
        - Document type example schema

    Business Exceptions (exceptions.py):
        - DataValidationError, BusinessRuleViolationError, RuleConfigurationError

Usage Examples:
    from src.business import RuleTable, evaluate

    table = RuleTable({'PAN': [{'property': 'panNo', 'rule': {'required': True}}]})
    evaluate({'panNo': 'ABCDE1234F'}, 'PAN', table)  # True
"""

from .exceptions import (
    BaseBusinessException,
    BusinessRuleViolationError,
    DataValidationError,
    ErrorCategory,
    ErrorSeverity,
    RuleConfigurationError,
)
from .models import (
    FieldRule,
    PropertyRule,
    RuleSet,
    RuleTable,
    field_rule_map,
    required_properties,
)
from .rules import (
    DerivedFieldEvaluator,
    RuleEvaluation,
    check,
    evaluate,
)
from .utils import to_text
from .validators import (
    BaseRecordValidator,
    DOCUMENT_FIELD_RULES,
    DocType,
    UpdateUserValidator,
    ValidationConfig,
    derived_field_validator,
    validate_record,
)

__all__ = [
    # Business exceptions
    'BaseBusinessException', 'BusinessRuleViolationError', 'DataValidationError',
    'ErrorCategory', 'ErrorSeverity', 'RuleConfigurationError',

    # Rule models
    'FieldRule', 'PropertyRule', 'RuleSet', 'RuleTable',
    'field_rule_map', 'required_properties',

    # Rule evaluation
    'DerivedFieldEvaluator', 'RuleEvaluation', 'check', 'evaluate', 'to_text',

    # Record validation
    'BaseRecordValidator', 'DOCUMENT_FIELD_RULES', 'DocType', 'UpdateUserValidator',
    'ValidationConfig', 'derived_field_validator', 'validate_record',
]
