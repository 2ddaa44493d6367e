"""
Record Validation with Marshmallow Schemas

This module connects the derived field rule evaluator to marshmallow schemas. A
marshmallow field validator only sees its own value, but a derived field rule needs
the sibling source field as well, so the rule runs as a schema-level validation
hook that receives the whole deserialized record.

Components:
    derived_field_validator: Builds a ``@validates_schema`` hook from a rule table
    BaseRecordValidator: Base schema with error conversion to DataValidationError
    validate_record: Loads data through a schema, raising DataValidationError
    DocType / DOCUMENT_FIELD_RULES / UpdateUserValidator: Document type example

Example:
    class UpdateUserValidator(BaseRecordValidator):
        doc_type = fields.Enum(DocType, by_value=True, required=True, data_key='docType')
        document_fields = fields.Dict(keys=fields.Str(), required=True, data_key='fields')

        validate_document_fields = derived_field_validator(
            'doc_type', 'document_fields', DOCUMENT_FIELD_RULES, domain=DocType
        )

    UpdateUserValidator().load({'docType': 'PAN', 'fields': {'panNo': 'ABCDE123'}})
    # ValidationError: {'fields': ['docType:PAN has invalid value in fields']}
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Type

from marshmallow import EXCLUDE, Schema, fields, validates_schema
from marshmallow.exceptions import ValidationError
import structlog

from src.config.settings import BaseConfig

from .exceptions import DataValidationError, ErrorSeverity, RuleConfigurationError
from .rules import DerivedFieldEvaluator

logger = structlog.get_logger("business.validators")


class ValidationConfig:
    """Validation behaviour shared by all record schemas."""

    UNKNOWN_FIELD_BEHAVIOR = EXCLUDE
    LOG_VALIDATION_FAILURES = BaseConfig.LOG_VALIDATION_FAILURES
    DERIVED_FIELD_ERROR_TEMPLATE = BaseConfig.DERIVED_FIELD_ERROR_TEMPLATE


def _display_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _error_key(schema: Schema, attribute: str) -> str:
    """Name a field the way the caller sees it (its data_key, if any)."""
    field_obj = schema.fields.get(attribute)
    if field_obj is not None and field_obj.data_key:
        return field_obj.data_key
    return attribute


def _check_error_template(template: str, derived_field: str) -> None:
    """Reject message templates that cannot be formatted with the known placeholders."""
    try:
        template.format(source_field='', source_value='', derived_field='')
    except (KeyError, IndexError, ValueError, AttributeError) as e:
        raise RuleConfigurationError(
            message=f"Invalid error message template for {derived_field}",
            error_code="INVALID_ERROR_TEMPLATE",
            config_key=derived_field,
            context={'template': template},
            cause=e
        )


def derived_field_validator(
    source_field: str,
    derived_field: str,
    criteria: Any,
    *,
    domain: Optional[Any] = None,
    error: Optional[str] = None,
    log_failures: Optional[bool] = None
):
    """
    Build a schema-level hook validating a derived field against its source field.

    The rule table is built immediately, so invalid declarations raise
    RuleConfigurationError when the schema class is defined. Assign the result to
    a schema class attribute; marshmallow runs it on every load and validate.

    Args:
        source_field: Schema attribute holding the discriminator value
        derived_field: Schema attribute holding the mapping being validated
        criteria: RuleTable or mapping of discriminator tag to property rules
        domain: Optional Enum class or collection restricting the table keys
        error: Message template; may use {source_field}, {source_value} and
            {derived_field}
        log_failures: Override for logging the failing property and rule

    Returns:
        Function decorated with ``validates_schema``
    """
    evaluator = DerivedFieldEvaluator(criteria, domain=domain, log_failures=log_failures)
    template = error or ValidationConfig.DERIVED_FIELD_ERROR_TEMPLATE
    _check_error_template(template, derived_field)

    @validates_schema
    def validate_derived_field(self, data, **kwargs):
        source_value = data.get(source_field)
        outcome = evaluator.check(data.get(derived_field), source_value)
        if outcome.is_valid:
            return

        derived_key = _error_key(self, derived_field)
        message = template.format(
            source_field=_error_key(self, source_field),
            source_value=_display_value(source_value),
            derived_field=derived_key,
        )
        raise ValidationError(message, field_name=derived_key)

    validate_derived_field.evaluator = evaluator
    validate_derived_field.source_field = source_field
    validate_derived_field.derived_field = derived_field
    return validate_derived_field


class BaseRecordValidator(Schema):
    """
    Base validation schema for records carrying derived fields.

    Unknown input keys are excluded. Subclasses declare their fields and attach
    derived field hooks built with derived_field_validator.
    """

    class Meta:
        unknown = ValidationConfig.UNKNOWN_FIELD_BEHAVIOR

    def handle_validation_error(self, error: ValidationError) -> DataValidationError:
        """
        Convert marshmallow validation errors to business exceptions.

        Args:
            error: Marshmallow validation error to convert

        Returns:
            Business data validation error
        """
        validation_errors: List[Dict[str, Any]] = []
        field_errors: Dict[str, List[str]] = {}

        messages = error.messages if isinstance(error.messages, dict) else {'_schema': error.messages}
        for field_name, field_messages in messages.items():
            if isinstance(field_messages, list):
                field_errors[field_name] = [str(message) for message in field_messages]
            else:
                field_errors[field_name] = [str(field_messages)]
            for message in field_errors[field_name]:
                validation_errors.append({
                    'field': field_name,
                    'message': message,
                    'type': 'field_validation'
                })

        if ValidationConfig.LOG_VALIDATION_FAILURES:
            logger.warning("Schema validation failed",
                           validator_class=self.__class__.__name__,
                           error_count=len(validation_errors),
                           field_errors=list(field_errors.keys()))

        return DataValidationError(
            message=f"Validation failed for {self.__class__.__name__}",
            error_code="SCHEMA_VALIDATION_FAILED",
            validation_errors=validation_errors,
            field_errors=field_errors,
            context={
                'validator_class': self.__class__.__name__,
                'error_count': len(validation_errors)
            },
            cause=error,
            severity=ErrorSeverity.MEDIUM
        )


def validate_record(
    schema_class: Type[BaseRecordValidator],
    data: Dict[str, Any],
    **schema_kwargs
) -> Dict[str, Any]:
    """
    Validate data using a record schema.

    Args:
        schema_class: BaseRecordValidator subclass to load the data with
        data: Raw input data
        **schema_kwargs: Extra keyword arguments for the schema constructor

    Returns:
        Deserialized record

    Raises:
        DataValidationError: If the record fails validation
    """
    schema = schema_class(**schema_kwargs)
    try:
        record = schema.load(data)
    except ValidationError as e:
        raise schema.handle_validation_error(e)

    logger.info("Record validation completed successfully",
                validator_class=schema_class.__name__,
                field_count=len(record))
    return record


# ============================================================================
# DOCUMENT TYPE EXAMPLE
# ============================================================================

class DocType(str, Enum):
    """Document types a user can submit."""
    PAN = "PAN"
    ADDRESS_PROOF = "ADDRESS_PROOF"


DOCUMENT_FIELD_RULES = {
    DocType.PAN: [
        {'property': 'panNo', 'rule': {'required': True, 'minLength': 10, 'maxLength': 10}},
    ],
    DocType.ADDRESS_PROOF: [
        {'property': 'address1', 'rule': {'required': True, 'maxLength': 200}},
        {'property': 'city', 'rule': {'required': True, 'maxLength': 50}},
        {'property': 'state', 'rule': {'required': True, 'maxLength': 50}},
        {'property': 'pincode', 'rule': {'required': True, 'pattern': r'\d{6}'}},
    ],
}


class UpdateUserValidator(BaseRecordValidator):
    """
    User update payload whose ``fields`` depend on the submitted ``docType``.
    """

    user_id = fields.Str(required=True, data_key='userId')
    doc_type = fields.Enum(DocType, by_value=True, required=True, data_key='docType')
    document_fields = fields.Dict(keys=fields.Str(), required=True, data_key='fields')

    validate_document_fields = derived_field_validator(
        'doc_type', 'document_fields', DOCUMENT_FIELD_RULES, domain=DocType
    )


__all__ = [
    'ValidationConfig',
    'derived_field_validator',
    'BaseRecordValidator',
    'validate_record',
    'DocType',
    'DOCUMENT_FIELD_RULES',
    'UpdateUserValidator',
]
