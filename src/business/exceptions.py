"""
Business Exception Classes for Derived Field Validation

This module provides the exception hierarchy used by the derived field validation
package. Rule evaluation itself never raises: a failing record is reported as a
boolean result. Exceptions are reserved for the two places where something other
than a pass/fail answer is needed:

- Rule declarations that cannot be honoured (negative lengths, uncompilable
  patterns, discriminator tags outside the declared domain) raise
  RuleConfigurationError when the rule table is built.
- Callers that want a single exception for a failed record load receive a
  DataValidationError carrying the field-level messages.

Every exception carries a sanitized message, an error code, a severity and a
category, and emits a structured log entry when constructed so that failures are
visible in the audit trail without the caller having to log them again.

Classes:
    BaseBusinessException: Base class for all package exceptions
    BusinessRuleViolationError: A record violates a declared business rule
    DataValidationError: A record failed schema or derived field validation
    RuleConfigurationError: A rule table or field rule declaration is invalid
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

logger = structlog.get_logger("business.exceptions")


class ErrorSeverity(Enum):
    """
    Error severity classification for business exceptions.

    Severity drives the level of the structured log entry emitted when the
    exception is created.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error category classification for business exception types."""
    BUSINESS_RULE = "business_rule"
    DATA_VALIDATION = "data_validation"
    CONFIGURATION = "configuration"


class BaseBusinessException(Exception):
    """
    Base exception class for all derived field validation failures.

    Provides the shared behaviour of the hierarchy: message sanitization,
    context filtering and structured logging.

    Attributes:
        message (str): User-facing error message (sanitized)
        error_code (str): Unique error identifier for client handling
        severity (ErrorSeverity): Error severity level for monitoring
        category (ErrorCategory): Error category for classification
        context (Dict[str, Any]): Additional error context (filtered)
        cause (Optional[Exception]): Original exception, if any
        timestamp (datetime): Error occurrence timestamp

    Example:
        try:
            table = RuleTable(criteria, domain=DocType)
        except BaseBusinessException as e:
            logger.error("Rule declaration rejected", error=e.to_dict())
            raise
    """

    _SENSITIVE_PATTERNS = [
        r"password\s*[:=]\s*['\"][^'\"]*['\"]",
        r"token\s*[:=]\s*['\"][^'\"]*['\"]",
        r"secret\s*[:=]\s*['\"][^'\"]*['\"]",
    ]
    _SENSITIVE_KEYS = {'password', 'token', 'secret', 'credential'}
    _MAX_MESSAGE_LENGTH = 500

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_RULE,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ) -> None:
        """
        Initialize base business exception with error context.

        Args:
            message: User-facing error message (will be sanitized)
            error_code: Unique error identifier for client handling
            severity: Error severity level for monitoring alerts
            category: Error category for classification and reporting
            context: Additional error context (sensitive keys redacted)
            cause: Original exception that caused this business exception
        """
        super().__init__(message)

        self.message = self._sanitize_message(message)
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = self._filter_sensitive_context(context or {})
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        self._log_exception()

    def _sanitize_message(self, message: str) -> str:
        """Redact credential-looking fragments and cap the message length."""
        sanitized = message
        for pattern in self._SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

        if len(sanitized) > self._MAX_MESSAGE_LENGTH:
            sanitized = sanitized[:self._MAX_MESSAGE_LENGTH] + "... [TRUNCATED]"

        return sanitized

    def _filter_sensitive_context(self, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Filter sensitive information from error context.

        Args:
            context: Raw error context potentially containing sensitive data

        Returns:
            Filtered context safe for client exposure
        """
        filtered_context = {}
        for key, value in context.items():
            key_lower = str(key).lower()

            if any(sensitive_key in key_lower for sensitive_key in self._SENSITIVE_KEYS):
                filtered_context[key] = "[REDACTED]"
            elif isinstance(value, str) and len(value) > 100:
                filtered_context[key] = value[:100] + "... [TRUNCATED]"
            elif isinstance(value, dict):
                filtered_context[key] = self._filter_sensitive_context(value)
            elif isinstance(value, list) and len(value) > 10:
                filtered_context[key] = value[:10]
            else:
                filtered_context[key] = value

        return filtered_context

    def _log_exception(self) -> None:
        """Emit a structured log entry at a level matching the severity."""
        log_data = {
            'event_type': 'business_exception',
            'exception_class': self.__class__.__name__,
            'error_code': self.error_code,
            'severity': self.severity.value,
            'category': self.category.value,
            'context': self.context,
        }

        if self.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.HIGH):
            logger.error("High severity business exception", **log_data)
        elif self.severity == ErrorSeverity.MEDIUM:
            logger.warning("Medium severity business exception", **log_data)
        else:
            logger.info("Low severity business exception", **log_data)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary representation safe for client exposure
        """
        return {
            'error': {
                'message': self.message,
                'code': self.error_code,
                'severity': self.severity.value,
                'category': self.category.value,
                'timestamp': self.timestamp.isoformat(),
                'context': self.context,
            }
        }


class BusinessRuleViolationError(BaseBusinessException):
    """
    Exception for business rule validation failures.

    Raised by DerivedFieldEvaluator.enforce for callers that want a failed
    derived field evaluation as an exception, naming the violated rule and the
    failing property.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        rule_name: Optional[str] = None,
        rule_parameters: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        kwargs.setdefault('severity', ErrorSeverity.HIGH)
        kwargs.setdefault('category', ErrorCategory.BUSINESS_RULE)

        context = dict(kwargs.get('context') or {})
        if rule_name:
            context['violated_rule'] = rule_name
        if rule_parameters:
            context['rule_parameters'] = rule_parameters
        kwargs['context'] = context

        super().__init__(message, error_code, **kwargs)

        self.rule_name = rule_name
        self.rule_parameters = rule_parameters or {}


class DataValidationError(BaseBusinessException):
    """
    Exception for record validation failures.

    Carries the marshmallow field-level messages so that the caller can render
    them without inspecting the original marshmallow error.

    Attributes:
        validation_errors (List[Dict[str, Any]]): One entry per failing message
        field_errors (Dict[str, List[str]]): Messages grouped by field name
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        field_errors: Optional[Dict[str, List[str]]] = None,
        **kwargs
    ) -> None:
        kwargs.setdefault('severity', ErrorSeverity.MEDIUM)
        kwargs.setdefault('category', ErrorCategory.DATA_VALIDATION)

        context = dict(kwargs.get('context') or {})
        if validation_errors:
            context['validation_errors'] = validation_errors
        if field_errors:
            context['field_errors'] = field_errors
        kwargs['context'] = context

        super().__init__(message, error_code, **kwargs)

        self.validation_errors = validation_errors or []
        self.field_errors = field_errors or {}


class RuleConfigurationError(BaseBusinessException):
    """
    Exception for invalid rule declarations.

    Raised while a FieldRule or RuleTable is being built, which is the time the
    owning schema class is defined. A table that was built successfully never
    raises during evaluation.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_RULE_CONFIGURATION",
        config_key: Optional[str] = None,
        **kwargs
    ) -> None:
        kwargs.setdefault('severity', ErrorSeverity.HIGH)
        kwargs.setdefault('category', ErrorCategory.CONFIGURATION)

        context = dict(kwargs.get('context') or {})
        if config_key is not None:
            context['config_key'] = config_key
        kwargs['context'] = context

        super().__init__(message, error_code, **kwargs)

        self.config_key = config_key


__all__ = [
    'ErrorSeverity',
    'ErrorCategory',
    'BaseBusinessException',
    'BusinessRuleViolationError',
    'DataValidationError',
    'RuleConfigurationError',
]
