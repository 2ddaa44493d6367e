"""
Derived Field Rule Evaluator

Decides whether the contents of a derived field satisfy the rules that the record's
current discriminator value selects from a RuleTable.

Evaluation order:
    1. Look up the rule set for the discriminator. No rule set means no constraint
       and the derived field is valid.
    2. Every property marked required must be present as a key of the derived field.
       Presence is key existence; an empty string still counts as present.
    3. Every present property that has a rule is checked for maximum length, then
       minimum length, then pattern, stopping at the first failure. Properties
       without a rule are not checked.

Length and pattern checks run on the textual form of the value (see
src.business.utils.to_text). Patterns are searched for, not anchored, unless the
pattern itself anchors.

Evaluation never mutates the table or the record and never raises for odd input:
a derived field that is missing or is not a mapping has no present properties.
The failing property and rule are logged at debug level and returned in the
structured RuleEvaluation produced by check().
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

import structlog

from src.config.settings import BaseConfig

from .exceptions import BusinessRuleViolationError
from .models import FieldRule, RuleTable, field_rule_map, required_properties
from .utils import to_text

logger = structlog.get_logger("business.rules")

REQUIRED_RULE = "required"
MAX_LENGTH_RULE = "max_length"
MIN_LENGTH_RULE = "min_length"
PATTERN_RULE = "pattern"


@dataclass(frozen=True)
class RuleEvaluation:
    """
    Outcome of evaluating a derived field against a rule table.

    Attributes:
        is_valid: Whether the derived field satisfies the selected rules
        discriminator: Discriminator value the rules were selected by
        failed_property: Property that drove a failure, if any
        violated_rule: One of required, max_length, min_length, pattern
        missing_properties: Required properties absent from the derived field
        received_length: Length of the textual value for length violations
    """

    is_valid: bool
    discriminator: Any = None
    failed_property: Optional[str] = None
    violated_rule: Optional[str] = None
    missing_properties: Tuple[str, ...] = ()
    received_length: Optional[int] = None

    def __bool__(self) -> bool:
        return self.is_valid


def present_properties(derived_value: Any) -> Tuple[str, ...]:
    """Keys of the derived field; anything that is not a mapping has none."""
    if isinstance(derived_value, Mapping):
        return tuple(derived_value.keys())
    return ()


def find_violation(value: Any, rule: FieldRule) -> Optional[Tuple[str, Optional[int]]]:
    """
    Check one property value against its rule.

    Returns:
        ``(rule_name, received_length)`` for the first violated constraint, or None
    """
    if rule.max_length is None and rule.min_length is None and rule.pattern is None:
        return None

    text = to_text(value)

    if rule.max_length is not None and len(text) > rule.max_length:
        return MAX_LENGTH_RULE, len(text)

    if rule.min_length is not None and len(text) < rule.min_length:
        return MIN_LENGTH_RULE, len(text)

    if rule.pattern is not None and rule.pattern.search(text) is None:
        return PATTERN_RULE, None

    return None


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _as_rule_table(table: Any) -> RuleTable:
    if isinstance(table, RuleTable):
        return table
    return RuleTable(table)


def check(
    derived_value: Any,
    discriminator_value: Any,
    table: Any,
    log_failures: bool = True
) -> RuleEvaluation:
    """
    Evaluate a derived field and return the structured outcome.

    Args:
        derived_value: Mapping of property name to value (may be None)
        discriminator_value: Current value of the record's source field
        table: RuleTable, or a raw criteria mapping to build one from
        log_failures: Whether to log the failing property and rule

    Returns:
        RuleEvaluation describing the result
    """
    rule_table = _as_rule_table(table)
    rule_set = rule_table.rule_set_for(discriminator_value)

    if rule_set is None:
        return RuleEvaluation(is_valid=True, discriminator=discriminator_value)

    provided = present_properties(derived_value)

    missing = tuple(
        name for name in required_properties(rule_set) if name not in provided
    )
    if missing:
        if log_failures:
            logger.debug("Required derived field properties missing",
                         discriminator=discriminator_value,
                         missing_properties=list(missing))
        return RuleEvaluation(
            is_valid=False,
            discriminator=discriminator_value,
            failed_property=missing[0],
            violated_rule=REQUIRED_RULE,
            missing_properties=missing,
        )

    rules = field_rule_map(rule_set)
    for name in provided:
        rule = rules.get(name)
        if rule is None:
            continue

        violation = find_violation(derived_value[name], rule)
        if violation is None:
            continue

        violated_rule, received_length = violation
        if log_failures:
            logger.debug("Derived field rule violated",
                         discriminator=discriminator_value,
                         property=name,
                         rule=violated_rule,
                         received_length=received_length)
        return RuleEvaluation(
            is_valid=False,
            discriminator=discriminator_value,
            failed_property=name,
            violated_rule=violated_rule,
            received_length=received_length,
        )

    return RuleEvaluation(is_valid=True, discriminator=discriminator_value)


def evaluate(derived_value: Any, discriminator_value: Any, table: Any) -> bool:
    """
    Decide whether a derived field satisfies the rules for a discriminator value.

    Args:
        derived_value: Mapping of property name to value (may be None)
        discriminator_value: Current value of the record's source field
        table: RuleTable, or a raw criteria mapping to build one from

    Returns:
        True if valid (including when no rules exist for the discriminator)
    """
    return check(
        derived_value,
        discriminator_value,
        table,
        log_failures=BaseConfig.LOG_VALIDATION_FAILURES,
    ).is_valid


class DerivedFieldEvaluator:
    """
    Evaluator bound to a single rule table.

    The table is built once, when the evaluator is created, and only read
    afterwards, so one evaluator can be shared across threads.

    Example:
        evaluator = DerivedFieldEvaluator(DOCUMENT_FIELD_RULES, domain=DocType)
        evaluator.evaluate({'panNo': 'ABCDE1234F'}, DocType.PAN)  # True
        evaluator.enforce({'panNo': 'ABC'}, 'PAN')  # raises BusinessRuleViolationError
    """

    def __init__(
        self,
        table: Any,
        domain: Optional[Any] = None,
        log_failures: Optional[bool] = None
    ):
        if isinstance(table, RuleTable) and domain is None:
            self.table = table
        else:
            self.table = RuleTable(table, domain=domain)

        if log_failures is None:
            log_failures = BaseConfig.LOG_VALIDATION_FAILURES
        self.log_failures = log_failures

    def check(self, derived_value: Any, discriminator_value: Any) -> RuleEvaluation:
        return check(derived_value, discriminator_value, self.table,
                     log_failures=self.log_failures)

    def evaluate(self, derived_value: Any, discriminator_value: Any) -> bool:
        return self.check(derived_value, discriminator_value).is_valid

    def enforce(self, derived_value: Any, discriminator_value: Any) -> RuleEvaluation:
        """
        Evaluate and raise on failure.

        Raises:
            BusinessRuleViolationError: If the derived field violates its rules
        """
        outcome = self.check(derived_value, discriminator_value)
        if outcome.is_valid:
            return outcome

        rule_parameters = {'property': outcome.failed_property}
        if outcome.missing_properties:
            rule_parameters['missing_properties'] = list(outcome.missing_properties)
        if outcome.received_length is not None:
            rule_parameters['received_length'] = outcome.received_length

        discriminator = to_text(_plain(discriminator_value))
        raise BusinessRuleViolationError(
            message=f"Derived field violates the rules for '{discriminator}'",
            error_code="DERIVED_FIELD_INVALID",
            rule_name=outcome.violated_rule,
            rule_parameters=rule_parameters,
            context={'discriminator': discriminator}
        )


__all__ = [
    'RuleEvaluation',
    'DerivedFieldEvaluator',
    'present_properties',
    'find_violation',
    'check',
    'evaluate',
    'REQUIRED_RULE',
    'MAX_LENGTH_RULE',
    'MIN_LENGTH_RULE',
    'PATTERN_RULE',
]
