"""
Rule Declaration Models for Derived Field Validation

This module defines the data model behind a derived field rule: the per-property
constraints (FieldRule), their pairing with a property name (PropertyRule) and the
read-only lookup table from discriminator tag to rule set (RuleTable).

Rule declarations are validated with Pydantic 2.x when the table is built, which is
the time the owning schema class is defined. Problems surface there as
RuleConfigurationError rather than later, during record validation. Once built, a
RuleTable never changes: rule sets are tuples of frozen models exposed through a
read-only mapping, so a single table can be shared by every validation call in the
process.

Declaration format:
    Each discriminator tag maps to a list of entries. An entry is a mapping
    ``{'property': <name>, 'rule': {...}}``, a ``(name, rule)`` pair, or a
    PropertyRule. A rule accepts ``required``, ``minLength``/``min_length``,
    ``maxLength``/``max_length`` and ``pattern``/``regex``; omitted constraints
    are not enforced.

Example:
    table = RuleTable(
        {
            DocType.PAN: [
                {'property': 'panNo', 'rule': {'required': True, 'minLength': 10, 'maxLength': 10}},
            ],
        },
        domain=DocType,
    )
"""

import re
from collections.abc import Mapping as MappingABC
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    model_validator,
)

from .exceptions import RuleConfigurationError


class FieldRule(BaseModel):
    """
    Constraint set applied to one property of a derived field.

    Attributes:
        required: Property key must be present in the derived field
        min_length: Minimum length of the property's textual form, if enforced
        max_length: Maximum length of the property's textual form, if enforced
        pattern: Compiled pattern the textual form must contain a match for
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        populate_by_name=True,
        hide_input_in_errors=True,
    )

    required: bool = Field(
        default=False,
        description="Whether the property key must be present"
    )
    min_length: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices('min_length', 'minLength'),
        description="Minimum length of the stringified value"
    )
    max_length: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices('max_length', 'maxLength'),
        description="Maximum length of the stringified value"
    )
    pattern: Optional[re.Pattern] = Field(
        default=None,
        validation_alias=AliasChoices('pattern', 'regex'),
        description="Regular expression searched for in the stringified value"
    )

    @model_validator(mode='after')
    def check_length_bounds(self) -> 'FieldRule':
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ValueError(
                f"min_length ({self.min_length}) cannot exceed max_length ({self.max_length})"
            )
        return self

    @classmethod
    def from_config(cls, config: Any, config_key: Optional[str] = None) -> 'FieldRule':
        """
        Build a FieldRule from a declaration, converting Pydantic errors.

        Args:
            config: FieldRule instance or mapping of rule attributes
            config_key: Location of the declaration, used in error context

        Returns:
            Validated FieldRule

        Raises:
            RuleConfigurationError: If the declaration is invalid
        """
        if isinstance(config, FieldRule):
            return config
        try:
            return cls.model_validate(config)
        except PydanticValidationError as e:
            raise RuleConfigurationError(
                message=f"Invalid field rule declaration for {config_key or 'property'}",
                error_code="INVALID_FIELD_RULE",
                config_key=config_key,
                context={'errors': [error['msg'] for error in e.errors()]},
                cause=e
            )


class PropertyRule(BaseModel):
    """Pairing of a derived field property name with its FieldRule."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    property: str = Field(..., min_length=1, description="Derived field property name")
    rule: FieldRule = Field(default_factory=FieldRule, description="Constraints for the property")

    @classmethod
    def from_config(cls, entry: Any, config_key: Optional[str] = None) -> 'PropertyRule':
        """
        Build a PropertyRule from a mapping entry or a ``(property, rule)`` pair.

        Raises:
            RuleConfigurationError: If the entry cannot be interpreted
        """
        if isinstance(entry, PropertyRule):
            return entry

        if isinstance(entry, tuple) and len(entry) == 2:
            property_name, rule_config = entry
        elif isinstance(entry, MappingABC):
            unexpected = set(entry) - {'property', 'rule'}
            if unexpected:
                raise RuleConfigurationError(
                    message=f"Unexpected keys in property rule entry: {sorted(unexpected)}",
                    error_code="INVALID_PROPERTY_RULE",
                    config_key=config_key
                )
            property_name = entry.get('property')
            rule_config = entry.get('rule', {})
        else:
            raise RuleConfigurationError(
                message="Property rule entries must be mappings or (property, rule) pairs",
                error_code="INVALID_PROPERTY_RULE",
                config_key=config_key,
                context={'entry_type': type(entry).__name__}
            )

        if not isinstance(property_name, str) or not property_name:
            raise RuleConfigurationError(
                message="Property rule entries must name a non-empty property",
                error_code="INVALID_PROPERTY_RULE",
                config_key=config_key
            )

        rule = FieldRule.from_config(rule_config, config_key=f"{config_key}.{property_name}")
        return cls(property=property_name, rule=rule)


RuleSet = Tuple[PropertyRule, ...]


def _tag_label(tag: Any) -> str:
    return str(tag.value) if isinstance(tag, Enum) else str(tag)


class RuleTable(MappingABC):
    """
    Read-only mapping from discriminator tag to RuleSet.

    When a domain is declared (an Enum class or a collection of tags) every key must
    belong to it; raw values of an Enum domain are normalised to the enum member.
    Lookups accept either the enum member or its raw value.

    Keys match by Python equality and hashing, without any conversion to text:
    the tag 'PAN' and the tag 1 are distinct, and the string '1' does not
    select the rule set for 1. Booleans are kept apart from numbers, so True
    never selects the rule set declared for 1 (and 1 never selects True).

    Args:
        criteria: Mapping of discriminator tag to a list of property rule entries
        domain: Optional Enum class or collection restricting the allowed tags

    Raises:
        RuleConfigurationError: If a key is outside the domain or an entry is invalid
    """

    def __init__(
        self,
        criteria: Mapping[Any, Iterable[Any]],
        domain: Optional[Any] = None
    ) -> None:
        if isinstance(criteria, RuleTable):
            criteria = dict(criteria.items())
        if not isinstance(criteria, MappingABC):
            raise RuleConfigurationError(
                message="Rule table criteria must be a mapping of tag to rule list",
                error_code="INVALID_RULE_TABLE",
                context={'criteria_type': type(criteria).__name__}
            )

        self._domain = domain
        rule_sets: Dict[Any, RuleSet] = {}

        for tag, entries in criteria.items():
            key = self._normalize_key(tag)
            if key in rule_sets:
                raise RuleConfigurationError(
                    message=f"Duplicate discriminator tag '{_tag_label(key)}' in rule table",
                    error_code="DUPLICATE_DISCRIMINATOR",
                    config_key=_tag_label(key)
                )
            if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
                raise RuleConfigurationError(
                    message=f"Rule set for '{_tag_label(key)}' must be a list of property rules",
                    error_code="INVALID_RULE_SET",
                    config_key=_tag_label(key)
                )
            rule_sets[key] = tuple(
                PropertyRule.from_config(entry, config_key=_tag_label(key))
                for entry in entries
            )

        self._rule_sets = MappingProxyType(rule_sets)
        self._bool_keys = MappingProxyType({key: isinstance(key, bool) for key in rule_sets})

    def _normalize_key(self, tag: Any) -> Any:
        """Validate a declared tag against the domain and normalise it."""
        domain = self._domain
        if domain is None:
            return tag

        if isinstance(domain, type) and issubclass(domain, Enum):
            if isinstance(tag, domain):
                return tag
            try:
                return domain(tag)
            except ValueError:
                pass
        else:
            try:
                if tag in domain:
                    return tag
            except TypeError:
                pass

        raise RuleConfigurationError(
            message=f"Discriminator tag '{_tag_label(tag)}' is outside the declared domain",
            error_code="DISCRIMINATOR_OUTSIDE_DOMAIN",
            config_key=_tag_label(tag),
            context={'domain': getattr(domain, '__name__', repr(domain))}
        )

    @property
    def domain(self) -> Optional[Any]:
        return self._domain

    def rule_set_for(self, discriminator: Any) -> Optional[RuleSet]:
        """
        Return the rule set for a discriminator value, or None when there is none.

        Unhashable or unknown discriminator values resolve to None.
        """
        candidates = [discriminator]
        if isinstance(discriminator, Enum):
            candidates.append(discriminator.value)
        elif isinstance(self._domain, type) and issubclass(self._domain, Enum):
            try:
                candidates.append(self._domain(discriminator))
            except (ValueError, TypeError):
                pass

        for candidate in candidates:
            try:
                rule_set = self._rule_sets.get(candidate)
            except TypeError:
                continue
            if rule_set is not None and self._bool_keys[candidate] == isinstance(candidate, bool):
                return rule_set
        return None

    def __getitem__(self, key: Any) -> RuleSet:
        rule_set = self.rule_set_for(key)
        if rule_set is None:
            raise KeyError(key)
        return rule_set

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rule_sets)

    def __len__(self) -> int:
        return len(self._rule_sets)

    def __repr__(self) -> str:
        return f"RuleTable({[_tag_label(key) for key in self._rule_sets]!r})"


def required_properties(rule_set: RuleSet) -> List[str]:
    """Property names marked required in a rule set, in declaration order."""
    names: List[str] = []
    for property_rule in rule_set:
        if property_rule.rule.required and property_rule.property not in names:
            names.append(property_rule.property)
    return names


def field_rule_map(rule_set: RuleSet) -> Dict[str, FieldRule]:
    # later entries for the same property replace earlier ones
    return {property_rule.property: property_rule.rule for property_rule in rule_set}


__all__ = [
    'FieldRule',
    'PropertyRule',
    'RuleSet',
    'RuleTable',
    'required_properties',
    'field_rule_map',
]
