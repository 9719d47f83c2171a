"""Declarative field validation for configuration mappings.

Each field carries one rule from a closed set of variants. Rules are
evaluated through an explicit dispatch table keyed on the variant type,
so an unknown rule object is a configuration bug rather than a silent pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping, Union

from core.errors import KnnConfigError, KnnInternalError


@dataclass(frozen=True)
class PatternRule:
    """Value must fully match a regular expression."""

    pattern: str


@dataclass(frozen=True)
class ChoiceRule:
    """Value must be one of an allow-list."""

    choices: tuple[str, ...]


@dataclass(frozen=True)
class PredicateRule:
    """Value is checked by a function returning an error message or None."""

    check: Callable[[str], str | None]


FieldRule = Union[PatternRule, ChoiceRule, PredicateRule]


@dataclass(frozen=True)
class FieldSpec:
    """Validation spec for one named field.

    Attributes:
        name: Human-readable field name used in error messages.
        rule: Value rule applied to the string form of the value.
        required: Whether the field must be present.
        default: Value used when the field is absent and not required.
        convert: Optional converter applied after the rule passes.
    """

    name: str
    rule: FieldRule
    required: bool = False
    default: str | None = None
    convert: Callable[[str], object] | None = None


def _check_pattern(rule: PatternRule, value: str) -> str | None:
    if re.fullmatch(rule.pattern, value) is None:
        return f"does not match pattern {rule.pattern!r}"
    return None


def _check_choice(rule: ChoiceRule, value: str) -> str | None:
    if value not in rule.choices:
        return f"must be one of {', '.join(rule.choices)}"
    return None


def _check_predicate(rule: PredicateRule, value: str) -> str | None:
    return rule.check(value)


_RULE_CHECKS: dict[type, Callable[[object, str], str | None]] = {
    PatternRule: _check_pattern,  # type: ignore[dict-item]
    ChoiceRule: _check_choice,  # type: ignore[dict-item]
    PredicateRule: _check_predicate,  # type: ignore[dict-item]
}


def validate_fields(
    values: Mapping[str, object],
    specs: Mapping[str, FieldSpec],
) -> dict[str, object]:
    """Validate and convert a raw value mapping.

    Args:
        values: Raw field values; keys absent from ``specs`` are rejected.
        specs: Field specs keyed by field id.

    Returns:
        Validated values for every field that is present or defaulted.

    Raises:
        KnnConfigError: If any field is missing, unknown, or invalid.
        KnnInternalError: If a spec carries an unsupported rule type.
    """
    unknown = sorted(set(values) - set(specs))
    if unknown:
        raise KnnConfigError(
            f"Unknown configuration field(s): {', '.join(unknown)}. "
            f"Supported fields: {', '.join(sorted(specs))}."
        )
    errors: list[str] = []
    validated: dict[str, object] = {}
    for field_id, spec in specs.items():
        raw_value = values.get(field_id)
        if raw_value is None:
            if spec.required:
                errors.append(f"missing value for {spec.name}")
                continue
            if spec.default is None:
                continue
            raw_value = spec.default
        text_value = str(raw_value).strip()
        message = _check_rule(spec, field_id, text_value)
        if message is not None:
            errors.append(f"bad value '{text_value}' for {spec.name}: {message}")
            continue
        validated[field_id] = spec.convert(text_value) if spec.convert else text_value
    if errors:
        raise KnnConfigError("Invalid configuration: " + "; ".join(errors) + ".")
    return validated


def _check_rule(spec: FieldSpec, field_id: str, value: str) -> str | None:
    """Dispatch one value check to its rule variant."""
    check = _RULE_CHECKS.get(type(spec.rule))
    if check is None:
        raise KnnInternalError(
            f"Unsupported validation rule {type(spec.rule).__name__} for field '{field_id}'."
        )
    return check(spec.rule, value)
