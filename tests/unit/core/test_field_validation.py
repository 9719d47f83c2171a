"""Unit tests for declarative field validation."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from core.errors import KnnConfigError, KnnInternalError
from core.field_validation import (
    ChoiceRule,
    FieldSpec,
    PatternRule,
    PredicateRule,
    validate_fields,
)

_SPECS = {
    "name": FieldSpec(name="name", rule=PatternRule(r"[a-z]+"), required=True),
    "mode": FieldSpec(name="mode", rule=ChoiceRule(("fast", "exact")), default="exact"),
    "size": FieldSpec(
        name="size",
        rule=PredicateRule(lambda value: None if value.isdigit() else "expected digits"),
        convert=int,
    ),
}


def test_validate_fields_applies_defaults_and_conversions() -> None:
    """Valid values should be converted and defaults filled in."""
    validated = validate_fields({"name": "knn", "size": 12}, _SPECS)

    assert validated == {"name": "knn", "mode": "exact", "size": 12}


def test_validate_fields_omits_absent_optional_fields() -> None:
    """Optional fields without defaults should stay absent."""
    assert "size" not in validate_fields({"name": "knn"}, _SPECS)


@pytest.mark.parametrize(
    "values",
    [
        {},
        {"name": "Knn1"},
        {"name": "knn", "mode": "slow"},
        {"name": "knn", "size": "ten"},
    ],
)
def test_validate_fields_rejects_bad_values(values: dict[str, object]) -> None:
    """Missing required fields and rule failures should raise config errors."""
    with pytest.raises(KnnConfigError):
        validate_fields(values, _SPECS)


def test_validate_fields_rejects_unsupported_rule() -> None:
    """A rule outside the closed set is an internal error."""

    @dataclass(frozen=True)
    class LooseRule:
        pattern: str

    specs = {"name": FieldSpec(name="name", rule=LooseRule(".*"))}  # type: ignore[arg-type]

    with pytest.raises(KnnInternalError) as error_info:
        validate_fields({"name": "x"}, specs)

    assert not isinstance(error_info.value, KnnConfigError)
