"""Runtime configuration model for the KNN service.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.constants import (
    DEFAULT_BASE_PATH,
    DEFAULT_DATA_ROOT,
    DEFAULT_DB_FILE_NAME,
    DEFAULT_K,
    DEFAULT_WORKERS,
)
from core.errors import KnnConfigError
from core.field_validation import FieldSpec, PatternRule, PredicateRule, validate_fields

_ENV_FIELDS = {
    "db_path": "KNN_DB_PATH",
    "k": "KNN_K",
    "workers": "KNN_WORKERS",
    "base": "KNN_BASE",
}


def _check_positive_int(value: str) -> str | None:
    if not value.isdecimal() or int(value) < 1:
        return "expected a positive integer"
    return None


_CONFIG_FIELDS = {
    "db_path": FieldSpec(
        name="database path",
        rule=PredicateRule(lambda value: None if value else "must not be empty"),
        default=str(DEFAULT_DATA_ROOT / DEFAULT_DB_FILE_NAME),
        convert=lambda value: Path(value).expanduser().resolve(),
    ),
    "k": FieldSpec(
        name="k",
        rule=PredicateRule(_check_positive_int),
        default=str(DEFAULT_K),
        convert=int,
    ),
    "workers": FieldSpec(
        name="worker count",
        rule=PredicateRule(_check_positive_int),
        default=str(DEFAULT_WORKERS),
        convert=int,
    ),
    "base": FieldSpec(
        name="base path",
        rule=PatternRule(r"/[\w\-./]*"),
        default=DEFAULT_BASE_PATH,
    ),
}


@dataclass(frozen=True)
class KnnConfig:
    """Validated runtime configuration.

    Attributes:
        db_path: SQLite database file backing the feature store.
        k: Default neighbor count for classification.
        workers: Thread count used to score training chunks.
        base: URL prefix handed to the outer request router.
    """

    db_path: Path
    k: int
    workers: int
    base: str

    @classmethod
    def from_env(cls) -> "KnnConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            KnnConfigError: If environment values are invalid.
        """
        return cls._from_values(_read_env_values())

    @classmethod
    def from_file(cls, config_path: str) -> "KnnConfig":
        """Build config from environment overlaid with a YAML file.

        Args:
            config_path: YAML file with any of ``db_path``, ``k``,
                ``workers``, ``base``.

        Returns:
            A validated config object.

        Raises:
            KnnConfigError: If the file or any value is invalid.
        """
        values = _read_env_values()
        values.update(_read_yaml_values(Path(config_path).expanduser()))
        return cls._from_values(values)

    @classmethod
    def _from_values(cls, values: Mapping[str, object]) -> "KnnConfig":
        validated: dict[str, Any] = validate_fields(values, _CONFIG_FIELDS)
        return cls(
            db_path=validated["db_path"],
            k=validated["k"],
            workers=validated["workers"],
            base=validated["base"],
        )


def _read_env_values() -> dict[str, object]:
    """Collect configured environment variables by field id."""
    values: dict[str, object] = {}
    for field_id, env_name in _ENV_FIELDS.items():
        raw_value = os.getenv(env_name)
        if raw_value is not None:
            values[field_id] = raw_value
    return values


def _read_yaml_values(config_path: Path) -> dict[str, object]:
    """Load a YAML config file into a field mapping.

    Args:
        config_path: Config file path.

    Returns:
        Parsed mapping, empty for an empty file.

    Raises:
        KnnConfigError: If the file is missing, malformed, or not a mapping.
    """
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as error:
        raise KnnConfigError(
            f"Failed to read config file {config_path}: {error}. "
            "Provide an existing readable YAML file."
        ) from error
    except yaml.YAMLError as error:
        raise KnnConfigError(
            f"Failed to parse config file {config_path}: {error}. Fix the YAML syntax."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise KnnConfigError(
            f"Config file {config_path} must contain a YAML mapping at top level."
        )
    return {str(key): value for key, value in payload.items()}
