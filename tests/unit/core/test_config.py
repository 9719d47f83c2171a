"""Unit tests for core config parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import KnnConfig
from core.constants import DEFAULT_K
from core.errors import KnnConfigError, KnnInternalError


@pytest.fixture(autouse=True)
def _clear_knn_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_name in ("KNN_DB_PATH", "KNN_K", "KNN_WORKERS", "KNN_BASE"):
        monkeypatch.delenv(env_name, raising=False)


def test_from_env_uses_defaults() -> None:
    """Config should fall back to defaults without environment values."""
    config = KnnConfig.from_env()

    assert (config.k, config.workers, config.base) == (DEFAULT_K, 1, "/knn")


def test_from_env_reads_db_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the database path from environment."""
    monkeypatch.setenv("KNN_DB_PATH", "./.tmp-knn/features.sqlite3")

    config = KnnConfig.from_env()

    assert config.db_path.name == "features.sqlite3" and config.db_path.is_absolute()


def test_from_env_raises_for_invalid_k(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-positive neighbor count."""
    monkeypatch.setenv("KNN_K", "0")

    with pytest.raises(KnnConfigError):
        KnnConfig.from_env()


@pytest.mark.parametrize("raw_k", ["\u00b2", "abc", "-2"])
def test_from_env_raises_config_error_for_non_decimal_k(
    monkeypatch: pytest.MonkeyPatch, raw_k: str
) -> None:
    """Non-decimal neighbor counts should be reported as config errors."""
    monkeypatch.setenv("KNN_K", raw_k)

    with pytest.raises(KnnConfigError):
        KnnConfig.from_env()


def test_from_file_overrides_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """YAML values should take precedence over environment values."""
    monkeypatch.setenv("KNN_K", "3")
    config_path = tmp_path / "knn.yaml"
    config_path.write_text("k: 5\nbase: /digits\n", encoding="utf-8")

    config = KnnConfig.from_file(str(config_path))

    assert (config.k, config.base) == (5, "/digits")


def test_from_file_rejects_unknown_fields(tmp_path: Path) -> None:
    """Unknown config keys should be reported rather than ignored."""
    config_path = tmp_path / "knn.yaml"
    config_path.write_text("neighbours: 5\n", encoding="utf-8")

    with pytest.raises(KnnConfigError):
        KnnConfig.from_file(str(config_path))


def test_from_file_rejects_non_mapping(tmp_path: Path) -> None:
    """A YAML list at top level is not a valid config."""
    config_path = tmp_path / "knn.yaml"
    config_path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(KnnConfigError):
        KnnConfig.from_file(str(config_path))


def test_config_errors_are_internal_errors(tmp_path: Path) -> None:
    """Configuration failures should surface as internal errors."""
    with pytest.raises(KnnInternalError):
        KnnConfig.from_file(str(tmp_path / "missing.yaml"))
