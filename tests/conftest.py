"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src and project root directories to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_root in (project_root / "src", project_root):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture
def store(tmp_path):
    """Open a feature store in a temporary directory and close it afterwards."""
    from store.feature_store import FeatureStore

    with FeatureStore.open(tmp_path / "features.sqlite3") as opened_store:
        yield opened_store
