"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli.main import main
from core.constants import MNIST_IMAGES_FILE_NAME, MNIST_LABELS_FILE_NAME
from tests.corpus_builders import image_blob, label_blob


def _write_corpus(data_dir: Path) -> None:
    images = [[0, 0, 0, 0], [10, 10, 10, 10], [9, 9, 9, 9]]
    (data_dir / MNIST_IMAGES_FILE_NAME).write_bytes(image_blob(images, 2, 2))
    (data_dir / MNIST_LABELS_FILE_NAME).write_bytes(label_blob([1, 2, 2]))


def test_cli_load_prints_training_count(tmp_path: Path, capsys) -> None:
    """CLI load should decode the corpus and report stored records."""
    _write_corpus(tmp_path)
    db_path = tmp_path / "features.sqlite3"
    args = ["--db-path", str(db_path), "load", str(tmp_path), "--rows", "2", "--cols", "2"]

    exit_code = main(args)
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output == "3"


def test_cli_add_get_and_classify(tmp_path: Path, capsys) -> None:
    """CLI commands should round-trip a stored image through classification."""
    _write_corpus(tmp_path)
    db_args = ["--db-path", str(tmp_path / "features.sqlite3")]
    main([*db_args, "load", str(tmp_path), "--rows", "2", "--cols", "2"])
    image_path = tmp_path / "query.bin"
    image_path.write_bytes(bytes([8, 8, 8, 8]))
    capsys.readouterr()

    main([*db_args, "add", str(image_path)])
    features_id = capsys.readouterr().out.strip()
    main([*db_args, "get", features_id])
    payload = json.loads(capsys.readouterr().out)
    exit_code = main([*db_args, "classify", features_id, "-k", "2"])
    nearest_id, label = capsys.readouterr().out.strip().split("\t")

    assert (exit_code, label, payload["features"]) == (0, "2", "CAgICA==")
    assert nearest_id.startswith("a-")


def test_cli_reports_domain_errors(tmp_path: Path, capsys) -> None:
    """CLI should print a status payload and fail for unknown ids."""
    exit_code = main(["--db-path", str(tmp_path / "features.sqlite3"), "get", "b-missing"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 1 and payload["status"] == 404


@pytest.mark.parametrize("command", [["add", "missing.bin"], ["classify", "--image", "missing.bin"]])
def test_cli_reports_unreadable_input_files(tmp_path: Path, capsys, command: list[str]) -> None:
    """A missing features file should produce a bad-value payload, not a traceback."""
    db_path = str(tmp_path / "features.sqlite3")
    missing = str(tmp_path / command[-1])

    exit_code = main(["--db-path", db_path, *command[:-1], missing])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 1 and payload["status"] == 400
    assert payload["errors"][0]["code"] == "BAD_VAL"
