"""mnistknn CLI entry points.
This module exposes corpus loading, feature storage, and classification commands.
It maps argparse commands onto service calls.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from codec.corpus_reader import read_corpus
from core.config import KnnConfig
from core.constants import MNIST_COLS, MNIST_IMAGE_MAGIC, MNIST_LABEL_MAGIC, MNIST_ROWS
from core.errors import KnnBadValueError, KnnError
from core.types import CorpusHeader
from serve.error_mapping import error_payload
from serve.knn_service import KnnService, encoded_image_payload


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="mnistknn", description="MNIST KNN classifier CLI")
    parser.add_argument("--config", help="YAML config file overlaid on KNN_* environment values")
    parser.add_argument("--db-path", help="Override the feature store database path")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_load_command(subparsers)
    _add_add_command(subparsers)
    _add_get_command(subparsers)
    _add_classify_command(subparsers)
    subparsers.add_parser("clear", help="Remove all stored features")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the mnistknn CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.config, args.db_path)
        if args.command == "load":
            return _run_load_command(config, args)
        with KnnService.open(config) as service:
            if args.command == "add":
                return _run_add_command(service, args)
            if args.command == "get":
                return _run_get_command(service, args)
            if args.command == "classify":
                return _run_classify_command(service, args)
            if args.command == "clear":
                service.store.clear()
                return 0
    except KnnError as error:
        print(json.dumps(error_payload(error), sort_keys=True))
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _add_load_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("load", help="Replace stored training data with a corpus")
    parser.add_argument("data_dir", help="Directory holding the image and label files")
    parser.add_argument("--image-magic", type=lambda value: int(value, 0), default=MNIST_IMAGE_MAGIC)
    parser.add_argument("--label-magic", type=lambda value: int(value, 0), default=MNIST_LABEL_MAGIC)
    parser.add_argument("--rows", type=int, default=MNIST_ROWS)
    parser.add_argument("--cols", type=int, default=MNIST_COLS)


def _add_add_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("add", help="Store features read from a file")
    parser.add_argument("image_file", help="File holding raw feature bytes")
    parser.add_argument("--label", help="Label for training features; omit for test features")
    parser.add_argument(
        "--b64",
        action="store_true",
        help="Treat the file contents as base64 text",
    )


def _add_get_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("get", help="Print stored features as JSON")
    parser.add_argument("features_id", help="Features id or unique id prefix")


def _add_classify_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("classify", help="Classify stored or file features")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("features_id", nargs="?", help="Stored features id or unique id prefix")
    target.add_argument("--image", help="File holding raw feature bytes")
    parser.add_argument("-k", type=int, help="Neighbor count; configured k when omitted")


def _build_config(config_path: str | None, db_path: str | None) -> KnnConfig:
    """Build config with optional file and database path overrides.

    Args:
        config_path: Optional YAML config path.
        db_path: Optional database path override.

    Returns:
        Validated config.
    """
    config = KnnConfig.from_file(config_path) if config_path else KnnConfig.from_env()
    if db_path:
        config = replace(config, db_path=Path(db_path).expanduser().resolve())
    return config


def _run_load_command(config: KnnConfig, args: argparse.Namespace) -> int:
    """Handle load command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    expected = CorpusHeader(
        image_magic=args.image_magic,
        label_magic=args.label_magic,
        rows=args.rows,
        cols=args.cols,
    )
    records = read_corpus(args.data_dir, expected)
    with KnnService.open(config, training_data=records) as service:
        print(service.store.count("training"))
    return 0


def _run_add_command(service: KnnService, args: argparse.Namespace) -> int:
    """Handle add command.

    Args:
        service: Open service.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    contents = _read_input_file(args.image_file)
    if args.b64:
        encoded = contents.decode("ascii", errors="replace").strip()
        features_id = service.store.add(encoded, True, args.label)
    else:
        features_id = service.store.add(contents, False, args.label)
    print(features_id)
    return 0


def _run_get_command(service: KnnService, args: argparse.Namespace) -> int:
    """Handle get command.

    Args:
        service: Open service.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    features = service.get_image(args.features_id)
    print(json.dumps(encoded_image_payload(features), sort_keys=True))
    return 0


def _run_classify_command(service: KnnService, args: argparse.Namespace) -> int:
    """Handle classify command.

    Args:
        service: Open service.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.image:
        response = service.classify_request(_read_input_file(args.image), args.k)
    else:
        response = service.classify_stored(args.features_id, args.k)
    print(f"{response.features_id}\t{response.label}")
    return 0


def _read_input_file(file_path: str) -> bytes:
    """Read a features file named on the command line.

    Raises:
        KnnBadValueError: If the file is missing or unreadable.
    """
    try:
        return Path(file_path).read_bytes()
    except OSError as error:
        raise KnnBadValueError(
            f"Failed to read features file {file_path}: {error}. "
            "Check the path exists and is readable."
        ) from error
