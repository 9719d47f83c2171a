"""Corpus file readers.

This module loads the paired MNIST image and label files from a local
data directory and hands the raw blobs to the corpus decoder.
"""

from __future__ import annotations

import gzip
from pathlib import Path

from codec.corpus_decoder import decode_corpus
from core.constants import GZIP_SUFFIX, MNIST_IMAGES_FILE_NAME, MNIST_LABELS_FILE_NAME
from core.errors import KnnBadValueError
from core.types import CorpusHeader, LabeledFeatures


def read_corpus(
    data_dir: str,
    expected: CorpusHeader | None = None,
    images_file_name: str = MNIST_IMAGES_FILE_NAME,
    labels_file_name: str = MNIST_LABELS_FILE_NAME,
) -> list[LabeledFeatures]:
    """Read and decode a corpus from a data directory.

    Args:
        data_dir: Directory holding the image and label files.
        expected: Expected header values; MNIST defaults when omitted.
        images_file_name: Image file name, with or without ``.gz``.
        labels_file_name: Label file name, with or without ``.gz``.

    Returns:
        Decoded labeled feature vectors.

    Raises:
        KnnBadValueError: If a file is missing or unreadable.
        KnnBadFormatError: If the blobs are structurally inconsistent.
    """
    root = Path(data_dir).expanduser()
    image_blob = _read_blob(root, images_file_name)
    label_blob = _read_blob(root, labels_file_name)
    return decode_corpus(image_blob, label_blob, expected or CorpusHeader())


def _read_blob(root: Path, file_name: str) -> bytes:
    """Read one corpus file, preferring the plain file over its gzip form.

    Args:
        root: Data directory.
        file_name: Base file name.

    Returns:
        Decompressed file bytes.

    Raises:
        KnnBadValueError: If neither form exists or reading fails.
    """
    plain_path = root / file_name
    gzip_path = plain_path if file_name.endswith(GZIP_SUFFIX) else root / (file_name + GZIP_SUFFIX)
    try:
        if plain_path.is_file() and not file_name.endswith(GZIP_SUFFIX):
            return plain_path.read_bytes()
        if gzip_path.is_file():
            with gzip.open(gzip_path, "rb") as handle:
                return handle.read()
    except (OSError, EOFError) as error:
        raise KnnBadValueError(
            f"Failed to read corpus file under {root}: {error}. "
            "Check the file is readable and not truncated."
        ) from error
    raise KnnBadValueError(
        f"Corpus file {file_name} not found under {root}. "
        f"Provide {file_name} or {file_name}{GZIP_SUFFIX}."
    )
