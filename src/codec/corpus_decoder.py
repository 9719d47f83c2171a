"""Binary image corpus decoder.

This module validates and unpacks an IDX image blob and its parallel
label blob into labeled feature vectors.

Layouts (all header fields are big-endian unsigned 32-bit):
    images: [magic][count][rows][cols][pixels...]
    labels: [magic][count][labels...]
"""

from __future__ import annotations

import struct

from core.constants import IMAGE_HEADER_SIZE, LABEL_HEADER_SIZE, LABEL_RECORD_SIZE
from core.errors import KnnBadFormatError, KnnBadValueError
from core.logging_config import get_logger
from core.types import BlobHeader, CorpusHeader, LabeledFeatures

_LOGGER = get_logger(__name__)
_IMAGE_HEADER = struct.Struct(">IIII")
_LABEL_HEADER = struct.Struct(">II")


def decode_corpus(
    image_blob: bytes,
    label_blob: bytes,
    expected: CorpusHeader,
) -> list[LabeledFeatures]:
    """Decode an image/label blob pair into labeled feature vectors.

    Args:
        image_blob: Raw image matrix blob including its header.
        label_blob: Raw label blob including its header.
        expected: Header values the corpus must carry.

    Returns:
        One labeled feature vector per record, in blob order.

    Raises:
        KnnBadValueError: If a magic number or dimension is unexpected.
        KnnBadFormatError: If headers are truncated, record counts
            disagree, or a blob length does not match its header.
    """
    image_header = parse_image_header(image_blob)
    label_header = parse_label_header(label_blob)
    _check_expected_values(image_header, label_header, expected)
    if image_header.count != label_header.count:
        raise KnnBadFormatError(
            f"Corpus record counts disagree: {image_header.count} images "
            f"but {label_header.count} labels."
        )
    image_size = image_header.rows * image_header.cols
    _check_blob_length("image", image_blob, IMAGE_HEADER_SIZE, image_header.count, image_size)
    _check_blob_length(
        "label", label_blob, LABEL_HEADER_SIZE, label_header.count, LABEL_RECORD_SIZE
    )
    records: list[LabeledFeatures] = []
    for index in range(image_header.count):
        offset = IMAGE_HEADER_SIZE + index * image_size
        records.append(
            LabeledFeatures(
                features=bytes(image_blob[offset : offset + image_size]),
                label=str(label_blob[LABEL_HEADER_SIZE + index]),
            )
        )
    _LOGGER.info(
        "corpus_decoded",
        record_count=len(records),
        rows=image_header.rows,
        cols=image_header.cols,
    )
    return records


def parse_image_header(image_blob: bytes) -> BlobHeader:
    """Parse the fixed header at the head of an image blob.

    Raises:
        KnnBadFormatError: If the blob is shorter than the header.
    """
    if len(image_blob) < IMAGE_HEADER_SIZE:
        raise KnnBadFormatError(
            f"Image blob holds {len(image_blob)} bytes, "
            f"fewer than its {IMAGE_HEADER_SIZE}-byte header."
        )
    magic, count, rows, cols = _IMAGE_HEADER.unpack_from(image_blob, 0)
    return BlobHeader(magic=magic, count=count, rows=rows, cols=cols)


def parse_label_header(label_blob: bytes) -> BlobHeader:
    """Parse the fixed header at the head of a label blob.

    Raises:
        KnnBadFormatError: If the blob is shorter than the header.
    """
    if len(label_blob) < LABEL_HEADER_SIZE:
        raise KnnBadFormatError(
            f"Label blob holds {len(label_blob)} bytes, "
            f"fewer than its {LABEL_HEADER_SIZE}-byte header."
        )
    magic, count = _LABEL_HEADER.unpack_from(label_blob, 0)
    return BlobHeader(magic=magic, count=count)


def _check_expected_values(
    image_header: BlobHeader,
    label_header: BlobHeader,
    expected: CorpusHeader,
) -> None:
    """Compare parsed header values against the expected header.

    Raises:
        KnnBadValueError: On the first mismatching field.
    """
    checks = (
        ("image magic", image_header.magic, expected.image_magic),
        ("label magic", label_header.magic, expected.label_magic),
        ("rows", image_header.rows, expected.rows),
        ("cols", image_header.cols, expected.cols),
    )
    for field_name, actual, wanted in checks:
        if actual != wanted:
            raise KnnBadValueError(
                f"Corpus {field_name} is {actual:#x} ({actual}), expected {wanted:#x} ({wanted})."
            )


def _check_blob_length(
    blob_name: str,
    blob: bytes,
    header_size: int,
    count: int,
    record_size: int,
) -> None:
    expected_length = header_size + count * record_size
    if len(blob) != expected_length:
        raise KnnBadFormatError(
            f"The {blob_name} blob holds {len(blob)} bytes but its header "
            f"declares {count} records of {record_size} bytes ({expected_length} total)."
        )
