"""Content-derived feature identifiers.

An identifier is ``<tag>-<digest>`` where the tag names the partition
and the digest hashes the encoded features together with the label.
Identical features and label always produce the identical identifier.
"""

from __future__ import annotations

import hashlib

from core.constants import (
    HASH_ALGORITHM,
    ID_SEPARATOR,
    TEST_ID_TAG,
    TRAINING_ID_TAG,
    UNLABELED_MARKER,
)
from core.types import Partition, PartitionName, Training


def build_features_id(encoded_features: str, partition: Partition) -> str:
    """Build a stable identifier for encoded features in a partition.

    Args:
        encoded_features: Canonical base64 feature text.
        partition: Training or test partition tag.

    Returns:
        Identifier string with partition tag prefix.
    """
    if isinstance(partition, Training):
        tag, label_text = TRAINING_ID_TAG, partition.label
    else:
        tag, label_text = TEST_ID_TAG, UNLABELED_MARKER
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(f"{encoded_features}{ID_SEPARATOR}{label_text}".encode("utf-8"))
    return f"{tag}{ID_SEPARATOR}{hasher.hexdigest()}"


def partition_of_id(features_id: str) -> PartitionName | None:
    """Return the partition named by an identifier's tag.

    Returns:
        ``"training"`` or ``"test"``, or ``None`` for an unknown tag.
    """
    if features_id.startswith(TRAINING_ID_TAG):
        return "training"
    if features_id.startswith(TEST_ID_TAG):
        return "test"
    return None
