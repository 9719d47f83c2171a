"""Shared typed models.

This module defines immutable data models used by codec, store,
classifier, and serving layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from core.constants import MNIST_COLS, MNIST_IMAGE_MAGIC, MNIST_LABEL_MAGIC, MNIST_ROWS

FeatureVector = bytes
PartitionName = Literal["training", "test"]


@dataclass(frozen=True)
class Training:
    """Partition tag for labeled samples.

    Attributes:
        label: Ground-truth label.
    """

    label: str


@dataclass(frozen=True)
class Unlabeled:
    """Partition tag for unlabeled samples."""


Partition = Union[Training, Unlabeled]


def partition_for_label(label: str | None) -> Partition:
    """Convert an optional wire label into a partition tag."""
    return Unlabeled() if label is None else Training(label)


def label_for_partition(partition: Partition) -> str | None:
    """Convert a partition tag back into its optional wire label."""
    if isinstance(partition, Training):
        return partition.label
    return None


@dataclass(frozen=True)
class LabeledFeatures:
    """One feature vector with its optional label.

    Attributes:
        features: Raw bytes or base64 text, depending on the producer.
        label: Label for training samples, ``None`` for test samples.
    """

    features: FeatureVector | str
    label: str | None = None

    @property
    def partition(self) -> Partition:
        """Partition implied by label presence."""
        return partition_for_label(self.label)


@dataclass(frozen=True)
class StoredFeatures:
    """Persisted training record returned by bulk store reads.

    Attributes:
        features_id: Content-derived identifier.
        features: Raw feature bytes.
        label: Ground-truth label.
    """

    features_id: str
    features: FeatureVector
    label: str


@dataclass(frozen=True)
class CorpusHeader:
    """Expected header values for a corpus blob pair.

    Attributes:
        image_magic: Required image blob magic number.
        label_magic: Required label blob magic number.
        rows: Required image row count.
        cols: Required image column count.
    """

    image_magic: int = MNIST_IMAGE_MAGIC
    label_magic: int = MNIST_LABEL_MAGIC
    rows: int = MNIST_ROWS
    cols: int = MNIST_COLS


@dataclass(frozen=True)
class BlobHeader:
    """Header fields parsed from one corpus blob.

    Attributes:
        magic: Magic number.
        count: Declared record count.
        rows: Image rows, zero for label blobs.
        cols: Image columns, zero for label blobs.
    """

    magic: int
    count: int
    rows: int = 0
    cols: int = 0


@dataclass(frozen=True)
class Neighbor:
    """One retained nearest-neighbor candidate.

    Attributes:
        index: Position of the candidate in the training input.
        label: Candidate label.
        distance: Euclidean distance to the query.
    """

    index: int
    label: str
    distance: float


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of one KNN classification.

    Attributes:
        label: Majority label among retained neighbors.
        nearest_index: Training input index of the closest neighbor.
        neighbors: Retained neighbors ordered by rank.
    """

    label: str
    nearest_index: int
    neighbors: tuple[Neighbor, ...]


@dataclass(frozen=True)
class StoreResponse:
    """Response payload for storing an image."""

    features_id: str


@dataclass(frozen=True)
class ClassifyResponse:
    """Response payload for classifying an image.

    Attributes:
        features_id: Identifier of the nearest training record.
        label: Predicted label.
    """

    features_id: str
    label: str
