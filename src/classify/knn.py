"""Brute-force k-nearest-neighbor classification.

This module ranks every training vector by Euclidean distance to a
query, keeps the k closest, and returns their majority label. Ties on
distance go to the earlier training input; ties on label frequency go
to the label held by the closest-ranked neighbor.
"""

from __future__ import annotations

import heapq
import math
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, Sequence

import numpy as np

from core.errors import KnnBadFormatError, KnnBadValueError
from core.logging_config import get_logger
from core.types import ClassificationResult, Neighbor

_LOGGER = get_logger(__name__)

# (squared distance, input index); compared lexicographically
_Candidate = tuple[int, int]


class LabeledVector(Protocol):
    """Read-only view of one training sample."""

    @property
    def features(self) -> bytes | str: ...

    @property
    def label(self) -> str | None: ...


def classify(
    query: bytes,
    training_set: Sequence[LabeledVector],
    k: int = 3,
    workers: int = 1,
) -> ClassificationResult:
    """Classify a query vector against labeled training vectors.

    Args:
        query: Raw query feature bytes.
        training_set: Labeled training samples with raw feature bytes.
        k: Number of neighbors that vote.
        workers: Threads used to score contiguous training chunks.

    Returns:
        Majority label, nearest training index, and ranked neighbors.

    Raises:
        KnnBadValueError: If ``k`` or ``workers`` is not positive.
        KnnBadFormatError: If the training set is empty, a training
            vector length differs from the query, or a sample is unlabeled.
    """
    if isinstance(k, bool) or not isinstance(k, int) or k < 1:
        raise KnnBadValueError(f"k must be a positive integer, got {k!r}.")
    if workers < 1:
        raise KnnBadValueError(f"workers must be a positive integer, got {workers!r}.")
    matrix = _training_matrix(query, training_set)
    query_vector = np.frombuffer(bytes(query), dtype=np.uint8).astype(np.int64)
    candidates = _select_candidates(query_vector, matrix, k, workers)
    neighbors = tuple(
        Neighbor(
            index=index,
            label=str(training_set[index].label),
            distance=math.sqrt(squared),
        )
        for squared, index in candidates
    )
    label = majority_label(neighbors)
    _LOGGER.debug(
        "classification_complete",
        label=label,
        nearest_index=neighbors[0].index,
        k=k,
        training_count=len(training_set),
    )
    return ClassificationResult(label=label, nearest_index=neighbors[0].index, neighbors=neighbors)


def majority_label(neighbors: Sequence[Neighbor]) -> str:
    """Return the most frequent label, preferring the closest on ties.

    Args:
        neighbors: Neighbors ordered by rank, closest first.

    Returns:
        Winning label.
    """
    if not neighbors:
        raise KnnBadFormatError("Cannot vote on an empty neighbor list.")
    counts = Counter(neighbor.label for neighbor in neighbors)
    top_count = max(counts.values())
    return next(neighbor.label for neighbor in neighbors if counts[neighbor.label] == top_count)


def _training_matrix(query: bytes, training_set: Sequence[LabeledVector]) -> np.ndarray:
    """Validate training samples and stack them into an int64 matrix.

    Raises:
        KnnBadFormatError: On empty input, length mismatch, or missing label.
    """
    if not training_set:
        raise KnnBadFormatError("Cannot classify against an empty training set.")
    width = len(query)
    rows: list[bytes] = []
    for index, sample in enumerate(training_set):
        features = sample.features
        if isinstance(features, str) or len(features) != width:
            raise KnnBadFormatError(
                f"Training features at index {index} hold {len(features)} values "
                f"but the query holds {width}; all vectors must be raw bytes of equal length."
            )
        if sample.label is None:
            raise KnnBadFormatError(f"Training features at index {index} have no label.")
        rows.append(bytes(features))
    flat = np.frombuffer(b"".join(rows), dtype=np.uint8)
    return flat.reshape(len(rows), width).astype(np.int64)


def _select_candidates(
    query_vector: np.ndarray,
    matrix: np.ndarray,
    k: int,
    workers: int,
) -> list[_Candidate]:
    """Return the k best candidates, scoring chunks in parallel when asked."""
    row_count = matrix.shape[0]
    if workers == 1 or row_count < 2:
        return _top_k(query_vector, matrix, 0, k)
    chunk_size = math.ceil(row_count / workers)
    starts = range(0, row_count, chunk_size)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        partials = list(
            executor.map(
                lambda start: _top_k(query_vector, matrix[start : start + chunk_size], start, k),
                starts,
            )
        )
    return heapq.nsmallest(k, heapq.merge(*partials))


def _top_k(
    query_vector: np.ndarray,
    matrix: np.ndarray,
    offset: int,
    k: int,
) -> list[_Candidate]:
    """Rank one contiguous chunk, tagging candidates with global indices."""
    differences = matrix - query_vector
    squared = np.einsum("ij,ij->i", differences, differences)
    return heapq.nsmallest(
        k,
        ((int(distance), offset + index) for index, distance in enumerate(squared.tolist())),
    )
