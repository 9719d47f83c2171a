"""Unit tests for content-derived feature identifiers."""

from __future__ import annotations

from core.constants import FEATURES_ID_LENGTH
from core.types import Training, Unlabeled, label_for_partition, partition_for_label
from store.feature_ids import build_features_id, partition_of_id


def test_build_features_id_is_stable_for_identical_content() -> None:
    """Identical features and label should map to the same identifier."""
    first = build_features_id("AAEC", Training("3"))
    second = build_features_id("AAEC", Training("3"))

    assert first == second and len(first) == FEATURES_ID_LENGTH


def test_build_features_id_depends_on_label() -> None:
    """The same features under different labels should get different ids."""
    assert build_features_id("AAEC", Training("3")) != build_features_id("AAEC", Training("4"))


def test_partition_is_recoverable_from_id() -> None:
    """The id tag should name the partition without a lookup."""
    training_id = build_features_id("AAEC", Training("3"))
    test_id = build_features_id("AAEC", Unlabeled())

    assert (partition_of_id(training_id), partition_of_id(test_id)) == ("training", "test")


def test_partition_of_unknown_tag_is_none() -> None:
    """Ids without a known tag belong to no partition."""
    assert partition_of_id("nonexistent-id") is None


def test_partition_round_trips_optional_label() -> None:
    """Label presence should map to the training partition and back."""
    assert [label_for_partition(partition_for_label(label)) for label in ("7", None)] == ["7", None]
    assert isinstance(partition_for_label(None), Unlabeled)
