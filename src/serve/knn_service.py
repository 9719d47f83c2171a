"""KNN request adapters.

This module exposes the thin operations an outer request router calls:
store an image, fetch an image, and classify an image. It owns one
feature store handle and caches the training set for classification.
"""

from __future__ import annotations

from types import TracebackType
from typing import Sequence

from classify.knn import classify
from codec.transport import encode_features
from core.config import KnnConfig
from core.logging_config import get_logger
from core.types import ClassifyResponse, LabeledFeatures, StoredFeatures, StoreResponse
from store.feature_store import FeatureStore

_LOGGER = get_logger(__name__)


class KnnService:
    """Service entry point wrapping a feature store and the classifier."""

    def __init__(self, config: KnnConfig, store: FeatureStore) -> None:
        """Create a service over an open store.

        Args:
            config: Runtime configuration.
            store: Open feature store; the service closes it.
        """
        self._config = config
        self._store = store
        self._training: list[StoredFeatures] = store.get_all_training_features()

    @classmethod
    def open(
        cls,
        config: KnnConfig,
        training_data: Sequence[LabeledFeatures] | None = None,
    ) -> "KnnService":
        """Open the configured store, optionally replacing its contents.

        Args:
            config: Runtime configuration.
            training_data: When given, the store is cleared and loaded with it.

        Returns:
            Ready service instance.

        Raises:
            KnnDatabaseError: If the store cannot be opened or loaded.
        """
        store = FeatureStore.open(config.db_path)
        try:
            if training_data is not None:
                store.replace_all(training_data)
            service = cls(config, store)
        except Exception:
            store.close()
            raise
        _LOGGER.info("knn_service_ready", training_count=len(service._training))
        return service

    @property
    def store(self) -> FeatureStore:
        """Underlying feature store."""
        return self._store

    def __enter__(self) -> "KnnService":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def store_request(self, raw_image_bytes: bytes) -> StoreResponse:
        """Store an unlabeled image and return its identifier."""
        return StoreResponse(features_id=self._store.add(raw_image_bytes, is_encoded=False))

    def get_image(self, features_id: str) -> LabeledFeatures:
        """Return stored features as base64 text with their optional label."""
        return self._store.get(features_id, as_encoded=True)

    def classify_request(self, raw_query_bytes: bytes, k: int | None = None) -> ClassifyResponse:
        """Classify raw image bytes.

        Args:
            raw_query_bytes: Query feature bytes.
            k: Neighbor count; configured default when omitted.

        Returns:
            Predicted label and the identifier of the nearest training record.
        """
        result = classify(
            raw_query_bytes,
            self._training,
            k=self._config.k if k is None else k,
            workers=self._config.workers,
        )
        nearest = self._training[result.nearest_index]
        return ClassifyResponse(features_id=nearest.features_id, label=result.label)

    def classify_stored(self, features_id: str, k: int | None = None) -> ClassifyResponse:
        """Classify a previously stored image by identifier or unique prefix."""
        stored = self._store.get(features_id, as_encoded=False)
        return self.classify_request(bytes(stored.features), k)

    def reload_training_features(self) -> int:
        """Refresh the cached training set from the store.

        Returns:
            Number of cached training records.
        """
        self._training = self._store.get_all_training_features()
        return len(self._training)

    def close(self) -> None:
        """Close the underlying feature store."""
        self._store.close()


def encoded_image_payload(features: LabeledFeatures) -> dict[str, object]:
    """Render stored features as a JSON-safe response payload."""
    encoded = features.features
    if isinstance(encoded, bytes):
        encoded = encode_features(encoded)
    payload: dict[str, object] = {"features": encoded}
    if features.label is not None:
        payload["label"] = features.label
    return payload
