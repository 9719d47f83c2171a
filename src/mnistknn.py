"""Public SDK surface for mnistknn.

This module provides a stable import path for library users.
It re-exports the service, store, codecs, classifier, and typed models.
"""

from __future__ import annotations

from classify.knn import classify
from codec.corpus_decoder import decode_corpus
from codec.corpus_reader import read_corpus
from codec.transport import decode_features, encode_features
from core.config import KnnConfig
from core.types import (
    ClassificationResult,
    ClassifyResponse,
    CorpusHeader,
    LabeledFeatures,
    StoredFeatures,
    StoreResponse,
)
from serve.knn_service import KnnService
from store.feature_store import FeatureStore

__all__ = [
    "ClassificationResult",
    "ClassifyResponse",
    "CorpusHeader",
    "FeatureStore",
    "KnnConfig",
    "KnnService",
    "LabeledFeatures",
    "StoreResponse",
    "StoredFeatures",
    "classify",
    "decode_corpus",
    "decode_features",
    "encode_features",
    "read_corpus",
]
