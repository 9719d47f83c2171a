"""Core constants used across KNN modules.

This module centralizes corpus layout, identifier, and default values.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".mnistknn")
DEFAULT_DB_FILE_NAME = "features.sqlite3"
DEFAULT_K = 3
DEFAULT_WORKERS = 1
DEFAULT_BASE_PATH = "/knn"

MNIST_IMAGE_MAGIC = 0x803
MNIST_LABEL_MAGIC = 0x801
MNIST_ROWS = 28
MNIST_COLS = 28
MNIST_IMAGES_FILE_NAME = "train-images-idx3-ubyte"
MNIST_LABELS_FILE_NAME = "train-labels-idx1-ubyte"
GZIP_SUFFIX = ".gz"

IMAGE_HEADER_SIZE = 16
LABEL_HEADER_SIZE = 8
LABEL_RECORD_SIZE = 1

HASH_ALGORITHM = "sha256"
TRAINING_ID_TAG = "a"
TEST_ID_TAG = "b"
ID_SEPARATOR = "-"
UNLABELED_MARKER = "<unlabeled>"
FEATURES_ID_LENGTH = 66

TRAINING_TABLE_NAME = "training_features"
TEST_TABLE_NAME = "test_features"
