"""Content-addressed feature store.

This module persists feature vectors in SQLite under content-derived
identifiers, with one table per partition. Inserting identical features
and label twice is a no-op that returns the existing identifier.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from types import TracebackType
from typing import Callable, Iterable, TypeVar

from codec.transport import decode_features, encode_features
from core.constants import FEATURES_ID_LENGTH, TEST_TABLE_NAME, TRAINING_TABLE_NAME
from core.errors import KnnBadRequestError, KnnDatabaseError, KnnNotFoundError
from core.logging_config import get_logger
from core.types import (
    LabeledFeatures,
    Partition,
    PartitionName,
    StoredFeatures,
    Training,
    label_for_partition,
    partition_for_label,
)
from store.feature_ids import build_features_id, partition_of_id

_LOGGER = get_logger(__name__)
_T = TypeVar("_T")

_TABLES: dict[PartitionName, str] = {
    "training": TRAINING_TABLE_NAME,
    "test": TEST_TABLE_NAME,
}


class FeatureStore:
    """SQLite-backed feature store handle.

    A store is acquired with :meth:`open` and must be released with
    :meth:`close`, or used as a context manager. Every operation on a
    closed store raises :class:`KnnDatabaseError`.
    """

    def __init__(self, connection: sqlite3.Connection, db_path: Path) -> None:
        self._connection: sqlite3.Connection | None = connection
        self._db_path = db_path
        self._lock = threading.Lock()

    @classmethod
    def open(cls, db_path: Path | str) -> "FeatureStore":
        """Open or create a store at a database path.

        Args:
            db_path: SQLite file path, or ``":memory:"``.

        Returns:
            Open store handle.

        Raises:
            KnnDatabaseError: If the database cannot be opened.
        """
        path = Path(db_path)
        try:
            if str(db_path) != ":memory:":
                path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(db_path), check_same_thread=False)
            with connection:
                for table in _TABLES.values():
                    connection.execute(
                        f"CREATE TABLE IF NOT EXISTS {table} ("
                        "id TEXT PRIMARY KEY, features TEXT NOT NULL, label TEXT)"
                    )
        except (OSError, sqlite3.Error) as error:
            raise KnnDatabaseError(
                f"Failed to open feature store at {db_path}: {error}. "
                "Check the path is writable."
            ) from error
        _LOGGER.info("feature_store_opened", db_path=str(db_path))
        return cls(connection, path)

    def __enter__(self) -> "FeatureStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def add(self, features: bytes | str, is_encoded: bool, label: str | None = None) -> str:
        """Add features, returning their content-derived identifier.

        Args:
            features: Base64 text when ``is_encoded``, else raw bytes.
            is_encoded: Whether ``features`` is already base64 text.
            label: Label for training features, ``None`` for test features.

        Returns:
            Identifier of the new or already-present record.

        Raises:
            KnnBadValueError: If encoded features are not valid base64.
            KnnDatabaseError: If storage fails.
        """
        encoded = _canonical_encoding(features, is_encoded)
        partition = partition_for_label(label)
        return self._run("add", lambda connection: _insert(connection, encoded, partition))

    def add_all(self, records: Iterable[LabeledFeatures]) -> list[str]:
        """Add many records in one transaction.

        Args:
            records: Labeled features; raw bytes or base64 text.

        Returns:
            Identifiers in input order.

        Raises:
            KnnBadValueError: If encoded features are not valid base64.
            KnnDatabaseError: If storage fails.
        """
        rows = _encoded_rows(records)

        def insert_rows(connection: sqlite3.Connection) -> list[str]:
            return [_insert(connection, encoded, partition) for encoded, partition in rows]

        features_ids = self._run("add_all", insert_rows)
        _LOGGER.info("features_bulk_added", record_count=len(features_ids))
        return features_ids

    def replace_all(self, records: Iterable[LabeledFeatures]) -> list[str]:
        """Replace every stored record with ``records`` in one transaction.

        A failed load leaves the previous contents in place.

        Args:
            records: Labeled features; raw bytes or base64 text.

        Returns:
            Identifiers in input order.

        Raises:
            KnnBadValueError: If encoded features are not valid base64.
            KnnDatabaseError: If storage fails.
        """
        rows = _encoded_rows(records)

        def replace_rows(connection: sqlite3.Connection) -> list[str]:
            for table in _TABLES.values():
                connection.execute(f"DELETE FROM {table}")
            return [_insert(connection, encoded, partition) for encoded, partition in rows]

        features_ids = self._run("replace_all", replace_rows)
        _LOGGER.info("features_replaced", record_count=len(features_ids))
        return features_ids

    def get(self, features_id: str, as_encoded: bool = False) -> LabeledFeatures:
        """Return stored features by identifier or unique identifier prefix.

        Args:
            features_id: Full identifier, or a prefix shorter than it.
            as_encoded: Return base64 text instead of raw bytes.

        Returns:
            Stored features with their optional label.

        Raises:
            KnnNotFoundError: If no record matches.
            KnnBadRequestError: If a prefix matches several records.
            KnnDatabaseError: If storage fails.
        """
        partition = partition_of_id(features_id)
        if partition is None:
            raise KnnNotFoundError(f"No features found for id '{features_id}'.")
        table = _TABLES[partition]

        def select(connection: sqlite3.Connection) -> list[tuple[str, str | None]]:
            if len(features_id) >= FEATURES_ID_LENGTH:
                cursor = connection.execute(
                    f"SELECT features, label FROM {table} WHERE id = ?", (features_id,)
                )
            else:
                cursor = connection.execute(
                    f"SELECT features, label FROM {table} WHERE substr(id, 1, ?) = ? LIMIT 2",
                    (len(features_id), features_id),
                )
            return cursor.fetchall()

        rows = self._run("get", select)
        if not rows:
            raise KnnNotFoundError(f"No features found for id '{features_id}'.")
        if len(rows) > 1:
            raise KnnBadRequestError(
                f"Id prefix '{features_id}' identifies multiple feature sets. "
                "Use a longer prefix or the full id."
            )
        encoded, label = rows[0]
        features = encoded if as_encoded else decode_features(encoded)
        return LabeledFeatures(features=features, label=label)

    def get_all_training_features(self) -> list[StoredFeatures]:
        """Return every training record with raw feature bytes, in insertion order.

        Raises:
            KnnDatabaseError: If storage fails.
        """
        rows = self._run(
            "get_all_training_features",
            lambda connection: connection.execute(
                f"SELECT id, features, label FROM {TRAINING_TABLE_NAME} ORDER BY rowid"
            ).fetchall(),
        )
        return [
            StoredFeatures(features_id=features_id, features=decode_features(encoded), label=label)
            for features_id, encoded, label in rows
        ]

    def count(self, partition: PartitionName) -> int:
        """Return the number of records stored in a partition."""
        table = _TABLES[partition]
        return self._run(
            "count",
            lambda connection: connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0],
        )

    def clear(self) -> None:
        """Remove all records from both partitions.

        Raises:
            KnnDatabaseError: If storage fails.
        """

        def delete_all(connection: sqlite3.Connection) -> None:
            for table in _TABLES.values():
                connection.execute(f"DELETE FROM {table}")

        self._run("clear", delete_all)
        _LOGGER.info("feature_store_cleared", db_path=str(self._db_path))

    def close(self) -> None:
        """Release the database connection; later calls are no-ops."""
        with self._lock:
            connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.close()
        except sqlite3.Error as error:
            raise KnnDatabaseError(
                f"Failed to close feature store at {self._db_path}: {error}."
            ) from error
        _LOGGER.info("feature_store_closed", db_path=str(self._db_path))

    def _run(self, operation: str, action: Callable[[sqlite3.Connection], _T]) -> _T:
        """Run one storage action in a transaction under the store lock.

        Raises:
            KnnDatabaseError: If the store is closed or SQLite fails.
        """
        with self._lock:
            if self._connection is None:
                raise KnnDatabaseError(
                    f"Feature store at {self._db_path} is closed; cannot {operation}. "
                    "Open a new store handle."
                )
            try:
                with self._connection:
                    return action(self._connection)
            except sqlite3.Error as error:
                _LOGGER.error(
                    "feature_store_failed",
                    operation=operation,
                    db_path=str(self._db_path),
                    error=str(error),
                )
                raise KnnDatabaseError(
                    f"Feature store {operation} failed at {self._db_path}: {error}."
                ) from error


def _canonical_encoding(features: bytes | str, is_encoded: bool) -> str:
    """Normalize features to canonical base64 text.

    Raises:
        KnnBadValueError: If encoded features are not valid base64.
    """
    if is_encoded:
        return encode_features(decode_features(str(features)))
    return encode_features(bytes(features))


def _encoded_rows(records: Iterable[LabeledFeatures]) -> list[tuple[str, Partition]]:
    """Encode records to canonical base64 rows paired with their partition."""
    return [
        (_canonical_encoding(record.features, isinstance(record.features, str)), record.partition)
        for record in records
    ]


def _insert(connection: sqlite3.Connection, encoded: str, partition: Partition) -> str:
    """Insert one record, treating an identifier collision as success."""
    features_id = build_features_id(encoded, partition)
    table = TRAINING_TABLE_NAME if isinstance(partition, Training) else TEST_TABLE_NAME
    try:
        connection.execute(
            f"INSERT INTO {table} (id, features, label) VALUES (?, ?, ?)",
            (features_id, encoded, label_for_partition(partition)),
        )
    except sqlite3.IntegrityError:
        _LOGGER.debug("features_already_stored", features_id=features_id)
    return features_id
