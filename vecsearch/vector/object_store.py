"""
External object store used by the streaming exact search.

The store is an append/scan container of records: atomic single or batch
add, a forward-only cursor over every record in insertion order, and
whole-container delete.
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Union

import numpy as np

from ..core import config
from ..core.db import get_db, init_store, quote_identifier, store_exists
from ..core.errors import StorageOperationError, StorageUnavailableError, ValidationError
from ..util.logging import logger
from .index import validate_embedding
from .types import EMBEDDING_FIELD, Filter, Record


def _json_default(value):
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class IObjectStore(ABC):
    """Abstract interface for the external record store."""

    store_name: str

    @abstractmethod
    def add(self, records: Union[Record, List[Record]]) -> int:
        """Add one record or a batch of records as a single atomic unit."""
        pass

    @abstractmethod
    def iter_records(self, batch_size: int = None, filter: Filter = None) -> Iterator[Record]:
        """Yield every stored record exactly once, in stable insertion order."""
        pass

    def normalize_filter(self, filter: Filter) -> Filter:
        """Filter in the form stored records come back in; identity by default."""
        return filter

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        pass

    @abstractmethod
    def delete_store(self) -> None:
        """Delete the whole container."""
        pass


class SQLiteObjectStore(IObjectStore):
    """SQLite-backed object store; one table per store, records kept as JSON."""

    def __init__(self, db_path: str, store_name: str = "DefaultStore", index_field: Optional[str] = None):
        """
        Args:
            db_path: Path to the SQLite database file
            store_name: Table holding this store's records
            index_field: Optional record attribute to keep a lookup index on
        """
        quote_identifier(store_name)
        if index_field:
            quote_identifier(index_field)
        self.db_path = db_path
        self.store_name = store_name
        self.index_field = index_field

    @classmethod
    def create(cls, db_path: str, store_name: str = "DefaultStore",
               index_field: Optional[str] = None) -> "SQLiteObjectStore":
        """Open the store, creating its table if it does not exist yet."""
        store = cls(db_path, store_name, index_field)
        try:
            with get_db(db_path) as conn:
                init_store(conn, store_name, index_field)
        except sqlite3.Error as e:
            logger.log_store_operation("create", store_name, {"error": str(e)}, status="failed")
            raise StorageOperationError(f"Error creating object store '{store_name}': {e}") from e

        logger.log_store_operation("create", store_name, {"db_path": db_path, "index_field": index_field})
        return store

    @property
    def _table(self) -> str:
        return quote_identifier(self.store_name)

    def _require_store(self, conn: sqlite3.Connection) -> None:
        if not store_exists(conn, self.store_name):
            raise StorageUnavailableError(
                f"Object store '{self.store_name}' not found in database '{self.db_path}'"
            )

    def add(self, records: Union[Record, List[Record]]) -> int:
        """
        Add records in one transaction; either all commit or none do.

        Every record is checked for a numeric, NaN-free embedding before the
        transaction starts, so a rejected batch writes nothing.

        Returns:
            Number of records written

        Raises:
            ValidationError: If a record has no valid embedding
            StorageUnavailableError: If the store does not exist
            StorageOperationError: If serialization or the transaction fails
        """
        if isinstance(records, dict):
            records = [records]

        for position, record in enumerate(records):
            try:
                validate_embedding(record)
            except ValidationError as e:
                logger.log_validation_error("store.add", [f"record {position}: {e}"])
                raise

        try:
            payloads = [json.dumps(record, default=_json_default) for record in records]
        except (TypeError, ValueError) as e:
            raise StorageOperationError(f"Failed to add object: {e}") from e

        with get_db(self.db_path) as conn:
            self._require_store(conn)
            try:
                with conn:
                    conn.executemany(
                        f"INSERT INTO {self._table} (data) VALUES (?)",
                        [(payload,) for payload in payloads]
                    )
            except sqlite3.Error as e:
                logger.log_store_operation("add", self.store_name, {"error": str(e)}, status="failed")
                raise StorageOperationError(f"Failed to add object: {e}") from e

        logger.log_store_operation("add", self.store_name, {"records": len(payloads)})
        return len(payloads)

    def normalize_filter(self, filter: Filter) -> Filter:
        """
        Pass a filter through the same JSON encoding records are stored with.

        Tuples become lists and non-string keys become strings, so a filter
        matches a stored record exactly when it matched the record before it
        was written.

        Raises:
            ValidationError: If the filter cannot be JSON encoded
        """
        if not filter:
            return filter
        try:
            return json.loads(json.dumps(filter, default=_json_default))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Filter is not JSON serializable: {e}") from e

    def _decode(self, data: str) -> Record:
        try:
            record = json.loads(data)
        except json.JSONDecodeError as e:
            raise StorageOperationError(f"Malformed record in object store '{self.store_name}': {e}") from e
        if not isinstance(record, dict) or not isinstance(record.get(EMBEDDING_FIELD), list):
            raise StorageOperationError(f"Malformed record in object store '{self.store_name}': missing embedding")
        return record

    def _pushdown(self, filter: Filter):
        """SQL prefilter on the indexed attribute when the filter uses it."""
        if not filter or not self.index_field or self.index_field not in filter:
            return "", ()
        value = filter[self.index_field]
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return "", ()
        return f" WHERE json_extract(data, '$.{self.index_field}') = ?", (value,)

    def iter_records(self, batch_size: int = None, filter: Filter = None) -> Iterator[Record]:
        """
        Cursor over every record, read ``batch_size`` rows at a time.

        The generator is finite and forward-only. ``filter`` is only used to
        narrow the scan through the attribute index; callers still apply the
        full equality filter.

        Raises:
            StorageUnavailableError: If the store does not exist
            StorageOperationError: If the cursor fails mid-scan or a row is malformed
        """
        batch_size = batch_size or config.STORE_BATCH_SIZE
        where, params = self._pushdown(filter)

        with get_db(self.db_path) as conn:
            self._require_store(conn)
            try:
                cursor = conn.execute(f"SELECT data FROM {self._table}{where} ORDER BY id", params)
                while True:
                    rows = cursor.fetchmany(batch_size)
                    if not rows:
                        break
                    for (data,) in rows:
                        yield self._decode(data)
            except sqlite3.Error as e:
                logger.log_store_operation("scan", self.store_name, {"error": str(e)}, status="failed")
                raise StorageOperationError(f"Cursor failed on object store '{self.store_name}': {e}") from e

    def count(self) -> int:
        with get_db(self.db_path) as conn:
            self._require_store(conn)
            try:
                cursor = conn.execute(f"SELECT COUNT(*) FROM {self._table}")
                return cursor.fetchone()[0]
            except sqlite3.Error as e:
                raise StorageOperationError(f"Failed to count objects: {e}") from e

    def delete_store(self) -> None:
        """
        Drop the store's table.

        Raises:
            StorageUnavailableError: If the store does not exist
        """
        with get_db(self.db_path) as conn:
            self._require_store(conn)
            try:
                with conn:
                    conn.execute(f"DROP TABLE {self._table}")
            except sqlite3.Error as e:
                logger.log_store_operation("delete", self.store_name, {"error": str(e)}, status="failed")
                raise StorageOperationError(f"Failed to delete object store: {e}") from e

        logger.log_store_operation("delete", self.store_name)
