"""
In-memory exact index.
Ordered collection of records ranked by brute-force cosine similarity.
"""

import math
import numbers
import time
from typing import Iterable, List, Optional

import numpy as np

from ..core import config
from ..core.config import debug_enabled
from ..core.errors import NotFoundError, ValidationError
from ..util.logging import logger, sanitize_record
from .similarity import cosine_similarity
from .types import EMBEDDING_FIELD, Filter, Record, ScoredResult, matches_filter, resolve_top_k, sort_results


def validate_embedding(obj: Record) -> int:
    """
    Check that a record carries a numeric, NaN-free embedding.

    Returns:
        The embedding length

    Raises:
        ValidationError: If the embedding is missing, non-numeric or contains NaN
    """
    if not isinstance(obj, dict):
        raise ValidationError("Object must be a mapping with an embedding property")

    embedding = obj.get(EMBEDDING_FIELD)
    if isinstance(embedding, np.ndarray):
        if embedding.ndim != 1 or not np.issubdtype(embedding.dtype, np.number):
            raise ValidationError("Object must have an embedding property of type number[]")
        if np.isnan(embedding).any():
            raise ValidationError("Embedding must not contain NaN values")
        return int(embedding.shape[0])

    if not isinstance(embedding, (list, tuple)):
        raise ValidationError("Object must have an embedding property of type number[]")

    for value in embedding:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ValidationError("Object must have an embedding property of type number[]")
        if math.isnan(value):
            raise ValidationError("Embedding must not contain NaN values")
    return len(embedding)


class EmbeddingIndex:
    """
    In-memory exact index over records holding an ``embedding`` attribute.

    The first record added fixes the schema (its attribute keys) and the
    embedding dimensionality. Every later record must carry at least those
    keys and an embedding of the same length.
    """

    def __init__(self, initial_objects: Optional[Iterable[Record]] = None):
        self._objects: List[Record] = []
        self._keys: List[str] = []
        self._dimension: Optional[int] = None

        if initial_objects:
            for obj in initial_objects:
                self._validate_and_add(obj)

    @property
    def keys(self) -> List[str]:
        """Attribute keys every record must carry."""
        return list(self._keys)

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def _validate(self, obj: Record) -> int:
        try:
            length = validate_embedding(obj)
            missing = [key for key in self._keys if key not in obj]
            if missing:
                raise ValidationError(
                    f"Object must have the same properties as the initial objects (missing: {missing})"
                )
            if self._dimension is not None and length != self._dimension:
                raise ValidationError(
                    f"Embedding dimension {length} does not match index dimension {self._dimension}"
                )
        except ValidationError as e:
            logger.log_validation_error("index.validate", [e])
            raise
        return length

    def _validate_and_add(self, obj: Record) -> None:
        length = self._validate(obj)
        if not self._objects and not self._keys:
            self._keys = list(obj.keys())
            self._dimension = length
        self._objects.append(obj)

        if debug_enabled():
            logger.log_index_operation("add", len(self._objects) - 1)

    def _find_index(self, filter: Filter) -> int:
        for position, obj in enumerate(self._objects):
            if matches_filter(obj, filter):
                return position
        return -1

    def add(self, obj: Record) -> None:
        """Validate a record against the schema and append it."""
        self._validate_and_add(obj)

    def add_batch(self, objs: Iterable[Record]) -> None:
        """Add several records; stops at the first invalid one."""
        for obj in objs:
            self._validate_and_add(obj)

    def update(self, filter: Filter, obj: Record) -> None:
        """
        Replace the first record matching ``filter`` with ``obj``, keeping its position.

        Raises:
            NotFoundError: If no record matches
            ValidationError: If ``obj`` is invalid
        """
        position = self._find_index(filter)
        if position == -1:
            raise NotFoundError(f"Vector not found for filter {filter}")

        self._validate(obj)
        self._objects[position] = obj

        if debug_enabled():
            logger.log_index_operation("update", position, {"filter": sanitize_record(filter)})

    def remove(self, filter: Filter) -> None:
        """
        Remove the first record matching ``filter``.

        Raises:
            NotFoundError: If no record matches
        """
        position = self._find_index(filter)
        if position == -1:
            raise NotFoundError(f"Vector not found for filter {filter}")

        del self._objects[position]

        if debug_enabled():
            logger.log_index_operation("remove", position, {"filter": sanitize_record(filter)})

    def remove_batch(self, filters: Iterable[Filter]) -> int:
        """
        Remove the first match of each filter. Filters with no match are skipped.

        Returns:
            Number of records removed
        """
        removed = 0
        for filter in filters:
            position = self._find_index(filter)
            if position == -1:
                continue
            del self._objects[position]
            removed += 1

        if debug_enabled():
            logger.log_index_operation("remove_batch", details={"removed": removed})
        return removed

    def get(self, filter: Filter, strict: bool = False) -> Optional[Record]:
        """
        Return the first record matching ``filter``.

        Returns None when nothing matches, unless ``strict`` is set, in which
        case NotFoundError is raised.
        """
        position = self._find_index(filter)
        if position == -1:
            if strict:
                raise NotFoundError(f"Vector not found for filter {filter}")
            return None
        return self._objects[position]

    def search(self, query_embedding, top_k: int = None, filter: Filter = None) -> List[ScoredResult]:
        """
        Rank every record passing ``filter`` by cosine similarity to the query.

        Ties keep insertion order.

        Args:
            query_embedding: Query vector
            top_k: Number of results to return (default 3)
            filter: Optional equality filter

        Returns:
            Up to ``top_k`` results sorted by descending similarity

        Raises:
            ValidationError: If ``top_k`` is negative
        """
        top_k = resolve_top_k(top_k)
        start_time = time.time()

        similarities = [
            ScoredResult(
                similarity=cosine_similarity(query_embedding, obj[EMBEDDING_FIELD], config.SIMILARITY_PRECISION),
                object=obj,
            )
            for obj in self._objects
            if matches_filter(obj, filter)
        ]
        results = sort_results(similarities)[:top_k]

        if debug_enabled():
            logger.log_search("memory", top_k, len(similarities), len(results), start_time, time.time())
        return results

    def size(self) -> int:
        return len(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self):
        return iter(list(self._objects))

    def clear(self) -> None:
        """Remove every record and reset the schema."""
        self._objects.clear()
        self._keys = []
        self._dimension = None

    def print_index(self) -> None:
        """Log the index content, one line per record."""
        logger.info("Index Content:")
        for position, obj in enumerate(self._objects):
            logger.info(f"Item {position + 1}: {sanitize_record(obj)}")

    # Object store integration

    def save_index(self, store) -> int:
        """
        Persist every record into an object store as one atomic batch.

        Returns:
            Number of records written
        """
        records = list(self._objects)
        if records:
            store.add(records)
        logger.log_store_operation("save_index", store.store_name, {"records": len(records)})
        return len(records)

    @classmethod
    def load_from_store(cls, store, batch_size: int = None) -> "EmbeddingIndex":
        """Build an in-memory index from every record in an object store."""
        return cls(list(store.iter_records(batch_size or config.STORE_BATCH_SIZE)))

    def search_store(self, store, query_embedding, top_k: int = None, filter: Filter = None,
                     batch_size: int = None) -> List[ScoredResult]:
        """Streaming exact search over an object store instead of this index."""
        from .store_search import search_store
        return search_store(store, query_embedding, top_k=top_k, filter=filter, batch_size=batch_size)

    def get_all_objects_from_store(self, store) -> List[Record]:
        return list(store.iter_records(config.STORE_BATCH_SIZE))

    def delete_store(self, store) -> None:
        store.delete_store()
