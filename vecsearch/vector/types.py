"""
Data model for the vector search core.
"""

import numbers
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from ..core import config
from ..core.errors import ValidationError

Record = Dict[str, Any]
Filter = Dict[str, Any]

EMBEDDING_FIELD = "embedding"


@dataclass
class ScoredResult:
    """Represents a search result from an index or object store."""

    similarity: float
    """Cosine similarity of the match (-1 to 1)"""

    object: Record
    """The matched record, including its embedding"""

    def to_dict(self) -> Dict[str, Any]:
        return {"similarity": self.similarity, "object": self.object}


def _values_equal(a, b) -> bool:
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return np.array_equal(a, b)
    return a == b


def matches_filter(record: Record, filter: Filter = None) -> bool:
    """True when every filter key is present on the record with an equal value.

    Array-valued attributes compare element-wise and match only when shape
    and every element are equal.
    """
    if not filter:
        return True
    return all(key in record and _values_equal(record[key], value) for key, value in filter.items())


def resolve_top_k(top_k: Optional[int]) -> int:
    """
    Result count used by both exact searches.

    ``None`` and ``0`` fall back to the configured default.

    Raises:
        ValidationError: If ``top_k`` is negative or not an integer
    """
    if top_k is None or top_k == 0:
        return config.SEARCH_TOP_K
    if isinstance(top_k, bool) or not isinstance(top_k, numbers.Integral):
        raise ValidationError(f"top_k must be an integer, got {type(top_k).__name__}")
    if top_k < 0:
        raise ValidationError(f"top_k must not be negative, got {top_k}")
    return int(top_k)


def strip_embedding(record: Record) -> Record:
    """Copy of a record without its embedding, for result payloads."""
    return {k: v for k, v in record.items() if k != EMBEDDING_FIELD}


def sort_results(results: List[ScoredResult]) -> List[ScoredResult]:
    """Stable sort by descending similarity."""
    return sorted(results, key=lambda r: r.similarity, reverse=True)
