"""
Similarity primitives shared by the exact index and the HNSW graph index.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Union

import numpy as np

from ..core.errors import LengthMismatchError

Vector = Union[Sequence[float], np.ndarray]


def _as_array(vec: Vector) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64).ravel()


def round_half_away(value: float, precision: int = 6) -> float:
    """Round on the decimal string representation, halves away from zero."""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def cosine_similarity(vec_a: Vector, vec_b: Vector, precision: int = 6) -> float:
    """
    Compute cosine similarity between two equal-length vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector
        precision: Number of decimal digits to keep

    Returns:
        Similarity rounded to ``precision`` digits; 0.0 when either vector has zero norm

    Raises:
        LengthMismatchError: If the vectors differ in length
    """
    a = _as_array(vec_a)
    b = _as_array(vec_b)
    if a.shape[0] != b.shape[0]:
        raise LengthMismatchError(a.shape[0], b.shape[0])

    magnitude_a = np.linalg.norm(a)
    magnitude_b = np.linalg.norm(b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (magnitude_a * magnitude_b))
    return round_half_away(similarity, precision)


def euclidean_distance(vec_a: Vector, vec_b: Vector) -> float:
    """L2 distance between two equal-length vectors. Not rounded; used for ordering only."""
    a = _as_array(vec_a)
    b = _as_array(vec_b)
    if a.shape[0] != b.shape[0]:
        raise LengthMismatchError(a.shape[0], b.shape[0])

    return float(np.linalg.norm(a - b))
