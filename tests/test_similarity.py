"""
Similarity primitive tests: cosine similarity and euclidean distance.
"""

import numpy as np
import pytest

from vecsearch.core.errors import LengthMismatchError
from vecsearch.vector.similarity import cosine_similarity, euclidean_distance, round_half_away


def test_cosine_similarity_known_value():
    """Test cosine similarity against a hand-computed value."""
    assert cosine_similarity([1, 2], [2, 3]) == pytest.approx(0.9923, abs=1e-4)


def test_cosine_similarity_self_is_one():
    """Test that a vector is fully similar to itself."""
    for vec in ([1, 2, 3], [0.1, -0.7, 3.3, 9.0], np.arange(1, 20)):
        assert cosine_similarity(vec, vec) == 1.0


def test_cosine_similarity_zero_vector():
    """Test that a zero vector yields exactly 0, not NaN."""
    assert cosine_similarity([1, 2, 3], [0, 0, 0]) == 0.0
    assert cosine_similarity([0, 0], [0, 0]) == 0.0


def test_cosine_similarity_opposite_vectors():
    assert cosine_similarity([1, 0], [-1, 0]) == -1.0


def test_cosine_similarity_precision():
    """Test rounding to the requested number of digits."""
    assert cosine_similarity([1, 2], [2, 3]) == 0.992278
    assert cosine_similarity([1, 2], [2, 3], precision=2) == 0.99


def test_round_half_away_from_zero():
    assert round_half_away(0.125, 2) == 0.13
    assert round_half_away(-0.125, 2) == -0.13
    assert round_half_away(2.5, 0) == 3.0


def test_cosine_similarity_length_mismatch():
    """Test that vectors of different lengths are rejected."""
    with pytest.raises(LengthMismatchError):
        cosine_similarity([1, 2, 3], [1, 2])


def test_euclidean_distance():
    assert euclidean_distance([0, 0], [3, 4]) == 5.0
    assert euclidean_distance([1.5, 2.5], [1.5, 2.5]) == 0.0


def test_euclidean_distance_length_mismatch():
    with pytest.raises(LengthMismatchError):
        euclidean_distance([1, 2, 3], [1, 2])


def test_length_mismatch_is_value_error():
    """LengthMismatchError can be caught as a ValueError."""
    with pytest.raises(ValueError):
        cosine_similarity([1], [1, 2])
