"""
Shared fixtures for vector search tests.
"""

import numpy as np
import pytest

from vecsearch.vector.object_store import SQLiteObjectStore


@pytest.fixture
def db_path(tmp_path):
    """Temporary SQLite database path."""
    return str(tmp_path / "vectors.db")


@pytest.fixture
def store(db_path):
    """Fresh object store in a temporary database."""
    return SQLiteObjectStore.create(db_path, "TestStore")


@pytest.fixture
def random_records():
    """Records with distinct random 16-dim embeddings."""
    rng = np.random.default_rng(42)
    return [
        {
            "id": i,
            "category": "even" if i % 2 == 0 else "odd",
            "embedding": rng.normal(size=16).tolist(),
        }
        for i in range(60)
    ]
