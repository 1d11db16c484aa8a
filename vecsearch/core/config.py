"""
Runtime configuration for the vector search core.
All settings are read from environment variables with safe defaults.
"""

import os
from pathlib import Path

# Object store configuration
DB_PATH = os.getenv("DB_PATH", "./data/vectors.db")
STORE_NAME = os.getenv("STORE_NAME", "DefaultStore")
STORE_INDEX_FIELD = os.getenv("STORE_INDEX_FIELD")  # optional secondary index attribute
STORE_BATCH_SIZE = int(os.getenv("STORE_BATCH_SIZE", "1000"))

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))

# Exact search defaults
SEARCH_TOP_K = int(os.getenv("SEARCH_TOP_K", "3"))
SIMILARITY_PRECISION = int(os.getenv("SIMILARITY_PRECISION", "6"))

# Approximate (HNSW) index configuration
HNSW_LAYERS = int(os.getenv("HNSW_LAYERS", "5"))
HNSW_ML = float(os.getenv("HNSW_ML", "0.62"))
HNSW_EFC = int(os.getenv("HNSW_EFC", "10"))
HNSW_INDEX_PATH = os.getenv("HNSW_INDEX_PATH", "./data/hnsw_index.msgpack")


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    if EMBED_PROVIDER == "sentence_transformers":
        from vecsearch.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)
    elif EMBED_PROVIDER == "hash":
        from vecsearch.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(EMBED_DIM)
    else:
        # Default to hash embeddings for unknown providers
        from vecsearch.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(EMBED_DIM)


def get_embedding_context(provider=None):
    """Get a fresh embedding context owning a provider and its text cache."""
    from vecsearch.vector.embeddings import EmbeddingContext
    return EmbeddingContext(provider if provider is not None else get_embedding_provider())


def get_object_store(db_path: str = None, store_name: str = None):
    """Get the configured SQLite object store, creating it if needed."""
    from vecsearch.vector.object_store import SQLiteObjectStore
    return SQLiteObjectStore.create(
        db_path or DB_PATH,
        store_name or STORE_NAME,
        index_field=STORE_INDEX_FIELD,
    )


def get_hnsw_params():
    """Get (L, mL, efc) for new HNSW indexes."""
    return HNSW_LAYERS, HNSW_ML, HNSW_EFC


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_PROVIDER not in ["hash", "sentence_transformers"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if STORE_BATCH_SIZE < 1:
        issues.append("STORE_BATCH_SIZE must be >= 1")

    if SEARCH_TOP_K < 1:
        issues.append("SEARCH_TOP_K must be >= 1")

    if HNSW_LAYERS < 1:
        issues.append("HNSW_LAYERS must be >= 1")

    if HNSW_ML <= 0:
        issues.append("HNSW_ML must be > 0")

    if HNSW_EFC < 1:
        issues.append("HNSW_EFC must be >= 1")

    return issues
