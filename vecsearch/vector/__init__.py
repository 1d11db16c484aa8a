"""
Vector search core - similarity, top-K aggregation, exact and approximate indexes.
"""

# Package initialization for vector module
from .similarity import cosine_similarity, euclidean_distance
from .heap import MinHeap, TopK
from .types import ScoredResult, matches_filter
from .index import EmbeddingIndex
from .object_store import IObjectStore, SQLiteObjectStore
from .store_search import StoreSearch, search_store
from .hnsw import HNSW, search_layer
from .embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    EmbeddingCache,
    EmbeddingContext,
)

__all__ = [
    'cosine_similarity',
    'euclidean_distance',
    'MinHeap',
    'TopK',
    'ScoredResult',
    'matches_filter',
    'EmbeddingIndex',
    'IObjectStore',
    'SQLiteObjectStore',
    'StoreSearch',
    'search_store',
    'HNSW',
    'search_layer',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'EmbeddingCache',
    'EmbeddingContext',
]
