"""
vecsearch - client-side vector search.
Exact and approximate (HNSW) similarity search over embeddings with metadata.
"""

VERSION = "0.3.0"
