"""
Text-level search service.
Embeds queries through an EmbeddingContext and routes them to the in-memory
index or to the streaming object store search.
"""

from typing import Any, Dict, Iterable, List, Optional

from .config import SEARCH_TOP_K, get_embedding_context
from .errors import StorageUnavailableError
from ..vector.index import EmbeddingIndex
from ..vector.store_search import search_store
from ..vector.types import EMBEDDING_FIELD, strip_embedding


def index_texts(texts: Iterable[str], index: EmbeddingIndex, context=None,
                metadata: Optional[List[Dict[str, Any]]] = None, text_field: str = "text") -> int:
    """
    Embed texts and add them to an index as records.

    Args:
        texts: Texts to embed
        index: Target in-memory index
        context: EmbeddingContext to embed with (configured default when omitted)
        metadata: Optional per-text attributes merged into each record
        text_field: Attribute name the raw text is stored under

    Returns:
        Number of records added
    """
    context = context if context is not None else get_embedding_context()
    texts = list(texts)
    metadata = metadata or [{} for _ in texts]
    if len(metadata) != len(texts):
        raise ValueError("metadata length must match number of texts")

    for text, extra in zip(texts, metadata):
        record = {text_field: text, **extra, EMBEDDING_FIELD: context.get_embedding(text)}
        index.add(record)
    return len(texts)


def semantic_search(query: str, index: Optional[EmbeddingIndex] = None, store=None, context=None,
                    top_k: int = SEARCH_TOP_K, filter: Optional[Dict[str, Any]] = None,
                    batch_size: int = None) -> List[Dict[str, Any]]:
    """
    Perform semantic search using vector similarity.

    Searches ``index`` when given, otherwise streams over ``store``.

    Returns:
        List of dicts with 'similarity', 'object' (embedding removed) and 'explanation'

    Raises:
        StorageUnavailableError: If neither an index nor a store is given
    """
    if index is None and store is None:
        raise StorageUnavailableError("semantic_search needs an index or an object store")

    context = context if context is not None else get_embedding_context()
    query_embedding = context.get_embedding(query)

    if index is not None:
        results = index.search(query_embedding, top_k=top_k, filter=filter)
        source = "memory"
    else:
        results = search_store(store, query_embedding, top_k=top_k, filter=filter, batch_size=batch_size)
        source = "store"

    return [
        {
            "similarity": result.similarity,
            "object": strip_embedding(result.object),
            "explanation": f"Matched via {source} cosine similarity at {result.similarity:.2f} (query: {query[:30]})",
        }
        for result in results
    ]
