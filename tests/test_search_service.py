"""
Text-level search service tests.
"""

from unittest.mock import MagicMock

import pytest

from vecsearch.core.errors import StorageUnavailableError
from vecsearch.core.search_service import index_texts, semantic_search
from vecsearch.vector.embeddings import DeterministicHashEmbedding, EmbeddingContext
from vecsearch.vector.index import EmbeddingIndex


@pytest.fixture
def context():
    return EmbeddingContext(DeterministicHashEmbedding(dimension=32))


def test_index_texts_and_search(context):
    index = EmbeddingIndex()
    added = index_texts(["Apple", "Banana", "Cheddar"], index, context,
                        metadata=[{"kind": "fruit"}, {"kind": "fruit"}, {"kind": "cheese"}])

    assert added == 3
    results = semantic_search("Banana", index=index, context=context, top_k=1)

    assert results[0]["similarity"] == 1.0
    assert results[0]["object"] == {"text": "Banana", "kind": "fruit"}
    assert "memory" in results[0]["explanation"]


def test_semantic_search_with_filter(context):
    index = EmbeddingIndex()
    index_texts(["Apple", "Banana", "Cheddar"], index, context,
                metadata=[{"kind": "fruit"}, {"kind": "fruit"}, {"kind": "cheese"}])

    results = semantic_search("Apple", index=index, context=context, top_k=5, filter={"kind": "cheese"})
    assert [r["object"]["text"] for r in results] == ["Cheddar"]


def test_semantic_search_over_store(context, store):
    index = EmbeddingIndex()
    index_texts(["Apple", "Banana"], index, context)
    index.save_index(store)

    results = semantic_search("Apple", store=store, context=context, top_k=1)
    assert results[0]["object"]["text"] == "Apple"
    assert "store" in results[0]["explanation"]


def test_query_embedded_once_per_text(store):
    provider = MagicMock()
    provider.embed_text.return_value = [1.0, 0.0]
    context = EmbeddingContext(provider)
    index = EmbeddingIndex([{"text": "x", "embedding": [1.0, 0.0]}])

    semantic_search("query", index=index, context=context)
    semantic_search("query", index=index, context=context)

    provider.embed_text.assert_called_once_with("query")


def test_semantic_search_needs_a_source(context):
    with pytest.raises(StorageUnavailableError):
        semantic_search("Apple", context=context)


def test_index_texts_metadata_length_mismatch(context):
    with pytest.raises(ValueError):
        index_texts(["a", "b"], EmbeddingIndex(), context, metadata=[{}])
