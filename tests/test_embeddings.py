"""
Embedding collaborator tests: providers, cache and context.
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from vecsearch.core.errors import ValidationError
from vecsearch.vector.embeddings import (
    DeterministicHashEmbedding,
    EmbeddingCache,
    EmbeddingContext,
    IEmbeddingProvider,
    SentenceTransformerEmbedding,
)


def test_embedding_interface():
    """Test that the embedding provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder = DeterministicHashEmbedding(dimension=384)

    vector1 = embedder.embed_text("Hello, world!")
    vector2 = DeterministicHashEmbedding(dimension=384).embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384
    assert all(-1.0 <= v <= 1.0 for v in vector1)


def test_different_inputs_produce_different_vectors():
    embedder = DeterministicHashEmbedding(dimension=64)
    assert embedder.embed_text("Apple") != embedder.embed_text("Orange")


def test_embedding_with_different_dimensions():
    assert len(DeterministicHashEmbedding(dimension=5).embed_text("test")) == 5
    assert len(DeterministicHashEmbedding(dimension=512).embed_text("test")) == 512


def test_embedding_fills_every_dimension():
    vector = DeterministicHashEmbedding(dimension=100).embed_text("")
    assert np.count_nonzero(vector) > 90


def test_cache_store_and_retrieve():
    cache = EmbeddingCache()
    cache.set("test", [1, 2, 3])

    assert cache.get("test") == [1, 2, 3]
    assert "test" in cache
    assert cache.get("missing") is None
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_context_embeds_each_text_once():
    """Repeated texts are served from the cache."""
    provider = MagicMock()
    provider.embed_text.return_value = [0.1, 0.2]
    context = EmbeddingContext(provider)

    assert context.get_embedding("Apple") == [0.1, 0.2]
    assert context.get_embedding("Apple") == [0.1, 0.2]
    context.get_embedding("Banana")

    assert provider.embed_text.call_count == 2
    assert len(context.cache) == 2


def test_contexts_do_not_share_cache():
    provider = MagicMock()
    provider.embed_text.return_value = [1.0]

    EmbeddingContext(provider).get_embedding("Apple")
    EmbeddingContext(provider).get_embedding("Apple")

    assert provider.embed_text.call_count == 2


def test_context_rejects_non_string():
    context = EmbeddingContext(DeterministicHashEmbedding(dimension=8))
    with pytest.raises(ValidationError):
        context.get_embedding(None)


def test_context_batch_embeddings():
    context = EmbeddingContext(DeterministicHashEmbedding(dimension=8))
    matrix = context.get_embeddings(["a", "b", "c"])
    assert matrix.shape == (3, 8)


def test_sentence_transformer_loads_lazily():
    """The model is only constructed on first use."""
    fake_model = MagicMock()
    fake_model.encode.return_value = np.array([0.5, 0.5])
    fake_model.get_sentence_embedding_dimension.return_value = 2

    fake_module = MagicMock()
    fake_module.SentenceTransformer.return_value = fake_model
    factory = fake_module.SentenceTransformer

    provider = SentenceTransformerEmbedding("fake-model")
    with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
        assert factory.call_count == 0
        assert provider.embed_text("Apple") == [0.5, 0.5]
        assert provider.get_dimension() == 2
        factory.assert_called_once_with("fake-model")
