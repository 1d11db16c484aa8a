"""
Embedding collaborator: text -> vector providers, a text cache, and the
context object that owns both.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core.errors import ValidationError
from ..util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for tests and offline use.

    Every dimension is filled from SHA-256 digests of the text, so the same
    text always maps to the same vector without loading a model.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector: List[float] = []
        block = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{block}:{text}".encode()).digest()
            for i in range(0, len(digest), 4):
                if len(vector) >= self.dimension:
                    break
                value = int.from_bytes(digest[i:i + 4], "big")
                # Map to [-1, 1]
                vector.append((value / (2**32)) * 2 - 1)
            block += 1
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", normalize: bool = False):
        self.model_name = model_name
        self.normalize = normalize
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
            logger.info(f"Loaded embedding model {self.model_name}")
        return self._model

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False, normalize_embeddings=self.normalize)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class EmbeddingCache:
    """Process-local text -> vector cache keyed by raw text."""

    def __init__(self):
        self._cache: Dict[str, List[float]] = {}

    def set(self, key: str, value: List[float]) -> None:
        self._cache[key] = value

    def get(self, key: str) -> Optional[List[float]]:
        return self._cache.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()


class EmbeddingContext:
    """
    Owns one embedding provider and its cache.

    Passed explicitly to whatever needs embeddings; each distinct text is
    embedded at most once per context.
    """

    def __init__(self, provider: IEmbeddingProvider, cache: Optional[EmbeddingCache] = None):
        self.provider = provider
        self.cache = cache if cache is not None else EmbeddingCache()

    def get_embedding(self, text: str) -> List[float]:
        """
        Embed ``text``, reusing the cached vector when present.

        Raises:
            ValidationError: If ``text`` is not a string
        """
        if not isinstance(text, str):
            raise ValidationError(f"Text to embed must be a string, got {type(text).__name__}")

        cached = self.cache.get(text)
        if cached is not None:
            return cached

        embedding = list(self.provider.embed_text(text))
        self.cache.set(text, embedding)
        return embedding

    def get_embeddings(self, texts: Iterable[str]) -> np.ndarray:
        """
        Embed multiple texts into vectors.

        Returns:
            Numpy array of shape (len(texts), embedding_dim)
        """
        return np.array([self.get_embedding(text) for text in texts])

    def get_dimension(self) -> int:
        return self.provider.get_dimension()
