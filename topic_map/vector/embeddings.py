"""
Embedding producers for node labels.
The index never computes embeddings itself; these adapters sit at its edge.
"""

from abc import ABC, abstractmethod
import numpy as np

DEFAULT_MODEL_NAME = "all-MiniLM-L6-v2"


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


def label_hash(text: str) -> int:
    """32-bit signed string hash (h * 31 + code unit) over UTF-16 code units."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    return h - (1 << 32) if h & 0x80000000 else h


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for demos and tests.

    Component i of the vector is sin(h + i) * cos(h * i), where h is the
    label hash. Reproducible across runs and needs no model download.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector using the label hash."""
        h = float(label_hash(text))
        i = np.arange(self.dimension, dtype=np.float64)
        return (np.sin(h + i) * np.cos(h * i)).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    Defaults to all-MiniLM-L6-v2, which produces 384-dimensional vectors
    matching the default index dimension.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL_NAME):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension
