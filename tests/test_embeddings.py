"""
Embedding producers that feed the related-topics index.
"""

import math

import numpy as np
import pytest

from topic_map.vector import InMemoryVectorIndex
from topic_map.vector.embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    label_hash,
)


def test_embedding_interface():
    """Test that the embedding provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_label_hash_matches_31x_string_hash():
    """Test the label hash on short known inputs."""
    assert label_hash("") == 0
    assert label_hash("a") == 97
    assert label_hash("ab") == 97 * 31 + 98


def test_label_hash_wraps_to_signed_32_bit():
    """Test that the label hash stays within signed 32-bit range."""
    for text in ["Hello, world!", "A" * 1000, "Quantum chromodynamics"]:
        h = label_hash(text)
        assert -(2 ** 31) <= h < 2 ** 31


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder = DeterministicHashEmbedding(dimension=384)

    vector1 = embedder.embed_text("Hello, world!")
    vector2 = DeterministicHashEmbedding(dimension=384).embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384


def test_embedding_formula():
    """Test the sin/cos formula component by component."""
    embedder = DeterministicHashEmbedding(dimension=4)
    vector = embedder.embed_text("a")

    expected = [math.sin(97 + i) * math.cos(97 * i) for i in range(4)]
    assert vector == pytest.approx(expected)


def test_different_inputs_produce_different_vectors():
    """Test that different inputs produce different vectors."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert embedder.embed_text("Hello, world!") != embedder.embed_text("Goodbye, world!")


def test_embedding_with_different_dimensions():
    """Test embedding with different dimension sizes."""
    assert len(DeterministicHashEmbedding(dimension=64).embed_text("test")) == 64
    assert len(DeterministicHashEmbedding(dimension=512).embed_text("test")) == 512


def test_embedding_edge_cases():
    """Test embedding with edge cases."""
    embedder = DeterministicHashEmbedding(dimension=384)

    for text in ["", "A" * 1000, "Hello\n\t\rWorld!@#$%^&*()", "Étoile ✨"]:
        vector = embedder.embed_text(text)
        assert len(vector) == 384
        assert all(math.isfinite(v) for v in vector)


def test_hash_embeddings_feed_the_index():
    """Test that hash embeddings can be indexed and searched."""
    embedder = DeterministicHashEmbedding(dimension=384)
    index = InMemoryVectorIndex(dimension=embedder.get_dimension())
    labels = ["Black holes", "Photosynthesis", "Jazz history"]
    for label in labels:
        index.add(label, label, embedder.embed_text(label))

    results = index.search(embedder.embed_text("Photosynthesis"), 1)

    assert results[0].id == "Photosynthesis"


class FakeModel:
    def encode(self, text, convert_to_tensor=False):
        return np.array([float(len(text)), 1.0, 0.0])

    def get_sentence_embedding_dimension(self):
        return 3


def test_sentence_transformer_provider_uses_model():
    """Test the sentence-transformers provider against a stand-in model."""
    provider = SentenceTransformerEmbedding()
    provider._model = FakeModel()

    assert provider.model_name == "all-MiniLM-L6-v2"
    assert provider.embed_text("abcd") == [4.0, 1.0, 0.0]
    assert provider.get_dimension() == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
