"""
Host configuration and factories.
"""

import pytest

from topic_map.core import config
from topic_map.core.staging import StagingStore
from topic_map.vector import InMemoryVectorIndex
from topic_map.vector.embeddings import DeterministicHashEmbedding, SentenceTransformerEmbedding


def test_defaults_are_valid():
    """Test that the default configuration has no issues."""
    assert config.validate_config() == []


def test_get_vector_index_uses_configured_values(monkeypatch):
    """Test that the index factory passes configured values."""
    monkeypatch.setattr(config, "VECTOR_DIMENSION", 16)
    monkeypatch.setattr(config, "DEFAULT_TOP_K", 3)

    index = config.get_vector_index()

    assert isinstance(index, InMemoryVectorIndex)
    assert index.dimension == 16
    assert index.default_top_k == 3


def test_factories_return_independent_instances():
    """Test that each factory call builds a new instance."""
    first = config.get_vector_index()
    second = config.get_vector_index()
    first.add("a", "a", [1.0] * first.dimension)

    assert second.count() == 0
    assert config.get_staging_store() is not config.get_staging_store()
    assert isinstance(config.get_staging_store(), StagingStore)


def test_embedding_provider_selection(monkeypatch):
    """Test EMBED_PROVIDER selection."""
    monkeypatch.setattr(config, "EMBED_PROVIDER", "hash")
    monkeypatch.setattr(config, "VECTOR_DIMENSION", 32)
    provider = config.get_embedding_provider()
    assert isinstance(provider, DeterministicHashEmbedding)
    assert provider.get_dimension() == 32

    monkeypatch.setattr(config, "EMBED_PROVIDER", "sentence_transformers")
    provider = config.get_embedding_provider()
    assert isinstance(provider, SentenceTransformerEmbedding)
    assert provider.model_name == config.EMBED_MODEL_NAME


@pytest.mark.parametrize("name,value,message", [
    ("VECTOR_DIMENSION", 0, "VECTOR_DIMENSION must be >= 1"),
    ("DEFAULT_TOP_K", 0, "DEFAULT_TOP_K must be >= 1"),
    ("EMBED_PROVIDER", "openai", "Invalid EMBED_PROVIDER: openai"),
    ("SWEEP_INTERVAL_SEC", 0, "SWEEP_INTERVAL_SEC must be >= 1"),
])
def test_validate_config_reports_issues(monkeypatch, name, value, message):
    """Test that invalid settings are reported."""
    monkeypatch.setattr(config, name, value)
    assert message in config.validate_config()


def test_sweep_settings(monkeypatch):
    """Test the sweep getters."""
    monkeypatch.setattr(config, "SWEEP_ENABLED", True)
    monkeypatch.setattr(config, "SWEEP_INTERVAL_SEC", 120)

    assert config.is_sweep_enabled() is True
    assert config.get_sweep_interval() == 120
