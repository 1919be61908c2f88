"""
Host configuration for the topic map core.
Values come from the environment (and a .env file); the core classes only ever see explicit constructor arguments.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Debug flag
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Related-topics index
VECTOR_DIMENSION = int(os.getenv("VECTOR_DIMENSION", "384"))
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "5"))
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-MiniLM-L6-v2")

# Parking sweep (the map UI sweeps once a minute)
SWEEP_ENABLED = os.getenv("SWEEP_ENABLED", "false").lower() == "true"
SWEEP_INTERVAL_SEC = int(os.getenv("SWEEP_INTERVAL_SEC", "60"))

VERSION = "0.1.0"


def get_vector_index():
    """Build a vector index with the configured dimension and default k."""
    from topic_map.vector.index import InMemoryVectorIndex
    return InMemoryVectorIndex(dimension=VECTOR_DIMENSION, default_top_k=DEFAULT_TOP_K)


def get_staging_store(clock=None, on_expire=None):
    """Build a parking store."""
    from topic_map.core.staging import StagingStore
    return StagingStore(clock=clock, on_expire=on_expire)


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    if EMBED_PROVIDER == "sentence_transformers":
        from topic_map.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)

    from topic_map.vector.embeddings import DeterministicHashEmbedding
    return DeterministicHashEmbedding(dimension=VECTOR_DIMENSION)


def is_sweep_enabled():
    """Check if the periodic parking sweep should be scheduled."""
    return SWEEP_ENABLED


def get_sweep_interval():
    """Get sweep interval in seconds."""
    return SWEEP_INTERVAL_SEC


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if VECTOR_DIMENSION < 1:
        issues.append("VECTOR_DIMENSION must be >= 1")

    if DEFAULT_TOP_K < 1:
        issues.append("DEFAULT_TOP_K must be >= 1")

    if EMBED_PROVIDER not in ["hash", "sentence_transformers"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if SWEEP_INTERVAL_SEC < 1:
        issues.append("SWEEP_INTERVAL_SEC must be >= 1")

    return issues
