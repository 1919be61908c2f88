"""
Related-topics index over node embeddings.
"""

from .index import (
    IVectorIndex,
    InMemoryVectorIndex,
    VectorIndexError,
    DimensionMismatchError,
    DuplicateIdError,
    cosine_similarity,
)
from .types import Entry, QueryResult
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding

__all__ = [
    'IVectorIndex',
    'InMemoryVectorIndex',
    'VectorIndexError',
    'DimensionMismatchError',
    'DuplicateIdError',
    'cosine_similarity',
    'Entry',
    'QueryResult',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding'
]
