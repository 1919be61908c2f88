"""
Related-topics index: in-memory cosine similarity search over node embeddings.

Search is a brute-force scan, O(n*d) per query. A single exploration map holds
hundreds of nodes, so no approximate nearest-neighbour structure is kept.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence
import copy
import sys
import threading

import numpy as np

from util.logging import logger
from .types import Entry, QueryResult

DEFAULT_DIMENSION = 384
DEFAULT_TOP_K = 5


class VectorIndexError(Exception):
    """Base exception for index contract violations."""
    pass


class DimensionMismatchError(VectorIndexError, ValueError):
    """An embedding length differs from the index dimension."""

    def __init__(self, expected: int, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension {actual} does not match index dimension {expected}")


class DuplicateIdError(VectorIndexError, KeyError):
    """An add reused an identifier already present in the index."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry '{entry_id}' already exists in the index")

    def __str__(self):
        return self.args[0]


def to_vector(embedding: Sequence[float], dimension: int) -> np.ndarray:
    """Copy an embedding into a read-only float64 vector of the given dimension."""
    vector = np.array(embedding, dtype=np.float64)
    if vector.ndim != 1:
        raise DimensionMismatchError(dimension, vector.shape)
    if vector.shape[0] != dimension:
        raise DimensionMismatchError(dimension, vector.shape[0])
    if not np.all(np.isfinite(vector)):
        raise ValueError("Embedding contains NaN or infinite values")
    vector.setflags(write=False)
    return vector


def unit_vector(vector: np.ndarray) -> np.ndarray:
    """
    Scale a finite vector to unit length; an all-zero vector stays zero.

    Dividing by the largest component first keeps the norm away from
    overflow and underflow for very large or very small magnitudes.
    """
    vector = np.asarray(vector, dtype=np.float64)
    scale = float(np.max(np.abs(vector))) if vector.size else 0.0
    if scale == 0.0:
        return np.zeros_like(vector)

    scaled = vector / scale
    return scaled / np.linalg.norm(scaled)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector is all zeros, so scores are always
    comparable and never NaN.
    """
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.shape != vec_b.shape:
        raise DimensionMismatchError(vec_a.shape[0] if vec_a.ndim == 1 else vec_a.shape,
                                     vec_b.shape[0] if vec_b.ndim == 1 else vec_b.shape)

    similarity = float(np.dot(unit_vector(vec_a), unit_vector(vec_b)))
    return max(-1.0, min(1.0, similarity))


class IVectorIndex(ABC):
    """Abstract interface for embedding similarity indexes."""

    @abstractmethod
    def add(self, entry_id: str, text: str, embedding: Sequence[float], metadata: Optional[Dict[str, Any]] = None) -> None:
        """Insert a new entry."""
        pass

    @abstractmethod
    def search(self, query_embedding: Sequence[float], k: Optional[int] = None) -> List[Entry]:
        """Return up to k entries ranked by similarity to the query."""
        pass

    @abstractmethod
    def get(self, entry_id: str) -> Optional[Entry]:
        """Exact lookup by id."""
        pass

    @abstractmethod
    def remove(self, entry_id: str) -> bool:
        """Remove an entry, returning whether it existed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored entries."""
        pass


class InMemoryVectorIndex(IVectorIndex):
    """
    Cosine similarity index held in process memory.

    Adding an id that is already present raises DuplicateIdError; use
    upsert() to replace an entry deliberately. Exact score ties rank in
    insertion order, and an upserted entry keeps its original position.

    All public methods take the instance lock, so concurrent readers and a
    single writer may share one index.
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION, default_top_k: int = DEFAULT_TOP_K):
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension < 1:
            raise ValueError(f"Index dimension must be a positive integer: {dimension!r}")

        self.dimension = dimension
        self.default_top_k = default_top_k
        self._entries: Dict[str, Entry] = {}  # insertion ordered
        self._units: Dict[str, np.ndarray] = {}  # unit-length copies used for ranking
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, entry_id) -> bool:
        with self._lock:
            return entry_id in self._entries

    def _build_entry(self, entry_id: str, text: str, embedding: Sequence[float], metadata: Optional[Dict[str, Any]]) -> Entry:
        try:
            vector = to_vector(embedding, self.dimension)
        except DimensionMismatchError as e:
            logger.log_vector_operation("add", entry_id, {"expected": e.expected, "actual": e.actual}, status="rejected")
            raise
        return Entry(id=entry_id, text=text, embedding=vector, metadata=copy.deepcopy(metadata) if metadata else {})

    def _store(self, entry: Entry) -> None:
        self._entries[entry.id] = entry
        self._units[entry.id] = unit_vector(entry.embedding)

    @staticmethod
    def _export(entry: Entry) -> Entry:
        return replace(entry, metadata=copy.deepcopy(entry.metadata))

    def add(self, entry_id: str, text: str, embedding: Sequence[float], metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Insert a new entry.

        Raises:
            DimensionMismatchError: embedding length differs from the index dimension
            DuplicateIdError: entry_id is already present
        """
        entry = self._build_entry(entry_id, text, embedding, metadata)
        with self._lock:
            if entry_id in self._entries:
                logger.log_vector_operation("add", entry_id, {"reason": "duplicate id"}, status="rejected")
                raise DuplicateIdError(entry_id)
            self._store(entry)

        logger.log_vector_operation("add", entry_id, {"text": text})

    def upsert(self, entry_id: str, text: str, embedding: Sequence[float], metadata: Optional[Dict[str, Any]] = None) -> bool:
        """Insert or replace an entry. Returns True if an existing entry was replaced."""
        entry = self._build_entry(entry_id, text, embedding, metadata)
        with self._lock:
            replaced = entry_id in self._entries
            self._store(entry)

        logger.log_vector_operation("upsert", entry_id, {"text": text, "replaced": replaced})
        return replaced

    def batch_add(self, entries: Iterable[Entry]) -> None:
        """Add several entries; nothing is stored unless every entry is valid."""
        built = [self._build_entry(e.id, e.text, e.embedding, e.metadata) for e in entries]

        with self._lock:
            seen = set()
            for entry in built:
                if entry.id in self._entries or entry.id in seen:
                    logger.log_vector_operation("batch_add", entry.id, {"reason": "duplicate id"}, status="rejected")
                    raise DuplicateIdError(entry.id)
                seen.add(entry.id)

            for entry in built:
                self._store(entry)

        logger.log_operation("vector.batch_add", "success", {"count": len(built)})

    def _normalize_k(self, k) -> int:
        if k is None:
            k = self.default_top_k
        try:
            return int(k)
        except OverflowError:
            # infinite k
            return sys.maxsize if k > 0 else 0
        except (TypeError, ValueError):
            return 0

    def _ranked(self, query_embedding: Sequence[float], k) -> List[tuple]:
        query = to_vector(query_embedding, self.dimension)
        k = self._normalize_k(k)

        with self._lock:
            if k <= 0 or not self._entries:
                return []

            ids = list(self._entries)
            matrix = np.vstack([self._units[i] for i in ids])
            scores = matrix @ unit_vector(query)
            np.clip(scores, -1.0, 1.0, out=scores)

            # stable sort keeps insertion order on exact ties
            order = np.argsort(-scores, kind="stable")[:k]
            return [(self._export(self._entries[ids[i]]), float(scores[i])) for i in order]

    def search(self, query_embedding: Sequence[float], k: Optional[int] = None) -> List[Entry]:
        """
        Return up to k entries by descending cosine similarity.

        k defaults to default_top_k. A k of zero or less, or an empty index,
        gives an empty list.

        Raises:
            DimensionMismatchError: query length differs from the index dimension
        """
        return [entry for entry, _ in self._ranked(query_embedding, k)]

    def search_with_scores(self, query_embedding: Sequence[float], k: Optional[int] = None) -> List[QueryResult]:
        """Same ranking as search(), with the similarity score of each hit."""
        return [
            QueryResult(id=entry.id, score=score, text=entry.text, metadata=entry.metadata)
            for entry, score in self._ranked(query_embedding, k)
        ]

    def score(self, entry_id: str, query_embedding: Sequence[float]) -> Optional[float]:
        """Similarity of one stored entry to the query, or None for an unknown id."""
        query = to_vector(query_embedding, self.dimension)
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return None
            return cosine_similarity(entry.embedding, query)

    def get(self, entry_id: str) -> Optional[Entry]:
        with self._lock:
            entry = self._entries.get(entry_id)
            return self._export(entry) if entry is not None else None

    def remove(self, entry_id: str) -> bool:
        with self._lock:
            if entry_id not in self._entries:
                return False
            del self._entries[entry_id]
            del self._units[entry_id]

        logger.log_vector_operation("remove", entry_id)
        return True

    def clear(self) -> None:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._units.clear()

        logger.log_operation("vector.clear", "success", {"removed": removed})

    def count(self) -> int:
        with self._lock:
            return len(self._entries)
