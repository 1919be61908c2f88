"""
Record types for the related-topics index.
Values handed out by the index are copies; mutating them never touches stored state.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field
import numpy as np


@dataclass(frozen=True, eq=False)
class Entry:
    """A node embedding held by the index."""

    id: str
    """Unique identifier, normally the node id"""

    text: str
    """Label the embedding was derived from"""

    embedding: np.ndarray
    """Read-only vector of the index dimension"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Caller data, never inspected by the index"""


@dataclass(frozen=True)
class QueryResult:
    """Represents a ranked search hit."""

    id: str
    """Identifier for the matching entry"""

    score: float
    """Cosine similarity of the match (-1 to 1)"""

    text: str
    """Label of the matching entry"""

    metadata: Optional[Dict[str, Any]] = None
    """Metadata associated with the matched entry"""
