"""
Parking store for deferred map nodes.

Users park a node to take it off the active map, optionally with a timer in
minutes. Items whose timer has run out are reclaimed by sweep_expired(),
which a heartbeat task drives once a minute.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import copy
import math
import threading
import uuid

from util.logging import logger


def _pick(node: Mapping[str, Any], *keys, default=None):
    for key in keys:
        if key in node and node[key] is not None:
            return node[key]
    return default


@dataclass(frozen=True)
class NodeSnapshot:
    """Value copy of a node's displayable state at park time."""

    node_id: str
    label: str
    x: float = 0.0
    y: float = 0.0
    is_pinned: bool = False
    is_expanded: bool = False
    parent_id: Optional[str] = None
    children: Tuple[str, ...] = ()
    votes_up: int = 0
    votes_down: int = 0
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(self, "data", copy.deepcopy(dict(self.data)))

    @classmethod
    def from_node(cls, node: Mapping[str, Any]) -> "NodeSnapshot":
        """Build a snapshot from a live node dict (camelCase or snake_case keys)."""
        votes = node.get("votes") or {}
        return cls(
            node_id=str(_pick(node, "id", "node_id")),
            label=str(_pick(node, "label", default="")),
            x=float(_pick(node, "x", default=0.0)),
            y=float(_pick(node, "y", default=0.0)),
            is_pinned=bool(_pick(node, "isPinned", "is_pinned", default=False)),
            is_expanded=bool(_pick(node, "isExpanded", "is_expanded", default=False)),
            parent_id=_pick(node, "parentId", "parent_id"),
            children=tuple(_pick(node, "children", default=())),
            votes_up=int(votes.get("up", 0)),
            votes_down=int(votes.get("down", 0)),
            data=_pick(node, "data", default={}),
        )


@dataclass(frozen=True)
class ParkedItem:
    """A node held in the parking store."""

    id: str
    node: NodeSnapshot
    parked_at: datetime
    expires_at: Optional[datetime] = None
    custom_timer_minutes: Optional[float] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def remaining(self, now: datetime) -> Optional[timedelta]:
        """Time left before expiry; None when parked forever."""
        if self.expires_at is None:
            return None
        return self.expires_at - now

    def format_remaining(self, now: datetime) -> str:
        """Short countdown for the parked tab: '∞', 'Expired', '1h 5m' or '12m'."""
        left = self.remaining(now)
        if left is None:
            return "∞"
        if left <= timedelta(0):
            return "Expired"

        minutes = int(left.total_seconds() // 60)
        hours = minutes // 60
        if hours > 0:
            return f"{hours}h {minutes % 60}m"
        return f"{minutes}m"


def normalize_timer(minutes) -> Optional[float]:
    """Return a usable timer in minutes, or None for a missing or malformed one."""
    if minutes is None or isinstance(minutes, bool):
        return None
    try:
        value = float(minutes)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def compute_expiry(parked_at: datetime, minutes) -> Tuple[Optional[datetime], Optional[float]]:
    """Expiry instant and normalised timer for a park at parked_at."""
    timer = normalize_timer(minutes)
    if timer is None:
        return None, None
    try:
        return parked_at + timedelta(minutes=timer), timer
    except OverflowError:
        # past datetime.max; equivalent to no timer
        return None, None


class StagingStore:
    """
    Holds parked node snapshots with optional expiry timers.

    Items are kept in insertion order. Everything handed out is a copy, so
    callers cannot reach stored snapshots. The clock is injectable; it
    defaults to datetime.now.

    Args:
        clock: zero-argument callable returning the current datetime
        on_expire: called with the items removed by each sweep that removed any
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None,
                 on_expire: Optional[Callable[[List[ParkedItem]], None]] = None):
        self._clock = clock or datetime.now
        self._on_expire = on_expire
        self._items: Dict[str, ParkedItem] = {}
        self._lock = threading.RLock()

    def now(self) -> datetime:
        return self._clock()

    def __len__(self) -> int:
        return self.count()

    def park(self, node, custom_timer_minutes=None) -> str:
        """
        Park a node and return the new item id.

        node may be a NodeSnapshot or a live node dict. A timer of zero
        minutes expires at park time; malformed timers mean no timer.
        """
        if isinstance(node, Mapping):
            snapshot = NodeSnapshot.from_node(node)
        else:
            snapshot = copy.deepcopy(node)

        parked_at = self.now()
        expires_at, timer = compute_expiry(parked_at, custom_timer_minutes)
        item = ParkedItem(
            id=uuid.uuid4().hex,
            node=snapshot,
            parked_at=parked_at,
            expires_at=expires_at,
            custom_timer_minutes=timer,
        )

        with self._lock:
            self._items[item.id] = item

        logger.log_staging_operation("park", item.id, {
            "node_id": snapshot.node_id,
            "label": snapshot.label,
            "expires_at": expires_at.isoformat() if expires_at else None,
        })
        return item.id

    def rearm(self, item_id: str, custom_timer_minutes=None) -> bool:
        """Re-park an existing item in place with a fresh timer starting now."""
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                return False

            parked_at = self.now()
            expires_at, timer = compute_expiry(parked_at, custom_timer_minutes)
            self._items[item_id] = ParkedItem(
                id=item.id,
                node=item.node,
                parked_at=parked_at,
                expires_at=expires_at,
                custom_timer_minutes=timer,
            )

        logger.log_staging_operation("rearm", item_id, {"custom_timer_minutes": timer})
        return True

    def get(self, item_id: str) -> Optional[ParkedItem]:
        with self._lock:
            item = self._items.get(item_id)
            return copy.deepcopy(item) if item is not None else None

    def remove(self, item_id: str) -> bool:
        with self._lock:
            item = self._items.pop(item_id, None)

        if item is None:
            return False
        logger.log_staging_operation("remove", item_id)
        return True

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove every item whose expiry is at or before now.

        Items without a timer are never touched. Sweeping twice at the same
        instant removes nothing the second time. Returns the number removed.
        """
        if now is None:
            now = self.now()

        with self._lock:
            expired = [item for item in self._items.values() if item.is_expired(now)]
            for item in expired:
                del self._items[item.id]

        if expired:
            logger.log_staging_operation("sweep", details={"removed": len(expired), "now": now.isoformat()})
            if self._on_expire is not None:
                self._on_expire(expired)
        return len(expired)

    def list_items(self) -> List[ParkedItem]:
        """Copies of all parked items in insertion order."""
        with self._lock:
            return copy.deepcopy(list(self._items.values()))

    def clear(self) -> None:
        with self._lock:
            removed = len(self._items)
            self._items.clear()

        logger.log_staging_operation("clear", details={"removed": removed})

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def rank_by_similarity(self, index, query_embedding) -> List[ParkedItem]:
        """
        Parked items ordered by how close their node's embedding is to the query.

        Items whose node is not in the index come last, in insertion order.
        """
        items = self.list_items()
        scored = []
        unscored = []
        for item in items:
            score = index.score(item.node.node_id, query_embedding)
            if score is None:
                unscored.append(item)
            else:
                scored.append((score, item))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in scored] + unscored
