"""In-memory mirror of a server collection with optimistic inserts."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Callable, Dict, List, Optional

from .http import NetworkOrHttpError
from .sorting import sort_records

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

SENTINEL_PREFIX = "optimistic"


class EntryState(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled-back"


@dataclass
class OptimisticEntry:
    """Tracks one optimistic insert from submission to its outcome."""

    sentinel_id: str
    payload: Record
    state: EntryState = EntryState.PENDING
    record: Optional[Record] = None
    error: Optional[str] = None

    def confirm(self, record: Record) -> None:
        self._leave_pending()
        self.state = EntryState.CONFIRMED
        self.record = record

    def roll_back(self, error: str) -> None:
        self._leave_pending()
        self.state = EntryState.ROLLED_BACK
        self.error = error

    def _leave_pending(self) -> None:
        if self.state is not EntryState.PENDING:
            raise RuntimeError(f"Entry {self.sentinel_id} already {self.state.value}")


@dataclass
class CollectionMirror:
    """Client-local copy of one collection.

    ``fetch`` returns the authoritative collection, ``create`` stores one
    record and returns it, ``reset_remote`` restores the seed and returns the new
    collection. Each callable raises ``NetworkOrHttpError`` on failure.
    """

    fetch: Callable[[], List[Record]]
    create: Optional[Callable[[Record], Record]] = None
    reset_remote: Optional[Callable[[], List[Record]]] = None
    id_field: str = "id"
    items: List[Record] = field(default_factory=list)
    error: Optional[str] = None
    loading: bool = False
    _sentinels: "count[int]" = field(default_factory=count, init=False, repr=False)

    def refresh(self) -> bool:
        self.loading = True
        try:
            self.items = list(self.fetch())
            self.error = None
            return True
        except NetworkOrHttpError as exc:
            self.error = str(exc)
            return False
        finally:
            self.loading = False

    def add(self, payload: Record) -> OptimisticEntry:
        if self.create is None:
            raise RuntimeError("This collection does not accept new records")
        entry = OptimisticEntry(f"{SENTINEL_PREFIX}-{next(self._sentinels)}", dict(payload))
        self.items.insert(0, {**payload, self.id_field: entry.sentinel_id})

        try:
            stored = self.create(payload)
        except NetworkOrHttpError as exc:
            self._drop(entry.sentinel_id)
            entry.roll_back(str(exc))
            self.error = entry.error
            logger.info("Rolled back optimistic entry %s: %s", entry.sentinel_id, exc)
            return entry

        entry.confirm(stored)
        if not self._reload_without(entry.sentinel_id):
            self._swap(entry.sentinel_id, stored)
        return entry

    def reset(self) -> bool:
        """Clear the mirror, then load whatever the server's reset returns."""
        if self.reset_remote is None:
            raise RuntimeError("This collection cannot be reset")
        self.items = []
        self.loading = True
        try:
            self.items = list(self.reset_remote())
            self.error = None
            return True
        except NetworkOrHttpError as exc:
            self.error = str(exc)
            return False
        finally:
            self.loading = False

    def sorted(self, key: Optional[str] = None, descending: bool = False) -> List[Record]:
        return sort_records(self.items, key, descending)

    @property
    def pending(self) -> List[Record]:
        return [item for item in self.items if _is_sentinel(item.get(self.id_field))]

    # Helpers
    def _reload_without(self, sentinel_id: str) -> bool:
        # Other inserts may still be in flight; keep their placeholders on top.
        others = [item for item in self.pending if item.get(self.id_field) != sentinel_id]
        try:
            fresh = list(self.fetch())
        except NetworkOrHttpError as exc:
            logger.info("Refetch after create failed: %s", exc)
            return False
        self.items = others + fresh
        self.error = None
        return True

    def _swap(self, sentinel_id: str, record: Record) -> None:
        self.items = [
            record if item.get(self.id_field) == sentinel_id else item for item in self.items
        ]

    def _drop(self, sentinel_id: str) -> None:
        self.items = [item for item in self.items if item.get(self.id_field) != sentinel_id]


def _is_sentinel(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(f"{SENTINEL_PREFIX}-")
