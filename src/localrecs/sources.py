"""
Interfaces of the external collaborators the core reads from.

The core never talks to a media server. A host supplies the catalog and
per-user watch data through these protocols; the in-memory implementations
serve tests, benchmarks and hosts that already hold the data in memory.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Hashable, Iterable, Protocol, runtime_checkable

from .errors import require
from .models import CatalogItem, WatchState

logger = logging.getLogger(__name__)


@runtime_checkable
class CatalogSource(Protocol):
    def get_all_items(self) -> Iterable[CatalogItem]:
        ...


@runtime_checkable
class WatchHistorySource(Protocol):
    def has_user(self, user_id: Hashable) -> bool:
        ...

    def get_watch_state(self, user_id: Hashable, item_id: Hashable) -> WatchState | None:
        """Watch data for one (user, item) pair, or None when nothing is known."""
        ...


class InMemoryCatalog:
    """Catalog snapshot held in a list."""

    def __init__(self, items: Iterable[CatalogItem] = ()):
        self._items: list[CatalogItem] = list(items)

    def add(self, item: CatalogItem) -> None:
        self._items.append(require(item, "item"))

    def get_all_items(self) -> list[CatalogItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class InMemoryWatchHistory:
    """user id -> item id -> WatchState."""

    def __init__(self, states: dict[Hashable, dict[Hashable, WatchState]] | None = None):
        self._states: dict[Hashable, dict[Hashable, WatchState]] = defaultdict(dict)
        for user_id, per_item in (states or {}).items():
            self._states[user_id].update(per_item)

    def add_user(self, user_id: Hashable) -> None:
        """Register a user with no watch data yet."""
        self._states.setdefault(user_id, {})

    def record(self, user_id: Hashable, item_id: Hashable, state: WatchState) -> None:
        self._states[user_id][item_id] = require(state, "state")

    def has_user(self, user_id: Hashable) -> bool:
        return user_id in self._states

    def get_watch_state(self, user_id: Hashable, item_id: Hashable) -> WatchState | None:
        per_item = self._states.get(user_id)
        if per_item is None:
            return None
        return per_item.get(item_id)

    def users(self) -> list[Hashable]:
        return list(self._states.keys())
