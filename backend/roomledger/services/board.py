"""Client-side view of the ledger used by the receptionist and waiter screens.

The board keeps the last fetched transaction list, re-fetches it when the
polling interval has elapsed, and patches it immediately after a mutation so
staff see their own changes without waiting for the next poll.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Iterable, List, Optional, Set

from roomledger.core.config import settings
from roomledger.services.search import TransactionFilters, apply_filters

logger = logging.getLogger(__name__)


def _item_id(item: Any):
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


def _item_room(item: Any):
    if isinstance(item, dict):
        return item.get("room_id")
    return getattr(item, "room_id", None)


class TransactionBoard:
    def __init__(
        self,
        fetch: Callable[[], Iterable[Any]],
        refresh_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._clock = clock
        self.refresh_interval = (
            refresh_interval if refresh_interval is not None else settings.refresh_interval_seconds
        )
        self.transactions: List[Any] = []
        self.filters = TransactionFilters()
        self.active_room: Optional[str] = None
        self.selected: Set[Any] = set()
        self.last_refreshed: Optional[float] = None

    def refresh(self) -> List[Any]:
        self.transactions = list(self._fetch())
        self.last_refreshed = self._clock()
        known = {_item_id(item) for item in self.transactions}
        self.selected &= known
        logger.debug("Board refreshed with %d transactions", len(self.transactions))
        return self.transactions

    def is_due(self) -> bool:
        if self.last_refreshed is None:
            return True
        return self._clock() - self.last_refreshed >= self.refresh_interval

    def refresh_if_due(self) -> bool:
        if not self.is_due():
            return False
        self.refresh()
        return True

    def apply(self, updated: Iterable[Any]) -> None:
        """Replace local copies with fresh ones; unseen items are new charges."""
        by_id = {_item_id(item): item for item in updated}
        merged = []
        for item in self.transactions:
            merged.append(by_id.pop(_item_id(item), item))
        self.transactions = list(by_id.values()) + merged

    def remove_room(self, room_id: str) -> None:
        dropped = {_item_id(item) for item in self.transactions if _item_room(item) == room_id}
        self.transactions = [item for item in self.transactions if _item_room(item) != room_id]
        self.selected -= dropped

    def set_search(self, query: Optional[str]) -> None:
        self.filters = replace(self.filters, query=query or None)

    def set_filters(self, **changes) -> None:
        self.filters = replace(self.filters, **changes)
        if "room_id" in changes:
            self.active_room = self.filters.room_id or None

    def clear_filters(self) -> None:
        self.filters = TransactionFilters()
        self.active_room = None

    def visible(self, *, ascending: bool = False) -> List[Any]:
        return apply_filters(self.transactions, self.filters, ascending=ascending)

    def select(self, *ids) -> None:
        self.selected.update(ids)

    def deselect(self, *ids) -> None:
        self.selected.difference_update(ids)

    def select_all_visible(self) -> List[Any]:
        ids = [_item_id(item) for item in self.visible()]
        self.selected = set(ids)
        return ids
