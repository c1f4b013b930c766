"""Dynamic search and structured filters over transactions.

The same filter object drives the query behind ``GET /transactions`` and the
in-memory filtering done by :class:`roomledger.services.board.TransactionBoard`.
Items may be ORM rows, pydantic models or plain dicts.

Exact-match filters (status, admin status, room) become SQL WHERE clauses.
Text terms (search query, waiter, guest name) are always matched in Python:
SQLite's ``lower()`` folds ASCII letters only, so guest names such as
"Élodie" would not match case-insensitively in SQL.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from roomledger.models import Transaction
from roomledger.services.rooms import resolve_room_id

SEARCH_FIELDS = ("room_id", "guest_name", "waiter_name", "description", "location")


def _value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _fold(value: Any) -> str:
    return str(value).casefold()


def matches_query(item: Any, query: Optional[str]) -> bool:
    """True when ``query`` is a case-insensitive substring of any searchable field."""
    if not query:
        return True
    needle = _fold(query)
    for name in SEARCH_FIELDS:
        value = _value(item, name)
        if value is not None and needle in _fold(value):
            return True
    return False


@dataclass(frozen=True)
class TransactionFilters:
    status: Optional[str] = None
    admin_status: Optional[str] = None
    waiter: Optional[str] = None
    room_id: Optional[str] = None
    guest_name: Optional[str] = None
    query: Optional[str] = None

    def __post_init__(self):
        # Room filters accept the same forms as charge creation ("Room 204", QR payloads).
        if self.room_id is not None and self.room_id.strip():
            object.__setattr__(self, "room_id", resolve_room_id(self.room_id))

    def matches_structured(self, item: Any) -> bool:
        if self.status and _value(item, "status") != self.status:
            return False
        if self.admin_status and _value(item, "admin_status") != self.admin_status:
            return False
        if self.room_id and _value(item, "room_id") != self.room_id:
            return False
        return True

    def matches_text(self, item: Any) -> bool:
        if self.waiter and _fold(_value(item, "waiter_name") or "") != _fold(self.waiter):
            return False
        if self.guest_name and _fold(self.guest_name) not in _fold(_value(item, "guest_name") or ""):
            return False
        return matches_query(item, self.query)

    def matches(self, item: Any) -> bool:
        return self.matches_structured(item) and self.matches_text(item)


def _sort_key(item: Any) -> str:
    # Rows from the API carry ISO strings, ORM rows carry datetimes.
    value = _value(item, "date")
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value or "")


def apply_filters(
    items: Iterable[Any], filters: TransactionFilters, *, ascending: bool = False
) -> List[Any]:
    selected = [item for item in items if filters.matches(item)]
    selected.sort(key=_sort_key, reverse=not ascending)
    return selected


def filter_statement(stmt: Select, filters: TransactionFilters) -> Select:
    """Translate the exact-match filters into WHERE clauses on a ``select(Transaction)``."""
    if filters.status:
        stmt = stmt.where(Transaction.status == filters.status)
    if filters.admin_status:
        stmt = stmt.where(Transaction.admin_status == filters.admin_status)
    if filters.room_id:
        stmt = stmt.where(Transaction.room_id == filters.room_id)
    return stmt


def query_transactions(
    session: Session, filters: TransactionFilters, *, ascending: bool = False
) -> List[Transaction]:
    """All transactions matching ``filters``, newest first unless ``ascending``."""
    if ascending:
        order = (Transaction.date.asc(), Transaction.id.asc())
    else:
        order = (Transaction.date.desc(), Transaction.id.desc())
    stmt = filter_statement(select(Transaction), filters).order_by(*order)
    return [record for record in session.scalars(stmt) if filters.matches_text(record)]
