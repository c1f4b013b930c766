"""Utility helpers for ledger summaries."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable

from roomledger.models.transaction import STATUSES


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def summarize(transactions: Iterable[Any]) -> Dict[str, Any]:
    total = Decimal("0")
    count = 0
    status_counts = {status: 0 for status in STATUSES}
    location_totals: Dict[str, Decimal] = {}
    for txn in transactions:
        amount = Decimal(str(_field(txn, "amount") or 0))
        count += 1
        total += amount
        status = _field(txn, "status")
        status_counts[status] = status_counts.get(status, 0) + 1
        location = _field(txn, "location") or "Unknown"
        location_totals[location] = location_totals.get(location, Decimal("0")) + amount
    return {
        "total_count": count,
        "total_amount": float(round(total, 2)),
        "status_counts": status_counts,
        "location_totals": {
            name: float(round(value, 2))
            for name, value in sorted(location_totals.items(), key=lambda pair: pair[1], reverse=True)
        },
    }
