from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

TargetStatus = Literal["paid", "cancelled"]
AdminStatus = Literal["open", "closed"]


class CategorySummary(BaseModel):
    """Location a charge can be booked against."""

    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    description: Optional[str] = None


class CategoryListResponse(BaseModel):
    """Response payload for /categories."""

    model_config = ConfigDict(extra="forbid")

    categories: List[CategorySummary]


class TransactionSummary(BaseModel):
    """Ledger row as shown to staff."""

    model_config = ConfigDict(extra="forbid")

    id: int
    room_id: str
    guest_name: Optional[str] = None
    amount: float
    description: Optional[str] = None
    location: str
    category_id: Optional[int] = None
    type: str
    date: datetime
    waiter_name: Optional[str] = None
    status: str
    admin_status: str
    clearing_id: Optional[int] = None


class TransactionListResponse(BaseModel):
    """One page of the filtered transaction list; ``total`` counts every match."""

    model_config = ConfigDict(extra="forbid")

    transactions: List[TransactionSummary]
    count: int
    total: int
    offset: int = 0
    refresh_interval_seconds: int
    fetched_at: datetime


class ChargeRequest(BaseModel):
    """Waiter charge; the room comes from a typed id or a scanned QR payload."""

    room_id: Optional[str] = None
    qr_payload: Optional[str] = None
    category: Optional[Union[int, str]] = None
    amount: Optional[Union[float, str]] = None
    description: Optional[str] = None
    guest_name: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: TargetStatus


class BulkStatusRequest(BaseModel):
    transaction_ids: List[int] = Field(default_factory=list)
    status: TargetStatus


class BulkStatusResponse(BaseModel):
    """Outcome of a bulk status update."""

    model_config = ConfigDict(extra="forbid")

    target_status: str
    updated_count: int
    skipped_count: int
    updated_ids: List[int]
    skipped_closed_ids: List[int]
    skipped_missing_ids: List[int]
    skipped_unchanged_ids: List[int]
    transactions: List[TransactionSummary]


class AdminStatusRequest(BaseModel):
    admin_status: AdminStatus


class TransactionLogEntry(BaseModel):
    """One audited status change."""

    model_config = ConfigDict(extra="forbid")

    id: int
    transaction_id: int
    changed_by_name: str
    previous_status: str
    new_status: str
    changed_at: datetime


class TransactionHistoryResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transaction: TransactionSummary
    history: List[TransactionLogEntry]


class RoomBalanceResponse(BaseModel):
    """Open balance of a room before checkout."""

    model_config = ConfigDict(extra="forbid")

    room_id: str
    balance: float
    open_count: int
    transactions: List[TransactionSummary]


class ClearRoomRequest(BaseModel):
    notes: Optional[str] = None


class ClearingRecord(BaseModel):
    """Persisted checkout clearing."""

    model_config = ConfigDict(extra="forbid")

    id: int
    room_id: str
    cleared_by: str
    cleared_amount: float
    cleared_at: datetime
    notes: Optional[str] = None
    transaction_ids: List[int]


class LedgerSummaryResponse(BaseModel):
    """Counts and totals for the filtered ledger."""

    model_config = ConfigDict(extra="forbid")

    total_count: int
    total_amount: float
    status_counts: Dict[str, int]
    location_totals: Dict[str, float]
