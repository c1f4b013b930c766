from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from roomledger.api.deps import get_current_staff, require_roles
from roomledger.api.schemas import (
    AdminStatusRequest,
    BulkStatusRequest,
    BulkStatusResponse,
    CategoryListResponse,
    CategorySummary,
    ChargeRequest,
    ClearingRecord,
    ClearRoomRequest,
    LedgerSummaryResponse,
    RoomBalanceResponse,
    StatusUpdateRequest,
    TransactionHistoryResponse,
    TransactionListResponse,
    TransactionLogEntry,
    TransactionSummary,
)
from roomledger.core.config import settings
from roomledger.db.session import get_db
from roomledger.models import StaffMember, Transaction, TransactionClearing, TransactionLog
from roomledger.models.staff import ROLE_ADMIN, ROLE_RECEPTIONIST, ROLE_WAITER
from roomledger.services import categories as category_service
from roomledger.services import ledger as ledger_service
from roomledger.services import reports as report_service
from roomledger.services.errors import (
    ActionDenied,
    ActorRequired,
    BulkUpdateAborted,
    LedgerError,
    LedgerValidationError,
    NothingToClear,
    TransactionNotFound,
)
from roomledger.services.ledger import BulkResult
from roomledger.services.search import TransactionFilters, query_transactions

router = APIRouter()

any_staff = get_current_staff
front_desk = require_roles(ROLE_RECEPTIONIST, ROLE_ADMIN)
floor_staff = require_roles(ROLE_WAITER, ROLE_RECEPTIONIST, ROLE_ADMIN)
admin_only = require_roles(ROLE_ADMIN)


def _decimal_to_float(value: Optional[Decimal]) -> float:
    if value is None:
        return 0.0
    return float(value)


def _error_status(exc: LedgerError) -> int:
    if isinstance(exc, ActorRequired):
        return status.HTTP_428_PRECONDITION_REQUIRED
    if isinstance(exc, LedgerValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ActionDenied):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, TransactionNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, NothingToClear):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _http_error(exc: LedgerError) -> HTTPException:
    detail = {"code": exc.code, "message": exc.message}
    if isinstance(exc, BulkUpdateAborted):
        detail["updated_ids"] = exc.result.updated_ids
        detail["updated_count"] = exc.result.updated_count
        detail["skipped_count"] = exc.result.skipped_count
    return HTTPException(status_code=_error_status(exc), detail=detail)


def _serialize_transaction(record: Transaction) -> TransactionSummary:
    return TransactionSummary(
        id=record.id,
        room_id=record.room_id,
        guest_name=record.guest_name,
        amount=_decimal_to_float(record.amount),
        description=record.description,
        location=record.location,
        category_id=record.category_id,
        type=record.type,
        date=record.date,
        waiter_name=record.waiter_name,
        status=record.status,
        admin_status=record.admin_status,
        clearing_id=record.clearing_id,
    )


def _serialize_log(entry: TransactionLog) -> TransactionLogEntry:
    return TransactionLogEntry(
        id=entry.id,
        transaction_id=entry.transaction_id,
        changed_by_name=entry.changed_by_name,
        previous_status=entry.previous_status,
        new_status=entry.new_status,
        changed_at=entry.changed_at,
    )


def _serialize_clearing(record: TransactionClearing) -> ClearingRecord:
    return ClearingRecord(
        id=record.id,
        room_id=record.room_id,
        cleared_by=record.cleared_by,
        cleared_amount=_decimal_to_float(record.cleared_amount),
        cleared_at=record.cleared_at,
        notes=record.notes,
        transaction_ids=sorted(txn.id for txn in record.transactions),
    )


def _serialize_bulk(result: BulkResult) -> BulkStatusResponse:
    return BulkStatusResponse(
        target_status=result.target_status,
        updated_count=result.updated_count,
        skipped_count=result.skipped_count,
        updated_ids=result.updated_ids,
        skipped_closed_ids=result.skipped_closed_ids,
        skipped_missing_ids=result.skipped_missing_ids,
        skipped_unchanged_ids=result.skipped_unchanged_ids,
        transactions=[_serialize_transaction(txn) for txn in result.updated],
    )


def _filters(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    admin_status: Optional[str] = Query(default=None),
    waiter: Optional[str] = Query(default=None),
    room_id: Optional[str] = Query(default=None),
    guest_name: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, description="Free-text search"),
) -> TransactionFilters:
    try:
        return TransactionFilters(
            status=status_filter,
            admin_status=admin_status,
            waiter=waiter,
            room_id=room_id,
            guest_name=guest_name,
            query=q,
        )
    except LedgerError as exc:
        raise _http_error(exc)


@router.get("/health")
def read_health():
    """Return minimal health metadata for smoke checks."""
    return {
        "status": "ok",
        "service": settings.project_name,
        "version": settings.version,
        "environment": settings.environment,
        "commit": settings.commit_sha,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(db: Session = Depends(get_db), _: StaffMember = Depends(any_staff)):
    categories = category_service.list_categories(db)
    return CategoryListResponse(
        categories=[
            CategorySummary(id=c.id, name=c.name, description=c.description) for c in categories
        ]
    )


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    filters: TransactionFilters = Depends(_filters),
    order: Literal["asc", "desc"] = Query(default="desc"),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: StaffMember = Depends(any_staff),
):
    records = query_transactions(db, filters, ascending=order == "asc")
    page = records[offset : offset + limit]
    return TransactionListResponse(
        transactions=[_serialize_transaction(record) for record in page],
        count=len(page),
        total=len(records),
        offset=offset,
        refresh_interval_seconds=settings.refresh_interval_seconds,
        fetched_at=datetime.now(tz=timezone.utc),
    )


@router.get("/transactions/summary", response_model=LedgerSummaryResponse)
def summarize_transactions(
    filters: TransactionFilters = Depends(_filters),
    db: Session = Depends(get_db),
    _: StaffMember = Depends(front_desk),
):
    records = query_transactions(db, filters)
    return LedgerSummaryResponse(**report_service.summarize(records))


@router.post(
    "/transactions", response_model=TransactionSummary, status_code=status.HTTP_201_CREATED
)
def create_charge(
    request: ChargeRequest,
    db: Session = Depends(get_db),
    member: StaffMember = Depends(floor_staff),
):
    try:
        record = ledger_service.create_charge(
            db,
            request.qr_payload if request.qr_payload else request.room_id,
            request.category,
            request.amount,
            request.description,
            actor_name=member.display_name,
            guest_name=request.guest_name,
        )
    except LedgerError as exc:
        raise _http_error(exc)
    return _serialize_transaction(record)


@router.post("/transactions/bulk-status", response_model=BulkStatusResponse)
def bulk_update_status(
    request: BulkStatusRequest,
    db: Session = Depends(get_db),
    member: StaffMember = Depends(front_desk),
):
    try:
        result = ledger_service.bulk_set_status(
            db, request.transaction_ids, request.status, actor_name=member.display_name
        )
    except LedgerError as exc:
        raise _http_error(exc)
    return _serialize_bulk(result)


@router.post("/transactions/{transaction_id}/status", response_model=TransactionSummary)
def update_status(
    transaction_id: int,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    member: StaffMember = Depends(floor_staff),
):
    try:
        record = ledger_service.set_status(
            db, transaction_id, request.status, actor_name=member.display_name
        )
    except LedgerError as exc:
        raise _http_error(exc)
    return _serialize_transaction(record)


@router.post("/transactions/{transaction_id}/admin-status", response_model=TransactionSummary)
def update_admin_status(
    transaction_id: int,
    request: AdminStatusRequest,
    db: Session = Depends(get_db),
    member: StaffMember = Depends(admin_only),
):
    try:
        record = ledger_service.set_admin_status(
            db, transaction_id, request.admin_status, actor_name=member.display_name
        )
    except LedgerError as exc:
        raise _http_error(exc)
    return _serialize_transaction(record)


@router.get("/transactions/{transaction_id}/history", response_model=TransactionHistoryResponse)
def read_history(
    transaction_id: int,
    db: Session = Depends(get_db),
    _: StaffMember = Depends(any_staff),
):
    try:
        history = ledger_service.get_history(db, transaction_id)
    except LedgerError as exc:
        raise _http_error(exc)
    record = db.get(Transaction, transaction_id)
    return TransactionHistoryResponse(
        transaction=_serialize_transaction(record),
        history=[_serialize_log(entry) for entry in history],
    )


@router.get("/rooms/{room_id}/balance", response_model=RoomBalanceResponse)
def read_room_balance(
    room_id: str,
    db: Session = Depends(get_db),
    _: StaffMember = Depends(front_desk),
):
    try:
        balance = ledger_service.room_balance(db, room_id)
    except LedgerError as exc:
        raise _http_error(exc)
    return RoomBalanceResponse(
        room_id=balance.room_id,
        balance=_decimal_to_float(balance.balance),
        open_count=balance.open_count,
        transactions=[_serialize_transaction(txn) for txn in balance.transactions],
    )


@router.post("/rooms/{room_id}/clear", response_model=ClearingRecord)
def clear_room(
    room_id: str,
    request: Optional[ClearRoomRequest] = None,
    db: Session = Depends(get_db),
    member: StaffMember = Depends(front_desk),
):
    try:
        clearing = ledger_service.clear_room_balance(
            db,
            room_id,
            actor_name=member.display_name,
            notes=request.notes if request else None,
        )
    except LedgerError as exc:
        raise _http_error(exc)
    return _serialize_clearing(clearing)


@router.get("/clearings", response_model=List[ClearingRecord])
def list_clearings(
    room_id: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    _: StaffMember = Depends(front_desk),
):
    try:
        records = ledger_service.list_clearings(db, room_id=room_id, limit=limit)
    except LedgerError as exc:
        raise _http_error(exc)
    return [_serialize_clearing(record) for record in records]
