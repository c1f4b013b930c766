"""Business logic for room charges, status transitions and checkout clearing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from roomledger.models import Transaction, TransactionClearing, TransactionLog
from roomledger.models.transaction import (
    ADMIN_CLOSED,
    ADMIN_OPEN,
    ADMIN_STATUSES,
    CREATED_MARKER,
    STATUS_CANCELLED,
    STATUS_PAID,
    STATUS_PENDING,
)
from roomledger.services import categories as category_service
from roomledger.services.errors import (
    ActionDenied,
    ActorRequired,
    BulkUpdateAborted,
    EmptySelection,
    InvalidAmount,
    InvalidStatus,
    LocationRequired,
    NothingToClear,
    StoreError,
    TransactionNotFound,
)
from roomledger.services.rooms import resolve_room_id

logger = logging.getLogger(__name__)

# Statuses staff may move a transaction to from the waiter/receptionist surface.
TARGET_STATUSES = (STATUS_PAID, STATUS_CANCELLED)

CENT = Decimal("0.01")


@dataclass
class BulkResult:
    target_status: str
    updated: List[Transaction] = field(default_factory=list)
    skipped_closed_ids: List[int] = field(default_factory=list)
    skipped_missing_ids: List[int] = field(default_factory=list)
    skipped_unchanged_ids: List[int] = field(default_factory=list)

    @property
    def updated_ids(self) -> List[int]:
        return [txn.id for txn in self.updated]

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def skipped_count(self) -> int:
        return (
            len(self.skipped_closed_ids)
            + len(self.skipped_missing_ids)
            + len(self.skipped_unchanged_ids)
        )


@dataclass
class RoomBalance:
    room_id: str
    balance: Decimal
    transactions: List[Transaction]

    @property
    def open_count(self) -> int:
        return len(self.transactions)


def _require_actor(actor_name: Optional[str]) -> str:
    name = (actor_name or "").strip()
    if not name:
        raise ActorRequired()
    return name


def _to_amount(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidAmount()
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Invalid amount '{value}'")
    if not amount.is_finite():
        raise InvalidAmount(f"Invalid amount '{value}'")
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    return amount


def _validate_target(target_status: Optional[str]) -> str:
    target = (target_status or "").strip().lower()
    if target not in TARGET_STATUSES:
        raise InvalidStatus(
            f"Target status must be one of {', '.join(TARGET_STATUSES)}, got '{target_status}'"
        )
    return target


def _get_transaction(session: Session, transaction_id: int) -> Transaction:
    transaction = session.get(Transaction, transaction_id)
    if not transaction:
        raise TransactionNotFound()
    return transaction


def _commit(session: Session, failure_message: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception(failure_message)
        raise StoreError(failure_message) from exc


def _record_transition(transaction: Transaction, new_status: str, actor_name: str) -> None:
    # Status and its log row are flushed in the same unit of work.
    transaction.logs.append(
        TransactionLog(
            changed_by_name=actor_name,
            previous_status=transaction.status,
            new_status=new_status,
        )
    )
    transaction.status = new_status


def create_charge(
    session: Session,
    room_id: str,
    category: Union[int, str, None],
    amount: Any,
    description: Optional[str] = None,
    *,
    actor_name: Optional[str],
    guest_name: Optional[str] = None,
) -> Transaction:
    """Record a pending charge against a room together with its first log row."""
    room = resolve_room_id(room_id)
    if category is None or (isinstance(category, str) and not category.strip()):
        raise LocationRequired()
    value = _to_amount(amount)
    waiter = _require_actor(actor_name)
    location = category_service.resolve_category(session, category)

    transaction = Transaction(
        room_id=room,
        guest_name=(guest_name or "").strip() or None,
        amount=value,
        description=(description or "").strip() or None,
        location=location.name,
        category_id=location.id,
        waiter_name=waiter,
        status=STATUS_PENDING,
        admin_status=ADMIN_OPEN,
    )
    transaction.logs.append(
        TransactionLog(
            changed_by_name=waiter,
            previous_status=CREATED_MARKER,
            new_status=STATUS_PENDING,
        )
    )
    session.add(transaction)
    _commit(session, "failed to create transaction")
    session.refresh(transaction)
    logger.info(
        "Charge %s created for room %s: %s at %s by %s",
        transaction.id,
        room,
        value,
        location.name,
        waiter,
    )
    return transaction


def set_status(
    session: Session,
    transaction_id: int,
    target_status: str,
    *,
    actor_name: Optional[str],
) -> Transaction:
    """Move one transaction to ``paid`` or ``cancelled``.

    Closed transactions are rejected with ``ActionDenied``. Asking for the
    status the transaction already has is a no-op: nothing is written and no
    log row is appended.
    """
    target = _validate_target(target_status)
    actor = _require_actor(actor_name)
    transaction = _get_transaction(session, transaction_id)

    if transaction.is_locked:
        logger.warning(
            "Denied status change of closed transaction %s to %s by %s",
            transaction.id,
            target,
            actor,
        )
        raise ActionDenied()
    if transaction.status == target:
        logger.info("Transaction %s already %s; nothing to do", transaction.id, target)
        return transaction

    previous = transaction.status
    _record_transition(transaction, target, actor)
    _commit(session, "failed to update transaction status")
    session.refresh(transaction)
    logger.info(
        "Transaction %s status %s -> %s by %s", transaction.id, previous, target, actor
    )
    return transaction


def bulk_set_status(
    session: Session,
    transaction_ids: Iterable[int],
    target_status: str,
    *,
    actor_name: Optional[str],
) -> BulkResult:
    """Apply one target status to a selection, item by item.

    Each item commits on its own. Closed, unknown and already-at-target
    transactions are skipped. A store failure stops the batch: items committed
    before it stay committed and ``BulkUpdateAborted`` carries the progress.
    """
    target = _validate_target(target_status)
    actor = _require_actor(actor_name)
    ids = list(dict.fromkeys(transaction_ids))
    if not ids:
        raise EmptySelection()

    result = BulkResult(target_status=target)
    for transaction_id in ids:
        try:
            transaction = session.get(Transaction, transaction_id)
            if transaction is None:
                result.skipped_missing_ids.append(transaction_id)
                continue
            if transaction.is_locked:
                result.skipped_closed_ids.append(transaction_id)
                continue
            if transaction.status == target:
                result.skipped_unchanged_ids.append(transaction_id)
                continue
            _record_transition(transaction, target, actor)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "Bulk status update to %s aborted at transaction %s after %d updates",
                target,
                transaction_id,
                result.updated_count,
            )
            raise BulkUpdateAborted(
                result,
                f"failed to update transaction status "
                f"({result.updated_count} updated before the failure)",
            ) from exc
        result.updated.append(transaction)

    for transaction in result.updated:
        session.refresh(transaction)
    logger.info(
        "Bulk status %s by %s: %d updated, %d skipped",
        target,
        actor,
        result.updated_count,
        result.skipped_count,
    )
    return result


def set_admin_status(
    session: Session,
    transaction_id: int,
    admin_status: str,
    *,
    actor_name: Optional[str],
) -> Transaction:
    """Lock (``closed``) or unlock (``open``) a transaction."""
    value = (admin_status or "").strip().lower()
    if value not in ADMIN_STATUSES:
        raise InvalidStatus(f"Admin status must be one of {', '.join(ADMIN_STATUSES)}")
    actor = _require_actor(actor_name)
    transaction = _get_transaction(session, transaction_id)
    if transaction.admin_status == value:
        return transaction

    previous = transaction.admin_status
    transaction.admin_status = value
    _commit(session, "failed to update admin status")
    session.refresh(transaction)
    logger.info(
        "Transaction %s admin_status %s -> %s by %s", transaction.id, previous, value, actor
    )
    return transaction


def get_history(session: Session, transaction_id: int) -> List[TransactionLog]:
    """Return every status change of a transaction, newest first."""
    _get_transaction(session, transaction_id)
    return session.scalars(
        select(TransactionLog)
        .where(TransactionLog.transaction_id == transaction_id)
        .order_by(TransactionLog.changed_at.desc(), TransactionLog.id.desc())
    ).all()


def _open_room_transactions(session: Session, room_id: str) -> List[Transaction]:
    return session.scalars(
        select(Transaction)
        .where(Transaction.room_id == room_id, Transaction.admin_status == ADMIN_OPEN)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    ).all()


def _billable_total(transactions: Iterable[Transaction]) -> Decimal:
    total = sum(
        (Decimal(txn.amount) for txn in transactions if txn.status != STATUS_CANCELLED),
        Decimal("0"),
    )
    return total.quantize(CENT)


def room_balance(session: Session, room_id: str) -> RoomBalance:
    room = resolve_room_id(room_id)
    transactions = _open_room_transactions(session, room)
    return RoomBalance(room_id=room, balance=_billable_total(transactions), transactions=transactions)


def clear_room_balance(
    session: Session,
    room_id: str,
    *,
    actor_name: Optional[str],
    notes: Optional[str] = None,
) -> TransactionClearing:
    """Settle a room at checkout.

    Pending charges become ``paid`` (logged against the clearing actor), every
    open transaction of the room is closed and linked to the new clearing
    record. All of it commits as one unit.
    """
    room = resolve_room_id(room_id)
    actor = _require_actor(actor_name)
    transactions = _open_room_transactions(session, room)
    if not transactions:
        raise NothingToClear(f"No open transactions for room {room}")

    clearing = TransactionClearing(
        room_id=room,
        cleared_by=actor,
        cleared_amount=_billable_total(transactions),
        notes=(notes or "").strip() or None,
    )
    session.add(clearing)
    for transaction in transactions:
        if transaction.status == STATUS_PENDING:
            _record_transition(transaction, STATUS_PAID, actor)
        transaction.admin_status = ADMIN_CLOSED
        transaction.clearing = clearing

    _commit(session, "failed to clear room balance")
    session.refresh(clearing)
    logger.info(
        "Room %s cleared by %s: %s across %d transactions",
        room,
        actor,
        clearing.cleared_amount,
        len(transactions),
    )
    return clearing


def list_clearings(
    session: Session, room_id: Optional[str] = None, limit: int = 50
) -> List[TransactionClearing]:
    stmt = select(TransactionClearing).order_by(
        TransactionClearing.cleared_at.desc(), TransactionClearing.id.desc()
    )
    if room_id:
        stmt = stmt.where(TransactionClearing.room_id == resolve_room_id(room_id))
    return session.scalars(stmt.limit(limit)).all()
