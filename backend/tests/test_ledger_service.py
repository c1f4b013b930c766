from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from roomledger.models import Transaction, TransactionLog
from roomledger.services import ledger
from roomledger.services.categories import resolve_category
from roomledger.services.errors import (
    ActionDenied,
    ActorRequired,
    InvalidAmount,
    InvalidStatus,
    LocationRequired,
    RoomRequired,
    StoreError,
    TransactionNotFound,
    UnknownCategory,
)


def _log_count(session, transaction_id=None):
    stmt = select(func.count(TransactionLog.id))
    if transaction_id is not None:
        stmt = stmt.where(TransactionLog.transaction_id == transaction_id)
    return session.scalar(stmt)


def test_create_charge_starts_pending_and_open(session, make_charge):
    txn = make_charge(description="Dinner for two", guest_name="M. Okafor")

    assert txn.status == "pending"
    assert txn.admin_status == "open"
    assert txn.room_id == "204"
    assert txn.location == "Restaurant"
    assert txn.category.name == "Restaurant"
    assert txn.amount == Decimal("45.00")
    assert txn.waiter_name == "A. Diallo"
    assert txn.guest_name == "M. Okafor"

    history = ledger.get_history(session, txn.id)
    assert len(history) == 1
    assert history[0].previous_status == "created"
    assert history[0].new_status == "pending"
    assert history[0].changed_by_name == "A. Diallo"


def test_create_charge_accepts_category_id_and_qr_payload(session):
    spa = resolve_category(session, "spa")
    txn = ledger.create_charge(session, "room:312", spa.id, 80, actor_name="B. Ito")
    assert txn.room_id == "312"
    assert txn.location == "Spa"
    assert txn.amount == Decimal("80.00")


@pytest.mark.parametrize("category", [None, "", "   "])
def test_create_charge_requires_location(session, category):
    with pytest.raises(LocationRequired) as excinfo:
        ledger.create_charge(session, "204", category, "10", actor_name="A. Diallo")
    assert str(excinfo.value) == "location required"
    assert session.scalar(select(func.count(Transaction.id))) == 0


def test_create_charge_rejects_unknown_category(session):
    with pytest.raises(UnknownCategory):
        ledger.create_charge(session, "204", "Casino", "10", actor_name="A. Diallo")


@pytest.mark.parametrize("amount", [None, "", "abc", "0", "-5", "nan", "inf", True, 0.001])
def test_create_charge_rejects_invalid_amount(session, amount):
    with pytest.raises(InvalidAmount):
        ledger.create_charge(session, "204", "Bar", amount, actor_name="A. Diallo")
    assert session.scalar(select(func.count(Transaction.id))) == 0


@pytest.mark.parametrize("actor", [None, "", "  "])
def test_create_charge_requires_actor(session, actor):
    with pytest.raises(ActorRequired):
        ledger.create_charge(session, "204", "Bar", "12.50", actor_name=actor)
    assert _log_count(session) == 0


def test_create_charge_requires_room(session):
    with pytest.raises(RoomRequired):
        ledger.create_charge(session, "  ", "Bar", "12.50", actor_name="A. Diallo")


def test_create_charge_store_failure_leaves_nothing_behind(session, monkeypatch):
    def failing_commit():
        raise OperationalError("INSERT INTO transactions", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", failing_commit)
    with pytest.raises(StoreError) as excinfo:
        ledger.create_charge(session, "204", "Bar", "12.50", actor_name="A. Diallo")
    monkeypatch.undo()

    assert str(excinfo.value) == "failed to create transaction"
    assert session.scalar(select(func.count(Transaction.id))) == 0
    assert _log_count(session) == 0


def test_set_status_appends_one_log_row(session, make_charge):
    txn = make_charge()

    updated = ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")

    assert updated.status == "paid"
    history = ledger.get_history(session, txn.id)
    assert [(h.previous_status, h.new_status) for h in history] == [
        ("pending", "paid"),
        ("created", "pending"),
    ]
    assert history[0].changed_by_name == "R. Haddad"


def test_set_status_same_target_is_a_noop(session, make_charge):
    txn = make_charge()
    ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")

    again = ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")

    assert again.status == "paid"
    assert _log_count(session, txn.id) == 2


def test_set_status_can_cancel_a_paid_open_transaction(session, make_charge):
    txn = make_charge()
    ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")
    ledger.set_status(session, txn.id, "cancelled", actor_name="R. Haddad")

    latest = ledger.get_history(session, txn.id)[0]
    assert (latest.previous_status, latest.new_status) == ("paid", "cancelled")


def test_set_status_rejected_when_closed(session, make_charge):
    txn = make_charge()
    ledger.set_admin_status(session, txn.id, "closed", actor_name="Admin")

    with pytest.raises(ActionDenied):
        ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")

    session.expire_all()
    assert session.get(Transaction, txn.id).status == "pending"
    assert _log_count(session, txn.id) == 1


@pytest.mark.parametrize("target", ["pending", "approved", "refunded", None])
def test_set_status_rejects_targets_outside_paid_and_cancelled(session, make_charge, target):
    txn = make_charge()
    with pytest.raises(InvalidStatus):
        ledger.set_status(session, txn.id, target, actor_name="R. Haddad")


def test_set_status_unknown_transaction(session):
    with pytest.raises(TransactionNotFound) as excinfo:
        ledger.set_status(session, 999, "paid", actor_name="R. Haddad")
    assert str(excinfo.value) == "transaction not found"


def test_set_status_requires_actor(session, make_charge):
    txn = make_charge()
    with pytest.raises(ActorRequired):
        ledger.set_status(session, txn.id, "paid", actor_name="")
    assert session.get(Transaction, txn.id).status == "pending"


def test_set_status_store_failure_rolls_back_status_and_log(session, make_charge, monkeypatch):
    txn = make_charge()

    def failing_commit():
        raise OperationalError("UPDATE transactions", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", failing_commit)
    with pytest.raises(StoreError) as excinfo:
        ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")
    monkeypatch.undo()

    assert str(excinfo.value) == "failed to update transaction status"
    session.expire_all()
    assert session.get(Transaction, txn.id).status == "pending"
    assert _log_count(session, txn.id) == 1


def test_set_admin_status_validates_value(session, make_charge):
    txn = make_charge()
    with pytest.raises(InvalidStatus):
        ledger.set_admin_status(session, txn.id, "archived", actor_name="Admin")


def test_set_admin_status_reopen_allows_transitions_again(session, make_charge):
    txn = make_charge()
    ledger.set_admin_status(session, txn.id, "closed", actor_name="Admin")
    ledger.set_admin_status(session, txn.id, "open", actor_name="Admin")

    assert ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad").status == "paid"


def test_get_history_unknown_transaction(session):
    with pytest.raises(TransactionNotFound):
        ledger.get_history(session, 42)


def test_charge_pay_then_denied_cancel_after_close(session):
    txn = ledger.create_charge(session, "204", "Restaurant", 45.00, actor_name="A. Diallo")
    assert (txn.status, txn.admin_status) == ("pending", "open")
    assert [(h.previous_status, h.new_status) for h in ledger.get_history(session, txn.id)] == [
        ("created", "pending")
    ]

    ledger.set_status(session, txn.id, "paid", actor_name="R. Haddad")
    history = ledger.get_history(session, txn.id)
    assert len(history) == 2
    assert (history[0].previous_status, history[0].new_status) == ("pending", "paid")
    assert history[0].changed_by_name == "R. Haddad"

    ledger.set_admin_status(session, txn.id, "closed", actor_name="Night Manager")
    with pytest.raises(ActionDenied):
        ledger.set_status(session, txn.id, "cancelled", actor_name="R. Haddad")

    session.expire_all()
    assert session.get(Transaction, txn.id).status == "paid"
    assert len(ledger.get_history(session, txn.id)) == 2
