import pytest

from roomledger.client import LedgerClient, LedgerClientError
from roomledger.services.board import TransactionBoard


@pytest.fixture
def waiter(client):
    return LedgerClient(client.tokens["waiter"], http=client)


@pytest.fixture
def receptionist(client):
    return LedgerClient(client.tokens["receptionist"], http=client)


def test_client_charge_and_board_sees_it(waiter, receptionist):
    created = waiter.create_charge("Bar", "18.20", qr_payload="ROOM-410", description="Cocktails")
    assert created["room_id"] == "410"

    board = TransactionBoard(receptionist.fetcher(), refresh_interval=30)
    board.refresh()
    assert [row["id"] for row in board.transactions] == [created["id"]]

    updated = receptionist.set_status(created["id"], "paid")
    board.apply([updated])
    assert board.transactions[0]["status"] == "paid"

    history = receptionist.history(created["id"])
    assert [entry["new_status"] for entry in history] == ["paid", "pending"]


def test_client_surfaces_ledger_errors(waiter, receptionist):
    with pytest.raises(LedgerClientError) as excinfo:
        waiter.create_charge(None, "10", room_id="204")
    assert excinfo.value.status_code == 400
    assert excinfo.value.code == "location_required"
    assert str(excinfo.value) == "location required"

    with pytest.raises(LedgerClientError) as excinfo:
        receptionist.clear_room("999")
    assert excinfo.value.status_code == 409


def test_client_bulk_and_clear(waiter, receptionist):
    ids = [waiter.create_charge("Restaurant", amount, room_id="220")["id"] for amount in (10, 20)]

    result = receptionist.bulk_set_status(ids, "paid")
    assert result["updated_count"] == 2

    assert receptionist.room_balance("220")["balance"] == 30.0
    clearing = receptionist.clear_room("220", notes="Checkout")
    assert sorted(clearing["transaction_ids"]) == sorted(ids)


def test_board_fetch_holds_more_rows_than_one_page(make_charge, receptionist):
    for i in range(205):
        make_charge(room_id=str(100 + i % 40), amount="5.00")

    first_page = receptionist.list_transactions()
    assert first_page["count"] == 200
    assert first_page["total"] == 205

    board = TransactionBoard(receptionist.fetcher(), refresh_interval=30)
    board.refresh()
    assert len(board.transactions) == 205
    assert len({row["id"] for row in board.transactions}) == 205

    small_pages = TransactionBoard(receptionist.fetcher(page_size=50, room_id="Room 104"))
    small_pages.refresh()
    assert {row["room_id"] for row in small_pages.transactions} == {"104"}
    assert len(small_pages.transactions) == 6


def test_client_admin_lock_and_clearing_history(client, waiter, receptionist):
    admin = LedgerClient(client.tokens["admin"], http=client)
    created = waiter.create_charge("Spa", "60", room_id="118")

    locked = admin.set_admin_status(created["id"], "closed")
    assert locked["admin_status"] == "closed"
    with pytest.raises(LedgerClientError) as excinfo:
        receptionist.set_status(created["id"], "cancelled")
    assert excinfo.value.status_code == 403

    assert admin.set_admin_status(created["id"], "open")["admin_status"] == "open"
    clearing = receptionist.clear_room("118")

    assert [c["id"] for c in receptionist.list_clearings()] == [clearing["id"]]
    assert [c["id"] for c in receptionist.list_clearings(room_id="room:118", limit=5)] == [clearing["id"]]
    assert receptionist.list_clearings(room_id="204") == []
