import pytest

from roomledger.services.categories import list_categories, seed_default_categories
from roomledger.services.errors import ActorRequired
from roomledger.services.staff import InvalidRole, TokenInUse, authenticate, create_staff


def test_create_and_authenticate_staff(session):
    member = create_staff(session, "  R. Haddad ", "Receptionist")

    assert member.display_name == "R. Haddad"
    assert member.role == "receptionist"
    assert len(member.api_token) >= 32
    assert authenticate(session, member.api_token).id == member.id
    assert authenticate(session, "wrong") is None
    assert authenticate(session, None) is None


def test_inactive_staff_cannot_authenticate(session):
    member = create_staff(session, "Former Waiter", "waiter", api_token="tok-123")
    member.active = False
    session.commit()

    assert authenticate(session, "tok-123") is None


def test_create_staff_validation(session):
    with pytest.raises(ActorRequired):
        create_staff(session, " ", "waiter")
    with pytest.raises(InvalidRole):
        create_staff(session, "Someone", "chef")


def test_seed_categories_is_idempotent(session):
    before = len(list_categories(session))
    assert seed_default_categories(session) == 0
    assert seed_default_categories(session, ["restaurant", "Shuttle"]) == 1
    assert len(list_categories(session)) == before + 1


def test_duplicate_token_is_rejected_and_session_stays_usable(session):
    create_staff(session, "Day Waiter", "waiter", api_token="shared-token")

    with pytest.raises(TokenInUse):
        create_staff(session, "Night Waiter", "waiter", api_token="shared-token")

    assert authenticate(session, "shared-token").display_name == "Day Waiter"
    assert create_staff(session, "Night Waiter", "waiter").display_name == "Night Waiter"
