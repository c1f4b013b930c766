import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from roomledger.db.session import get_db, init_db
from roomledger.main import app
from roomledger.services.categories import seed_default_categories
from roomledger.services.ledger import create_charge
from roomledger.services.staff import create_staff

STAFF = {
    "waiter": "A. Diallo",
    "receptionist": "R. Haddad",
    "admin": "Night Manager",
}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        seed_default_categories(session)
        yield session


@pytest.fixture
def make_charge(session):
    def _make(room_id="204", category="Restaurant", amount="45.00", waiter="A. Diallo", **kwargs):
        return create_charge(session, room_id, category, amount, actor_name=waiter, **kwargs)

    return _make


@pytest.fixture
def client(session_factory):
    """TestClient bound to the in-memory database, with one account per role."""
    with session_factory() as db:
        seed_default_categories(db)
        tokens = {role: create_staff(db, name, role).api_token for role, name in STAFF.items()}

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    test_client.tokens = tokens
    yield test_client
    app.dependency_overrides.clear()
