"""
Shared fixtures: in-memory database, API client and a recording notifier.
"""
from decimal import Decimal
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from groupledger.core.exceptions import NotificationDeliveryError
from groupledger.core.security import create_access_token
from groupledger.db.base import Base
from groupledger.db.session import get_db, make_engine
from groupledger.main import app
from groupledger.schemas.expense import SplitInput
from groupledger.services import group_service, ledger_store
from groupledger.services.notifier import Notifier, get_notifier
import groupledger.models  # noqa: F401

ALICE = 1
BOB = 2
CAROL = 3


class RecordingNotifier(Notifier):
    """Keeps every event it is asked to deliver."""

    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


class FailingNotifier(Notifier):
    """Always fails delivery."""

    def notify(self, event):
        raise NotificationDeliveryError("delivery service down")


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, notifier):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(member_id: int) -> dict:
    token = create_access_token({"user_id": member_id})
    return {"Authorization": f"Bearer {token}"}


def splits(**amounts) -> list:
    """splits(alice="15.00", bob="15.00") -> SplitInput list keyed by member constants."""
    ids = {"alice": ALICE, "bob": BOB, "carol": CAROL}
    return [SplitInput(member_id=ids[name], amount=Decimal(amount)) for name, amount in amounts.items()]


@pytest.fixture
def group(db):
    """Group with Alice (admin), Bob and Carol."""
    group = group_service.create_group(db, "Trip", ALICE, "Alice", currency="USD")
    group_service.add_member(db, group.id, BOB, "Bob")
    group_service.add_member(db, group.id, CAROL, "Carol")
    return group


@pytest.fixture
def dinner(db, group):
    """Alice paid 30.00, split evenly with Bob."""
    return ledger_store.create_expense_with_splits(
        db, group.id, "Dinner", Decimal("30.00"), ALICE, splits(alice="15.00", bob="15.00")
    )
