from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from vasooly.main import app
from vasooly.db.mongo import get_db
from vasooly.models.bill import Bill, BillStatus, Participant, PaymentStatus


@pytest.fixture
def mock_db():
    """MagicMock standing in for a motor database with a `bills` collection."""
    db = MagicMock()
    db.bills.insert_one = AsyncMock(return_value=MagicMock(inserted_id="bill-1"))
    db.bills.find_one = AsyncMock(return_value=None)
    db.bills.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    db.bills.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    return db


@pytest.fixture
def test_client(mock_db):
    """FastAPI test client wired to the mocked database (no lifespan, no Mongo)."""
    app.dependency_overrides[get_db] = lambda: mock_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_participant(pid, name, amount_paise, status=PaymentStatus.PENDING, **kwargs):
    return Participant(id=pid, name=name, amount_paise=amount_paise, status=status, **kwargs)


@pytest.fixture
def two_person_bill():
    """Rs 100 dinner split evenly between Alice and Bob, nobody paid yet."""
    return Bill(
        id="bill-1",
        title="Dinner",
        total_amount_paise=10000,
        status=BillStatus.ACTIVE,
        participants=[
            make_participant("p1", "Alice", 5000),
            make_participant("p2", "Bob", 5000),
        ],
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def bill_document(two_person_bill):
    """The two-person bill as stored in MongoDB."""
    return two_person_bill.model_dump(by_alias=True)
