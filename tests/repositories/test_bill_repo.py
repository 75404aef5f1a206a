"""Tests for BillRepository against a mocked motor collection."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import DuplicateKeyError

from vasooly.db.mongo import create_indexes, mongodb
from vasooly.models.bill import BillStatus, PaymentStatus
from vasooly.repositories.bill_repo import BillConflictError, BillRepository
from vasooly.utils.payment_validation import PaymentValidationError


def _cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.mark.asyncio
async def test_create_bill_inserts_document(mock_db, two_person_bill):
    repo = BillRepository(mock_db)

    bill = await repo.create_bill(two_person_bill)

    assert bill is two_person_bill
    doc = mock_db.bills.insert_one.call_args[0][0]
    assert doc["_id"] == "bill-1"
    assert doc["total_amount_paise"] == 10000
    assert [p["id"] for p in doc["participants"]] == ["p1", "p2"]


@pytest.mark.asyncio
async def test_get_bill_by_id_excludes_deleted(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    bill = await repo.get_bill_by_id("bill-1")

    assert bill.id == "bill-1"
    assert bill.participants[1].name == "Bob"
    query = mock_db.bills.find_one.call_args[0][0]
    assert query == {"_id": "bill-1", "status": {"$ne": "DELETED"}}


@pytest.mark.asyncio
async def test_get_bill_by_id_missing(mock_db):
    repo = BillRepository(mock_db)
    assert await repo.get_bill_by_id("nope") is None


@pytest.mark.asyncio
async def test_get_all_bills_newest_first(mock_db, bill_document):
    cursor = _cursor([bill_document])
    mock_db.bills.find.return_value = cursor
    repo = BillRepository(mock_db)

    bills = await repo.get_all_bills()

    assert [b.id for b in bills] == ["bill-1"]
    cursor.sort.assert_called_once_with("created_at", -1)


@pytest.mark.asyncio
async def test_search_bills_escapes_query(mock_db):
    mock_db.bills.find.return_value = _cursor([])
    repo = BillRepository(mock_db)

    await repo.search_bills("a+b")

    query = mock_db.bills.find.call_args[0][0]
    assert query["title"] == {"$regex": r"a\+b", "$options": "i"}
    assert query["status"] == {"$ne": "DELETED"}


@pytest.mark.asyncio
async def test_update_participant_status_stamps_paid_at(mock_db):
    repo = BillRepository(mock_db)

    assert await repo.update_participant_status("p1", PaymentStatus.PAID) is True

    query, update = mock_db.bills.update_one.call_args[0]
    assert query == {"participants.id": "p1"}
    assert update["$set"]["participants.$.status"] == "PAID"
    assert update["$set"]["participants.$.paid_at"] is not None


@pytest.mark.asyncio
async def test_update_participant_status_clears_paid_at(mock_db):
    repo = BillRepository(mock_db)

    await repo.update_participant_status("p1", PaymentStatus.PENDING)

    update = mock_db.bills.update_one.call_args[0][1]
    assert update["$set"]["participants.$.status"] == "PENDING"
    assert update["$set"]["participants.$.paid_at"] is None


@pytest.mark.asyncio
async def test_update_bill_status(mock_db):
    repo = BillRepository(mock_db)

    await repo.update_bill_status("bill-1", BillStatus.SETTLED)

    query, update = mock_db.bills.update_one.call_args[0]
    assert query == {"_id": "bill-1"}
    assert update["$set"]["status"] == "SETTLED"


@pytest.mark.asyncio
async def test_delete_bill_is_soft(mock_db):
    repo = BillRepository(mock_db)

    assert await repo.delete_bill("bill-1") is True

    update = mock_db.bills.update_one.call_args[0][1]
    assert update["$set"]["status"] == "DELETED"
    assert update["$set"]["deleted_at"] is not None
    mock_db.bills.delete_one.assert_not_called()


@pytest.mark.asyncio
async def test_hard_delete_bill(mock_db):
    repo = BillRepository(mock_db)
    assert await repo.hard_delete_bill("bill-1") is True
    mock_db.bills.delete_one.assert_called_once_with({"_id": "bill-1"})


@pytest.mark.asyncio
async def test_get_participants_by_bill_id(mock_db, bill_document):
    mock_db.bills.find_one.return_value = {"_id": "bill-1", "participants": bill_document["participants"]}
    repo = BillRepository(mock_db)

    participants = await repo.get_participants_by_bill_id("bill-1")

    assert [p.id for p in participants] == ["p1", "p2"]


@pytest.mark.asyncio
async def test_get_bill_statistics(mock_db):
    mock_db.bills.aggregate.side_effect = [
        _cursor([{"total": 3, "active": 2, "settled": 1, "total_amount_paise": 30000}]),
        _cursor([{"pending": 12500}]),
    ]
    repo = BillRepository(mock_db)

    stats = await repo.get_bill_statistics()

    assert stats.total == 3
    assert stats.active == 2
    assert stats.settled == 1
    assert stats.total_amount_paise == 30000
    assert stats.pending_amount_paise == 12500


@pytest.mark.asyncio
async def test_get_bill_statistics_empty(mock_db):
    mock_db.bills.aggregate.side_effect = [_cursor([]), _cursor([])]
    repo = BillRepository(mock_db)

    stats = await repo.get_bill_statistics()

    assert stats.total == 0
    assert stats.pending_amount_paise == 0


@pytest.mark.asyncio
async def test_duplicate_bill_resets_status(mock_db, bill_document):
    bill_document["status"] = "SETTLED"
    for p in bill_document["participants"]:
        p["status"] = "PAID"
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    copy = await repo.duplicate_bill("bill-1", "bill-2", ["n1", "n2"])

    assert copy.id == "bill-2"
    assert copy.status == BillStatus.ACTIVE
    assert [p.id for p in copy.participants] == ["n1", "n2"]
    assert all(p.status == PaymentStatus.PENDING for p in copy.participants)
    assert copy.total_amount_paise == 10000
    mock_db.bills.insert_one.assert_called_once()


@pytest.mark.asyncio
async def test_duplicate_bill_generates_ids(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    copy = await repo.duplicate_bill("bill-1")

    assert copy.id != "bill-1"
    assert {p.id for p in copy.participants}.isdisjoint({"p1", "p2"})


@pytest.mark.asyncio
async def test_duplicate_missing_bill_raises(mock_db):
    repo = BillRepository(mock_db)
    with pytest.raises(PaymentValidationError, match="Bill missing not found"):
        await repo.duplicate_bill("missing", "bill-2", [])


@pytest.mark.asyncio
async def test_duplicate_bill_id_count_mismatch(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)
    with pytest.raises(PaymentValidationError, match="same number of new participant IDs"):
        await repo.duplicate_bill("bill-1", "bill-2", ["only-one"])


@pytest.mark.asyncio
async def test_duplicate_bill_rejects_source_participant_ids(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    with pytest.raises(PaymentValidationError, match="already used by bill bill-1: p1, p2"):
        await repo.duplicate_bill("bill-1", "bill-2", ["p1", "p2"])
    mock_db.bills.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_bill_rejects_repeated_participant_ids(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    with pytest.raises(PaymentValidationError, match="must be unique"):
        await repo.duplicate_bill("bill-1", "bill-2", ["n1", "n1"])


@pytest.mark.asyncio
async def test_duplicate_bill_rejects_source_bill_id(mock_db, bill_document):
    mock_db.bills.find_one.return_value = bill_document
    repo = BillRepository(mock_db)

    with pytest.raises(PaymentValidationError, match="must differ"):
        await repo.duplicate_bill("bill-1", "bill-1", ["n1", "n2"])


@pytest.mark.asyncio
async def test_create_bill_rejects_repeated_participant_ids(mock_db, two_person_bill):
    clash = two_person_bill.model_copy(update={
        "participants": [two_person_bill.participants[0], two_person_bill.participants[0]]
    })
    repo = BillRepository(mock_db)

    with pytest.raises(BillConflictError, match="unique within a bill"):
        await repo.create_bill(clash)
    mock_db.bills.insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_create_bill_duplicate_key_is_conflict(mock_db, two_person_bill):
    mock_db.bills.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
    repo = BillRepository(mock_db)

    with pytest.raises(BillConflictError, match="Bill bill-1"):
        await repo.create_bill(two_person_bill)


@pytest.mark.asyncio
async def test_participant_id_index_is_unique():
    db = MagicMock()
    db["bills"].create_index = AsyncMock()

    with patch.object(mongodb, "db", db):
        await create_indexes()

    db["bills"].create_index.assert_any_call("participants.id", unique=True)
