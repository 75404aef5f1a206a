"""
BillRepository - persistence for bills and their embedded participants.

Every method is a single MongoDB operation, so each call is atomic on its own
and safe to retry. Nothing here batches writes across calls.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from vasooly.models.base import new_id
from vasooly.models.bill import Bill, BillStatus, Participant, PaymentStatus
from vasooly.schemas.bill import BillStatistics
from vasooly.utils.payment_validation import PaymentValidationError

logger = logging.getLogger(__name__)

_NOT_DELETED = {"$ne": BillStatus.DELETED.value}


class BillConflictError(ValueError):
    """A bill or participant id collides with one already in use."""


def _to_document(bill: Bill) -> Dict[str, Any]:
    return bill.model_dump(by_alias=True, mode="python")


def _from_document(doc: Dict[str, Any]) -> Bill:
    doc["_id"] = str(doc["_id"])
    return Bill(**doc)


class BillRepository:
    """Repository for bills."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.bills

    async def create_bill(self, bill: Bill) -> Bill:
        """
        Insert a bill together with its participants.

        Raises BillConflictError if a participant id repeats within the bill,
        or if the bill id or a participant id is already stored.
        """
        participant_ids = [p.id for p in bill.participants]
        if len(set(participant_ids)) != len(participant_ids):
            raise BillConflictError("Participant ids must be unique within a bill")

        try:
            await self.collection.insert_one(_to_document(bill))
        except DuplicateKeyError:
            raise BillConflictError(f"Bill {bill.id} or one of its participant ids already exists")
        logger.info("Created bill %s with %d participants", bill.id, len(bill.participants))
        return bill

    async def get_bill_by_id(self, bill_id: str) -> Optional[Bill]:
        """Get a bill by id. Deleted bills are not returned."""
        doc = await self.collection.find_one({"_id": bill_id, "status": _NOT_DELETED})
        if doc:
            return _from_document(doc)
        return None

    async def get_all_bills(self) -> List[Bill]:
        """All non-deleted bills, newest first."""
        docs = await self.collection.find({"status": _NOT_DELETED}).sort("created_at", -1).to_list(None)
        return [_from_document(doc) for doc in docs]

    async def search_bills(self, query: str) -> List[Bill]:
        """Case-insensitive title substring search over non-deleted bills."""
        docs = await self.collection.find({
            "status": _NOT_DELETED,
            "title": {"$regex": re.escape(query), "$options": "i"}
        }).sort("created_at", -1).to_list(None)
        return [_from_document(doc) for doc in docs]

    async def get_participants_by_bill_id(self, bill_id: str) -> List[Participant]:
        doc = await self.collection.find_one({"_id": bill_id}, {"participants": 1})
        if not doc:
            return []
        return [Participant(**p) for p in doc.get("participants", [])]

    async def update_bill_status(self, bill_id: str, status: BillStatus) -> bool:
        result = await self.collection.update_one(
            {"_id": bill_id},
            {"$set": {
                "status": BillStatus(status).value,
                "updated_at": datetime.now(timezone.utc)
            }}
        )
        return result.modified_count > 0

    async def update_participant_status(self, participant_id: str, status: PaymentStatus) -> bool:
        """Set one participant's status; paid_at is stamped on PAID and cleared otherwise."""
        status = PaymentStatus(status)
        now = datetime.now(timezone.utc)
        result = await self.collection.update_one(
            {"participants.id": participant_id},
            {"$set": {
                "participants.$.status": status.value,
                "participants.$.paid_at": now if status == PaymentStatus.PAID else None,
                "updated_at": now
            }}
        )
        return result.modified_count > 0

    async def delete_bill(self, bill_id: str) -> bool:
        """Soft delete: mark DELETED, keep the document."""
        now = datetime.now(timezone.utc)
        result = await self.collection.update_one(
            {"_id": bill_id},
            {"$set": {
                "status": BillStatus.DELETED.value,
                "deleted_at": now,
                "updated_at": now
            }}
        )
        return result.modified_count > 0

    async def hard_delete_bill(self, bill_id: str) -> bool:
        """Remove a bill and its participants for good."""
        result = await self.collection.delete_one({"_id": bill_id})
        if result.deleted_count:
            logger.warning("Hard deleted bill %s", bill_id)
        return result.deleted_count > 0

    async def get_bill_statistics(self) -> BillStatistics:
        """Counts by status plus total and pending amounts over non-deleted bills."""
        counts = await self.collection.aggregate([
            {"$match": {"status": _NOT_DELETED}},
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": 1},
                    "active": {"$sum": {"$cond": [{"$eq": ["$status", BillStatus.ACTIVE.value]}, 1, 0]}},
                    "settled": {"$sum": {"$cond": [{"$eq": ["$status", BillStatus.SETTLED.value]}, 1, 0]}},
                    "total_amount_paise": {"$sum": "$total_amount_paise"}
                }
            }
        ]).to_list(None)

        pending = await self.collection.aggregate([
            {"$match": {"status": _NOT_DELETED}},
            {"$unwind": "$participants"},
            {"$match": {"participants.status": PaymentStatus.PENDING.value}},
            {"$group": {"_id": None, "pending": {"$sum": "$participants.amount_paise"}}}
        ]).to_list(None)

        row = counts[0] if counts else {}
        return BillStatistics(
            total=row.get("total", 0),
            active=row.get("active", 0),
            settled=row.get("settled", 0),
            total_amount_paise=row.get("total_amount_paise", 0),
            pending_amount_paise=pending[0]["pending"] if pending else 0
        )

    async def duplicate_bill(
        self,
        source_bill_id: str,
        new_bill_id: Optional[str] = None,
        new_participant_ids: Optional[List[str]] = None
    ) -> Bill:
        """
        Copy a bill under new ids with every participant reset to PENDING.

        Raises PaymentValidationError if the source bill does not exist, or the
        new participant ids do not match the source one for one, repeat, or
        reuse the source's ids. Collisions with other stored bills surface as
        BillConflictError from create_bill.
        """
        source = await self.get_bill_by_id(source_bill_id)
        if source is None:
            raise PaymentValidationError(f"Bill {source_bill_id} not found")

        if new_participant_ids is None:
            new_participant_ids = [new_id() for _ in source.participants]
        if len(new_participant_ids) != len(source.participants):
            raise PaymentValidationError("Must provide same number of new participant IDs")
        if len(set(new_participant_ids)) != len(new_participant_ids):
            raise PaymentValidationError("New participant IDs must be unique")
        reused = set(new_participant_ids) & {p.id for p in source.participants}
        if reused:
            raise PaymentValidationError(
                f"New participant IDs already used by bill {source_bill_id}: {', '.join(sorted(reused))}"
            )
        if new_bill_id == source.id:
            raise PaymentValidationError("New bill ID must differ from the source bill")

        now = datetime.now(timezone.utc)
        new_bill = source.model_copy(update={
            "id": new_bill_id or new_id(),
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
            "status": BillStatus.ACTIVE,
            "participants": [
                p.model_copy(update={"id": pid, "status": PaymentStatus.PENDING, "paid_at": None})
                for p, pid in zip(source.participants, new_participant_ids)
            ]
        })

        return await self.create_bill(new_bill)
