"""
Bill model - a shared expense and the people who owe on it.

Design principles:
- Participants are embedded in their bill (no cross-bill sharing of records)
- Values are frozen; every status change produces a new object
- All amounts in integer paise
- Deletion is soft: status flips to DELETED, the document stays
"""

from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

from vasooly.models.base import _utcnow, new_id


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class BillStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"
    DELETED = "DELETED"


class ExpenseCategory(str, Enum):
    FOOD = "FOOD"
    TRAVEL = "TRAVEL"
    SHOPPING = "SHOPPING"
    ENTERTAINMENT = "ENTERTAINMENT"
    OTHER = "OTHER"


class Participant(BaseModel):
    """
    Someone who owes amount_paise on exactly one bill.

    Names may recur across bills; matching by name is a case-insensitive
    string comparison, never identity.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    amount_paise: int
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None

    def matches_name(self, name: str) -> bool:
        return self.name.strip().lower() == name.strip().lower()


class Bill(BaseModel):
    """
    A shared bill.

    Invariants:
    - total_amount_paise >= 0
    - total_amount_paise == sum(p.amount_paise) at creation (split allocator's job)
    - DELETED is sticky
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_id, validation_alias="_id", serialization_alias="_id")
    title: str
    total_amount_paise: int = Field(ge=0)
    status: BillStatus = BillStatus.ACTIVE
    participants: List[Participant] = []
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    deleted_at: Optional[datetime] = None
