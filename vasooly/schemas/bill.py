from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from vasooly.models.bill import BillStatus, ExpenseCategory, PaymentStatus


class ParticipantCreate(BaseModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    amount_paise: int = Field(ge=0)
    status: PaymentStatus = PaymentStatus.PENDING


class BillCreate(BaseModel):
    """Bill as produced by the split allocator (amounts already in paise)."""
    id: Optional[str] = None
    title: str = Field(min_length=1)
    total_amount_paise: int = Field(ge=0)
    participants: List[ParticipantCreate] = Field(min_length=1)
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = None

    @field_validator("participants")
    @classmethod
    def participant_ids_unique(cls, participants: List[ParticipantCreate]) -> List[ParticipantCreate]:
        ids = [p.id for p in participants if p.id]
        if len(set(ids)) != len(ids):
            raise ValueError("Participant ids must be unique within a bill")
        return participants


class BillDuplicateRequest(BaseModel):
    new_bill_id: Optional[str] = None
    new_participant_ids: Optional[List[str]] = None


class BillStatusResponse(BaseModel):
    bill_id: str
    status: BillStatus


class BillStatistics(BaseModel):
    total: int = 0
    active: int = 0
    settled: int = 0
    total_amount_paise: int = 0
    pending_amount_paise: int = 0


class ParticipantResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    amount_paise: int
    status: PaymentStatus
    paid_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BillResponse(BaseModel):
    id: str
    title: str
    total_amount_paise: int
    status: BillStatus
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = None
    participants: List[ParticipantResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
