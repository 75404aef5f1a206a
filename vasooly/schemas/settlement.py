from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel

from vasooly.models.bill import Participant, PaymentStatus


class PaymentStatusUpdate(BaseModel):
    """One participant status change in a batch."""
    participant_id: str
    status: PaymentStatus


class StatusUpdateRequest(BaseModel):
    status: PaymentStatus


class BatchStatusUpdateRequest(BaseModel):
    updates: List[PaymentStatusUpdate]


class StatusTransitionResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    new_status: Optional[PaymentStatus] = None


class SettlementSummary(BaseModel):
    """Derived from a bill snapshot on demand; never stored."""
    total_amount_paise: int
    paid_amount_paise: int
    pending_amount_paise: int
    paid_percentage: float
    pending_percentage: float
    paid_count: int
    pending_count: int
    total_count: int
    is_fully_settled: bool
    is_partially_settled: bool


class RemainderCalculation(BaseModel):
    remaining_amount_paise: int
    remaining_amount_rupees: Decimal
    pending_participants: List[Participant]
    pending_count: int
