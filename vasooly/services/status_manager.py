"""
Payment status management for bill splits.

Pure functions over frozen Bill/Participant values:
- participant status updates (PENDING <-> PAID) returning new values
- transition validation (advisory, result object instead of exceptions)
- settlement summaries and remainders
- bill status resolution (ACTIVE / SETTLED, DELETED is sticky)
"""

from typing import Iterable, List, Optional

from vasooly.models.bill import Bill, BillStatus, Participant, PaymentStatus
from vasooly.schemas.settlement import (
    PaymentStatusUpdate,
    RemainderCalculation,
    SettlementSummary,
    StatusTransitionResult,
)
from vasooly.utils.money import paise_to_rupees
from vasooly.utils.payment_validation import PaymentValidationError


def _coerce_status(value) -> Optional[PaymentStatus]:
    try:
        return PaymentStatus(value)
    except (ValueError, TypeError):
        return None


def _require_participants(bill: Optional[Bill]) -> List[Participant]:
    if bill is None:
        raise PaymentValidationError("Bill is required")
    if not bill.participants:
        raise PaymentValidationError("Bill must have at least one participant")
    return bill.participants


def update_payment_status(participant: Optional[Participant], new_status) -> Participant:
    """Return a copy of participant with only its status replaced."""
    if participant is None:
        raise PaymentValidationError("Participant is required")

    if not participant.id:
        raise PaymentValidationError("Participant ID is required")

    status = _coerce_status(new_status)
    if status is None:
        raise PaymentValidationError(f"Invalid payment status: {new_status}")

    return participant.model_copy(update={"status": status})


def validate_status_transition(current_status, new_status) -> StatusTransitionResult:
    """
    Check a proposed status change.

    Both directions are allowed (PAID -> PENDING undoes a mis-click) and so is
    the identity transition. Only values outside PaymentStatus are rejected.
    """
    current = _coerce_status(current_status)
    if current is None:
        return StatusTransitionResult(
            is_valid=False,
            error=f"Invalid current status: {current_status}"
        )

    new = _coerce_status(new_status)
    if new is None:
        return StatusTransitionResult(
            is_valid=False,
            error=f"Invalid new status: {new_status}"
        )

    return StatusTransitionResult(is_valid=True, new_status=new)


def compute_settlement_summary(bill: Optional[Bill]) -> SettlementSummary:
    """
    Aggregate payment state for a bill.

    pending_amount_paise is total minus paid, not a sum over PENDING
    participants, so a drift between the bill total and the participant
    amounts shows up as pending money instead of vanishing.
    """
    participants = _require_participants(bill)

    total_amount_paise = bill.total_amount_paise
    total_count = len(participants)

    paid_amount_paise = 0
    paid_count = 0
    for participant in participants:
        if participant.status == PaymentStatus.PAID:
            paid_amount_paise += participant.amount_paise
            paid_count += 1
    pending_count = total_count - paid_count

    pending_amount_paise = total_amount_paise - paid_amount_paise

    if total_amount_paise > 0:
        paid_percentage = paid_amount_paise / total_amount_paise * 100
    else:
        paid_percentage = 0.0
    pending_percentage = 100 - paid_percentage

    is_fully_settled = paid_count == total_count and pending_amount_paise == 0
    is_partially_settled = paid_count > 0 and not is_fully_settled

    return SettlementSummary(
        total_amount_paise=total_amount_paise,
        paid_amount_paise=paid_amount_paise,
        pending_amount_paise=pending_amount_paise,
        paid_percentage=paid_percentage,
        pending_percentage=pending_percentage,
        paid_count=paid_count,
        pending_count=pending_count,
        total_count=total_count,
        is_fully_settled=is_fully_settled,
        is_partially_settled=is_partially_settled
    )


def calculate_remainder(bill: Optional[Bill]) -> RemainderCalculation:
    """What is still owed, and by whom. Used for reminders and follow-up links."""
    participants = _require_participants(bill)

    pending = [p for p in participants if p.status == PaymentStatus.PENDING]
    remaining_amount_paise = sum(p.amount_paise for p in pending)

    return RemainderCalculation(
        remaining_amount_paise=remaining_amount_paise,
        remaining_amount_rupees=paise_to_rupees(remaining_amount_paise),
        pending_participants=pending,
        pending_count=len(pending)
    )


def determine_bill_status(bill: Optional[Bill]) -> BillStatus:
    if bill is None:
        raise PaymentValidationError("Bill is required")

    # Deletion is never undone by payment activity.
    if bill.status == BillStatus.DELETED:
        return BillStatus.DELETED

    summary = compute_settlement_summary(bill)
    return BillStatus.SETTLED if summary.is_fully_settled else BillStatus.ACTIVE


def update_bill_payment_statuses(
    bill: Optional[Bill],
    updates: Iterable[PaymentStatusUpdate]
) -> Bill:
    """
    Apply a batch of participant status changes and recompute bill status.

    Unknown participant ids are ignored. An empty batch returns the bill
    object itself.
    """
    if bill is None:
        raise PaymentValidationError("Bill is required")

    updates = list(updates or [])
    if not updates:
        return bill

    update_map = {u.participant_id: u.status for u in updates}

    participants = [
        update_payment_status(p, update_map[p.id]) if p.id in update_map else p
        for p in bill.participants
    ]
    updated_bill = bill.model_copy(update={"participants": participants})

    return updated_bill.model_copy(update={"status": determine_bill_status(updated_bill)})


def has_pending_payments(bill: Optional[Bill]) -> bool:
    if bill is None or not bill.participants:
        return False
    return any(p.status == PaymentStatus.PENDING for p in bill.participants)


def is_fully_paid(bill: Optional[Bill]) -> bool:
    if bill is None or not bill.participants:
        return False
    return all(p.status == PaymentStatus.PAID for p in bill.participants)
