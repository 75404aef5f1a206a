import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from vasooly.api.deps import get_bill_repo, get_settlement_service
from vasooly.models.base import new_id
from vasooly.models.bill import Bill, Participant
from vasooly.repositories.bill_repo import BillConflictError, BillRepository
from vasooly.schemas.bill import BillCreate, BillDuplicateRequest, BillResponse, BillStatistics
from vasooly.schemas.settlement import (
    BatchStatusUpdateRequest,
    RemainderCalculation,
    SettlementSummary,
    StatusUpdateRequest,
)
from vasooly.schemas.upi import PaymentLinkRequest, PaymentLinksResponse
from vasooly.services.settlement_service import BillNotFoundError, SettlementService
from vasooly.services.status_manager import determine_bill_status
from vasooly.utils.payment_validation import PaymentValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bills", tags=["bills"])


def _to_bill_response(bill: Bill) -> BillResponse:
    return BillResponse.model_validate(bill)


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _bad_request(exc: Exception) -> HTTPException:
    logger.info("Rejected request: %s", exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _conflict(exc: Exception) -> HTTPException:
    logger.info("Rejected conflicting write: %s", exc)
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    payload: BillCreate,
    repo: BillRepository = Depends(get_bill_repo)
):
    """Store a bill produced by the split allocator."""
    bill = Bill(
        id=payload.id or new_id(),
        title=payload.title,
        total_amount_paise=payload.total_amount_paise,
        category=payload.category,
        description=payload.description,
        participants=[
            Participant(
                id=p.id or new_id(),
                name=p.name,
                phone=p.phone,
                amount_paise=p.amount_paise,
                status=p.status
            )
            for p in payload.participants
        ]
    )
    bill = bill.model_copy(update={"status": determine_bill_status(bill)})
    try:
        bill = await repo.create_bill(bill)
    except BillConflictError as exc:
        raise _conflict(exc)
    return _to_bill_response(bill)


@router.get("", response_model=List[BillResponse])
async def list_bills(
    q: Optional[str] = None,
    repo: BillRepository = Depends(get_bill_repo)
):
    """List non-deleted bills, newest first; `q` filters by title."""
    bills = await repo.search_bills(q) if q else await repo.get_all_bills()
    return [_to_bill_response(bill) for bill in bills]


@router.get("/statistics", response_model=BillStatistics)
async def bill_statistics(repo: BillRepository = Depends(get_bill_repo)):
    return await repo.get_bill_statistics()


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(bill_id: str, repo: BillRepository = Depends(get_bill_repo)):
    bill = await repo.get_bill_by_id(bill_id)
    if not bill:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bill not found"
        )
    return _to_bill_response(bill)


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bill(
    bill_id: str,
    service: SettlementService = Depends(get_settlement_service)
):
    """Soft delete a bill."""
    try:
        await service.delete_bill(bill_id)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{bill_id}/duplicate", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_bill(
    bill_id: str,
    payload: BillDuplicateRequest,
    repo: BillRepository = Depends(get_bill_repo)
):
    if not await repo.get_bill_by_id(bill_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bill not found"
        )
    try:
        bill = await repo.duplicate_bill(bill_id, payload.new_bill_id, payload.new_participant_ids)
    except BillConflictError as exc:
        raise _conflict(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)
    return _to_bill_response(bill)


@router.get("/{bill_id}/settlement", response_model=SettlementSummary)
async def get_settlement_summary(
    bill_id: str,
    service: SettlementService = Depends(get_settlement_service)
):
    try:
        return await service.get_settlement_summary(bill_id)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)


@router.get("/{bill_id}/remainder", response_model=RemainderCalculation)
async def get_remainder(
    bill_id: str,
    service: SettlementService = Depends(get_settlement_service)
):
    try:
        return await service.get_remainder(bill_id)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)


@router.patch("/{bill_id}/participants/{participant_id}/status", response_model=BillResponse)
async def update_participant_status(
    bill_id: str,
    participant_id: str,
    payload: StatusUpdateRequest,
    service: SettlementService = Depends(get_settlement_service)
):
    """Mark one participant paid or pending (manual, by the bill owner)."""
    try:
        bill = await service.mark_participant_status(bill_id, participant_id, payload.status)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)
    return _to_bill_response(bill)


@router.post("/{bill_id}/statuses", response_model=BillResponse)
async def update_participant_statuses(
    bill_id: str,
    payload: BatchStatusUpdateRequest,
    service: SettlementService = Depends(get_settlement_service)
):
    try:
        bill = await service.apply_status_updates(bill_id, payload.updates)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)
    return _to_bill_response(bill)


@router.post("/{bill_id}/payment-links", response_model=PaymentLinksResponse)
async def create_payment_links(
    bill_id: str,
    payload: PaymentLinkRequest,
    service: SettlementService = Depends(get_settlement_service)
):
    """UPI links for every participant who has not paid yet."""
    try:
        return await service.generate_payment_links(bill_id, payload.vpa, payload.payee_name, payload.note)
    except BillNotFoundError as exc:
        raise _not_found(exc)
    except PaymentValidationError as exc:
        raise _bad_request(exc)
