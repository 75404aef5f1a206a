import logging
from typing import List, Optional

from vasooly.models.bill import Bill, PaymentStatus
from vasooly.repositories.bill_repo import BillRepository
from vasooly.schemas.settlement import (
    PaymentStatusUpdate,
    RemainderCalculation,
    SettlementSummary,
)
from vasooly.schemas.upi import ParticipantPaymentLink, PaymentLinksResponse, UPIPaymentParams
from vasooly.services import status_manager
from vasooly.services.upi_generator import generate_transaction_ref, generate_upi_link
from vasooly.utils.money import paise_to_rupees
from vasooly.utils.payment_validation import PaymentValidationError

logger = logging.getLogger(__name__)


class BillNotFoundError(LookupError):
    pass


class SettlementService:
    """Ties the bill repository to the settlement engine and link generator."""

    def __init__(self, repo: BillRepository):
        self.repo = repo

    async def _get_bill(self, bill_id: str) -> Bill:
        bill = await self.repo.get_bill_by_id(bill_id)
        if bill is None:
            raise BillNotFoundError(f"Bill {bill_id} not found")
        return bill

    async def get_settlement_summary(self, bill_id: str) -> SettlementSummary:
        return status_manager.compute_settlement_summary(await self._get_bill(bill_id))

    async def get_remainder(self, bill_id: str) -> RemainderCalculation:
        return status_manager.calculate_remainder(await self._get_bill(bill_id))

    async def _resolve_bill_status(self, bill_id: str) -> Bill:
        # Re-read after the participant writes so concurrent marks on the
        # same bill all see each other before the status is resolved.
        fresh = await self._get_bill(bill_id)
        resolved = status_manager.determine_bill_status(fresh)
        if resolved != fresh.status:
            await self.repo.update_bill_status(fresh.id, resolved)
            logger.info("Bill %s moved %s -> %s", fresh.id, fresh.status.value, resolved.value)
        return fresh.model_copy(update={"status": resolved})

    async def mark_participant_status(
        self,
        bill_id: str,
        participant_id: str,
        status: PaymentStatus
    ) -> Bill:
        """
        Record a manual payment status change for one participant.

        The transition is validated before anything is written. The bill
        status is resolved from the stored bill after the write and is
        written only when it changes.
        """
        bill = await self._get_bill(bill_id)

        participant = next((p for p in bill.participants if p.id == participant_id), None)
        if participant is None:
            raise BillNotFoundError(f"Participant {participant_id} not found on bill {bill_id}")

        transition = status_manager.validate_status_transition(participant.status, status)
        if not transition.is_valid:
            raise PaymentValidationError(transition.error)

        await self.repo.update_participant_status(participant_id, transition.new_status)
        return await self._resolve_bill_status(bill_id)

    async def apply_status_updates(self, bill_id: str, updates: List[PaymentStatusUpdate]) -> Bill:
        """Apply a batch of status changes; ids not on the bill are skipped."""
        bill = await self._get_bill(bill_id)
        if not updates:
            return bill

        known = {p.id: p.status for p in bill.participants}
        for update in updates:
            if update.participant_id not in known:
                logger.debug("Skipping unknown participant %s on bill %s", update.participant_id, bill_id)
                continue
            transition = status_manager.validate_status_transition(known[update.participant_id], update.status)
            if not transition.is_valid:
                raise PaymentValidationError(transition.error)

        for update in updates:
            if update.participant_id in known:
                await self.repo.update_participant_status(update.participant_id, update.status)

        return await self._resolve_bill_status(bill_id)

    async def delete_bill(self, bill_id: str) -> None:
        await self._get_bill(bill_id)
        await self.repo.delete_bill(bill_id)
        logger.info("Bill %s deleted", bill_id)

    async def generate_payment_links(
        self,
        bill_id: str,
        vpa: str,
        payee_name: str,
        note: Optional[str] = None
    ) -> PaymentLinksResponse:
        """One UPI link per participant that has not paid yet."""
        bill = await self._get_bill(bill_id)

        remainder = status_manager.calculate_remainder(bill)
        links = []
        for participant in remainder.pending_participants:
            if participant.amount_paise <= 0:
                continue
            params = UPIPaymentParams(
                pa=vpa,
                pn=payee_name,
                am=paise_to_rupees(participant.amount_paise),
                tn=note or f"{bill.title} - {participant.name}",
                tr=generate_transaction_ref(bill.id),
            )
            links.append(ParticipantPaymentLink(
                participant_id=participant.id,
                participant_name=participant.name,
                amount_paise=participant.amount_paise,
                link=generate_upi_link(params, bill_id=bill.id)
            ))

        logger.info("Generated %d payment links for bill %s", len(links), bill_id)
        return PaymentLinksResponse(bill_id=bill.id, links=links)
