from typing import Optional

from fastapi import APIRouter, HTTPException, Response, status

from vasooly.schemas.upi import (
    QRCapacityRequest,
    QRCapacityResponse,
    QRCodeRequest,
    QRCodeResult,
    UPILinkResult,
    UPIPaymentParams,
    VPAValidationRequest,
    VPAValidationResult,
)
from vasooly.services.qr_code_generator import (
    generate_qr_code,
    is_qr_code_data_valid,
    qr_capacity,
    render_qr_png,
)
from vasooly.services.upi_generator import generate_upi_link
from vasooly.utils.payment_validation import PaymentValidationError, validate_vpa

router = APIRouter(prefix="/upi", tags=["upi"])


@router.post("/validate-vpa", response_model=VPAValidationResult)
async def validate_vpa_endpoint(payload: VPAValidationRequest):
    """Full list of VPA problems for form feedback; never an error status."""
    return validate_vpa(payload.vpa)


@router.post("/links", response_model=UPILinkResult)
async def create_upi_link(params: UPIPaymentParams, bill_id: Optional[str] = None):
    try:
        return generate_upi_link(params, bill_id=bill_id)
    except PaymentValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )


@router.post("/qr", response_model=QRCodeResult)
async def create_qr_code(payload: QRCodeRequest):
    try:
        return generate_qr_code(payload.params, payload.options, bill_id=payload.bill_id)
    except PaymentValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )


@router.post("/qr.png")
async def create_qr_png(payload: QRCodeRequest):
    """Rendered QR image; the transaction ref travels in a header."""
    try:
        result = generate_qr_code(payload.params, payload.options, bill_id=payload.bill_id)
    except PaymentValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )
    if not is_qr_code_data_valid(result.data, result.options.error_correction_level):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment data too long for a QR code"
        )
    return Response(
        content=render_qr_png(result),
        media_type="image/png",
        headers={"X-Transaction-Ref": result.transaction_ref}
    )


@router.post("/qr/validate", response_model=QRCapacityResponse)
async def validate_qr_capacity(payload: QRCapacityRequest):
    return QRCapacityResponse(
        is_valid=is_qr_code_data_valid(payload.data, payload.error_correction_level),
        length=len(payload.data),
        capacity=qr_capacity(payload.error_correction_level)
    )
