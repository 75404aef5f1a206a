"""
UPI QR codes.

Produces the QR payload (with display options) for a payment request, checks
that a payload fits a QR code before anything is rendered, and renders PNGs
with the qrcode library.
"""

import io
from typing import Dict, Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

from vasooly.core.config import settings
from vasooly.schemas.upi import ErrorCorrectionLevel, QRCodeOptions, QRCodeResult, UPIPaymentParams
from vasooly.services.upi_generator import generate_upi_link
from vasooly.utils.payment_validation import PaymentValidationError

MIN_QR_SIZE = 100
MAX_QR_SIZE = 1000

ERROR_CORRECTION_LEVELS: Dict[str, Dict[str, str]] = {
    "L": {"name": "Low", "recovery": "~7%"},
    "M": {"name": "Medium", "recovery": "~15%"},
    "Q": {"name": "Quartile", "recovery": "~25%"},
    "H": {"name": "High", "recovery": "~30%"},
}

# Version 10, alphanumeric mode.
QR_CAPACITY_LIMITS: Dict[str, int] = {
    "L": 468,
    "M": 360,
    "Q": 288,
    "H": 224,
}

_QRCODE_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}

BRAND_BACKGROUND = "#121212"
BRAND_FOREGROUND = "#00D9FF"


def default_qr_options() -> QRCodeOptions:
    return QRCodeOptions(
        size=settings.QR_DEFAULT_SIZE,
        error_correction_level=settings.QR_DEFAULT_ERROR_CORRECTION,
    )


def qr_capacity(error_correction_level: ErrorCorrectionLevel = "M") -> int:
    try:
        return QR_CAPACITY_LIMITS[error_correction_level]
    except KeyError:
        raise PaymentValidationError(
            f"Invalid error correction level: {error_correction_level}"
        ) from None


def is_qr_code_data_valid(data: str, error_correction_level: ErrorCorrectionLevel = "M") -> bool:
    """
    Pre-flight length check: True if data fits a QR code at this level.

    Only catches gross overflow; it does not model every encoding mode.
    """
    return len(data) <= qr_capacity(error_correction_level)


def generate_qr_code(
    params: UPIPaymentParams,
    options: Optional[QRCodeOptions] = None,
    bill_id: Optional[str] = None
) -> QRCodeResult:
    """
    Build the QR payload and display options for a UPI payment.

    Options not explicitly set fall back to the configured defaults.
    Raises PaymentValidationError for invalid payment params or a size
    outside 100-1000 pixels.
    """
    upi_link = generate_upi_link(params, bill_id=bill_id)

    merged = default_qr_options()
    if options is not None:
        merged = merged.model_copy(update=options.model_dump(exclude_unset=True))

    if merged.size < MIN_QR_SIZE or merged.size > MAX_QR_SIZE:
        raise PaymentValidationError(
            f"QR code size must be between {MIN_QR_SIZE} and {MAX_QR_SIZE} pixels"
        )

    return QRCodeResult(
        data=upi_link.qr_code_data,
        size=merged.size,
        transaction_ref=upi_link.transaction_ref,
        options=merged
    )


def generate_branded_qr_code(params: UPIPaymentParams, size: int = 256) -> QRCodeResult:
    """QR code in brand colours with high error correction."""
    return generate_qr_code(
        params,
        QRCodeOptions(
            size=size,
            background_color=BRAND_BACKGROUND,
            foreground_color=BRAND_FOREGROUND,
            error_correction_level="H",
        )
    )


def render_qr_png(result: QRCodeResult, border: int = 4) -> bytes:
    """Render a QR result to PNG bytes, roughly result.size pixels square."""
    options = result.options
    qr = qrcode.QRCode(
        error_correction=_QRCODE_LEVELS[options.error_correction_level],
        border=border,
    )
    qr.add_data(result.data)
    qr.make(fit=True)
    qr.box_size = max(1, result.size // (qr.modules_count + 2 * border))

    img = qr.make_image(
        fill_color=options.foreground_color,
        back_color=options.background_color
    )
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
