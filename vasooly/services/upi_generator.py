"""
UPI link generation.

Builds upi://pay deep links, app-specific fallbacks and the QR payload from a
single ordered parameter list. The URI and QR renderings differ only in how
values are escaped: NPCI's QR/NFC convention keeps spaces literal, while a URI
needs them percent-encoded.
"""

import logging
import threading
import time
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

from vasooly.core.config import settings
from vasooly.schemas.upi import UPIApp, UPILinkResult, UPIPaymentParams
from vasooly.utils.money import format_amount
from vasooly.utils.payment_validation import PaymentValidationError, validate_vpa

logger = logging.getLogger(__name__)

Encoder = Callable[[str], str]

DEFAULT_SCHEME = "upi://pay"

APP_SCHEMES: Dict[UPIApp, str] = {
    UPIApp.GPAY: "tez://upi/pay",
    UPIApp.PHONEPE: "phonepe://pay",
    UPIApp.PAYTM: "paytmmp://pay",
    UPIApp.BHIM: DEFAULT_SCHEME,
    UPIApp.AMAZON_PAY: DEFAULT_SCHEME,
    UPIApp.WHATSAPP: DEFAULT_SCHEME,
    UPIApp.YONO_SBI: DEFAULT_SCHEME,
    UPIApp.IMOBILE_ICICI: DEFAULT_SCHEME,
    UPIApp.HDFC_BANK: DEFAULT_SCHEME,
    UPIApp.AXIS_MOBILE: DEFAULT_SCHEME,
    UPIApp.KOTAK_811: DEFAULT_SCHEME,
    UPIApp.NAVI: DEFAULT_SCHEME,
    UPIApp.CRED: DEFAULT_SCHEME,
    UPIApp.JUPITER: DEFAULT_SCHEME,
    UPIApp.FI_MONEY: DEFAULT_SCHEME,
    UPIApp.INDMONEY: DEFAULT_SCHEME,
    UPIApp.SUPER_MONEY: DEFAULT_SCHEME,
    UPIApp.GENERIC: DEFAULT_SCHEME,
}

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_SAFE = "-_.!~*'()"


def encode_uri_value(value: str) -> str:
    return quote(value, safe=_URI_SAFE)


def encode_qr_value(value: str) -> str:
    # Spaces stay literal; only the query-string delimiters are escaped.
    return value.replace("&", "%26").replace("#", "%23")


_ref_lock = threading.Lock()
_last_ref_millis = 0


def _next_ref_millis() -> int:
    global _last_ref_millis
    with _ref_lock:
        now = int(time.time() * 1000)
        if now <= _last_ref_millis:
            now = _last_ref_millis + 1
        _last_ref_millis = now
        return now


def generate_transaction_ref(bill_id: str) -> str:
    """
    Return BILL-<bill_id>-<unix millis>.

    The millisecond component never repeats within a process, so two refs
    generated in the same millisecond still differ.
    """
    return f"BILL-{bill_id}-{_next_ref_millis()}"


def _query_params(params: UPIPaymentParams) -> List[Tuple[str, str, bool]]:
    """Canonical (key, value, escapable) list in UPI field order."""
    query: List[Tuple[str, str, bool]] = [
        ("pa", params.pa.strip(), True),
        ("pn", params.pn, True),
        ("am", format_amount(params.am), False),
        ("cu", params.cu or settings.UPI_DEFAULT_CURRENCY, True),
    ]
    if params.tn:
        query.append(("tn", params.tn, True))
    if params.tr:
        query.append(("tr", params.tr, True))
    if params.mc:
        query.append(("mc", params.mc, True))
    return query


def build_upi_uri(
    params: UPIPaymentParams,
    scheme: str = DEFAULT_SCHEME,
    encoder: Encoder = encode_uri_value
) -> str:
    """Render params as <scheme>?pa=..&pn=..&am=..&cu=..[&tn][&tr][&mc]."""
    rendered = [
        f"{key}={encoder(value) if escapable else value}"
        for key, value, escapable in _query_params(params)
    ]
    return f"{scheme}?{'&'.join(rendered)}"


def validate_payment_params(params: UPIPaymentParams) -> None:
    """Raise PaymentValidationError if params cannot produce a payable link."""
    vpa_result = validate_vpa(params.pa)
    if not vpa_result.is_valid:
        raise PaymentValidationError(f"Invalid VPA: {', '.join(vpa_result.errors)}")

    amount = Decimal(format_amount(params.am))
    if amount <= 0:
        raise PaymentValidationError("Amount must be greater than 0")

    if amount > settings.UPI_MAX_AMOUNT_RUPEES:
        raise PaymentValidationError("Amount cannot exceed ₹1,00,000 (UPI limit)")

    if not params.pn or not params.pn.strip():
        raise PaymentValidationError("Payee name is required")


def generate_upi_link(params: UPIPaymentParams, bill_id: Optional[str] = None) -> UPILinkResult:
    """
    Generate the standard URI, per-app fallbacks and QR payload for a payment.

    A transaction reference is synthesised from bill_id (or "unknown") when
    params.tr is not set.

    Raises PaymentValidationError for an invalid VPA, a non-positive amount,
    an amount above the UPI ceiling or a blank payee name.
    """
    validate_payment_params(params)

    transaction_ref = params.tr or generate_transaction_ref(bill_id or "unknown")
    params_with_ref = params.model_copy(update={"tr": transaction_ref})

    standard_uri = build_upi_uri(params_with_ref, APP_SCHEMES[UPIApp.GENERIC])
    fallback_uris = {
        app: standard_uri if scheme == DEFAULT_SCHEME else build_upi_uri(params_with_ref, scheme)
        for app, scheme in APP_SCHEMES.items()
    }
    qr_code_data = build_upi_uri(params_with_ref, DEFAULT_SCHEME, encode_qr_value)

    logger.debug("Generated UPI link %s for %s", transaction_ref, params.pa)

    return UPILinkResult(
        standard_uri=standard_uri,
        fallback_uris=fallback_uris,
        qr_code_data=qr_code_data,
        transaction_ref=transaction_ref
    )
