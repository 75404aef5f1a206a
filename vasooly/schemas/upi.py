"""
UPI payment request/response schemas.

Field names follow the NPCI UPI linking parameters (pa, pn, am, ...) so that
a params object reads the same as the query string it becomes.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

ErrorCorrectionLevel = Literal["L", "M", "Q", "H"]


class UPIApp(str, Enum):
    # Major payment apps
    GPAY = "gpay"
    PHONEPE = "phonepe"
    PAYTM = "paytm"
    BHIM = "bhim"
    AMAZON_PAY = "amazonpay"
    WHATSAPP = "whatsapp"

    # Banking apps
    YONO_SBI = "yonosbi"
    IMOBILE_ICICI = "imobile"
    HDFC_BANK = "hdfcbank"
    AXIS_MOBILE = "axismobile"
    KOTAK_811 = "kotak811"

    # Fintech / neobanking apps
    NAVI = "navi"
    CRED = "cred"
    JUPITER = "jupiter"
    FI_MONEY = "fimoney"
    INDMONEY = "indmoney"
    SUPER_MONEY = "supermoney"

    GENERIC = "generic"


class UPIPaymentParams(BaseModel):
    pa: str                      # payee VPA
    pn: str                      # payee name
    am: Decimal                  # amount in rupees
    cu: Optional[str] = None     # currency, INR when unset
    tn: Optional[str] = None     # transaction note
    tr: Optional[str] = None     # transaction reference
    mc: Optional[str] = None     # merchant code


class UPILinkResult(BaseModel):
    model_config = {"frozen": True}

    standard_uri: str
    fallback_uris: Dict[UPIApp, str]
    qr_code_data: str
    transaction_ref: str


class VPAValidationRequest(BaseModel):
    vpa: Optional[str] = None


class VPAValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []


class QRCodeOptions(BaseModel):
    size: int = 256
    background_color: str = "#FFFFFF"
    foreground_color: str = "#000000"
    error_correction_level: ErrorCorrectionLevel = "M"


class QRCodeResult(BaseModel):
    data: str
    size: int
    transaction_ref: str
    options: QRCodeOptions


class QRCodeRequest(BaseModel):
    params: UPIPaymentParams
    options: Optional[QRCodeOptions] = None
    bill_id: Optional[str] = None


class QRCapacityRequest(BaseModel):
    data: str
    error_correction_level: ErrorCorrectionLevel = "M"


class QRCapacityResponse(BaseModel):
    is_valid: bool
    length: int
    capacity: int


class PaymentLinkRequest(BaseModel):
    """Collect-from-everyone request for a bill's pending participants."""
    vpa: str
    payee_name: str
    note: Optional[str] = None


class ParticipantPaymentLink(BaseModel):
    participant_id: str
    participant_name: str
    amount_paise: int
    link: UPILinkResult


class PaymentLinksResponse(BaseModel):
    bill_id: str
    links: List[ParticipantPaymentLink] = Field(default_factory=list)
