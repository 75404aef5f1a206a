"""Payment validation utilities."""
import re
from typing import List

from vasooly.schemas.upi import VPAValidationResult

VPA_MIN_LENGTH = 5
VPA_MAX_LENGTH = 100
VPA_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9]+$")


class PaymentValidationError(ValueError):
    """Raised when a bill, participant or payment request breaks its contract."""
    pass


def validate_vpa(vpa) -> VPAValidationResult:
    """
    Validate a UPI Virtual Payment Address (username@bank).

    Rules:
    - required
    - 5 to 100 characters after trimming
    - username may hold letters, digits, dots, underscores, hyphens;
      bank handle letters and digits only
    - exactly one @, with both sides non-empty

    Every failing rule is reported, not just the first.
    """
    errors: List[str] = []

    if not vpa or not isinstance(vpa, str):
        errors.append("VPA is required")
        return VPAValidationResult(is_valid=False, errors=errors)

    trimmed = vpa.strip()

    if len(trimmed) < VPA_MIN_LENGTH or len(trimmed) > VPA_MAX_LENGTH:
        errors.append(
            f"VPA must be between {VPA_MIN_LENGTH} and {VPA_MAX_LENGTH} characters"
        )

    if not VPA_PATTERN.fullmatch(trimmed):
        errors.append("VPA must be in format username@bank (e.g., john@paytm)")

    if "@" not in trimmed:
        errors.append("VPA must contain @ symbol")
    else:
        parts = trimmed.split("@")
        if len(parts) != 2:
            errors.append("VPA must have exactly one @ symbol")
        else:
            username, handle = parts
            if not username:
                errors.append("VPA username cannot be empty")
            if not handle:
                errors.append("VPA bank handle cannot be empty")

    return VPAValidationResult(is_valid=not errors, errors=errors)
