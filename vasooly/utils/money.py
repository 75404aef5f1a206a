"""Paise/rupee conversion. Paise are the unit of record everywhere."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal, str]

_PAISE_PER_RUPEE = Decimal(100)
_TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Number) -> Decimal:
    # str() first so 1.005 stays 1.005 instead of 1.00499999...
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def rupees_to_paise(rupees: Number) -> int:
    """Convert rupees to integer paise, rounding half away from zero."""
    paise = _to_decimal(rupees) * _PAISE_PER_RUPEE
    return int(paise.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def paise_to_rupees(paise: int) -> Decimal:
    """Convert integer paise to rupees, always carrying two decimal places."""
    return (Decimal(paise) / _PAISE_PER_RUPEE).quantize(_TWO_PLACES)


def format_amount(rupees: Number) -> str:
    """Render a rupee amount with exactly two decimal places (UPI `am`)."""
    return str(_to_decimal(rupees).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
