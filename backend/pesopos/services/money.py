# Overview: Peso formatting, VAT-inclusive splits and discount computation.

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple

from ..validation import ValidationError

"""
Money conventions

- Amounts are pesos as floats, rounded to centavos with round_money()
  (half-up) whenever a value is stored on a sale.
- Shelf prices are VAT-inclusive: VAT is derived from a total by division,
  never added on top of it.
"""

PESO_SYMBOL = "₱"
PHILIPPINES_VAT_RATE = 0.12

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = {DISCOUNT_PERCENTAGE, DISCOUNT_FIXED}

_CENT = Decimal("0.01")


class InvalidRateError(ValidationError):
    """Negative or non-numeric VAT rate."""


class InvalidDiscountError(ValidationError):
    """Discount that is negative, of an unknown type, or larger than the subtotal."""


class VatSplit(NamedTuple):
    net: float
    vat: float


def _require_finite(amount, name: str = "amount") -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        raise ValidationError(f"{name} must be a finite number")


def round_money(amount: float) -> float:
    """Round to centavos, half-up (0.005 -> 0.01)."""
    _require_finite(amount)
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def format_currency(amount: float, symbol: str = PESO_SYMBOL) -> str:
    """
    ₱1,234.50 style: two decimals, thousands grouped.

    Negative amounts put the minus before the symbol: -₱1,234.50.
    Amounts that round to zero never render as "-₱0.00".
    """
    value = round_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def vat_exclusive_split(total_inclusive: float, rate: float = PHILIPPINES_VAT_RATE) -> VatSplit:
    """Split a VAT-inclusive total into (net, vat). net + vat == total."""
    _require_finite(total_inclusive, "total")
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not math.isfinite(rate):
        raise InvalidRateError("VAT rate must be a number")
    if rate < 0:
        raise InvalidRateError("VAT rate must be >= 0", details={"rate": rate})
    net = total_inclusive / (1 + rate)
    return VatSplit(net=net, vat=total_inclusive - net)


def discount_amount(subtotal: float, discount: float, discount_type: str) -> float:
    """
    Peso value of a discount against a subtotal.

    percentage: subtotal * discount / 100 (0..100)
    fixed: the discount itself

    A discount larger than the subtotal is rejected rather than capped, so a
    sale can never end up with a negative total.
    """
    _require_finite(subtotal, "subtotal")
    if isinstance(discount, bool) or not isinstance(discount, (int, float)) or not math.isfinite(discount):
        raise InvalidDiscountError("discount must be a number")
    if discount < 0:
        raise InvalidDiscountError("discount must be >= 0")

    if discount_type == DISCOUNT_PERCENTAGE:
        if discount > 100:
            raise InvalidDiscountError("percentage discount cannot exceed 100")
        amount = subtotal * discount / 100
    elif discount_type == DISCOUNT_FIXED:
        amount = discount
    else:
        raise InvalidDiscountError(
            f"discount_type must be one of: {', '.join(sorted(DISCOUNT_TYPES))}"
        )

    amount = round_money(amount)
    if amount > round_money(subtotal):
        raise InvalidDiscountError(
            "discount cannot exceed subtotal",
            details={"subtotal": round_money(subtotal), "discount": amount},
        )
    return amount
