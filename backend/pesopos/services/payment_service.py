# Overview: Offline confirmation of card and GCash tenders before a sale is recorded.

"""
Payment Confirmation Service

Card and GCash payments are not processed against a gateway. The till checks
what the cashier typed in, then hands back a reference number that
sales_service.record_sale stores on the sale in place of change.

- Card: Luhn-valid number, MM/YY expiry not in the past, 3-4 digit CVV and a
  card holder name. Reference: CARD-<last 4 digits>-<6 digits from the clock>.
- GCash: a reference number entered by the cashier or generated (10 digits).
"""

from __future__ import annotations

import random
import re
from datetime import datetime, timezone

from ..time_utils import utcnow
from ..validation import ValidationError


class PaymentValidationError(ValidationError):
    """Card or GCash details that cannot be accepted."""


_EXPIRY_RE = re.compile(r"^(\d{2})/(\d{2})$")
_CVV_RE = re.compile(r"^\d{3,4}$")


def luhn_valid(card_number: str) -> bool:
    """Luhn checksum over the digits of a card number; spaces are ignored."""
    cleaned = re.sub(r"\s+", "", card_number or "")
    if not cleaned.isdigit():
        return False

    total = 0
    for position, char in enumerate(reversed(cleaned)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def expiry_valid(expiry: str, now: datetime | None = None) -> bool:
    """MM/YY, month 1-12, and not before the current month."""
    match = _EXPIRY_RE.match((expiry or "").strip())
    if not match:
        return False
    month, year = int(match.group(1)), int(match.group(2))
    if month < 1 or month > 12:
        return False

    now = now or utcnow()
    current_year = now.year % 100
    if year < current_year:
        return False
    if year == current_year and month < now.month:
        return False
    return True


def confirm_card_payment(
    *,
    card_number: str,
    expiry: str,
    cvv: str,
    card_holder: str,
    now: datetime | None = None,
) -> str:
    """Validate card details and return the reference number for the sale."""
    if not all((s or "").strip() for s in (card_number, expiry, cvv, card_holder)):
        raise PaymentValidationError("Please fill in all card details")
    if not luhn_valid(card_number):
        raise PaymentValidationError("Please enter a valid card number")

    now = now or utcnow()
    if not expiry_valid(expiry, now):
        raise PaymentValidationError("Please enter a valid expiry date (MM/YY)")
    if not _CVV_RE.match(cvv.strip()):
        raise PaymentValidationError("Please enter a valid 3 or 4-digit CVV")

    digits = re.sub(r"\s+", "", card_number)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    stamp = str(int(now.timestamp() * 1000))[-6:]
    return f"CARD-{digits[-4:]}-{stamp}"


def generate_gcash_reference(rng: random.Random | None = None) -> str:
    """A random 10-digit reference number (never starts with 0)."""
    rng = rng or random.SystemRandom()
    return str(rng.randint(1_000_000_000, 9_999_999_999))


def confirm_gcash_payment(reference_number: str | None) -> str:
    reference = (reference_number or "").strip()
    if not reference:
        raise PaymentValidationError("Please enter or generate a reference number")
    return reference
