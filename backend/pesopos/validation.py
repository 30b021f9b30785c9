from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


# Maximum price: ₱9,999,999.99
# This prevents nonsensical prices from a mistyped barcode in the price field
MAX_PRICE = 9_999_999.99


class PosError(Exception):
    """Base for every error surfaced to the UI layer as a user-facing message."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_response(self) -> tuple[dict, int]:
        body = {"error": str(self)}
        body.update(self.details)
        return body, self.status_code


class ValidationError(PosError, ValueError):
    """400-level input problem."""


class ConflictError(ValidationError):
    """409-level business rule conflict (e.g., duplicate barcode)."""
    status_code = 409


class NotFoundError(PosError, LookupError):
    """Unknown product, variant, user, sale or held transaction."""
    status_code = 404


# Field kinds understood by validate_payload
TEXT = "text"
OPTIONAL_TEXT = "optional_text"
PRICE = "price"
OPTIONAL_PRICE = "optional_price"
COUNT = "count"
POSITIVE_INT = "positive_int"
BOOL = "bool"
RATE = "rate"
LIST = "list"


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to set (security boundary) and the kind
      each value is coerced to
    - required_on_create: fields required for create payloads
    """
    fields: dict[str, str]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number")
    return number


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_value(key: str, kind: str, value: Any) -> Any:
    if kind == TEXT:
        if value is None:
            raise ValidationError(f"{key} cannot be null")
        text = str(value).strip()
        if not text:
            raise ValidationError(f"{key} cannot be blank")
        return text

    if kind == OPTIONAL_TEXT:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    if kind in (PRICE, OPTIONAL_PRICE):
        if value is None:
            if kind == OPTIONAL_PRICE:
                return None
            raise ValidationError(f"{key} cannot be null")
        price = _coerce_number(key, value)
        if price < 0:
            raise ValidationError(f"{key} must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,.2f}")
        return round(price, 2)

    if kind == RATE:
        return _coerce_number(key, value)

    if kind == COUNT:
        count = _coerce_int(key, value)
        if count < 0:
            raise ValidationError(f"{key} must be >= 0")
        return count

    if kind == POSITIVE_INT:
        number = _coerce_int(key, value)
        if number <= 0:
            raise ValidationError(f"{key} must be a positive integer")
        return number

    if kind == BOOL:
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{key} must be true or false")

    if kind == LIST:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValidationError(f"{key} must be a list")
        return value

    # Default: leave as-is
    return value


def validate_payload(*, payload: Any, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes an incoming payload against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    return {k: coerce_value(k, policy.fields[k], raw) for k, raw in payload.items()}


PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": TEXT,
        "category": TEXT,
        "price": PRICE,
        "cost": OPTIONAL_PRICE,
        "stock": COUNT,
        "barcode": OPTIONAL_TEXT,
        "description": OPTIONAL_TEXT,
        "has_variants": BOOL,
        "variants": LIST,
    },
    required_on_create={"name", "category", "price"},
)

VARIANT_POLICY = ModelValidationPolicy(
    fields={
        "id": OPTIONAL_TEXT,
        "size": TEXT,
        "price": PRICE,
        "stock": COUNT,
        "barcode": OPTIONAL_TEXT,
        "is_active": BOOL,
    },
    required_on_create={"size", "price"},
)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by field kinds alone.
    Keep these small and centralized.
    """
    if "price" in patch and patch["price"] <= 0:
        raise ValidationError("price must be greater than 0")

    if patch.get("has_variants"):
        variants = patch.get("variants") or []
        if not variants:
            raise ValidationError("Please add at least one size variant")
        sizes = [v["size"].lower() for v in variants]
        if len(set(sizes)) != len(sizes):
            raise ValidationError("variant sizes must be unique")
    elif patch.get("variants"):
        raise ValidationError("variants require has_variants=true")


def enforce_rules_variant(patch: dict) -> None:
    if "price" in patch and patch["price"] <= 0:
        raise ValidationError("variant price must be greater than 0")
