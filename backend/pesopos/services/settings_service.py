# Overview: Business settings reads and validated partial updates.

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..models import BusinessSettings
from ..validation import (
    BOOL,
    OPTIONAL_TEXT,
    POSITIVE_INT,
    RATE,
    TEXT,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
)
from .concurrency import store_mutation
from .money import InvalidRateError
from .pos_store import SETTINGS_KEY

MIN_RECEIPT_WIDTH = 32
MAX_RECEIPT_WIDTH = 120
MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 32

SETTINGS_POLICY = ModelValidationPolicy(
    fields={
        "business_name": TEXT,
        "address": TEXT,
        "tin": TEXT,
        "bir_permit_number": TEXT,
        "contact_number": TEXT,
        "email": OPTIONAL_TEXT,
        "receipt_header": OPTIONAL_TEXT,
        "receipt_footer": OPTIONAL_TEXT,
        "vat_enabled": BOOL,
        "vat_rate": RATE,
        "receipt_width": POSITIVE_INT,
        "receipt_font_size": POSITIVE_INT,
        "show_business_name": BOOL,
        "show_address": BOOL,
        "show_tin": BOOL,
        "show_bir_permit": BOOL,
        "show_contact_number": BOOL,
        "timezone": TEXT,
    },
)

# Blank optional text is stored as "" so receipts never print "None"
_BLANKABLE = {"email", "receipt_header", "receipt_footer"}


def get_settings(store) -> BusinessSettings:
    return store.settings


def _enforce_rules_settings(patch: dict) -> None:
    # A fraction, e.g. 0.12 for 12%
    if "vat_rate" in patch and not 0 <= patch["vat_rate"] < 1:
        raise InvalidRateError("VAT rate must be between 0 and 1", details={"rate": patch["vat_rate"]})

    width = patch.get("receipt_width")
    if width is not None and not MIN_RECEIPT_WIDTH <= width <= MAX_RECEIPT_WIDTH:
        raise ValidationError(f"receipt_width must be between {MIN_RECEIPT_WIDTH} and {MAX_RECEIPT_WIDTH}")

    font = patch.get("receipt_font_size")
    if font is not None and not MIN_FONT_SIZE <= font <= MAX_FONT_SIZE:
        raise ValidationError(f"receipt_font_size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE}")

    if "timezone" in patch:
        try:
            ZoneInfo(patch["timezone"])
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError("Unknown timezone", details={"timezone": patch["timezone"]})


def update_settings(store, updates: dict) -> BusinessSettings:
    """
    Merge a partial update into the settings and persist the whole object.

    Nothing is written unless every provided field is valid.
    """
    patch = validate_payload(payload=updates, policy=SETTINGS_POLICY, partial=True)
    for key in _BLANKABLE & patch.keys():
        patch[key] = patch[key] or ""
    _enforce_rules_settings(patch)

    with store_mutation(store):
        store.settings = store.settings.with_updates(patch)
        store.persist(SETTINGS_KEY)
        return store.settings


def reset_settings(store) -> BusinessSettings:
    with store_mutation(store):
        store.settings = BusinessSettings()
        store.persist(SETTINGS_KEY)
        return store.settings
