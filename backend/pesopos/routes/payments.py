# backend/pesopos/routes/payments.py
"""
Payment confirmation routes.

These only validate what the cashier entered and return the reference
number to put on the sale; nothing is charged and no card data is stored.
"""
from flask import Blueprint, jsonify, request

from ..services.payment_service import (
    confirm_card_payment,
    confirm_gcash_payment,
    generate_gcash_reference,
)
from ..services.pos_store import get_store
from ..validation import PosError

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("/card")
def confirm_card():
    payload = request.get_json(silent=True) or {}
    try:
        reference = confirm_card_payment(
            card_number=str(payload.get("card_number") or ""),
            expiry=str(payload.get("expiry") or ""),
            cvv=str(payload.get("cvv") or ""),
            card_holder=str(payload.get("card_holder") or ""),
            now=get_store().now(),
        )
        return jsonify({"payment_method": "card", "reference_number": reference})
    except PosError as e:
        return e.to_response()


@payments_bp.post("/gcash")
def confirm_gcash():
    """Body: reference_number, or {"generate": true} for a new 10-digit one."""
    payload = request.get_json(silent=True) or {}
    try:
        if payload.get("generate") is True:
            reference = generate_gcash_reference()
        else:
            reference = confirm_gcash_payment(payload.get("reference_number"))
        return jsonify({"payment_method": "gcash", "reference_number": reference})
    except PosError as e:
        return e.to_response()
