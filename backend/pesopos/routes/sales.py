# Overview: Flask API routes for the cart, checkout, receipts and held carts.

# backend/pesopos/routes/sales.py
from datetime import date

from flask import Blueprint, Response, current_app, jsonify, request

from ..models import CartItem
from ..services import sales_service
from ..services.money import DISCOUNT_FIXED
from ..services.pos_store import get_store
from ..services.receipt_service import render_receipt
from ..services.reporting_service import sales_by_date
from ..validation import PosError, ValidationError

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")
sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_items(raw) -> list[CartItem]:
    """Cart lines sent back by the client, exactly as /api/cart/items priced them."""
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")
    try:
        return [CartItem.from_dict(item) for item in raw]
    except (KeyError, TypeError, ValueError, AttributeError):
        raise ValidationError("Invalid cart item")


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")


@cart_bp.post("/items")
def add_cart_item():
    """
    Price one cart line.

    Body: product_id, quantity, optional variant_id. The response is the
    snapshot the client keeps in its cart and sends back at checkout.
    """
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        product = store.require_product(payload.get("product_id"))
        item = sales_service.build_cart_item(product, payload.get("quantity", 1), payload.get("variant_id"))
        return jsonify(item.to_dict()), 201
    except PosError as e:
        return e.to_response()


@sales_bp.post("")
def create_sale():
    """
    Check out a cart.

    Body: items, payment_method, amount_received, cashier_id,
    optional discount, discount_type, reference_number (card / gcash).
    """
    payload = request.get_json(silent=True) or {}
    store = get_store()

    try:
        items = _parse_items(payload.get("items"))
        cashier_id = payload.get("cashier_id")
        cashier = store.find_user(cashier_id) if cashier_id else None
        cashier_name = cashier.name if cashier else payload.get("cashier_name")

        sale = sales_service.record_sale(
            store,
            items=items,
            payment_method=payload.get("payment_method", sales_service.PAYMENT_CASH),
            amount_received=payload.get("amount_received"),
            cashier_id=cashier_id,
            cashier_name=cashier_name,
            discount=payload.get("discount", 0),
            discount_type=payload.get("discount_type", DISCOUNT_FIXED),
            reference_number=payload.get("reference_number"),
        )
        return jsonify({"sale": sale.to_dict()}), 201
    except PosError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
def list_sales():
    """Newest first. Query param: date (YYYY-MM-DD, business timezone)."""
    store = get_store()
    try:
        day = _parse_date(request.args.get("date"))
    except PosError as e:
        return e.to_response()
    sales = sales_by_date(store, day) if day else list(store.sales)
    sales.reverse()
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})


@sales_bp.get("/<receipt_number>")
def get_sale(receipt_number: str):
    try:
        sale = sales_service.get_sale(get_store(), receipt_number)
        return jsonify({"sale": sale.to_dict()})
    except PosError as e:
        return e.to_response()


@sales_bp.get("/<receipt_number>/receipt")
def get_receipt(receipt_number: str):
    """The printable receipt, rendered with the current settings."""
    store = get_store()
    try:
        sale = sales_service.get_sale(store, receipt_number)
    except PosError as e:
        return e.to_response()
    text = render_receipt(sale, store.settings)
    return Response(text, mimetype="text/plain")


# =============================================================================
# HELD TRANSACTIONS
# =============================================================================

@sales_bp.post("/held")
def hold_cart():
    payload = request.get_json(silent=True) or {}
    try:
        items = _parse_items(payload.get("items"))
        held = sales_service.hold_transaction(get_store(), items=items, note=payload.get("note"))
        return jsonify(held.to_dict()), 201
    except PosError as e:
        return e.to_response()


@sales_bp.get("/held")
def list_held():
    held = sales_service.list_held_transactions(get_store())
    return jsonify({"items": [h.to_dict() for h in held], "count": len(held)})


@sales_bp.post("/held/<held_id>/retrieve")
def retrieve_held(held_id: str):
    try:
        items = sales_service.retrieve_held_transaction(get_store(), held_id)
        return jsonify({"items": [item.to_dict() for item in items]})
    except PosError as e:
        return e.to_response()
