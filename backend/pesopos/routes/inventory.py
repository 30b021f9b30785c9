# backend/pesopos/routes/inventory.py
"""
Inventory routes.

POST /adjust is the only manual way to move stock. Removal floors at zero;
the adjustment log keeps the quantity that was asked for.
"""
from flask import Blueprint, current_app, jsonify, request

from ..services.inventory_service import adjust_stock, list_adjustments
from ..services.pos_store import get_store
from ..services.stock_service import total_stock
from ..validation import (
    OPTIONAL_TEXT,
    POSITIVE_INT,
    TEXT,
    ModelValidationPolicy,
    PosError,
    validate_payload,
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

INVENTORY_ADJUST_POLICY = ModelValidationPolicy(
    fields={
        "product_id": TEXT,
        "variant_id": OPTIONAL_TEXT,
        "quantity": POSITIVE_INT,
        "type": TEXT,
        "reason": OPTIONAL_TEXT,
        "user_id": TEXT,
    },
    required_on_create={"product_id", "quantity", "type", "user_id"},
)


@inventory_bp.post("/adjust")
def adjust_inventory_route():
    """
    Add or remove stock.

    Body: product_id, quantity (> 0), type ("add" | "remove"), user_id,
    optional variant_id (required for products with variants) and reason.
    """
    payload = request.get_json(silent=True) or {}
    store = get_store()

    try:
        patch = validate_payload(payload=payload, policy=INVENTORY_ADJUST_POLICY, partial=False)
        adjustment = adjust_stock(
            store,
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            direction=patch["type"],
            reason=patch.get("reason") or "",
            user_id=patch["user_id"],
            variant_id=patch.get("variant_id"),
        )
        product = store.require_product(adjustment.product_id)
        return jsonify({
            "adjustment": adjustment.to_dict(),
            "product": product.to_dict(),
            "total_stock": total_stock(product),
        }), 201
    except PosError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/adjustments")
def list_adjustments_route():
    """Newest first. Query params: product_id, limit."""
    product_id = request.args.get("product_id")
    limit = request.args.get("limit", type=int)
    rows = list_adjustments(get_store(), product_id=product_id, limit=limit)
    return jsonify({"items": [a.to_dict() for a in rows], "count": len(rows)})
