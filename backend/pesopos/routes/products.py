# Overview: Flask API routes for the catalog; products, variants and categories.

# backend/pesopos/routes/products.py
"""
Catalog routes.

Stock is read-only here: product payloads may carry an initial stock on
create, after which every change goes through /api/inventory/adjust or a sale.
"""
from flask import Blueprint, current_app, jsonify, request

from ..services import catalog_service
from ..services.pos_store import get_store
from ..services.stock_service import (
    low_stock_products,
    out_of_stock_products,
    price_range,
    stock_status,
    available_sizes,
    variant_stock_alerts,
)
from ..validation import PosError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


def product_json(product, threshold: int) -> dict:
    data = product.to_dict()
    low, high = price_range(product)
    data["stock_status"] = stock_status(product, threshold)
    data["price_range"] = {"min": low, "max": high}
    data["available_sizes"] = available_sizes(product)
    return data


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - q: search name / category / barcode
    - barcode: exact barcode lookup (products and variants)
    - category: exact category filter
    """
    store = get_store()
    threshold = store.low_stock_threshold

    try:
        barcode = request.args.get("barcode")
        if barcode:
            product, variant = catalog_service.get_product_by_barcode(store, barcode.strip())
            return jsonify({
                "items": [product_json(product, threshold)],
                "variant": variant.to_dict() if variant else None,
            })

        q = request.args.get("q")
        category = request.args.get("category")
        products = catalog_service.search_products(store, q) if q else catalog_service.list_products(store)
        if category:
            products = [p for p in products if p.category == category]
        return jsonify({"items": [product_json(p, threshold) for p in products], "count": len(products)})
    except PosError as e:
        return e.to_response()


@products_bp.get("/alerts")
def stock_alerts():
    store = get_store()
    threshold = request.args.get("threshold", type=int) or store.low_stock_threshold
    return jsonify({
        "threshold": threshold,
        "low_stock": [p.to_dict() for p in low_stock_products(store.products, threshold)],
        "out_of_stock": [p.to_dict() for p in out_of_stock_products(store.products)],
        "variant_alerts": [
            {
                "product_id": alert["product"].id,
                "product_name": alert["product"].name,
                "type": alert["type"],
                "variants": [v.to_dict() for v in alert["variants"]],
            }
            for alert in variant_stock_alerts(store.products, threshold)
        ],
    })


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        product = catalog_service.add_product(store, payload)
        return jsonify(product_json(product, store.low_stock_threshold)), 201
    except PosError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    store = get_store()
    try:
        product = catalog_service.get_product(store, product_id)
        return jsonify(product_json(product, store.low_stock_threshold))
    except PosError as e:
        return e.to_response()


@products_bp.patch("/<product_id>")
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        product = catalog_service.update_product(store, product_id, payload)
        return jsonify(product_json(product, store.low_stock_threshold))
    except PosError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<product_id>")
def delete_product_route(product_id: str):
    try:
        catalog_service.delete_product(get_store(), product_id)
        return "", 204
    except PosError as e:
        return e.to_response()


# =============================================================================
# CATEGORIES
# =============================================================================

@categories_bp.get("")
def list_categories():
    store = get_store()
    counts = {name: 0 for name in store.categories}
    for product in store.products:
        if product.category in counts:
            counts[product.category] += 1
    return jsonify({"items": [{"name": name, "product_count": counts[name]} for name in store.categories]})


@categories_bp.post("")
def create_category():
    payload = request.get_json(silent=True) or {}
    try:
        name = catalog_service.add_category(get_store(), payload.get("name"))
        return jsonify({"name": name}), 201
    except PosError as e:
        return e.to_response()


@categories_bp.put("/<name>")
def rename_category(name: str):
    payload = request.get_json(silent=True) or {}
    try:
        new_name = catalog_service.rename_category(get_store(), name, payload.get("name"))
        return jsonify({"name": new_name})
    except PosError as e:
        return e.to_response()


@categories_bp.delete("/<name>")
def delete_category(name: str):
    try:
        catalog_service.delete_category(get_store(), name)
        return "", 204
    except PosError as e:
        return e.to_response()
