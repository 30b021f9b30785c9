# Overview: Service-layer stock adjustments; the only manual path that changes stock.

# backend/pesopos/services/inventory_service.py

from __future__ import annotations

from ..models import Product, SimpleProduct, StockAdjustment, Variant, VariantProduct, new_id
from ..validation import NotFoundError, ValidationError
from .concurrency import store_mutation
from .pos_store import PRODUCTS_KEY, ADJUSTMENTS_KEY
"""
PesoPOS Inventory Invariants (authoritative)

Stock model:
- A simple product's stock lives on the product; a variant product's stock
  lives on its variants and the product total is always their sum.
- A variant product has no flat stock of its own, so adjustments to it must
  name a variant; a simple product has no variants to name.

Floor-at-zero:
- "add" increases stock unconditionally.
- "remove" decreases stock but clamps at 0 instead of failing. This is a
  deliberate policy kept from the original till: over-removal (including a
  sale of more units than the shelf count) is absorbed, never rejected.
- adjust_stock and sales_service.record_sale both go through
  apply_stock_change(), so the two paths cannot diverge.

Audit:
- Every change appends one immutable StockAdjustment carrying the requested
  quantity (not the clamped delta), persisted together with the products.
"""

ADJUST_ADD = "add"
ADJUST_REMOVE = "remove"
ADJUSTMENT_TYPES = {ADJUST_ADD, ADJUST_REMOVE}


def resolve_stock_holder(product: Product, variant_id: str | None = None) -> SimpleProduct | Variant:
    """The object whose stock field a change applies to. Never mutates."""
    if isinstance(product, VariantProduct):
        if not variant_id:
            raise ValidationError(
                "variant_id is required for products with variants",
                details={"product_id": product.id},
            )
        variant = product.find_variant(variant_id)
        if variant is None:
            raise NotFoundError(
                "Variant not found",
                details={"product_id": product.id, "variant_id": variant_id},
            )
        return variant

    if variant_id:
        raise ValidationError(
            "product has no variants",
            details={"product_id": product.id, "variant_id": variant_id},
        )
    return product


def apply_stock_change(holder: SimpleProduct | Variant, quantity: int, direction: str) -> int:
    """Apply one add/remove to a resolved holder. Returns the new stock."""
    if direction == ADJUST_ADD:
        holder.stock = holder.stock + quantity
    else:
        holder.stock = max(0, holder.stock - quantity)
    return holder.stock


def _validate_adjustment(quantity, direction: str, user_id: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    if direction not in ADJUSTMENT_TYPES:
        raise ValidationError(f"adjustment type must be one of: {', '.join(sorted(ADJUSTMENT_TYPES))}")
    if not user_id:
        raise ValidationError("user_id is required for stock adjustments")


def adjust_stock(
    store,
    *,
    product_id: str,
    quantity: int,
    direction: str,
    reason: str,
    user_id: str,
    variant_id: str | None = None,
) -> StockAdjustment:
    """
    Add or remove stock on a product (or one of its variants).

    Validation happens before anything is touched, so a rejected call leaves
    the catalog and the adjustment log exactly as they were.
    """
    _validate_adjustment(quantity, direction, user_id)

    with store_mutation(store):
        product = store.require_product(product_id)
        holder = resolve_stock_holder(product, variant_id)

        now = store.now()
        apply_stock_change(holder, quantity, direction)
        product.updated_at = now

        adjustment = StockAdjustment(
            id=new_id(),
            product_id=product.id,
            product_name=product.name,
            adjustment_type=direction,
            quantity=quantity,
            reason=(reason or "").strip(),
            user_id=user_id,
            variant_id=variant_id if isinstance(product, VariantProduct) else None,
            timestamp=now,
        )
        store.stock_adjustments.append(adjustment)

        store.persist(PRODUCTS_KEY, ADJUSTMENTS_KEY)
        return adjustment


def list_adjustments(store, *, product_id: str | None = None, limit: int | None = None) -> list[StockAdjustment]:
    """Newest first."""
    rows = [
        a for a in reversed(store.stock_adjustments)
        if product_id is None or a.product_id == product_id
    ]
    if limit is not None:
        rows = rows[:limit]
    return rows
