"""
Sales Service - cart pricing, sale recording and held carts.

Cart lines are priced once, when they are added to the cart, and carried as
snapshots. record_sale never looks prices up again, so a price edit made while
a cart is open cannot change what the customer is charged.
"""

from __future__ import annotations

from ..models import CartItem, HeldTransaction, Product, Sale, StockAdjustment, VariantProduct, new_id
from ..validation import NotFoundError, PosError, ValidationError
from .concurrency import store_mutation
from .inventory_service import ADJUST_REMOVE, apply_stock_change, resolve_stock_holder
from .money import DISCOUNT_FIXED, discount_amount, round_money, vat_exclusive_split
from .pos_store import ADJUSTMENTS_KEY, HELD_KEY, PRODUCTS_KEY, SALES_KEY

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_GCASH = "gcash"
PAYMENT_METHODS = {PAYMENT_CASH, PAYMENT_CARD, PAYMENT_GCASH}

SALE_ADJUSTMENT_REASON = "sale"


class SaleError(PosError):
    """Raised for sale operation errors."""


class EmptyCartError(SaleError):
    """Checkout attempted with no items."""


class InsufficientPaymentError(SaleError):
    """Tendered amount does not cover the total."""


def build_cart_item(product: Product, quantity: int, variant_id: str | None = None) -> CartItem:
    """
    Price one cart line from the live catalog entry.

    The unit price is the variant's price when a variant is selected,
    otherwise the product's price.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")

    variant_snapshot = None
    if isinstance(product, VariantProduct):
        if not variant_id:
            raise ValidationError("Please select a size", details={"product_id": product.id})
        variant = product.find_variant(variant_id)
        if variant is None:
            raise NotFoundError("Variant not found", details={"variant_id": variant_id})
        if not variant.is_active:
            raise ValidationError("Variant is not available", details={"variant_id": variant_id})
        unit_price = variant.price
        variant_snapshot = variant.to_dict()
    else:
        if variant_id:
            raise ValidationError("product has no variants", details={"product_id": product.id})
        unit_price = product.price

    return CartItem(
        product_id=product.id,
        product=product.to_dict(),
        variant=variant_snapshot,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=round_money(unit_price * quantity),
    )


def _validate_items(items: list[CartItem]) -> float:
    if not items:
        raise EmptyCartError("Cart is empty")

    for item in items:
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
            raise ValidationError("quantity must be a positive integer", details={"product_id": item.product_id})
        if round_money(item.unit_price * item.quantity) != round_money(item.subtotal):
            raise ValidationError(
                "line subtotal does not match unit price x quantity",
                details={"product_id": item.product_id},
            )
    return round_money(sum(item.subtotal for item in items))


def _validate_payment(
    payment_method: str,
    amount_received: float | None,
    total: float,
    reference_number: str | None,
) -> float:
    """Return the amount received to record for this payment."""
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(sorted(PAYMENT_METHODS))}")

    if payment_method == PAYMENT_CASH:
        if amount_received is None:
            raise ValidationError("amount_received is required for cash payments")
        received = round_money(amount_received)
        if received < total:
            raise InsufficientPaymentError(
                "Insufficient payment",
                details={"total": total, "amount_received": received},
            )
        return received

    # Card and GCash confirm exactly the total and supply a reference instead of change
    if not (reference_number or "").strip():
        raise ValidationError(f"reference_number is required for {payment_method} payments")
    if amount_received is None:
        return total
    received = round_money(amount_received)
    if received < total:
        raise InsufficientPaymentError(
            "Insufficient payment",
            details={"total": total, "amount_received": received},
        )
    if received > total:
        raise ValidationError(
            f"{payment_method} payments must equal the total exactly",
            details={"total": total, "amount_received": received},
        )
    return received


def record_sale(
    store,
    *,
    items: list[CartItem],
    payment_method: str,
    amount_received: float | None,
    cashier_id: str,
    cashier_name: str,
    discount: float = 0,
    discount_type: str = DISCOUNT_FIXED,
    reference_number: str | None = None,
) -> Sale:
    """
    Record a checkout: totals, payment, stock removal and ledger append.

    Every check runs before the first mutation, and products, sales and
    stock adjustments are persisted in one write, so either the sale and all
    of its stock effects exist or none of them do.
    """
    if not cashier_id:
        raise ValidationError("cashier_id is required")
    # GCash references are all digits and may arrive as JSON numbers
    if reference_number is not None:
        reference_number = str(reference_number)

    with store_mutation(store):
        subtotal = _validate_items(items)
        discount_amt = discount_amount(subtotal, discount, discount_type)

        # Prices are VAT-inclusive: the total already contains the VAT
        total = round_money(subtotal - discount_amt)
        settings = store.settings
        if settings.vat_enabled:
            vat_rate = settings.vat_rate
            vat = round_money(vat_exclusive_split(total, vat_rate).vat)
        else:
            vat_rate = 0.0
            vat = 0.0

        received = _validate_payment(payment_method, amount_received, total, reference_number)
        change = round_money(max(0.0, received - total))
        reference = reference_number.strip() if payment_method != PAYMENT_CASH else None

        # Resolve every stock holder before touching any of them
        targets = []
        for item in items:
            product = store.require_product(item.product_id)
            targets.append((item, product, resolve_stock_holder(product, item.variant_id)))

        now = store.now()
        receipt_number = store.receipt_numbers.next(now, taken={s.receipt_number for s in store.sales})

        for item, product, holder in targets:
            apply_stock_change(holder, item.quantity, ADJUST_REMOVE)
            product.updated_at = now
            store.stock_adjustments.append(
                StockAdjustment(
                    id=new_id(),
                    product_id=product.id,
                    product_name=product.name,
                    adjustment_type=ADJUST_REMOVE,
                    quantity=item.quantity,
                    reason=SALE_ADJUSTMENT_REASON,
                    user_id=cashier_id,
                    variant_id=item.variant_id,
                    timestamp=now,
                )
            )

        sale = Sale(
            id=new_id(),
            receipt_number=receipt_number,
            timestamp=now,
            cashier_id=cashier_id,
            cashier_name=cashier_name or cashier_id,
            items=tuple(items),
            subtotal=subtotal,
            discount=discount_amt,
            discount_type=discount_type,
            vat_amount=vat,
            vat_rate=vat_rate,
            total=total,
            payment_method=payment_method,
            amount_received=received,
            change=change,
            reference_number=reference,
        )
        store.sales.append(sale)

        store.persist(PRODUCTS_KEY, SALES_KEY, ADJUSTMENTS_KEY)
        return sale


def get_sale(store, receipt_number: str) -> Sale:
    sale = store.find_sale(receipt_number)
    if sale is None:
        raise NotFoundError("Sale not found", details={"receipt_number": receipt_number})
    return sale


def hold_transaction(store, *, items: list[CartItem], note: str | None = None) -> HeldTransaction:
    """Park a cart. Stock is not touched until the cart is checked out."""
    if not items:
        raise EmptyCartError("Cart is empty")

    with store_mutation(store):
        held = HeldTransaction(
            id=new_id(),
            items=list(items),
            note=(note or "").strip() or None,
            timestamp=store.now(),
        )
        store.held_transactions.append(held)
        store.persist(HELD_KEY)
        return held


def retrieve_held_transaction(store, held_id: str) -> list[CartItem]:
    """Remove a parked cart and hand its items back."""
    with store_mutation(store):
        for held in store.held_transactions:
            if held.id == held_id:
                store.held_transactions.remove(held)
                store.persist(HELD_KEY)
                return held.items
    raise NotFoundError("Held transaction not found", details={"held_id": held_id})


def list_held_transactions(store) -> list[HeldTransaction]:
    return list(store.held_transactions)
