# Overview: Stock totals, stock status classification and variant helpers.

from __future__ import annotations

from ..models import Product, SimpleProduct, VariantProduct

DEFAULT_LOW_STOCK_THRESHOLD = 10

OUT_OF_STOCK = "OUT_OF_STOCK"
LOW_STOCK = "LOW_STOCK"
IN_STOCK = "IN_STOCK"


def total_stock(product: Product) -> int:
    """
    Sellable units of a product.

    Variant products: sum of every variant's stock, active or not (an empty
    variant list totals 0). Simple products: the flat stock.
    """
    if isinstance(product, VariantProduct):
        return sum(v.stock for v in product.variants)
    if isinstance(product, SimpleProduct):
        return product.stock
    raise TypeError(f"unsupported product type: {type(product).__name__}")


def stock_status(product: Product, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> str:
    total = total_stock(product)
    if total <= 0:
        return OUT_OF_STOCK
    if total <= threshold:
        return LOW_STOCK
    return IN_STOCK


def is_low_stock(product: Product, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> bool:
    return stock_status(product, threshold) == LOW_STOCK


def is_out_of_stock(product: Product) -> bool:
    return stock_status(product) == OUT_OF_STOCK


def low_stock_products(products: list[Product], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[Product]:
    return [p for p in products if stock_status(p, threshold) == LOW_STOCK]


def out_of_stock_products(products: list[Product]) -> list[Product]:
    return [p for p in products if stock_status(p) == OUT_OF_STOCK]


def variant_stock_alerts(products: list[Product], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[dict]:
    """Per-product lists of low and sold-out variants."""
    alerts = []
    for product in products:
        if not isinstance(product, VariantProduct):
            continue
        low = [v for v in product.variants if 0 < v.stock <= threshold]
        out = [v for v in product.variants if v.stock <= 0]
        if low:
            alerts.append({"product": product, "type": "low", "variants": low})
        if out:
            alerts.append({"product": product, "type": "out", "variants": out})
    return alerts


def _active_variant(product: Product, size: str):
    if not isinstance(product, VariantProduct):
        return None
    for variant in product.variants:
        if variant.size == size and variant.is_active:
            return variant
    return None


def variant_price(product: Product, size: str) -> float:
    """Price of the active variant with this size, else the product price."""
    variant = _active_variant(product, size)
    return variant.price if variant else product.price


def variant_stock(product: Product, size: str) -> int:
    variant = _active_variant(product, size)
    return variant.stock if variant else total_stock(product)


def available_sizes(product: Product) -> list[str]:
    """Sizes a cashier can still sell: active and in stock."""
    if not isinstance(product, VariantProduct):
        return []
    return [v.size for v in product.variants if v.is_active and v.stock > 0]


def price_range(product: Product) -> tuple[float, float]:
    """(min, max) selling price across variants, or the flat price twice."""
    if isinstance(product, VariantProduct) and product.variants:
        prices = [v.price for v in product.variants]
        return min(prices), max(prices)
    return product.price, product.price
