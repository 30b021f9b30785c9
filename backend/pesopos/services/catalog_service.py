# Overview: Service-layer catalog operations; products, variants and categories.

from __future__ import annotations

from ..models import Product, SimpleProduct, Variant, VariantProduct, new_id
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    PRODUCT_POLICY,
    VARIANT_POLICY,
    enforce_rules_product,
    enforce_rules_variant,
    validate_payload,
)
from .concurrency import store_mutation
from .pos_store import CATEGORIES_KEY, PRODUCTS_KEY


def _clean_variants(raw_variants: list) -> list[dict]:
    cleaned = []
    for raw in raw_variants:
        patch = validate_payload(payload=raw, policy=VARIANT_POLICY, partial=False)
        enforce_rules_variant(patch)
        cleaned.append(patch)
    return cleaned


def _barcodes(product: Product) -> set[str]:
    codes = {product.barcode} if product.barcode else set()
    if isinstance(product, VariantProduct):
        codes.update(v.barcode for v in product.variants if v.barcode)
    return codes


def _ensure_unique_barcodes(store, product: Product) -> None:
    mine = [product.barcode] if product.barcode else []
    if isinstance(product, VariantProduct):
        mine.extend(v.barcode for v in product.variants if v.barcode)
    if len(set(mine)) != len(mine):
        raise ConflictError("Barcode is used more than once on this product")

    for other in store.products:
        if other.id == product.id:
            continue
        clash = _barcodes(other).intersection(mine)
        if clash:
            raise ConflictError(
                "Barcode already exists",
                details={"barcode": sorted(clash)[0], "product_id": other.id},
            )


def add_product(store, payload: dict) -> Product:
    """
    Create a product from a client payload.

    This is the one place a product's initial stock is set; afterwards stock
    only moves through stock adjustments and sales.
    """
    patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    if patch.get("has_variants"):
        patch["variants"] = _clean_variants(patch.get("variants") or [])
    enforce_rules_product(patch)

    with store_mutation(store):
        now = store.now()
        common = dict(
            id=new_id(),
            name=patch["name"],
            category=patch["category"],
            price=patch["price"],
            cost=patch.get("cost"),
            barcode=patch.get("barcode"),
            description=patch.get("description"),
            created_at=now,
            updated_at=now,
        )
        if patch.get("has_variants"):
            product = VariantProduct(
                **common,
                variants=[
                    Variant(
                        id=new_id(),
                        size=v["size"],
                        price=v["price"],
                        stock=v.get("stock", 0),
                        barcode=v.get("barcode"),
                        is_active=v.get("is_active", True),
                    )
                    for v in patch["variants"]
                ],
            )
        else:
            product = SimpleProduct(**common, stock=patch.get("stock", 0))

        _ensure_unique_barcodes(store, product)
        store.products.append(product)
        store.persist(PRODUCTS_KEY)
        return product


def _merge_variants(product: Product, cleaned: list[dict]) -> list[Variant]:
    """
    Rebuild a variant list from an edit form.

    Variants that already exist keep their current stock (stock moves only
    through adjustments and sales); new variants start with the stock given.
    """
    existing = {v.id: v for v in product.variants} if isinstance(product, VariantProduct) else {}
    merged = []
    for v in cleaned:
        current = existing.get(v.get("id") or "")
        merged.append(
            Variant(
                id=current.id if current else new_id(),
                size=v["size"],
                price=v["price"],
                stock=current.stock if current else v.get("stock", 0),
                barcode=v.get("barcode"),
                is_active=v.get("is_active", True),
            )
        )
    return merged


def update_product(store, product_id: str, payload: dict) -> Product:
    patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
    if "stock" in patch:
        raise ValidationError("stock cannot be edited directly; use a stock adjustment")

    with store_mutation(store):
        product = store.require_product(product_id)

        has_variants = patch.pop("has_variants", product.has_variants)
        if has_variants != product.has_variants:
            raise ValidationError("has_variants cannot be changed on an existing product")

        if "variants" in patch:
            if not has_variants:
                raise ValidationError("variants require has_variants=true")
            patch["variants"] = _clean_variants(patch["variants"])
            patch["has_variants"] = True
        enforce_rules_product(patch)

        updated_fields = {k: v for k, v in patch.items() if k not in ("variants", "has_variants")}
        if isinstance(product, VariantProduct):
            variants = _merge_variants(product, patch["variants"]) if "variants" in patch else product.variants
            candidate = VariantProduct(**{**_common_fields(product), **updated_fields}, variants=variants)
        else:
            candidate = SimpleProduct(**{**_common_fields(product), **updated_fields}, stock=product.stock)
        candidate.updated_at = store.now()

        _ensure_unique_barcodes(store, candidate)
        store.products[store.products.index(product)] = candidate
        store.persist(PRODUCTS_KEY)
        return candidate


def _common_fields(product: Product) -> dict:
    return dict(
        id=product.id,
        name=product.name,
        category=product.category,
        price=product.price,
        cost=product.cost,
        barcode=product.barcode,
        description=product.description,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def delete_product(store, product_id: str) -> None:
    """Remove a product from the catalog. Past sales keep their snapshots."""
    with store_mutation(store):
        product = store.require_product(product_id)
        store.products.remove(product)
        store.persist(PRODUCTS_KEY)


def get_product(store, product_id: str) -> Product:
    return store.require_product(product_id)


def list_products(store, *, category: str | None = None) -> list[Product]:
    if category:
        return [p for p in store.products if p.category == category]
    return list(store.products)


def search_products(store, query: str) -> list[Product]:
    """Match on name or category (case-insensitive) or barcode substring."""
    q = (query or "").strip().lower()
    if not q:
        return list(store.products)
    raw = query.strip()
    return [
        p for p in store.products
        if q in p.name.lower()
        or q in p.category.lower()
        or any(raw in code for code in _barcodes(p))
    ]


def get_product_by_barcode(store, barcode: str) -> tuple[Product, Variant | None]:
    """Look a scanned code up on products first, then on variants."""
    for product in store.products:
        if product.barcode == barcode:
            return product, None
    for product in store.products:
        if isinstance(product, VariantProduct):
            for variant in product.variants:
                if variant.barcode == barcode:
                    return product, variant
    raise NotFoundError("Product not found", details={"barcode": barcode})


def add_category(store, name: str) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationError("category name cannot be blank")
    with store_mutation(store):
        if trimmed in store.categories:
            raise ConflictError("Category already exists", details={"category": trimmed})
        store.categories.append(trimmed)
        store.persist(CATEGORIES_KEY)
        return trimmed


def rename_category(store, old_name: str, new_name: str) -> str:
    """Rename a category and move every product in it along."""
    trimmed = (new_name or "").strip()
    if not trimmed:
        raise ValidationError("category name cannot be blank")
    with store_mutation(store):
        if old_name not in store.categories:
            raise NotFoundError("Category not found", details={"category": old_name})
        if trimmed in store.categories:
            raise ConflictError("Category already exists", details={"category": trimmed})

        now = store.now()
        store.categories[store.categories.index(old_name)] = trimmed
        for product in store.products:
            if product.category == old_name:
                product.category = trimmed
                product.updated_at = now
        store.persist(CATEGORIES_KEY, PRODUCTS_KEY)
        return trimmed


def delete_category(store, name: str) -> None:
    with store_mutation(store):
        if name not in store.categories:
            raise NotFoundError("Category not found", details={"category": name})
        in_use = sum(1 for p in store.products if p.category == name)
        if in_use:
            raise ConflictError("Category is still used by products", details={"products": in_use})
        store.categories.remove(name)
        store.persist(CATEGORIES_KEY)
