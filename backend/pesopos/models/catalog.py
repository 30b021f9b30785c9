from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..time_utils import utcnow, to_utc_z, parse_iso_datetime


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Variant:
    """A sellable size of a product, with its own price and stock."""
    id: str
    size: str
    price: float
    stock: int = 0
    barcode: str | None = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "size": self.size,
            "price": self.price,
            "stock": self.stock,
            "barcode": self.barcode,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Variant":
        return cls(
            id=data.get("id") or new_id(),
            size=data["size"],
            price=float(data["price"]),
            stock=int(data.get("stock") or 0),
            barcode=data.get("barcode"),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass
class Product:
    """
    Catalog entry. Never instantiated directly: a product is either a
    SimpleProduct (flat price/stock are authoritative) or a VariantProduct
    (stock is always the sum of its variants).
    """
    id: str
    name: str
    category: str
    price: float
    cost: float | None = None
    barcode: str | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    has_variants = False

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "cost": self.cost,
            "barcode": self.barcode,
            "description": self.description,
            "has_variants": self.has_variants,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_dict(self) -> dict:
        raise NotImplementedError

    @staticmethod
    def from_dict(data: dict) -> "Product":
        """
        Decode a stored product.

        Records written before variant support carry no has_variants flag
        and load as simple products.
        """
        common = {
            "id": data["id"],
            "name": data["name"],
            "category": data.get("category") or "Others",
            "price": float(data.get("price") or 0),
            "cost": float(data["cost"]) if data.get("cost") is not None else None,
            "barcode": data.get("barcode"),
            "description": data.get("description"),
            "created_at": parse_iso_datetime(data.get("created_at")) or utcnow(),
            "updated_at": parse_iso_datetime(data.get("updated_at")) or utcnow(),
        }
        if data.get("has_variants"):
            # Stored "stock" is advisory for variant products; the variants are authoritative
            return VariantProduct(
                **common,
                variants=[Variant.from_dict(v) for v in data.get("variants") or []],
            )
        return SimpleProduct(**common, stock=int(data.get("stock") or 0))


@dataclass
class SimpleProduct(Product):
    stock: int = 0

    has_variants = False

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["stock"] = self.stock
        data["variants"] = None
        return data


@dataclass
class VariantProduct(Product):
    variants: list[Variant] = field(default_factory=list)

    has_variants = True

    @property
    def stock(self) -> int:
        return sum(v.stock for v in self.variants)

    def find_variant(self, variant_id: str) -> Variant | None:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["stock"] = self.stock
        data["variants"] = [v.to_dict() for v in self.variants]
        return data
