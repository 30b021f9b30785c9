from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..time_utils import utcnow, to_utc_z, parse_iso_datetime


@dataclass(frozen=True)
class CartItem:
    """
    One cart line, priced once when it was added to the cart.

    product and variant are snapshots (serialized dicts) taken at that
    moment, so later catalog edits never change a pending or recorded sale.
    """
    product_id: str
    product: dict
    quantity: int
    unit_price: float
    subtotal: float
    variant: dict | None = None

    @property
    def variant_id(self) -> str | None:
        return self.variant["id"] if self.variant else None

    @property
    def name(self) -> str:
        return self.product.get("name", "")

    @property
    def variant_label(self) -> str | None:
        return self.variant.get("size") if self.variant else None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product": self.product,
            "variant": self.variant,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        product = data["product"]
        variant = data.get("variant")
        unit_price = data.get("unit_price")
        if unit_price is None:
            unit_price = variant["price"] if variant else product["price"]
        return cls(
            product_id=data.get("product_id") or product["id"],
            product=product,
            variant=variant,
            quantity=int(data["quantity"]),
            unit_price=float(unit_price),
            subtotal=float(data["subtotal"]),
        )


@dataclass(frozen=True)
class Sale:
    """A recorded sale. Immutable once appended to the ledger."""
    id: str
    receipt_number: str
    timestamp: datetime
    cashier_id: str
    cashier_name: str
    items: tuple[CartItem, ...]
    subtotal: float
    discount: float
    discount_type: str
    vat_amount: float
    vat_rate: float
    total: float
    payment_method: str
    amount_received: float
    change: float
    reference_number: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "receipt_number": self.receipt_number,
            "timestamp": to_utc_z(self.timestamp),
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "discount_type": self.discount_type,
            "vat_amount": self.vat_amount,
            "vat_rate": self.vat_rate,
            "total": self.total,
            "payment_method": self.payment_method,
            "amount_received": self.amount_received,
            "change": self.change,
            "reference_number": self.reference_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=data["id"],
            receipt_number=data["receipt_number"],
            timestamp=parse_iso_datetime(data.get("timestamp")) or utcnow(),
            cashier_id=data.get("cashier_id", ""),
            cashier_name=data.get("cashier_name", ""),
            items=tuple(CartItem.from_dict(item) for item in data.get("items") or []),
            subtotal=float(data["subtotal"]),
            discount=float(data.get("discount") or 0),
            discount_type=data.get("discount_type", "fixed"),
            vat_amount=float(data.get("vat_amount") or 0),
            vat_rate=float(data.get("vat_rate") or 0),
            total=float(data["total"]),
            payment_method=data["payment_method"],
            amount_received=float(data.get("amount_received") or 0),
            change=float(data.get("change") or 0),
            reference_number=data.get("reference_number"),
        )


@dataclass
class HeldTransaction:
    """A parked cart the cashier can recall later."""
    id: str
    items: list[CartItem]
    note: str | None = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "note": self.note,
            "timestamp": to_utc_z(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HeldTransaction":
        return cls(
            id=data["id"],
            items=[CartItem.from_dict(item) for item in data.get("items") or []],
            note=data.get("note"),
            timestamp=parse_iso_datetime(data.get("timestamp")) or utcnow(),
        )
