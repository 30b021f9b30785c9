from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..time_utils import utcnow, to_utc_z, parse_iso_datetime


@dataclass(frozen=True)
class StockAdjustment:
    """
    Append-only audit record of one stock change.

    quantity is what was requested, not what was applied: removing 60 from
    a stock of 50 records 60 even though the stock only dropped by 50.
    product_id is a weak reference; the product may later be deleted.
    """
    id: str
    product_id: str
    product_name: str
    adjustment_type: str
    quantity: int
    reason: str
    user_id: str
    variant_id: str | None = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "adjustment_type": self.adjustment_type,
            "quantity": self.quantity,
            "reason": self.reason,
            "user_id": self.user_id,
            "variant_id": self.variant_id,
            "timestamp": to_utc_z(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StockAdjustment":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            product_name=data.get("product_name", ""),
            adjustment_type=data["adjustment_type"],
            quantity=int(data["quantity"]),
            reason=data.get("reason", ""),
            user_id=data.get("user_id", ""),
            variant_id=data.get("variant_id"),
            timestamp=parse_iso_datetime(data.get("timestamp")) or utcnow(),
        )
