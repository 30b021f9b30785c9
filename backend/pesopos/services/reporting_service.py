# Overview: Read-only sales reports over the ledger, bucketed by the shop's local day.

from __future__ import annotations

from datetime import date

from ..models import Sale
from ..time_utils import to_local
from ..validation import ValidationError
from .money import round_money


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""


def _local_date(store, sale: Sale) -> date:
    return to_local(sale.timestamp, store.settings.timezone).date()


def sales_by_date(store, day: date) -> list[Sale]:
    """Sales whose timestamp falls on `day` in the business timezone."""
    return [s for s in store.sales if _local_date(store, s) == day]


def today_sales(store) -> list[Sale]:
    return sales_by_date(store, to_local(store.now(), store.settings.timezone).date())


def daily_total(store, day: date) -> float:
    return round_money(sum(s.total for s in sales_by_date(store, day)))


def monthly_revenue(store, year: int, month: int) -> float:
    """Total of every sale in a calendar month (month is 1-12)."""
    if month < 1 or month > 12:
        raise ReportError("month must be between 1 and 12")
    total = 0.0
    for sale in store.sales:
        local = _local_date(store, sale)
        if local.year == year and local.month == month:
            total += sale.total
    return round_money(total)


def daily_summary(store, day: date) -> dict:
    sales = sales_by_date(store, day)
    return {
        "date": day.isoformat(),
        "sales_count": len(sales),
        "items_sold": sum(item.quantity for s in sales for item in s.items),
        "discount_total": round_money(sum(s.discount for s in sales)),
        "vat_total": round_money(sum(s.vat_amount for s in sales)),
        "total": round_money(sum(s.total for s in sales)),
    }


def top_selling_products(store, *, limit: int = 5, day: date | None = None) -> list[dict]:
    """
    Products ranked by line revenue (before sale-level discounts).

    Variants roll up into their parent product. Names come from the sale
    snapshots, so deleted products still show up.
    """
    if limit <= 0:
        raise ReportError("limit must be a positive integer")

    sales = sales_by_date(store, day) if day else store.sales
    rows: dict[str, dict] = {}
    for sale in sales:
        for item in sale.items:
            row = rows.setdefault(
                item.product_id,
                {"product_id": item.product_id, "name": item.name, "quantity": 0, "revenue": 0.0},
            )
            row["quantity"] += item.quantity
            row["revenue"] += item.subtotal

    ranked = sorted(rows.values(), key=lambda r: (-r["revenue"], r["name"]))
    for row in ranked:
        row["revenue"] = round_money(row["revenue"])
    return ranked[:limit]
