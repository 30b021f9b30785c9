# Overview: Fixed-width text receipts for recorded sales, plus layout previews.

"""
Receipt Rendering

render_receipt(sale, settings) is a pure function: it reads only the sale
and the settings it is given (never the clock or the live catalog), so a
re-print or download is byte-identical to the first print.

Field order is fixed and is the only "protocol" a receipt has:
header, business identity, receipt #, date, cashier, items, subtotal,
discount (nonzero only), VAT, total, payment, reference (non-cash only),
amount received, change, footer, thank-you line.
"""

from __future__ import annotations

from datetime import datetime

from ..models import BusinessSettings, CartItem, Sale
from ..time_utils import format_local_datetime
from ..validation import ValidationError
from .money import DISCOUNT_FIXED, format_currency, round_money, vat_exclusive_split

RECEIPT_WIDTH = 80
THANK_YOU = "Thank you for your business!"

# Item rows: "  <qty x price padded to 25> <line total right-aligned in 10>"
QTY_PRICE_WIDTH = 25
LINE_TOTAL_WIDTH = 10


def _center(text: str, width: int) -> str:
    return " " * max(0, (width - len(text)) // 2) + text


def _amount_row(label: str, amount: float, width: int) -> str:
    return f"{label}{format_currency(amount):>{max(0, width - len(label))}}"


def _vat_label(rate: float) -> str:
    return f"VAT ({round(rate * 100, 2):g}%):"


def _identity_lines(settings: BusinessSettings) -> list[str]:
    lines = []
    if settings.show_business_name:
        lines.append(settings.business_name)
    if settings.show_address:
        lines.append(settings.address)
    if settings.show_tin:
        lines.append(f"TIN: {settings.tin}")
    if settings.show_bir_permit:
        lines.append(f"BIR Permit: {settings.bir_permit_number}")
    if settings.show_contact_number:
        lines.append(f"Contact: {settings.contact_number}")
    return lines


def _item_lines(item: CartItem) -> list[str]:
    label = item.name
    if item.variant_label:
        label += f" ({item.variant_label})"
    qty_price = f"{item.quantity} x {format_currency(item.unit_price)}"
    total = format_currency(item.subtotal)
    return [label, f"  {qty_price:<{QTY_PRICE_WIDTH}} {total:>{LINE_TOTAL_WIDTH}}"]


def render_receipt(sale: Sale, settings: BusinessSettings) -> str:
    width = settings.receipt_width or RECEIPT_WIDTH
    lines: list[str] = []

    if settings.receipt_header:
        lines += [_center(settings.receipt_header, width), ""]

    lines += [_center(line, width) for line in _identity_lines(settings)]
    lines += [
        "",
        f"Receipt #: {sale.receipt_number}",
        f"Date: {format_local_datetime(sale.timestamp, settings.timezone)}",
        f"Cashier: {sale.cashier_name}",
        "",
        "=" * width,
        "ITEMS",
        "=" * width,
    ]

    for item in sale.items:
        lines += _item_lines(item)

    lines += ["", "-" * width, _amount_row("Subtotal:", sale.subtotal, width)]
    if sale.discount > 0:
        lines.append(_amount_row("Discount:", sale.discount, width))
    lines += [
        _amount_row(_vat_label(sale.vat_rate), sale.vat_amount, width),
        "=" * width,
        _amount_row("TOTAL:", sale.total, width),
        "=" * width,
        "",
        f"Payment: {sale.payment_method.upper()}",
    ]
    if sale.payment_method != "cash" and sale.reference_number:
        lines.append(f"Reference: {sale.reference_number}")
    lines += [
        f"Amount Received: {format_currency(sale.amount_received)}",
        f"Change: {format_currency(sale.change)}",
        "",
        _center(settings.receipt_footer, width),
        "",
        _center(THANK_YOU, width),
    ]
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Previews
# ---------------------------------------------------------------------------

PREVIEW_LAYOUTS = ("default", "minimal", "wide")


def _sample_item(product_id: str, name: str, category: str, price: float, quantity: int, barcode: str) -> CartItem:
    return CartItem(
        product_id=product_id,
        product={
            "id": product_id,
            "name": name,
            "category": category,
            "price": price,
            "barcode": barcode,
            "has_variants": False,
        },
        quantity=quantity,
        unit_price=price,
        subtotal=round_money(price * quantity),
    )


def sample_sale(vat_rate: float = 0.12) -> Sale:
    """A fixed two-line cash sale used to preview receipt layouts."""
    items = (
        _sample_item("prod-001", "Coca-Cola 1.5L", "Beverages", 75.0, 2, "4900000001"),
        _sample_item("prod-002", "Lays Classic Chips", "Snacks", 45.0, 1, "4900000002"),
    )
    total = round_money(sum(i.subtotal for i in items))
    return Sale(
        id="preview-001",
        receipt_number="R-PREVIEW-0001",
        timestamp=datetime(2024, 1, 15, 6, 30),
        cashier_id="cashier-001",
        cashier_name="John Doe",
        items=items,
        subtotal=total,
        discount=0.0,
        discount_type=DISCOUNT_FIXED,
        vat_amount=round_money(vat_exclusive_split(total, vat_rate).vat),
        vat_rate=vat_rate,
        total=total,
        payment_method="cash",
        amount_received=200.0,
        change=round_money(200.0 - total),
    )


def layout_settings(layout: str, base: BusinessSettings | None = None) -> BusinessSettings:
    """Preset receipt layouts applied on top of the shop's settings."""
    base = base or BusinessSettings()
    if layout == "default":
        return base.with_updates({"receipt_header": "Thank you for shopping with us!", "receipt_width": 80})
    if layout == "minimal":
        return base.with_updates({
            "receipt_header": "",
            "show_business_name": False,
            "show_address": False,
            "show_tin": False,
            "show_bir_permit": False,
            "show_contact_number": False,
            "receipt_width": 60,
        })
    if layout == "wide":
        return base.with_updates({
            "receipt_header": "WELCOME TO OUR STORE!",
            "receipt_width": 100,
            "show_business_name": True,
            "show_address": True,
            "show_tin": False,
            "show_bir_permit": False,
            "show_contact_number": True,
        })
    raise ValidationError(f"unknown receipt layout: {layout}")


def preview_receipts(base: BusinessSettings | None = None) -> dict[str, str]:
    sale = sample_sale()
    return {layout: render_receipt(sale, layout_settings(layout, base)) for layout in PREVIEW_LAYOUTS}
