import logging

import pytest

from pesopos.models import CartItem
from pesopos.services import sales_service
from pesopos.services.money import InvalidDiscountError
from pesopos.services.pos_store import PosStore
from pesopos.services.sales_service import (
    EmptyCartError,
    InsufficientPaymentError,
    build_cart_item,
    hold_transaction,
    list_held_transactions,
    record_sale,
    retrieve_held_transaction,
)
from pesopos.services.settings_service import update_settings
from pesopos.services.storage_service import KeyValueStorage, StorageError
from pesopos.services.stock_service import total_stock
from pesopos.validation import NotFoundError, ValidationError


def size(product, label):
    return next(v for v in product.variants if v.size == label)


def checkout(store, items, **kwargs):
    kwargs.setdefault("payment_method", "cash")
    kwargs.setdefault("amount_received", 1000)
    kwargs.setdefault("cashier_id", "cashier-1")
    kwargs.setdefault("cashier_name", "Juan")
    return record_sale(store, items=items, **kwargs)


class TestBuildCartItem:
    def test_simple_product_uses_product_price(self, cola):
        item = build_cart_item(cola, 2)
        assert item.unit_price == 100
        assert item.subtotal == 200
        assert item.variant is None
        assert item.product["name"] == "Coca-Cola"

    def test_variant_price_wins(self, tshirt):
        item = build_cart_item(tshirt, 3, size(tshirt, "M").id)
        assert item.unit_price == 260
        assert item.subtotal == 780
        assert item.variant_label == "M"

    def test_variant_product_needs_a_size(self, tshirt):
        with pytest.raises(ValidationError):
            build_cart_item(tshirt, 1)

    def test_inactive_variant_refused(self, tshirt):
        small = size(tshirt, "S")
        small.is_active = False
        with pytest.raises(ValidationError):
            build_cart_item(tshirt, 1, small.id)

    @pytest.mark.parametrize("quantity", [0, -1, 2.5])
    def test_quantity_must_be_positive(self, cola, quantity):
        with pytest.raises(ValidationError):
            build_cart_item(cola, quantity)


class TestRecordSale:
    def test_vat_inclusive_totals(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 2)], discount=10, discount_type="fixed", amount_received=200)

        assert sale.subtotal == 200.00
        assert sale.discount == 10.00
        assert sale.total == 190.00
        assert sale.vat_amount == 20.36
        assert sale.vat_rate == 0.12
        assert sale.change == 10.00
        assert round(sale.total - sale.vat_amount, 2) == 169.64

    def test_percentage_discount(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 2)], discount=10, discount_type="percentage")
        assert sale.discount == 20.0
        assert sale.total == 180.0

    def test_vat_disabled(self, store, cola):
        update_settings(store, {"vat_enabled": False})
        sale = checkout(store, [build_cart_item(cola, 1)])
        assert sale.vat_amount == 0
        assert sale.vat_rate == 0

    def test_decrements_stock_and_logs_sale_adjustments(self, store, cola, tshirt):
        items = [build_cart_item(cola, 2), build_cart_item(tshirt, 4, size(tshirt, "S").id)]
        sale = checkout(store, items, amount_received=1200, cashier_id="cashier-9")

        assert cola.stock == 48
        assert size(tshirt, "S").stock == 6
        assert total_stock(tshirt) == sum(v.stock for v in tshirt.variants) == 6
        assert store.sales == [sale]
        assert [(a.reason, a.quantity, a.user_id) for a in store.stock_adjustments] == [
            ("sale", 2, "cashier-9"),
            ("sale", 4, "cashier-9"),
        ]

    def test_overselling_clamps_at_zero(self, store, cola):
        checkout(store, [build_cart_item(cola, 60)], amount_received=6000)
        assert cola.stock == 0
        assert store.stock_adjustments[-1].quantity == 60

    def test_price_edit_after_adding_to_cart_does_not_change_charge(self, store, cola):
        item = build_cart_item(cola, 1)
        cola.price = 999
        sale = checkout(store, [item])
        assert sale.total == 100

    def test_sale_items_are_snapshots(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 1)])
        cola.name = "Renamed"
        assert sale.items[0].name == "Coca-Cola"

    def test_receipt_numbers_unique_within_same_millisecond(self, store, cola):
        first = checkout(store, [build_cart_item(cola, 1)])
        second = checkout(store, [build_cart_item(cola, 1)])
        assert first.receipt_number.startswith("R-")
        assert second.receipt_number == f"{first.receipt_number}-1"

    def test_receipt_numbers_not_reused_after_restart(self, app, store, cola):
        first = checkout(store, [build_cart_item(cola, 1)])

        restarted = PosStore(KeyValueStorage(), clock=store.clock).load()
        second = checkout(restarted, [build_cart_item(restarted.find_product(cola.id), 1)])
        assert second.receipt_number != first.receipt_number

    def test_persisted_together(self, app, store, cola):
        sale = checkout(store, [build_cart_item(cola, 5)])
        reloaded = PosStore(KeyValueStorage()).load()
        assert [s.receipt_number for s in reloaded.sales] == [sale.receipt_number]
        assert reloaded.find_product(cola.id).stock == 45
        assert len(reloaded.stock_adjustments) == 1


class TestPayments:
    def test_insufficient_cash(self, store, cola):
        with pytest.raises(InsufficientPaymentError):
            checkout(store, [build_cart_item(cola, 2)], amount_received=199.99)

    def test_exact_cash(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 2)], amount_received=200)
        assert sale.change == 0

    def test_card_defaults_to_total_and_keeps_reference(self, store, cola):
        sale = checkout(
            store, [build_cart_item(cola, 2)], payment_method="card", amount_received=None, reference_number="CARD-1111-123456"
        )
        assert sale.amount_received == 200
        assert sale.change == 0
        assert sale.reference_number == "CARD-1111-123456"

    def test_gcash_must_equal_total(self, store, cola):
        with pytest.raises(ValidationError):
            checkout(store, [build_cart_item(cola, 2)], payment_method="gcash", amount_received=250, reference_number="1234567890")
        with pytest.raises(InsufficientPaymentError):
            checkout(store, [build_cart_item(cola, 2)], payment_method="gcash", amount_received=150, reference_number="1234567890")

    def test_non_cash_needs_reference(self, store, cola):
        with pytest.raises(ValidationError):
            checkout(store, [build_cart_item(cola, 1)], payment_method="card", amount_received=None)

    def test_numeric_reference_is_stored_as_text(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 1)], payment_method="gcash", amount_received=None, reference_number=1234567890)
        assert sale.reference_number == "1234567890"

    def test_cash_has_no_reference(self, store, cola):
        sale = checkout(store, [build_cart_item(cola, 1)], reference_number="ignored")
        assert sale.reference_number is None

    def test_unknown_method(self, store, cola):
        with pytest.raises(ValidationError):
            checkout(store, [build_cart_item(cola, 1)], payment_method="cheque")


class TestAtomicity:
    def assert_untouched(self, store, cola):
        assert cola.stock == 50
        assert store.sales == []
        assert store.stock_adjustments == []

    def test_empty_cart(self, store, cola):
        with pytest.raises(EmptyCartError):
            checkout(store, [])
        self.assert_untouched(store, cola)

    def test_failed_payment_leaves_stock(self, store, cola):
        with pytest.raises(InsufficientPaymentError):
            checkout(store, [build_cart_item(cola, 2)], amount_received=10)
        self.assert_untouched(store, cola)

    def test_discount_over_subtotal(self, store, cola):
        with pytest.raises(InvalidDiscountError):
            checkout(store, [build_cart_item(cola, 1)], discount=150)
        self.assert_untouched(store, cola)

    def test_unknown_product_on_a_later_line_leaves_earlier_lines(self, store, cola):
        ghost = CartItem(product_id="ghost", product={"id": "ghost", "name": "Ghost"}, quantity=1, unit_price=5, subtotal=5)
        with pytest.raises(NotFoundError):
            checkout(store, [build_cart_item(cola, 2), ghost])
        self.assert_untouched(store, cola)

    def test_tampered_subtotal(self, store, cola):
        item = build_cart_item(cola, 2)
        bad = CartItem(product_id=item.product_id, product=item.product, quantity=2, unit_price=100, subtotal=1)
        with pytest.raises(ValidationError):
            checkout(store, [bad])
        self.assert_untouched(store, cola)

    def test_storage_failure_is_logged_and_memory_kept(self, store, cola, monkeypatch, caplog):
        def fail(values):
            raise StorageError("disk full")

        monkeypatch.setattr(store.storage, "_write", fail)
        with caplog.at_level(logging.ERROR):
            sale = checkout(store, [build_cart_item(cola, 1)])

        assert store.sales == [sale]
        assert cola.stock == 49
        assert "Error saving to storage" in caplog.text


class TestHeldTransactions:
    def test_hold_and_retrieve(self, store, cola):
        held = hold_transaction(store, items=[build_cart_item(cola, 3)], note="  table 4 ")
        assert held.note == "table 4"
        assert list_held_transactions(store) == [held]
        assert cola.stock == 50

        items = retrieve_held_transaction(store, held.id)
        assert [i.quantity for i in items] == [3]
        assert list_held_transactions(store) == []

    def test_retrieve_twice(self, store, cola):
        held = hold_transaction(store, items=[build_cart_item(cola, 1)])
        retrieve_held_transaction(store, held.id)
        with pytest.raises(NotFoundError):
            retrieve_held_transaction(store, held.id)

    def test_cannot_hold_empty_cart(self, store):
        with pytest.raises(EmptyCartError):
            hold_transaction(store, items=[])


def test_get_sale_by_receipt_number(store, cola):
    sale = checkout(store, [build_cart_item(cola, 1)])
    assert sales_service.get_sale(store, sale.receipt_number) is sale
    with pytest.raises(NotFoundError):
        sales_service.get_sale(store, "R-0")
