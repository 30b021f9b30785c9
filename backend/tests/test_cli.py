import pytest

from pesopos.services.sales_service import build_cart_item, record_sale


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestSystemCommands:
    def test_init_creates_default_users(self, runner, store):
        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "DONE PesoPOS Initialized Successfully!" in result.output
        assert sorted(u.username for u in store.users) == ["admin", "cashier", "manager"]

    def test_init_is_idempotent(self, runner, store):
        runner.invoke(args=["system", "init"])
        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert len(store.users) == 3

    def test_reset_requires_confirmation(self, runner, store, cola):
        result = runner.invoke(args=["system", "reset"])
        assert result.exit_code == 1
        assert store.storage.get("products") is not None

    def test_reset(self, app, runner, store, cola):
        result = runner.invoke(args=["system", "reset", "--yes"])
        assert result.exit_code == 0
        assert store.storage.keys() == []
        assert "pos_store" not in app.extensions


class TestCatalogCommands:
    def test_seed_demo_twice(self, runner, store):
        first = runner.invoke(args=["catalog", "seed-demo"])
        assert "DONE Created 5 products" in first.output

        second = runner.invoke(args=["catalog", "seed-demo"])
        assert "DONE Created 0 products" in second.output
        assert len(store.products) == 5


class TestInventoryCommands:
    def test_alerts(self, runner, cola, tshirt):
        result = runner.invoke(args=["inventory", "alerts"])
        assert result.exit_code == 0
        assert "Low stock (<= 10): 1" in result.output
        assert "T-Shirt [out]: M (0)" in result.output

    def test_threshold_option(self, runner, cola):
        result = runner.invoke(args=["inventory", "alerts", "--threshold", "60"])
        assert "Low stock (<= 60): 1" in result.output


class TestReceiptCommands:
    def test_preview_single_layout(self, runner, store):
        result = runner.invoke(args=["receipts", "preview", "--layout", "minimal"])
        assert result.exit_code == 0
        assert "=== MINIMAL RECEIPT SETTINGS ===" in result.output
        assert "DEFAULT" not in result.output

    def test_preview_rejects_unknown_layout(self, runner, store):
        result = runner.invoke(args=["receipts", "preview", "--layout", "tiny"])
        assert result.exit_code != 0

    def test_show(self, runner, store, cola):
        sale = record_sale(
            store,
            items=[build_cart_item(cola, 1)],
            payment_method="cash",
            amount_received=100,
            cashier_id="c1",
            cashier_name="Juan",
        )
        result = runner.invoke(args=["receipts", "show", sale.receipt_number])
        assert result.exit_code == 0
        assert f"Receipt #: {sale.receipt_number}" in result.output

    def test_show_unknown(self, runner, store):
        result = runner.invoke(args=["receipts", "show", "R-0"])
        assert result.exit_code == 1
        assert "FAIL Sale not found" in result.output
