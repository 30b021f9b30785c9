from datetime import date

import pytest

from pesopos.services import reporting_service
from pesopos.services.reporting_service import ReportError
from pesopos.services.sales_service import build_cart_item, record_sale


def sell(store, product, quantity, variant_id=None):
    return record_sale(
        store,
        items=[build_cart_item(product, quantity, variant_id)],
        payment_method="cash",
        amount_received=10_000,
        cashier_id="c1",
        cashier_name="Juan",
    )


class TestReports:
    def test_sales_bucket_by_manila_day(self, store, cola, clock):
        # 06:30 UTC on Oct 17 is the afternoon of Oct 17 in Manila
        sell(store, cola, 1)
        # 17:00 UTC on Oct 17 is already Oct 18 in Manila
        clock.advance(hours=10, minutes=30)
        late = sell(store, cola, 2)

        assert len(reporting_service.sales_by_date(store, date(2026, 10, 17))) == 1
        assert reporting_service.sales_by_date(store, date(2026, 10, 18)) == [late]

    def test_today_and_daily_total(self, store, cola):
        sell(store, cola, 1)
        sell(store, cola, 2)
        assert len(reporting_service.today_sales(store)) == 2
        assert reporting_service.daily_total(store, date(2026, 10, 17)) == 300.0

    def test_monthly_revenue(self, store, cola, clock):
        sell(store, cola, 1)
        clock.advance(days=20)
        sell(store, cola, 3)
        assert reporting_service.monthly_revenue(store, 2026, 10) == 100.0
        assert reporting_service.monthly_revenue(store, 2026, 11) == 300.0
        with pytest.raises(ReportError):
            reporting_service.monthly_revenue(store, 2026, 13)

    def test_daily_summary(self, store, cola, tshirt):
        small = next(v for v in tshirt.variants if v.size == "S")
        sell(store, cola, 2)
        sell(store, tshirt, 1, small.id)
        summary = reporting_service.daily_summary(store, date(2026, 10, 17))
        assert summary["sales_count"] == 2
        assert summary["items_sold"] == 3
        assert summary["total"] == 450.0

    def test_top_products_by_revenue(self, store, cola, tshirt):
        small = next(v for v in tshirt.variants if v.size == "S")
        sell(store, cola, 2)
        sell(store, tshirt, 1, small.id)
        sell(store, cola, 1)
        rows = reporting_service.top_selling_products(store, limit=5)
        assert [(r["name"], r["quantity"], r["revenue"]) for r in rows] == [
            ("Coca-Cola", 3, 300.0),
            ("T-Shirt", 1, 250.0),
        ]
        assert len(reporting_service.top_selling_products(store, limit=1)) == 1
