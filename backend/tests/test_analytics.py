"""
Sales summary, top-product ranking and report tests.
"""

from datetime import date

import pytest

from retail_pos.errors import ValidationError
from retail_pos.services import analytics_service
from retail_pos.services.record_store import records
from retail_pos.time_utils import utcnow


def _tx(tx_id, created_at, items, customer_id=None):
    total = sum(i["lineTotal"] for i in items)
    record = {
        "id": tx_id,
        "customerId": customer_id,
        "items": items,
        "subtotal": total,
        "tax": 0,
        "total": total,
        "paymentMethod": "cash",
        "cashierId": "1",
        "createdAt": created_at,
    }
    records.set(f"transactions/{tx_id}", record, preserve_timestamps=True)
    return record


def _item(pid, name, qty, price):
    return {"productId": pid, "productName": name, "sku": pid, "quantity": qty, "unitPrice": price,
            "lineTotal": qty * price}


class TestSalesSummary:
    def test_no_transactions_in_range(self, db_session):
        summary = analytics_service.sales_summary("2024-01-01", "2024-01-31")
        assert summary == {
            "totalSales": 0,
            "totalTransactions": 0,
            "averageTransaction": 0,
            "topProducts": [],
        }

    def test_bounds_are_inclusive_and_dates_cover_whole_days(self, db_session):
        _tx("t0", "2024-02-29T23:59:59.999Z", [_item("p1", "Tea", 1, 100)])
        _tx("t1", "2024-03-01T00:00:00.000Z", [_item("p1", "Tea", 1, 100)])
        _tx("t2", "2024-03-15T12:30:00.000Z", [_item("p1", "Tea", 2, 100)])
        _tx("t3", "2024-03-31T23:59:59.000Z", [_item("p2", "Cake", 1, 300)])
        _tx("t4", "2024-04-01T00:00:00.000Z", [_item("p2", "Cake", 9, 300)])

        summary = analytics_service.sales_summary("2024-03-01", "2024-03-31")

        assert summary["totalTransactions"] == 3
        assert summary["totalSales"] == 100 + 200 + 300
        assert summary["averageTransaction"] == 200

    def test_accepts_date_objects(self, db_session):
        _tx("t1", "2024-03-01T10:00:00.000Z", [_item("p1", "Tea", 1, 100)])
        summary = analytics_service.sales_summary(date(2024, 3, 1), date(2024, 3, 1))
        assert summary["totalTransactions"] == 1

    def test_open_ended_range(self, db_session):
        _tx("t1", "2023-01-01T00:00:00.000Z", [_item("p1", "Tea", 1, 100)])
        _tx("t2", "2025-01-01T00:00:00.000Z", [_item("p1", "Tea", 1, 100)])
        assert analytics_service.sales_summary()["totalTransactions"] == 2
        assert analytics_service.sales_summary(start="2024-01-01")["totalTransactions"] == 1

    def test_fractional_average(self, db_session):
        for n in range(3):
            _tx(f"t{n}", "2024-03-01T10:00:00.000Z", [_item("p1", "Tea", 1, 100 if n else 101)])
        summary = analytics_service.sales_summary("2024-03-01", "2024-03-01")
        assert summary["totalSales"] == 301
        assert summary["averageTransaction"] == pytest.approx(100.3333333)

    def test_reversed_range_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            analytics_service.sales_summary("2024-03-31", "2024-03-01")

    def test_garbage_dates_are_rejected(self, db_session):
        with pytest.raises(ValidationError):
            analytics_service.sales_summary("last tuesday", None)


class TestTopProducts:
    TXS = [
        {"items": [_item("a", "Apple", 2, 10), _item("b", "Bread", 5, 3)]},
        {"items": [_item("c", "Cheese", 5, 7), _item("a", "Apple (renamed)", 3, 10)]},
        {"items": [_item("d", "Dates", 1, 4)]},
    ]

    def test_sums_quantity_and_revenue_per_product(self):
        ranked = analytics_service.top_products(self.TXS)
        apple = next(r for r in ranked if r["productId"] == "a")
        assert apple["quantity"] == 5
        assert apple["revenue"] == 50
        assert apple["productName"] == "Apple"

    def test_ties_keep_first_seen_order(self):
        ranked = analytics_service.top_products(self.TXS)
        assert [r["productId"] for r in ranked] == ["a", "b", "c", "d"]

    def test_limit(self):
        assert [r["productId"] for r in analytics_service.top_products(self.TXS, limit=2)] == ["a", "b"]

    def test_sums_are_order_independent(self):
        forward = analytics_service.top_products(self.TXS)
        backward = analytics_service.top_products(list(reversed(self.TXS)))
        by_id = lambda rows: {r["productId"]: (r["quantity"], r["revenue"]) for r in rows}
        assert by_id(forward) == by_id(backward)

    def test_deterministic_for_fixed_input(self):
        assert analytics_service.top_products(self.TXS) == analytics_service.top_products(self.TXS)

    def test_empty(self):
        assert analytics_service.top_products([]) == []


class TestReports:
    def test_product_report(self, db_session, product_a, product_b):
        report = analytics_service.product_report()
        assert report["totalProducts"] == 2
        assert report["lowStockProducts"] == 1
        assert report["outOfStockProducts"] == 0
        assert report["totalValue"] == 12500
        assert report["categories"] == ["General"]

    def test_customer_report(self, db_session, customer_a):
        _tx("t1", "2024-03-01T10:00:00.000Z", [_item("p1", "Tea", 1, 100)], customer_id=customer_a["id"])
        records.create("customers", {"name": "No Orders", "loyaltyPoints": 15})

        report = analytics_service.customer_report(now=utcnow())
        assert report["totalCustomers"] == 2
        assert report["newCustomers"] == 2
        assert report["activeCustomers"] == 1
        assert report["totalLoyaltyPoints"] == 15

    def test_customer_stats_are_derived_from_ledger(self, db_session, customer_a):
        _tx("t1", "2024-03-01T10:00:00.000Z", [_item("p1", "Tea", 1, 100)], customer_id=customer_a["id"])
        _tx("t2", "2024-03-05T10:00:00.000Z", [_item("p1", "Tea", 2, 100)], customer_id=customer_a["id"])
        _tx("t3", "2024-03-06T10:00:00.000Z", [_item("p1", "Tea", 2, 100)])

        stats = analytics_service.customer_stats(customer_a["id"])
        assert stats == {"totalPurchases": 300, "totalOrders": 2, "lastPurchaseAt": "2024-03-05T10:00:00.000Z"}

    def test_dashboard(self, db_session, product_a, product_b):
        _tx("old", "2024-03-01T10:00:00.000Z", [_item("p1", "Tea", 1, 100)])
        _tx("today", "2024-03-02T08:00:00.000Z", [_item("p1", "Tea", 3, 100)], customer_id="c1")

        board = analytics_service.dashboard(date(2024, 3, 2))
        assert board["todaySales"] == 300
        assert board["todayTransactions"] == 1
        assert board["totalProducts"] == 2
        assert board["activeCustomers"] == 1
        assert board["lowStockItems"] == 2
        assert [t["id"] for t in board["recentTransactions"]] == ["today", "old"]
