"""
Stock adjustment, audit trail and low-stock feed tests.
"""

import pytest

from retail_pos.errors import PersistenceError, ProductNotFoundError, ValidationError, VersionConflictError
from retail_pos.services import catalog_service, inventory_service
from retail_pos.services.inventory_service import StockStatus, classify
from retail_pos.services.record_store import records


def _stock(product_id):
    return records.read(f"products/{product_id}")["stock"]


class TestAdjustStock:
    def test_add(self, db_session, product_a):
        adj = inventory_service.adjust_stock(product_a["id"], 5, "add", "restock", actor_id="7")
        assert _stock(product_a["id"]) == 15
        assert adj["delta"] == 5
        assert adj["previousStock"] == 10
        assert adj["newStock"] == 15
        assert adj["actorId"] == "7"

    def test_subtract(self, db_session, product_a):
        inventory_service.adjust_stock(product_a["id"], 4, "subtract", "damaged")
        assert _stock(product_a["id"]) == 6

    def test_subtract_below_zero_clamps(self, db_session):
        product = catalog_service.create_product({"name": "Few", "sku": "FEW-1", "price": 1, "stock": 3})
        adj = inventory_service.adjust_stock(product["id"], 5, "subtract", "theft")
        assert _stock(product["id"]) == 0
        assert adj["delta"] == -3

    def test_set(self, db_session, product_a):
        adj = inventory_service.adjust_stock(product_a["id"], 42, "set", "correction", notes="count")
        assert _stock(product_a["id"]) == 42
        assert adj["delta"] == 32
        assert adj["notes"] == "count"

    def test_missing_product(self, db_session):
        with pytest.raises(ProductNotFoundError):
            inventory_service.adjust_stock("does-not-exist", 1, "add", "restock")
        assert records.list("inventory-adjustments") == []

    @pytest.mark.parametrize("quantity,direction,reason", [
        (-1, "add", "restock"),
        ("3", "add", "restock"),
        (True, "add", "restock"),
        (1, "multiply", "restock"),
        (1, "add", ""),
        (1, "add", "birthday"),
    ])
    def test_invalid_input_is_rejected_before_any_write(self, db_session, product_a, quantity, direction, reason):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(product_a["id"], quantity, direction, reason)
        assert _stock(product_a["id"]) == 10
        assert records.list("inventory-adjustments") == []

    def test_each_adjustment_appends_one_audit_record(self, db_session, product_a):
        inventory_service.adjust_stock(product_a["id"], 1, "add", "restock")
        inventory_service.adjust_stock(product_a["id"], 2, "subtract", "expired")
        rows = inventory_service.list_adjustments(product_a["id"])
        assert len(rows) == 2
        assert sorted(r["delta"] for r in rows) == [-2, 1]
        assert all(r["productName"] == "Product A" for r in rows)

    def test_failed_audit_write_leaves_stock_unchanged(self, db_session, product_a, monkeypatch):
        real_create = records.create

        def failing_create(collection, record):
            if collection == "inventory-adjustments":
                raise PersistenceError("disk full")
            return real_create(collection, record)

        monkeypatch.setattr(records, "create", failing_create)
        with pytest.raises(PersistenceError):
            inventory_service.adjust_stock(product_a["id"], 2, "subtract", "sale")
        monkeypatch.undo()

        assert _stock(product_a["id"]) == 10
        assert records.list("inventory-adjustments") == []


class TestConcurrentWrites:
    def test_conflicting_writer_is_retried_not_lost(self, db_session, product_a, monkeypatch):
        real_read = records.read_versioned
        calls = {"n": 0}

        def racing_read(path):
            doc, version = real_read(path)
            calls["n"] += 1
            if calls["n"] == 1:
                # another writer restocks between our read and our write
                records.update(path, {"stock": doc["stock"] + 5})
            return doc, version

        monkeypatch.setattr(records, "read_versioned", racing_read)
        adj = inventory_service.adjust_stock(product_a["id"], 3, "subtract", "sale")

        assert calls["n"] == 2
        assert _stock(product_a["id"]) == 12
        assert adj["previousStock"] == 15

    def test_conflict_surfaces_after_retry_budget(self, db_session, product_a, monkeypatch):
        real_read = records.read_versioned
        calls = {"n": 0}

        def always_racing(path):
            doc, version = real_read(path)
            calls["n"] += 1
            records.update(path, {"stock": doc["stock"] + 1})
            return doc, version

        monkeypatch.setattr(records, "read_versioned", always_racing)
        with pytest.raises(VersionConflictError):
            inventory_service.adjust_stock(product_a["id"], 1, "subtract", "sale")
        assert calls["n"] == 3
        assert records.list("inventory-adjustments") == []


class TestClassify:
    @pytest.mark.parametrize("stock,min_stock,expected", [
        (0, 0, StockStatus.OUT_OF_STOCK),
        (0, 5, StockStatus.OUT_OF_STOCK),
        (1, 5, StockStatus.LOW_STOCK),
        (5, 5, StockStatus.LOW_STOCK),
        (6, 5, StockStatus.IN_STOCK),
        (1, 0, StockStatus.IN_STOCK),
    ])
    def test_classification(self, stock, min_stock, expected):
        assert classify({"stock": stock, "minStock": min_stock}) == expected

    def test_total_and_exclusive(self):
        for stock in range(0, 12):
            for min_stock in range(0, 12):
                status = classify({"stock": stock, "minStock": min_stock})
                assert status in set(StockStatus)
                assert (status == StockStatus.OUT_OF_STOCK) == (stock == 0)


class TestLowStockFeeds:
    def test_flat_threshold_and_min_stock_feeds_differ(self, db_session, product_a, product_b):
        # product_a: stock 10, minStock 2; product_b: stock 5, minStock 5
        flat = {p["sku"] for p in inventory_service.list_low_stock(10)}
        per_product = {p["sku"] for p in inventory_service.list_below_minimum()}
        assert flat == {"PROD-A-001", "PROD-B-001"}
        assert per_product == {"PROD-B-001"}

    def test_flat_threshold_defaults_to_config(self, db_session, product_a, product_b):
        assert len(inventory_service.list_low_stock()) == 2
        assert [p["sku"] for p in inventory_service.list_low_stock(5)] == ["PROD-B-001"]

    def test_filter_by_status(self, db_session, product_a, product_b):
        products = records.list("products")
        assert [p["sku"] for p in inventory_service.filter_by_status(products, "low_stock")] == ["PROD-B-001"]
        assert [p["sku"] for p in inventory_service.filter_by_status(products, "in_stock")] == ["PROD-A-001"]
        assert len(inventory_service.filter_by_status(products, "all")) == 2
        with pytest.raises(ValidationError):
            inventory_service.filter_by_status(products, "sideways")

    def test_inventory_stats(self, db_session, product_a, product_b):
        catalog_service.create_product({"name": "Empty", "sku": "EMPTY", "price": 7, "stock": 0})
        stats = inventory_service.inventory_stats()
        assert stats == {
            "totalProducts": 3,
            "inStock": 1,
            "lowStock": 1,
            "outOfStock": 1,
            "totalValue": 1000 * 10 + 500 * 5,
        }
