"""
Cart arithmetic and stock-bound tests.

The cart is a pure in-memory object, so none of these need the database.
"""

from decimal import Decimal

import pytest

from retail_pos.errors import InsufficientStockError, NotFoundError, OutOfStockError, ValidationError
from retail_pos.services.cart_service import Cart


def _product(pid, price, stock, name=None):
    return {"id": pid, "name": name or f"Product {pid}", "sku": f"SKU-{pid}", "price": price, "stock": stock}


@pytest.fixture
def cart():
    return Cart(tax_rate=Decimal("0.19"))


class TestAddItem:
    def test_new_line_defaults_to_quantity_one(self, cart):
        cart.add_item(_product("p1", 100, 5))
        assert [(l.product_id, l.quantity) for l in cart.lines] == [("p1", 1)]

    def test_adding_again_merges_into_existing_line(self, cart):
        p = _product("p1", 100, 5)
        cart.add_item(p)
        cart.add_item(p, 2)
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3

    def test_out_of_stock_product_is_rejected(self, cart):
        with pytest.raises(OutOfStockError):
            cart.add_item(_product("p1", 100, 0))
        assert cart.is_empty()

    def test_merge_beyond_stock_is_rejected_and_cart_unchanged(self, cart):
        p = _product("p1", 100, 2)
        cart.add_item(p, 2)
        with pytest.raises(InsufficientStockError) as exc:
            cart.add_item(p)
        assert exc.value.available == 2
        assert cart.lines[0].quantity == 2

    def test_non_positive_quantity_is_rejected(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item(_product("p1", 100, 5), 0)


class TestSetQuantity:
    def test_zero_removes_line(self, cart):
        cart.add_item(_product("p1", 100, 5))
        cart.set_quantity("p1", 0)
        assert cart.is_empty()

    def test_negative_removes_line(self, cart):
        cart.add_item(_product("p1", 100, 5))
        cart.set_quantity("p1", -3)
        assert cart.is_empty()

    def test_above_last_synced_stock_is_rejected(self, cart):
        cart.add_item(_product("p1", 100, 4))
        with pytest.raises(InsufficientStockError):
            cart.set_quantity("p1", 5)
        assert cart.lines[0].quantity == 1

    def test_within_stock_replaces_quantity(self, cart):
        cart.add_item(_product("p1", 100, 4))
        cart.set_quantity("p1", 4)
        assert cart.lines[0].quantity == 4

    def test_bound_is_the_snapshot_until_synced(self, cart):
        cart.add_item(_product("p1", 100, 4))
        cart.sync_product(_product("p1", 100, 10))
        cart.set_quantity("p1", 9)
        assert cart.lines[0].quantity == 9

    def test_unknown_product_is_reported(self, cart):
        cart.add_item(_product("p1", 100, 4))
        with pytest.raises(NotFoundError):
            cart.set_quantity("p2", 1)
        assert [l.product_id for l in cart.lines] == ["p1"]


class TestRemoveAndClear:
    def test_remove_is_idempotent(self, cart):
        cart.add_item(_product("p1", 100, 5))
        cart.remove_item("p1")
        cart.remove_item("p1")
        cart.remove_item("never-added")
        assert cart.is_empty()

    def test_clear_drops_lines_and_customer(self, cart):
        cart.add_item(_product("p1", 100, 5))
        cart.attach_customer({"id": "c1", "name": "Amina"})
        cart.clear()
        assert cart.is_empty()
        assert cart.customer_id is None
        assert cart.customer_name is None


class TestTotals:
    def test_empty_cart_totals_are_zero(self, cart):
        assert cart.subtotal() == 0
        assert cart.tax() == 0
        assert cart.total() == 0

    def test_worked_example(self, cart):
        cart.add_item(_product("p1", 1000, 10), 2)
        cart.add_item(_product("p2", 500, 10), 1)
        assert cart.subtotal() == Decimal("2500")
        assert cart.tax() == Decimal("475")
        assert cart.total() == Decimal("2975")

    def test_fractional_prices_are_exact(self, cart):
        cart.add_item(_product("p1", 0.1, 10), 3)
        cart.add_item(_product("p2", 19.99, 10), 2)
        assert cart.subtotal() == Decimal("40.28")
        assert cart.tax() == Decimal("40.28") * Decimal("0.19")
        assert cart.total() == cart.subtotal() + cart.tax()

    def test_item_count_sums_quantities(self, cart):
        cart.add_item(_product("p1", 1, 10), 3)
        cart.add_item(_product("p2", 1, 10), 2)
        assert cart.item_count() == 5

    def test_to_dict_uses_json_numbers(self, cart):
        cart.add_item(_product("p1", 1000, 10), 2)
        data = cart.to_dict()
        assert data["subtotal"] == 2000
        assert data["tax"] == 380
        assert data["total"] == 2380
        assert data["items"][0]["lineTotal"] == 2000


class TestSyncProduct:
    def test_shrinks_line_to_new_stock(self, cart):
        cart.add_item(_product("p1", 100, 5), 4)
        cart.sync_product(_product("p1", 120, 2))
        assert cart.lines[0].quantity == 2
        assert cart.lines[0].unit_price == Decimal("120")

    def test_drops_line_when_stock_runs_out(self, cart):
        cart.add_item(_product("p1", 100, 5), 1)
        cart.sync_product(_product("p1", 100, 0))
        assert cart.is_empty()


def test_lines_never_violate_stock_bounds():
    """Random-ish operation sequence; every line stays within 0 < qty <= stock."""
    cart = Cart(tax_rate=Decimal("0.19"))
    products = [_product("a", 10, 3), _product("b", 20, 1), _product("c", 5, 0)]
    ops = [
        ("add", 0, 1), ("add", 0, 2), ("add", 0, 1), ("add", 1, 1), ("add", 1, 1),
        ("add", 2, 1), ("set", "a", 5), ("set", "b", 0), ("set", "a", 2),
        ("remove", "a", None), ("add", 1, 1), ("set", "b", 1),
    ]
    stock = {p["id"]: p["stock"] for p in products}
    for op, target, qty in ops:
        try:
            if op == "add":
                cart.add_item(products[target], qty)
            elif op == "set":
                cart.set_quantity(target, qty)
            else:
                cart.remove_item(target)
        except (OutOfStockError, InsufficientStockError):
            pass
        for line in cart.lines:
            assert 0 < line.quantity <= stock[line.product_id]
