# Overview: In-memory cart for one checkout session; line items and derived totals.

"""
Cart Engine

A Cart is a plain value object owned by whoever runs the checkout session
(a route builds one per request; the CLI or tests hold one directly). It
never touches the record store.

Invariants:
- Every line has 0 < quantity <= stock of the product snapshot the cart
  last saw for it.
- subtotal == sum(unitPrice * quantity); tax == subtotal * tax_rate;
  total == subtotal + tax. All arithmetic is Decimal, so these are exact.

The stock bound is optimistic: it is the snapshot captured by add_item or
sync_product, not a live lock. Checkout still clamps and reports per line.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..errors import InsufficientStockError, NotFoundError, OutOfStockError, ValidationError
from ..money import to_decimal, to_number


@dataclass
class CartLine:
    product_id: str
    name: str
    sku: str
    unit_price: Decimal
    quantity: int
    available: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "unitPrice": to_number(self.unit_price),
            "quantity": self.quantity,
            "lineTotal": to_number(self.line_total),
            "available": self.available,
        }


def _stock_of(product: dict) -> int:
    try:
        stock = int(product.get("stock") or 0)
    except (TypeError, ValueError):
        stock = 0
    return max(stock, 0)


class Cart:
    def __init__(self, tax_rate=Decimal("0.19")):
        self.tax_rate = to_decimal(tax_rate, "taxRate")
        self._lines: list[CartLine] = []
        self.customer_id: str | None = None
        self.customer_name: str | None = None

    def _find(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    # -- mutation ---------------------------------------------------------

    def add_item(self, product: dict, qty: int = 1) -> CartLine:
        """
        Add qty of product, merging into an existing line.

        Raises OutOfStockError when the product has no stock, and
        InsufficientStockError when the merged quantity would exceed it.
        """
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("quantity must be a positive integer")

        product_id = product.get("id")
        if not product_id:
            raise ValidationError("product must have an id")

        name = product.get("name") or ""
        stock = _stock_of(product)
        if stock == 0:
            raise OutOfStockError(product_id, name)

        line = self._find(product_id)
        wanted = qty + (line.quantity if line else 0)
        if wanted > stock:
            raise InsufficientStockError(product_id, wanted, stock, name)

        if line is None:
            line = CartLine(
                product_id=product_id,
                name=name,
                sku=product.get("sku") or "",
                unit_price=to_decimal(product.get("price"), "price"),
                quantity=qty,
                available=stock,
            )
            self._lines.append(line)
        else:
            line.quantity = wanted
            line.available = stock
        return line

    def set_quantity(self, product_id: str, qty: int) -> None:
        """
        qty <= 0 removes the line; above the last-synced stock is rejected.
        A product that has no line in the cart raises NotFoundError.
        """
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise ValidationError("quantity must be an integer")
        if qty <= 0:
            self.remove_item(product_id)
            return

        line = self._find(product_id)
        if line is None:
            raise NotFoundError("Product is not in the cart", details={"product_id": product_id})
        if qty > line.available:
            raise InsufficientStockError(product_id, qty, line.available, line.name)
        line.quantity = qty

    def remove_item(self, product_id: str) -> None:
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def clear(self) -> None:
        self._lines = []
        self.customer_id = None
        self.customer_name = None

    def sync_product(self, product: dict) -> None:
        """
        Refresh a line's price and stock snapshot from a freshly read product.
        The line shrinks to the new stock, and disappears at zero.
        """
        line = self._find(product.get("id"))
        if line is None:
            return
        line.available = _stock_of(product)
        line.name = product.get("name") or line.name
        line.sku = product.get("sku") or line.sku
        line.unit_price = to_decimal(product.get("price"), "price")
        if line.available == 0:
            self.remove_item(line.product_id)
        elif line.quantity > line.available:
            line.quantity = line.available

    def attach_customer(self, customer: dict | None) -> None:
        if customer is None:
            self.customer_id = None
            self.customer_name = None
            return
        self.customer_id = customer.get("id")
        self.customer_name = customer.get("name")

    # -- totals -----------------------------------------------------------

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))

    def tax(self) -> Decimal:
        return self.subtotal() * self.tax_rate

    def total(self) -> Decimal:
        return self.subtotal() + self.tax()

    # -- views ------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self._lines],
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "itemCount": self.item_count(),
            "subtotal": to_number(self.subtotal()),
            "tax": to_number(self.tax()),
            "taxRate": to_number(self.tax_rate),
            "total": to_number(self.total()),
        }
