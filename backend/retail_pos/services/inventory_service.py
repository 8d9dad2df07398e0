# Overview: Service-layer operations for inventory; stock adjustments, audit trail and low-stock feeds.

"""
Inventory Invariants (authoritative)

Stock model:
- Product.stock is a stored integer that is never negative.
- adjust_stock is the only writer of stock after a product is created.
  add: current + quantity; subtract: max(0, current - quantity) (clamps,
  never errors on underflow); set: quantity.

Concurrency:
- The product is read together with its record version and written back
  conditioned on that version. A concurrent writer makes the write fail with
  VersionConflictError; the whole read-compute-write is retried up to
  STOCK_UPDATE_ATTEMPTS times before the conflict is surfaced.

Audit:
- Every successful adjustment appends exactly one record to
  inventory-adjustments with delta = newStock - previousStock, committed
  together with the stock write. A PersistenceError means neither landed.
- Adjustments are append-only; nothing updates or deletes them.

Low stock, two distinct feeds:
- classify(): per-product, LOW_STOCK when 0 < stock <= minStock.
- list_low_stock(threshold): flat, stock <= threshold (dashboard alerts).
"""

from __future__ import annotations

from enum import Enum

from flask import current_app

from ..errors import ProductNotFoundError, ValidationError
from ..money import to_decimal, to_number
from ..time_utils import to_utc_z, utcnow
from .concurrency import run_with_retry
from .record_store import records
from . import settings_service


PRODUCTS = "products"
ADJUSTMENTS = "inventory-adjustments"

DIRECTIONS = ("add", "subtract", "set")
REASONS = ("restock", "damaged", "expired", "theft", "return", "correction", "sale", "other")


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


def _stock(product: dict) -> int:
    return max(int(product.get("stock") or 0), 0)


def _min_stock(product: dict) -> int:
    return max(int(product.get("minStock") or 0), 0)


def classify(product: dict) -> StockStatus:
    stock = _stock(product)
    if stock == 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= _min_stock(product):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def compute_new_stock(current: int, quantity: int, direction: str) -> int:
    if direction == "add":
        return current + quantity
    if direction == "subtract":
        return max(0, current - quantity)
    if direction == "set":
        return quantity
    raise ValidationError(f"direction must be one of: {', '.join(DIRECTIONS)}")


def _validate_adjustment(quantity, direction: str, reason: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")
    if direction not in DIRECTIONS:
        raise ValidationError(f"direction must be one of: {', '.join(DIRECTIONS)}")
    if not reason:
        raise ValidationError("reason is required")
    if reason not in REASONS:
        raise ValidationError(f"reason must be one of: {', '.join(REASONS)}")


def adjust_stock(
    product_id: str,
    quantity: int,
    direction: str,
    reason: str,
    actor_id: str | None = None,
    notes: str = "",
    *,
    transaction_id: str | None = None,
) -> dict:
    """
    Apply one stock change to one product and append its audit record.

    Returns the adjustment record. Raises ProductNotFoundError if the product
    does not exist (or vanishes mid-retry) and VersionConflictError once the
    retry budget is spent.
    """
    _validate_adjustment(quantity, direction, reason)
    path = f"{PRODUCTS}/{product_id}"

    def _op():
        product, version = records.read_versioned(path)
        if product is None:
            raise ProductNotFoundError(product_id)

        previous = _stock(product)
        new_stock = compute_new_stock(previous, quantity, direction)
        adjustment = {
            "productId": product_id,
            "productName": product.get("name", ""),
            "delta": new_stock - previous,
            "previousStock": previous,
            "newStock": new_stock,
            "direction": direction,
            "reason": reason,
            "notes": notes or "",
            "actorId": actor_id,
            "timestamp": to_utc_z(utcnow()),
        }
        if transaction_id:
            adjustment["transactionId"] = transaction_id

        # stock and its audit record land together or not at all
        with records.batch():
            records.update(path, {"stock": new_stock}, expected_version=version)
            adjustment_id = records.create(ADJUSTMENTS, adjustment)
        return {**adjustment, "id": adjustment_id}

    attempts = current_app.config.get("STOCK_UPDATE_ATTEMPTS", 3)
    return run_with_retry(_op, attempts=attempts)


def list_adjustments(product_id: str | None = None, limit: int | None = None) -> list[dict]:
    """Adjustments newest first, optionally for one product."""
    if product_id:
        rows = records.query(ADJUSTMENTS, order_by="productId", equal_to=product_id)
    else:
        rows = records.list(ADJUSTMENTS)
    rows = sorted(rows, key=lambda r: r.get("timestamp") or "", reverse=True)
    if limit:
        rows = rows[:limit]
    return rows


def list_low_stock(threshold: int | None = None) -> list[dict]:
    if threshold is None:
        threshold = settings_service.get_low_stock_threshold()
    return [p for p in records.list(PRODUCTS) if _stock(p) <= threshold]


def list_below_minimum() -> list[dict]:
    """Products at or below their own reorder point (includes out of stock)."""
    return [p for p in records.list(PRODUCTS) if _stock(p) <= _min_stock(p)]


def filter_by_status(products: list[dict], status: str | StockStatus | None) -> list[dict]:
    if not status or status == "all":
        return list(products)
    try:
        wanted = StockStatus(status)
    except ValueError:
        raise ValidationError(
            f"status must be one of: all, {', '.join(s.value for s in StockStatus)}"
        )
    return [p for p in products if classify(p) == wanted]


def inventory_stats(products: list[dict] | None = None) -> dict:
    if products is None:
        products = records.list(PRODUCTS)

    counts = {status: 0 for status in StockStatus}
    total_value = to_decimal(0)
    for product in products:
        counts[classify(product)] += 1
        total_value += to_decimal(product.get("price"), "price") * _stock(product)

    return {
        "totalProducts": len(products),
        "inStock": counts[StockStatus.IN_STOCK],
        "lowStock": counts[StockStatus.LOW_STOCK],
        "outOfStock": counts[StockStatus.OUT_OF_STOCK],
        "totalValue": to_number(total_value),
    }
