# Overview: Error taxonomy shared by services and routes.

"""
Error taxonomy for the POS core.

Every failure the core can report is one of these types. Routes turn them
into JSON responses through the handler registered in create_app; services
never decide how an error is shown.

- ValidationError: rejected before any write (400)
- NotFoundError: id does not resolve (404)
- ConflictError / StockError / VersionConflictError: business-rule or
  concurrency rejection (409)
- PersistenceError: the record store call itself failed (503)

A checkout whose stock reconciliation only partly succeeded is NOT an error:
it is reported on CheckoutResult.stock_failures.
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for errors surfaced to callers."""
    status_code = 500
    code = "error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        rv = {"error": self.message, "code": self.code}
        if self.details:
            rv["details"] = self.details
        return rv


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    status_code = 400
    code = "validation_error"


class EmptyCartError(ValidationError):
    code = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class NotFoundError(PosError):
    status_code = 404
    code = "not_found"


class ProductNotFoundError(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__("Product not found", details={"product_id": product_id})
        self.product_id = product_id


class ConflictError(PosError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409
    code = "conflict"


class StockError(PosError):
    status_code = 409
    code = "stock_error"


class OutOfStockError(StockError):
    code = "out_of_stock"

    def __init__(self, product_id: str, product_name: str | None = None):
        super().__init__(
            "Product is out of stock",
            details={"product_id": product_id, "product_name": product_name},
        )
        self.product_id = product_id


class InsufficientStockError(StockError):
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int, product_name: str | None = None):
        super().__init__(
            "Cannot exceed available stock",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class VersionConflictError(PosError):
    """Record changed between read and conditional write."""
    status_code = 409
    code = "version_conflict"


class PersistenceError(PosError):
    """The record store call itself failed; nothing was applied."""
    status_code = 503
    code = "persistence_failure"


class TransactionPersistError(PersistenceError):
    code = "transaction_persist_failed"
