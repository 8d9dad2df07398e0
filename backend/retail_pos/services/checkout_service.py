# Overview: Checkout; turns a cart into a ledger transaction and reconciles stock per line.

"""
Checkout Processor

checkout() runs in two phases that are deliberately not atomic together:

1. Persist the Transaction. If this fails nothing else happens: no stock is
   touched and the cart is left as it was, so the cashier can retry.
2. Decrement stock line by line (reason=sale) through the inventory service.
   Any failing line, store errors included, is recorded on the result and
   the loop moves on. The persisted Transaction and lines already reconciled
   are never rolled back.

The Transaction is the source of truth that a sale happened; stock is
reconciled on a best-effort basis and every line that could not be
reconciled is reported in CheckoutResult.stock_failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..errors import EmptyCartError, PersistenceError, PosError, TransactionPersistError, ValidationError
from ..extensions import db
from ..money import to_number
from .cart_service import Cart
from .record_store import records
from . import inventory_service


TRANSACTIONS = "transactions"
PAYMENT_METHODS = ("cash", "card", "mobile")
WALK_IN_CUSTOMER = "Walk-in Customer"


@dataclass
class StockFailure:
    product_id: str
    product_name: str
    quantity: int
    error: str
    message: str

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "error": self.error,
            "message": self.message,
        }


@dataclass
class CheckoutResult:
    transaction_id: str
    transaction: dict
    stock_failures: list[StockFailure] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.stock_failures)

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "transaction": self.transaction,
            "partial": self.partial,
            "stockFailures": [f.to_dict() for f in self.stock_failures],
        }


def build_transaction(cart: Cart, payment_method: str, cashier_id: str, cashier_name: str | None = None) -> dict:
    """Snapshot the cart into a Transaction payload (not persisted)."""
    items = [
        {
            "productId": line.product_id,
            "productName": line.name,
            "sku": line.sku,
            "quantity": line.quantity,
            "unitPrice": to_number(line.unit_price),
            "lineTotal": to_number(line.line_total),
        }
        for line in cart.lines
    ]
    payload = {
        "customerId": cart.customer_id,
        "customerName": cart.customer_name or WALK_IN_CUSTOMER,
        "items": items,
        "subtotal": to_number(cart.subtotal()),
        "tax": to_number(cart.tax()),
        "taxRate": to_number(cart.tax_rate),
        "total": to_number(cart.total()),
        "paymentMethod": payment_method,
        "cashierId": cashier_id,
    }
    if cashier_name:
        payload["cashierName"] = cashier_name
    return payload


def checkout(cart: Cart, payment_method: str, cashier_id: str, cashier_name: str | None = None) -> CheckoutResult:
    if cart.is_empty():
        raise EmptyCartError()
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}")
    if not cashier_id:
        raise ValidationError("cashierId is required")

    payload = build_transaction(cart, payment_method, cashier_id, cashier_name)

    try:
        transaction_id = records.create(TRANSACTIONS, payload)
    except PersistenceError as e:
        raise TransactionPersistError(e.message, details=e.details) from e

    # id and createdAt are stamped by the store
    try:
        transaction = records.read(f"{TRANSACTIONS}/{transaction_id}")
    except PersistenceError:
        current_app.logger.warning("Could not read back transaction %s", transaction_id)
        transaction = None
    transaction = transaction or {**payload, "id": transaction_id}

    failures: list[StockFailure] = []
    for line in cart.lines:
        try:
            inventory_service.adjust_stock(
                line.product_id,
                line.quantity,
                "subtract",
                "sale",
                actor_id=cashier_id,
                notes=f"Sale {transaction_id}",
                transaction_id=transaction_id,
            )
        except PosError as e:
            failures.append(StockFailure(
                product_id=line.product_id,
                product_name=line.name,
                quantity=line.quantity,
                error=e.code,
                message=e.message,
            ))
        except Exception as e:
            # remaining lines need a clean session
            db.session.rollback()
            current_app.logger.exception("Stock reconciliation for %s in %s failed", line.product_id, transaction_id)
            failures.append(StockFailure(
                product_id=line.product_id,
                product_name=line.name,
                quantity=line.quantity,
                error="unexpected_error",
                message=str(e),
            ))

    if failures:
        current_app.logger.warning(
            "Checkout %s persisted but stock reconciliation failed for %d line(s): %s",
            transaction_id,
            len(failures),
            ", ".join(f.product_id for f in failures),
        )

    cart.clear()
    return CheckoutResult(transaction_id=transaction_id, transaction=transaction, stock_failures=failures)
