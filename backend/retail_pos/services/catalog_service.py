# Overview: Catalog repository for products, customers and suppliers on the record store.

"""
Catalog Repository

CRUD and search over the three catalog collections. Catalog records are only
mutated through these functions; stock changes go through inventory_service
so every change gets an audit record.

- Product SKUs are unique within the catalog (case-insensitive).
- Customer purchase counters (totalPurchases, totalOrders, lastPurchaseAt)
  are derived from the transaction ledger on read and never stored.
- Deleting a customer leaves their transactions untouched; Transaction
  customerId is a lookup key, not an ownership relation.
"""

from __future__ import annotations

import random
import string
import time

from ..errors import ConflictError, NotFoundError, ValidationError
from ..validation import (
    CUSTOMER_POLICY,
    PRODUCT_POLICY,
    SUPPLIER_POLICY,
    enforce_rules_product,
    validate_payload,
)
from ..money import to_decimal, to_number
from .record_store import records

PRODUCTS = "products"
CUSTOMERS = "customers"
SUPPLIERS = "suppliers"
TRANSACTIONS = "transactions"

# Derived on read; rejected if a client tries to write them
CUSTOMER_DERIVED_FIELDS = ("totalPurchases", "totalOrders", "lastPurchaseAt")


def _contains(value, term: str) -> bool:
    return term in str(value or "").lower()


# =============================================================================
# PRODUCTS
# =============================================================================

def generate_sku() -> str:
    """PRD + last 6 digits of the ms timestamp + 3 random uppercase alphanumerics."""
    stamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=3))
    return f"PRD{stamp}{suffix}"


def _ensure_unique_sku(sku: str, *, exclude_id: str | None = None) -> None:
    wanted = sku.strip().lower()
    for product in records.list(PRODUCTS):
        if product.get("id") == exclude_id:
            continue
        if str(product.get("sku", "")).strip().lower() == wanted:
            raise ConflictError(f"SKU already exists: {sku}", details={"product_id": product.get("id")})


def list_products(category: str | None = None) -> list[dict]:
    products = records.list(PRODUCTS)
    if category:
        products = [p for p in products if p.get("category") == category]
    return products


def get_product(product_id: str) -> dict:
    product = records.read(f"{PRODUCTS}/{product_id}")
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


def create_product(payload: dict) -> dict:
    patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _ensure_unique_sku(patch["sku"])

    product_id = records.create(PRODUCTS, patch)
    return records.read(f"{PRODUCTS}/{product_id}")


def update_product(product_id: str, payload: dict) -> dict:
    """
    Update catalog fields of a product.

    Stock is not a catalog field: a payload that would change it is rejected
    (use inventory_service.adjust_stock). Echoing the current value, as a
    full-record PUT does, is accepted and ignored.
    """
    current = get_product(product_id)
    patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
    if "stock" in patch:
        if patch["stock"] != current.get("stock"):
            raise ValidationError(
                "stock cannot be changed here; record an inventory adjustment instead",
                details={"product_id": product_id},
            )
        del patch["stock"]
    enforce_rules_product(patch)
    if "sku" in patch:
        _ensure_unique_sku(patch["sku"], exclude_id=product_id)

    records.update(f"{PRODUCTS}/{product_id}", patch)
    return records.read(f"{PRODUCTS}/{product_id}")


def delete_product(product_id: str) -> bool:
    return records.delete(f"{PRODUCTS}/{product_id}")


def search_products(term: str | None) -> list[dict]:
    """Name and SKU match case-insensitively; barcode matches by substring."""
    products = records.list(PRODUCTS)
    if not term:
        return products
    needle = term.strip().lower()
    raw = term.strip()
    return [
        p for p in products
        if _contains(p.get("name"), needle)
        or _contains(p.get("sku"), needle)
        or (p.get("barcode") and raw in str(p.get("barcode")))
    ]


def list_categories() -> list[str]:
    seen: list[str] = []
    for product in records.list(PRODUCTS):
        category = product.get("category")
        if category and category not in seen:
            seen.append(category)
    return seen


# =============================================================================
# CUSTOMERS
# =============================================================================

def customer_stats(customer_id: str, transactions: list[dict] | None = None) -> dict:
    """Purchase counters for one customer, computed from the ledger."""
    if transactions is None:
        transactions = records.list(TRANSACTIONS)
    own = [t for t in transactions if t.get("customerId") == customer_id]

    total =sum((to_decimal(t.get("total")) for t in own), start=to_decimal(0))
    last = max((t.get("createdAt") for t in own if t.get("createdAt")), default=None)
    return {
        "totalPurchases": to_number(total),
        "totalOrders": len(own),
        "lastPurchaseAt": last,
    }


def _with_stats(customer: dict, transactions: list[dict]) -> dict:
    return {**customer, **customer_stats(customer["id"], transactions)}


def list_customers(with_stats: bool = True) -> list[dict]:
    customers = records.list(CUSTOMERS)
    if not with_stats:
        return customers
    transactions = records.list(TRANSACTIONS)
    return [_with_stats(c, transactions) for c in customers]


def get_customer(customer_id: str, with_stats: bool = True) -> dict:
    customer = records.read(f"{CUSTOMERS}/{customer_id}")
    if customer is None:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    if with_stats:
        return _with_stats(customer, records.list(TRANSACTIONS))
    return customer


def _reject_derived(payload: dict) -> dict:
    payload = dict(payload or {})
    for key in CUSTOMER_DERIVED_FIELDS:
        if key in payload:
            raise ValidationError(f"{key} is computed from transactions and cannot be set")
    return payload


def create_customer(payload: dict) -> dict:
    patch = validate_payload(payload=_reject_derived(payload), policy=CUSTOMER_POLICY, partial=False)
    customer_id = records.create(CUSTOMERS, patch)
    return get_customer(customer_id)


def update_customer(customer_id: str, payload: dict) -> dict:
    get_customer(customer_id, with_stats=False)
    patch = validate_payload(payload=_reject_derived(payload), policy=CUSTOMER_POLICY, partial=True)
    records.update(f"{CUSTOMERS}/{customer_id}", patch)
    return get_customer(customer_id)


def delete_customer(customer_id: str) -> bool:
    return records.delete(f"{CUSTOMERS}/{customer_id}")


def search_customers(term: str | None) -> list[dict]:
    customers = list_customers()
    if not term:
        return customers
    needle = term.strip().lower()
    raw = term.strip()
    return [
        c for c in customers
        if _contains(c.get("name"), needle)
        or _contains(c.get("email"), needle)
        or raw in str(c.get("phone") or "")
    ]


def customer_transactions(customer_id: str) -> list[dict]:
    """A customer's transactions, newest first."""
    own = records.query(TRANSACTIONS, order_by="customerId", equal_to=customer_id)
    return sorted(own, key=lambda t: t.get("createdAt") or "", reverse=True)


# =============================================================================
# SUPPLIERS
# =============================================================================

def list_suppliers(status: str | None = None) -> list[dict]:
    suppliers = records.list(SUPPLIERS)
    if status:
        suppliers = [s for s in suppliers if s.get("status") == status]
    return suppliers


def get_supplier(supplier_id: str) -> dict:
    supplier = records.read(f"{SUPPLIERS}/{supplier_id}")
    if supplier is None:
        raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
    return supplier


def create_supplier(payload: dict) -> dict:
    patch = validate_payload(payload=payload, policy=SUPPLIER_POLICY, partial=False)
    supplier_id = records.create(SUPPLIERS, patch)
    return get_supplier(supplier_id)


def update_supplier(supplier_id: str, payload: dict) -> dict:
    get_supplier(supplier_id)
    patch = validate_payload(payload=payload, policy=SUPPLIER_POLICY, partial=True)
    records.update(f"{SUPPLIERS}/{supplier_id}", patch)
    return get_supplier(supplier_id)


def delete_supplier(supplier_id: str) -> bool:
    return records.delete(f"{SUPPLIERS}/{supplier_id}")


def search_suppliers(term: str | None) -> list[dict]:
    suppliers = records.list(SUPPLIERS)
    if not term:
        return suppliers
    needle = term.strip().lower()
    return [
        s for s in suppliers
        if _contains(s.get("name"), needle)
        or _contains(s.get("contactPerson"), needle)
        or _contains(s.get("email"), needle)
    ]
