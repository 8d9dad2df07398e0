# Overview: Read-only aggregations over the transaction ledger and catalog for reports and the dashboard.

"""
Analytics

Every report is a full scan of the relevant collections; nothing here writes.

Range semantics:
- Both bounds are inclusive. A bare date (YYYY-MM-DD) covers the whole day.
- A missing bound leaves that side of the range open.
"""

from __future__ import annotations

from datetime import datetime

from ..errors import ValidationError
from ..money import to_decimal, to_number
from ..time_utils import parse_iso_datetime, parse_range_bound, utcnow
from .record_store import records
from .catalog_service import customer_stats as _customer_stats
from . import inventory_service


TRANSACTIONS = "transactions"
PRODUCTS = "products"
CUSTOMERS = "customers"


def _parse_range(start, end) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_range_bound(start)
        end_dt = parse_range_bound(end, end=True)
    except ValueError:
        raise ValidationError("Invalid date range; use YYYY-MM-DD or ISO-8601")
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("startDate must be on or before endDate")
    return start_dt, end_dt


def _created_at(record: dict) -> datetime | None:
    try:
        return parse_iso_datetime(record.get("createdAt"))
    except ValueError:
        return None


def transactions_in_range(start=None, end=None, transactions: list[dict] | None = None) -> list[dict]:
    start_dt, end_dt = _parse_range(start, end)
    if transactions is None:
        transactions = records.list(TRANSACTIONS)

    selected = []
    for tx in transactions:
        created = _created_at(tx)
        if created is None:
            continue
        if start_dt and created < start_dt:
            continue
        if end_dt and created > end_dt:
            continue
        selected.append(tx)
    return selected


def top_products(transactions: list[dict], limit: int = 10) -> list[dict]:
    """
    Rank products by units sold across the given transactions.

    Ties keep the order in which products were first seen, so the ranking
    is deterministic for a fixed input order.
    """
    grouped: dict[str, dict] = {}
    for tx in transactions:
        for item in tx.get("items") or []:
            product_id = item.get("productId")
            entry = grouped.get(product_id)
            if entry is None:
                entry = grouped[product_id] = {
                    "productId": product_id,
                    "productName": item.get("productName", ""),
                    "quantity": 0,
                    "revenue": to_decimal(0),
                }
            entry["quantity"] += int(item.get("quantity") or 0)
            entry["revenue"] += to_decimal(item.get("lineTotal"), "lineTotal")

    # sorted() is stable; dicts preserve first-seen order
    ranked = sorted(grouped.values(), key=lambda e: e["quantity"], reverse=True)
    return [{**e, "revenue": to_number(e["revenue"])} for e in ranked[:limit]]


def sales_summary(start=None, end=None, *, limit: int = 10) -> dict:
    selected = transactions_in_range(start, end)
    total_sales = sum((to_decimal(tx.get("total"), "total") for tx in selected), to_decimal(0))
    count = len(selected)
    average = total_sales / count if count else to_decimal(0)

    return {
        "totalSales": to_number(total_sales),
        "totalTransactions": count,
        "averageTransaction": to_number(average),
        "topProducts": top_products(selected, limit=limit),
    }


def product_report() -> dict:
    products = records.list(PRODUCTS)
    stats = inventory_service.inventory_stats(products)
    categories = sorted({p.get("category") for p in products if p.get("category")})
    return {
        "totalProducts": stats["totalProducts"],
        "lowStockProducts": stats["lowStock"],
        "outOfStockProducts": stats["outOfStock"],
        "totalValue": stats["totalValue"],
        "categories": categories,
    }


def customer_report(now: datetime | None = None) -> dict:
    now = now or utcnow()
    customers = records.list(CUSTOMERS)
    transactions = records.list(TRANSACTIONS)
    buyers = {tx.get("customerId") for tx in transactions if tx.get("customerId")}

    new_this_month = 0
    for customer in customers:
        created = _created_at(customer)
        if created and created.year == now.year and created.month == now.month:
            new_this_month += 1

    return {
        "totalCustomers": len(customers),
        "newCustomers": new_this_month,
        "activeCustomers": sum(1 for c in customers if c.get("id") in buyers),
        "totalLoyaltyPoints": sum(int(c.get("loyaltyPoints") or 0) for c in customers),
    }


def customer_stats(customer_id: str) -> dict:
    return _customer_stats(customer_id)


def dashboard(today=None, *, low_stock_threshold: int | None = None) -> dict:
    """Today's sales plus the recent-activity and alert widgets."""
    today = today or utcnow().date()
    transactions = records.list(TRANSACTIONS)
    todays = transactions_in_range(today, today, transactions)
    today_sales = sum((to_decimal(tx.get("total"), "total") for tx in todays), to_decimal(0))

    recent = sorted(transactions, key=lambda tx: tx.get("createdAt") or "", reverse=True)[:5]
    low_stock = inventory_service.list_low_stock(low_stock_threshold)
    buyers = {tx.get("customerId") for tx in transactions if tx.get("customerId")}

    return {
        "todaySales": to_number(today_sales),
        "todayTransactions": len(todays),
        "totalProducts": len(records.list(PRODUCTS)),
        "activeCustomers": len(buyers),
        "lowStockItems": len(low_stock),
        "recentTransactions": recent,
        "lowStockProducts": low_stock[:5],
    }
