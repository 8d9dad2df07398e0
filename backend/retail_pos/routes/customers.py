# Overview: Flask API routes for customers; parses input and returns JSON responses.

"""
Customer routes.

Customers returned here carry totalPurchases / totalOrders / lastPurchaseAt,
computed from the transaction ledger on every read.
"""

from flask import Blueprint, request

from ..services import catalog_service
from ..decorators import require_auth, require_manager

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers():
    customers = catalog_service.search_customers(request.args.get("q"))
    return {"items": customers, "count": len(customers)}


@customers_bp.get("/<customer_id>")
@require_auth
def get_customer(customer_id: str):
    return catalog_service.get_customer(customer_id)


@customers_bp.get("/<customer_id>/transactions")
@require_auth
def customer_transactions(customer_id: str):
    catalog_service.get_customer(customer_id, with_stats=False)
    return {"items": catalog_service.customer_transactions(customer_id)}


@customers_bp.post("")
@require_auth
def create_customer():
    payload = request.get_json(silent=True) or {}
    return catalog_service.create_customer(payload), 201


@customers_bp.put("/<customer_id>")
@require_auth
def update_customer(customer_id: str):
    payload = request.get_json(silent=True) or {}
    return catalog_service.update_customer(customer_id, payload)


@customers_bp.delete("/<customer_id>")
@require_auth
@require_manager
def delete_customer(customer_id: str):
    # Transactions keep their customerId; nothing cascades
    if not catalog_service.delete_customer(customer_id):
        return {"error": "Customer not found"}, 404
    return {"deleted": True, "id": customer_id}
