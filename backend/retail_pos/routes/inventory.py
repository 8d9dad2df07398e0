# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

"""
Inventory routes

- GET  /api/inventory                  products with status, filterable
- GET  /api/inventory/stats            counts per status and stock value
- GET  /api/inventory/low-stock        flat-threshold alert feed
- GET  /api/inventory/below-minimum    per-product minStock feed
- POST /api/inventory/<id>/adjust      apply one stock adjustment
- GET  /api/inventory/adjustments      audit trail
"""

from flask import Blueprint, request, g

from ..services import inventory_service
from ..services.record_store import records
from ..decorators import require_auth, require_manager

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _with_status(product: dict) -> dict:
    return {**product, "status": inventory_service.classify(product).value}


@inventory_bp.get("")
@require_auth
def list_inventory():
    """Query params: status = all | in_stock | low_stock | out_of_stock"""
    products = inventory_service.filter_by_status(records.list("products"), request.args.get("status"))
    return {"items": [_with_status(p) for p in products], "count": len(products)}


@inventory_bp.get("/stats")
@require_auth
def stats():
    return inventory_service.inventory_stats()


@inventory_bp.get("/low-stock")
@require_auth
def low_stock():
    threshold = request.args.get("threshold", type=int)
    products = inventory_service.list_low_stock(threshold)
    return {"items": [_with_status(p) for p in products], "count": len(products)}


@inventory_bp.get("/below-minimum")
@require_auth
def below_minimum():
    products = inventory_service.list_below_minimum()
    return {"items": [_with_status(p) for p in products], "count": len(products)}


@inventory_bp.post("/<product_id>/adjust")
@require_auth
@require_manager
def adjust(product_id: str):
    """
    Body: {"quantity": int, "direction": "add"|"subtract"|"set",
           "reason": str, "notes": str?}
    """
    data = request.get_json(silent=True) or {}
    adjustment = inventory_service.adjust_stock(
        product_id,
        data.get("quantity"),
        data.get("direction"),
        data.get("reason"),
        actor_id=g.current_user.uid,
        notes=data.get("notes") or "",
    )
    return {"adjustment": adjustment}, 201


@inventory_bp.get("/adjustments")
@require_auth
def adjustments():
    product_id = request.args.get("product_id")
    limit = request.args.get("limit", type=int)
    return {"items": inventory_service.list_adjustments(product_id, limit=limit)}
