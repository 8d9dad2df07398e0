# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

from flask import Blueprint, request

from ..services import catalog_service
from ..decorators import require_auth, require_manager

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers():
    term = request.args.get("q")
    status = request.args.get("status")
    if term:
        suppliers = catalog_service.search_suppliers(term)
        if status:
            suppliers = [s for s in suppliers if s.get("status") == status]
    else:
        suppliers = catalog_service.list_suppliers(status=status)
    return {"items": suppliers, "count": len(suppliers)}


@suppliers_bp.get("/<supplier_id>")
@require_auth
def get_supplier(supplier_id: str):
    return catalog_service.get_supplier(supplier_id)


@suppliers_bp.post("")
@require_auth
@require_manager
def create_supplier():
    return catalog_service.create_supplier(request.get_json(silent=True) or {}), 201


@suppliers_bp.put("/<supplier_id>")
@require_auth
@require_manager
def update_supplier(supplier_id: str):
    return catalog_service.update_supplier(supplier_id, request.get_json(silent=True) or {})


@suppliers_bp.delete("/<supplier_id>")
@require_auth
@require_manager
def delete_supplier(supplier_id: str):
    if not catalog_service.delete_supplier(supplier_id):
        return {"error": "Supplier not found"}, 404
    return {"deleted": True, "id": supplier_id}
