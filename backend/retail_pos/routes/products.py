# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations are open to every role
- Write operations require admin or manager
"""

from flask import Blueprint, request

from ..services import catalog_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_manager

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - q: search term (name, SKU, barcode)
    - category: exact category filter
    """
    term = request.args.get("q")
    category = request.args.get("category")

    if term:
        products = catalog_service.search_products(term)
        if category:
            products = [p for p in products if p.get("category") == category]
    else:
        products = catalog_service.list_products(category=category)
    return {"items": products, "count": len(products)}


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"categories": catalog_service.list_categories()}


@products_bp.get("/generate-sku")
@require_auth
def generate_sku():
    return {"sku": catalog_service.generate_sku()}


@products_bp.get("/<product_id>")
@require_auth
def get_product(product_id: str):
    return catalog_service.get_product(product_id)


@products_bp.post("")
@require_auth
@require_manager
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        created = catalog_service.create_product(payload)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<product_id>")
@require_auth
@require_manager
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    return catalog_service.update_product(product_id, payload)


@products_bp.delete("/<product_id>")
@require_auth
@require_manager
def delete_product_route(product_id: str):
    if not catalog_service.delete_product(product_id):
        return {"error": "Product not found"}, 404
    return {"deleted": True, "id": product_id}
