# Overview: Flask API routes for the point of sale; builds a cart per request and checks it out.

"""
Point-of-sale routes

The cart lives with the client. Each request sends its lines; the server
rebuilds a Cart from current product records, so stock and price checks
use fresh data.

- POST /api/pos/cart       price a cart without committing it
- POST /api/pos/checkout   commit the cart as a transaction
- GET  /api/pos/transactions, /api/pos/transactions/<id>
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import NotFoundError, PosError, ValidationError
from ..services import catalog_service, checkout_service, settings_service
from ..services.cart_service import Cart
from ..services.record_store import records
from ..decorators import require_auth

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


def _build_cart(data: dict) -> Cart:
    items = data.get("items")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    cart = Cart(tax_rate=settings_service.get_tax_rate())
    for item in items:
        if not isinstance(item, dict) or not item.get("productId"):
            raise ValidationError("each item needs a productId")
        product = catalog_service.get_product(item["productId"])
        cart.add_item(product, item.get("quantity", 1))

    customer_id = data.get("customerId")
    if customer_id:
        cart.attach_customer(catalog_service.get_customer(customer_id, with_stats=False))
    return cart


@pos_bp.post("/cart")
@require_auth
def price_cart():
    data = request.get_json(silent=True) or {}
    return _build_cart(data).to_dict()


@pos_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Body: {"items": [{"productId", "quantity"}], "paymentMethod",
           "customerId"?}

    201 with the transaction; stockFailures lists lines whose stock could
    not be reconciled (the sale itself still stands).
    """
    data = request.get_json(silent=True) or {}
    user = g.current_user

    try:
        cart = _build_cart(data)
        result = checkout_service.checkout(
            cart,
            data.get("paymentMethod") or "cash",
            cashier_id=user.uid,
            cashier_name=user.display_name or user.username,
        )
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "Checkout failed"}), 500

    return jsonify(result.to_dict()), 201


@pos_bp.get("/transactions")
@require_auth
def list_transactions():
    limit = request.args.get("limit", type=int)
    rows = sorted(records.list("transactions"), key=lambda t: t.get("createdAt") or "", reverse=True)
    if limit:
        rows = rows[:limit]
    return {"items": rows, "count": len(rows)}


@pos_bp.get("/transactions/<transaction_id>")
@require_auth
def get_transaction(transaction_id: str):
    tx = records.read(f"{checkout_service.TRANSACTIONS}/{transaction_id}")
    if tx is None:
        raise NotFoundError("Transaction not found", details={"transaction_id": transaction_id})
    return tx
