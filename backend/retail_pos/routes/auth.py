# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login     sign in with username or email
- POST /api/auth/register  create a cashier account (admins may pass a role)
- POST /api/auth/logout    revoke the current token
- GET  /api/auth/me        current user
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    identifier = data.get("username") or data.get("email") or data.get("identifier")
    password = data.get("password")

    if not all([identifier, password]):
        return jsonify({"error": "username/email and password required"}), 400

    result = auth_service.sign_in(
        identifier,
        password,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    if not result.ok:
        current_app.logger.info("Failed sign-in for %s from %s", identifier, request.remote_addr)
        return jsonify(result.to_dict()), 401

    return jsonify(result.to_dict()), 200


@auth_bp.post("/register")
def register_route():
    """
    Create an account and sign it in.

    Self-registered accounts are always cashiers; a signed-in admin may
    register staff with another role.
    """
    data = request.get_json(silent=True) or {}

    role = "cashier"
    requested_role = data.get("role")
    if requested_role and requested_role != "cashier":
        context = None
        header = request.headers.get("Authorization", "")
        if header.startswith("Bearer "):
            context = session_service.validate_session(header.split(" ", 1)[1].strip())
        if context is None or context.user.role != "admin":
            return jsonify({"error": "Only admins can assign roles"}), 403
        role = requested_role

    result = auth_service.sign_up(
        data.get("username"),
        data.get("email"),
        data.get("password"),
        display_name=data.get("displayName"),
        role=role,
    )
    if not result.ok:
        return jsonify(result.to_dict()), 400
    return jsonify(result.to_dict()), 201


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.sign_out(g.token)
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
