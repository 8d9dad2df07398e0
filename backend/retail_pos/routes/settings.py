# Overview: Flask API routes for settings; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..services import settings_service
from ..decorators import require_auth, require_manager

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/store")
@require_auth
def get_store_settings():
    return settings_service.get_store_settings()


@settings_bp.put("/store")
@require_auth
@require_manager
def update_store_settings():
    return settings_service.update_store_settings(request.get_json(silent=True) or {})


@settings_bp.get("/me")
@require_auth
def get_my_settings():
    return settings_service.get_user_settings(g.current_user.uid)


@settings_bp.put("/me")
@require_auth
def update_my_settings():
    return settings_service.update_user_settings(g.current_user.uid, request.get_json(silent=True) or {})
