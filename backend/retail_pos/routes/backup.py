# Overview: Flask API routes for JSON backup and restore.

from flask import Blueprint, request, current_app, g

from ..services import export_service
from ..decorators import require_auth, require_admin

backup_bp = Blueprint("backup", __name__, url_prefix="/api/backup")


@backup_bp.get("/export")
@require_auth
@require_admin
def export_backup():
    return export_service.export_backup()


@backup_bp.post("/import")
@require_auth
@require_admin
def import_backup():
    data = request.get_json(silent=True)
    if data is None:
        return {"error": "Invalid JSON payload"}, 400

    counts = export_service.import_backup(data)
    current_app.logger.info("Backup imported by user %s: %s", g.current_user.id, counts)
    return {"imported": counts}, 201
