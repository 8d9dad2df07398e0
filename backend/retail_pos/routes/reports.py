# Overview: Flask API routes for reports and the dashboard; parses input and returns JSON responses.

"""
Reports routes

Date params accept YYYY-MM-DD (whole day) or ISO-8601; both bounds are
inclusive and either may be omitted.
"""

from flask import Blueprint, request, current_app, Response

from ..services import analytics_service, export_service
from ..errors import ValidationError
from ..decorators import require_auth, require_manager

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
@require_manager
def sales_report():
    start = request.args.get("startDate") or request.args.get("start")
    end = request.args.get("endDate") or request.args.get("end")
    limit = request.args.get("limit", default=10, type=int)

    try:
        return analytics_service.sales_summary(start, end, limit=limit)
    except ValidationError as e:
        return {"error": str(e)}, 400


@reports_bp.get("/products")
@require_auth
@require_manager
def products_report():
    return analytics_service.product_report()


@reports_bp.get("/customers")
@require_auth
@require_manager
def customers_report():
    return analytics_service.customer_report()


@reports_bp.get("/dashboard")
@require_auth
def dashboard():
    return analytics_service.dashboard()


@reports_bp.get("/export/<entity>.csv")
@require_auth
@require_manager
def export_csv(entity: str):
    try:
        body = export_service.export_csv(entity)
    except ValidationError as e:
        return {"error": str(e)}, 400

    current_app.logger.info("CSV export of %s", entity)
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={entity}.csv"},
    )


@reports_bp.get("/export/<entity>.xlsx")
@require_auth
@require_manager
def export_xlsx(entity: str):
    try:
        body = export_service.export_xlsx(entity)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return Response(
        body,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={entity}.xlsx"},
    )
