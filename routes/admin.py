from datetime import date

from flask import Blueprint, jsonify, request

from security.rbac import require_vendor
from services.bookings import calendar_bookings
from services.stats import dashboard_stats
from utils.parsing import parse_date
from utils.serialize import booking_json

admin_bp = Blueprint("admin", __name__, url_prefix="/api")


@admin_bp.get("/stats")
@require_vendor
def stats():
    return jsonify(dashboard_stats(date.today())), 200


@admin_bp.get("/admin/stats")
@require_vendor
def admin_stats():
    return jsonify(dashboard_stats(date.today())), 200


@admin_bp.get("/calendar")
@require_vendor
def calendar():
    start_str = request.args.get("startDate")
    end_str = request.args.get("endDate")
    if not start_str or not end_str:
        return jsonify(message="Start date and end date are required"), 400

    start = parse_date(start_str, "startDate")
    end = parse_date(end_str, "endDate")
    if start > end:
        return jsonify(message="startDate must not be after endDate"), 400

    rows = calendar_bookings(start, end)
    return jsonify([booking_json(b, details=True) for b in rows]), 200
