from flask import Blueprint, request, jsonify, g

from security.rbac import is_manager, require_auth
from services import bookings as booking_service
from utils.http import json_body
from utils.serialize import booking_json

booking_bp = Blueprint("booking", __name__, url_prefix="/api/bookings")


@booking_bp.get("")
@require_auth
def list_bookings():
    status = request.args.get("status")  # pending/confirmed/cancelled
    rows = booking_service.visible_bookings(g.user, status)
    return jsonify([booking_json(b, details=True) for b in rows]), 200


@booking_bp.get("/<int:booking_id>")
@require_auth
def get_booking(booking_id: int):
    booking = booking_service.get_booking_with_details(booking_id)
    if not booking:
        return jsonify(message="Booking not found"), 404
    booking_service.ensure_can_modify(booking, g.user)
    return jsonify(booking_json(booking, details=True)), 200


@booking_bp.post("")
@require_auth
def create_booking():
    booking = booking_service.create_booking(g.user, json_body())
    details = booking_service.get_booking_with_details(booking.id)
    return jsonify(booking_json(details, details=True)), 201


# ownership is checked before anything is written
@booking_bp.put("/<int:booking_id>")
@require_auth
def update_booking(booking_id: int):
    data = json_body()
    booking = booking_service.get_booking(booking_id)
    if not booking:
        return jsonify(message="Booking not found"), 404
    booking_service.ensure_can_modify(booking, g.user)
    if "status" in data and not is_manager() and data.get("status") != "cancelled":
        return jsonify(message="Only vendors and admins can confirm bookings"), 403

    booking_service.update_booking(booking_id, data)
    details = booking_service.get_booking_with_details(booking_id)
    return jsonify(booking_json(details, details=True)), 200


@booking_bp.delete("/<int:booking_id>")
@require_auth
def cancel_booking(booking_id: int):
    booking = booking_service.get_booking(booking_id)
    if not booking:
        return jsonify(message="Booking not found"), 404
    booking_service.ensure_can_modify(booking, g.user)

    booking_service.cancel_booking(booking_id)
    return jsonify(message="Booking cancelled successfully"), 200
