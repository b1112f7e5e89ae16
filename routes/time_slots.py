from flask import Blueprint, request, jsonify

from security.rbac import require_admin
from services import time_slots as slot_service
from utils.http import json_body
from utils.parsing import parse_date
from utils.serialize import time_slot_json, time_slot_view_json

time_slots_bp = Blueprint("time_slots", __name__, url_prefix="/api/time-slots")


@time_slots_bp.get("")
def list_time_slots():
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(message="Date parameter is required"), 400
    slots = slot_service.get_time_slots_by_date(parse_date(date_str))
    return jsonify([time_slot_json(s, with_court=True) for s in slots]), 200


@time_slots_bp.get("/available")
def list_available_time_slots():
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(message="Date parameter is required"), 400
    slots = slot_service.get_available_time_slots(parse_date(date_str))
    return jsonify([time_slot_json(s, with_court=True) for s in slots]), 200


@time_slots_bp.get("/range")
def list_time_slots_in_range():
    start_str = request.args.get("startDate")
    end_str = request.args.get("endDate")
    if not start_str or not end_str:
        return jsonify(message="Start date and end date are required"), 400

    views = slot_service.get_time_slots_by_date_range(
        parse_date(start_str, "startDate"),
        parse_date(end_str, "endDate"),
    )
    return jsonify([time_slot_view_json(v) for v in views]), 200


@time_slots_bp.get("/<int:slot_id>")
def get_time_slot(slot_id: int):
    slot = slot_service.get_time_slot_with_court(slot_id)
    if not slot:
        return jsonify(message="Time slot not found"), 404
    return jsonify(time_slot_json(slot, with_court=True)), 200


@time_slots_bp.post("")
@require_admin
def create_time_slot():
    slot = slot_service.create_time_slot(json_body())
    return jsonify(time_slot_json(slot)), 201


@time_slots_bp.post("/generate")
@require_admin
def generate_time_slots():
    created = slot_service.generate_time_slots(json_body())
    return jsonify(created=len(created), slots=[time_slot_json(s) for s in created]), 201


@time_slots_bp.put("/<int:slot_id>")
@require_admin
def update_time_slot(slot_id: int):
    slot = slot_service.update_time_slot(slot_id, json_body())
    return jsonify(time_slot_json(slot)), 200


@time_slots_bp.delete("/<int:slot_id>")
@require_admin
def delete_time_slot(slot_id: int):
    slot_service.delete_time_slot(slot_id)
    return jsonify(message="Time slot deleted successfully"), 200
