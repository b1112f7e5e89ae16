from flask import Blueprint, request, jsonify

from security.rbac import require_admin
from services import courts as court_service
from services.pricing import virtual_day_schedule
from utils.http import json_body
from utils.parsing import parse_date
from utils.serialize import court_json, pricing_rule_json

courts_bp = Blueprint("courts", __name__, url_prefix="/api/courts")


@courts_bp.get("")
def list_courts():
    return jsonify([court_json(c) for c in court_service.list_courts()]), 200


@courts_bp.get("/<int:court_id>")
def get_court(court_id: int):
    court = court_service.get_court(court_id)
    if not court:
        return jsonify(message="Court not found"), 404
    return jsonify(court_json(court)), 200


@courts_bp.get("/<int:court_id>/schedule")
def court_schedule(court_id: int):
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(message="Date parameter is required"), 400
    day = parse_date(date_str)

    court = court_service.get_court(court_id)
    if not court or not court.is_active:
        return jsonify(message="Court not found"), 404

    return jsonify(
        court=court_json(court),
        date=day.isoformat(),
        slots=virtual_day_schedule(court, day),
    ), 200


@courts_bp.post("")
@require_admin
def create_court():
    court = court_service.create_court(json_body())
    body = court_json(court)
    body["pricingRules"] = [pricing_rule_json(r) for r in court.pricing_rules]
    return jsonify(body), 201


@courts_bp.put("/<int:court_id>")
@require_admin
def update_court(court_id: int):
    court = court_service.update_court(court_id, json_body())
    body = court_json(court)
    body["pricingRules"] = [pricing_rule_json(r) for r in court.pricing_rules]
    return jsonify(body), 200


@courts_bp.delete("/<int:court_id>")
@require_admin
def delete_court(court_id: int):
    court_service.delete_court(court_id)
    return jsonify(message="Court deleted successfully"), 200
