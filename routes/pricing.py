from flask import Blueprint, request, jsonify

from security.rbac import require_vendor
from services import pricing as pricing_service
from services.courts import get_court
from utils.http import int_arg, json_body
from utils.parsing import parse_date, parse_hhmm
from utils.serialize import pricing_rule_json

pricing_bp = Blueprint("pricing", __name__, url_prefix="/api")


@pricing_bp.get("/pricing-rules")
@require_vendor
def list_pricing_rules():
    rules = pricing_service.list_pricing_rules(int_arg("courtId"))
    return jsonify([pricing_rule_json(r) for r in rules]), 200


@pricing_bp.post("/pricing-rules")
@require_vendor
def upsert_pricing_rule():
    data = json_body()
    if not data.get("courtId") or not data.get("timeSlot") or data.get("price") in (None, ""):
        return jsonify(message="Court ID, time slot, and price are required"), 400

    rule = pricing_service.upsert_pricing_rule(data)
    return jsonify(pricing_rule_json(rule)), 200


@pricing_bp.post("/pricing-rules/batch")
@require_vendor
def batch_upsert_pricing_rules():
    rules = pricing_service.batch_upsert_pricing_rules(json_body())
    return jsonify([pricing_rule_json(r) for r in rules]), 200


@pricing_bp.get("/pricing/quote")
@require_vendor
def quote():
    court_id = int_arg("courtId")
    date_str = request.args.get("date")
    time_str = request.args.get("time")
    if court_id is None or not date_str or not time_str:
        return jsonify(message="courtId, date and time are required"), 400

    court = get_court(court_id)
    if not court:
        return jsonify(message="Court not found"), 404

    day = parse_date(date_str)
    start_time = parse_hhmm(time_str)
    band, _ = pricing_service.band_for(start_time)
    price = pricing_service.resolve_price(court, day, start_time)
    return jsonify(
        courtId=court.id,
        date=day.isoformat(),
        time=start_time,
        band=band,
        weekend=pricing_service.is_weekend(day),
        price=f"{price:.2f}",
    ), 200
