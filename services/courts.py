import logging

from errors import ConflictError, NotFoundError, ValidationError
from models import db
from models.booking import Booking, BookingStatus
from models.court import Court
from models.time_slot import TimeSlot
from services.pricing import parse_inheritance_flags, replace_court_rules
from utils.parsing import end_minutes_of, minutes_of, parse_bool, parse_hhmm, parse_price, require_text

logger = logging.getLogger(__name__)


def _clean_court_fields(data: dict, partial: bool) -> dict:
    out = {}
    if not partial or "name" in data:
        out["name"] = require_text(data, "name", max_len=120)
    if "description" in data:
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string")
        out["description"] = (description or "").strip() or None
    if not partial or "openTime" in data:
        out["open_time"] = parse_hhmm(data.get("openTime"), "openTime")
    if not partial or "closeTime" in data:
        out["close_time"] = parse_hhmm(data.get("closeTime"), "closeTime")
    if not partial or "hourlyRate" in data:
        out["hourly_rate"] = parse_price(data.get("hourlyRate"), "hourlyRate")
    if "isActive" in data:
        out["is_active"] = parse_bool(data["isActive"], "isActive")
    return out


def _check_hours(court: Court):
    if end_minutes_of(court.close_time) <= minutes_of(court.open_time):
        raise ValidationError("closeTime must be after openTime")


def list_courts(include_inactive=False):
    q = Court.query
    if not include_inactive:
        q = q.filter(Court.is_active.is_(True))
    return q.order_by(Court.name.asc()).all()


def get_court(court_id: int):
    return db.session.get(Court, court_id)


def create_court(data: dict) -> Court:
    """Insert a court together with its optional ``pricingRules``."""
    fields = _clean_court_fields(data, partial=False)
    monday_to_weekdays, saturday_to_sunday = parse_inheritance_flags(data)

    court = Court(**fields)
    _check_hours(court)
    try:
        db.session.add(court)
        db.session.flush()
        if data.get("pricingRules"):
            replace_court_rules(court, data["pricingRules"], monday_to_weekdays, saturday_to_sunday)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Court %s created (%s)", court.id, court.name)
    return court


def update_court(court_id: int, data: dict) -> Court:
    """Partial update; a ``pricingRules`` key replaces the court's rules."""
    court = db.session.get(Court, court_id)
    if court is None:
        raise NotFoundError("Court not found")

    fields = _clean_court_fields(data, partial=True)
    monday_to_weekdays, saturday_to_sunday = parse_inheritance_flags(data)
    try:
        for key, value in fields.items():
            setattr(court, key, value)
        _check_hours(court)
        if "pricingRules" in data:
            replace_court_rules(court, data["pricingRules"] or [], monday_to_weekdays, saturday_to_sunday)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return court


def delete_court(court_id: int) -> None:
    """Delete a court with its pricing rules and unbooked slots.

    Refused while any of its slots holds an active booking.
    """
    court = db.session.get(Court, court_id)
    if court is None:
        raise NotFoundError("Court not found")

    active = (
        Booking.query
        .join(TimeSlot, Booking.time_slot_id == TimeSlot.id)
        .filter(TimeSlot.court_id == court.id, Booking.status != BookingStatus.CANCELLED.value)
        .first()
    )
    if active is not None:
        raise ConflictError("Court has active bookings and cannot be deleted")

    slot_ids = [sid for (sid,) in db.session.query(TimeSlot.id).filter(TimeSlot.court_id == court.id)]
    try:
        if slot_ids:
            Booking.query.filter(Booking.time_slot_id.in_(slot_ids)).delete(synchronize_session=False)
            TimeSlot.query.filter(TimeSlot.id.in_(slot_ids)).delete(synchronize_session=False)
        db.session.delete(court)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Court %s deleted", court_id)
