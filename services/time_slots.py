import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import contains_eager

from errors import ConflictError, NotFoundError, ValidationError
from models import db
from models.booking import Booking, BookingStatus
from models.court import Court
from models.time_slot import TimeSlot
from models.user import User
from services.pricing import SLOT_MINUTES, half_hour_grid, resolve_price, active_rules_for
from utils.parsing import (
    end_minutes_of,
    format_minutes,
    minutes_of,
    parse_bool,
    parse_date,
    parse_hhmm,
    parse_int,
    parse_price,
)

logger = logging.getLogger(__name__)

MAX_GENERATE_DAYS = 62


@dataclass
class BookingSummary:
    id: int
    status: str
    total_price: object
    user_id: int
    username: str


@dataclass
class TimeSlotView:
    """A slot with the active booking holding it, if any."""
    slot: TimeSlot
    booking: Optional[BookingSummary]


def _with_court(q):
    return (
        q.join(Court, TimeSlot.court_id == Court.id)
        .options(contains_eager(TimeSlot.court))
    )


def get_time_slot(slot_id: int):
    return db.session.get(TimeSlot, slot_id)


def get_time_slot_with_court(slot_id: int):
    return _with_court(TimeSlot.query).filter(TimeSlot.id == slot_id).first()


def get_time_slots_by_date(day) -> List[TimeSlot]:
    return (
        _with_court(TimeSlot.query)
        .filter(TimeSlot.date == day)
        .order_by(TimeSlot.start_time.asc(), Court.name.asc())
        .all()
    )


def get_available_time_slots(day) -> List[TimeSlot]:
    return (
        _with_court(TimeSlot.query)
        .filter(
            TimeSlot.date == day,
            TimeSlot.is_available.is_(True),
            Court.is_active.is_(True),
        )
        .order_by(TimeSlot.start_time.asc(), Court.name.asc())
        .all()
    )


def get_time_slots_by_date_range(start, end) -> List[TimeSlotView]:
    """Slots dated ``start``..``end`` inclusive, each with its active booking."""
    if start > end:
        raise ValidationError("startDate must not be after endDate")

    rows = (
        db.session.query(TimeSlot, Booking, User)
        .join(Court, TimeSlot.court_id == Court.id)
        .outerjoin(
            Booking,
            and_(
                Booking.time_slot_id == TimeSlot.id,
                Booking.status != BookingStatus.CANCELLED.value,
            ),
        )
        .outerjoin(User, Booking.user_id == User.id)
        .options(contains_eager(TimeSlot.court))
        .filter(TimeSlot.date >= start, TimeSlot.date <= end)
        .order_by(TimeSlot.date.asc(), TimeSlot.start_time.asc(), Court.name.asc(), Booking.id.desc())
        .all()
    )

    views, seen = [], set()
    for slot, booking, user in rows:
        # at most one active booking per slot; keep the newest if data says otherwise
        if slot.id in seen:
            continue
        seen.add(slot.id)
        summary = None
        if booking is not None:
            summary = BookingSummary(
                id=booking.id,
                status=booking.status,
                total_price=booking.total_price,
                user_id=booking.user_id,
                username=user.username if user else None,
            )
        views.append(TimeSlotView(slot=slot, booking=summary))
    return views


def _default_end(start_time: str) -> str:
    return format_minutes(minutes_of(start_time) + SLOT_MINUTES)


def _check_span(start_time: str, end_time: str):
    if end_minutes_of(end_time) <= minutes_of(start_time):
        raise ValidationError("endTime must be after startTime")


def _has_active_booking(slot_id: int) -> bool:
    return (
        Booking.query
        .filter(Booking.time_slot_id == slot_id, Booking.status != BookingStatus.CANCELLED.value)
        .first()
        is not None
    )


def create_time_slot(data: dict) -> TimeSlot:
    court_id = parse_int(data.get("courtId"), "courtId")
    day = parse_date(data.get("date"))
    start_time = parse_hhmm(data.get("startTime"), "startTime")
    end_time = parse_hhmm(data["endTime"], "endTime") if data.get("endTime") else _default_end(start_time)
    _check_span(start_time, end_time)

    court = db.session.get(Court, court_id)
    if court is None:
        raise NotFoundError("Court not found")

    if data.get("price") is not None:
        price = parse_price(data.get("price"))
    else:
        price = resolve_price(court, day, start_time)

    is_available = True
    if "isAvailable" in data:
        is_available = parse_bool(data["isAvailable"], "isAvailable")

    slot = TimeSlot(
        court_id=court.id,
        date=day,
        start_time=start_time,
        end_time=end_time,
        price=price,
        is_available=is_available,
    )
    db.session.add(slot)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Time slot already exists for that court, date and start time")
    return slot


def update_time_slot(slot_id: int, data: dict) -> TimeSlot:
    slot = db.session.get(TimeSlot, slot_id)
    if slot is None:
        raise NotFoundError("Time slot not found")

    if "isAvailable" in data:
        wanted = parse_bool(data["isAvailable"], "isAvailable")
        # the flag must agree with the booking state
        if wanted != (not _has_active_booking(slot.id)):
            raise ConflictError("isAvailable must match the slot's booking state")
        slot.is_available = wanted

    if "courtId" in data:
        court_id = parse_int(data["courtId"], "courtId")
        if db.session.get(Court, court_id) is None:
            raise NotFoundError("Court not found")
        slot.court_id = court_id
    if "date" in data:
        slot.date = parse_date(data["date"])
    if "startTime" in data:
        slot.start_time = parse_hhmm(data["startTime"], "startTime")
    if "endTime" in data:
        slot.end_time = parse_hhmm(data["endTime"], "endTime")
    _check_span(slot.start_time, slot.end_time)
    if "price" in data:
        slot.price = parse_price(data["price"])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Time slot already exists for that court, date and start time")
    return slot


def delete_time_slot(slot_id: int) -> None:
    slot = db.session.get(TimeSlot, slot_id)
    if slot is None:
        raise NotFoundError("Time slot not found")
    if _has_active_booking(slot.id):
        raise ConflictError("Time slot has an active booking and cannot be deleted")

    Booking.query.filter(Booking.time_slot_id == slot.id).delete(synchronize_session=False)
    db.session.delete(slot)
    db.session.commit()


def generate_time_slots(data: dict) -> List[TimeSlot]:
    """Materialise a court's half-hour grid for every date in a range.

    Existing slots are left untouched; new ones are priced by the resolver.
    """
    court_id = parse_int(data.get("courtId"), "courtId")
    start = parse_date(data.get("startDate"), "startDate")
    end = parse_date(data.get("endDate"), "endDate")
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    if (end - start).days >= MAX_GENERATE_DAYS:
        raise ValidationError(f"Cannot generate more than {MAX_GENERATE_DAYS} days at once")

    court = db.session.get(Court, court_id)
    if court is None:
        raise NotFoundError("Court not found")

    existing = {
        (d, s)
        for d, s in db.session.query(TimeSlot.date, TimeSlot.start_time)
        .filter(TimeSlot.court_id == court.id, TimeSlot.date >= start, TimeSlot.date <= end)
    }
    rules = active_rules_for(court.id)
    grid = half_hour_grid(court.open_time, court.close_time)

    created = []
    day = start
    while day <= end:
        for slot_start, slot_end in grid:
            if (day, slot_start) in existing:
                continue
            slot = TimeSlot(
                court_id=court.id,
                date=day,
                start_time=slot_start,
                end_time=slot_end,
                price=resolve_price(court, day, slot_start, rules),
                is_available=True,
            )
            db.session.add(slot)
            created.append(slot)
        day += timedelta(days=1)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Slots changed while generating; try again")

    logger.info("Generated %d slot(s) for court %s from %s to %s", len(created), court.id, start, end)
    return created
