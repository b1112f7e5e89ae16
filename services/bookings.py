import logging

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from models import db
from models.booking import Booking, BookingStatus
from models.court import Court
from models.time_slot import TimeSlot
from security.roles import can_manage
from services.availability import release_slot, reserve_slot
from utils.parsing import parse_int

logger = logging.getLogger(__name__)

_DETAILS = (
    joinedload(Booking.user),
    joinedload(Booking.time_slot).joinedload(TimeSlot.court),
)

CREATABLE_STATUSES = {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value}


def _parse_status(value, allowed) -> str:
    status = (value or "").strip().lower() if isinstance(value, str) else None
    if status not in allowed:
        raise ValidationError(f"status must be one of: {', '.join(sorted(allowed))}")
    return status


def get_booking(booking_id: int):
    return db.session.get(Booking, booking_id)


def get_booking_with_details(booking_id: int):
    return (
        Booking.query
        .options(*_DETAILS)
        .filter(Booking.id == booking_id)
        .first()
    )


def list_user_bookings(user_id: int, status=None):
    q = Booking.query.options(*_DETAILS).filter(Booking.user_id == user_id)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def list_all_bookings(status=None):
    q = Booking.query.options(*_DETAILS)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def ensure_can_modify(booking: Booking, user) -> None:
    if can_manage(user.role):
        return
    if booking.user_id != user.id:
        raise AuthorizationError("Not authorized to modify this booking")


def create_booking(user, data: dict) -> Booking:
    """Book a slot for ``user``.

    Checking availability, flipping the flag and inserting the booking happen
    in one transaction; a slot taken in the meantime raises ConflictError and
    leaves nothing behind.
    """
    if user.is_blocked:
        raise AuthorizationError("Account is blocked")

    slot_id = parse_int(data.get("timeSlotId"), "timeSlotId")
    status = BookingStatus.PENDING.value
    if data.get("status") is not None:
        status = _parse_status(data.get("status"), CREATABLE_STATUSES)
        if status == BookingStatus.CONFIRMED.value and not can_manage(user.role):
            raise AuthorizationError("Only vendors and admins can confirm bookings")

    slot = db.session.get(TimeSlot, slot_id)
    if slot is None:
        raise NotFoundError("Time slot not found")
    court = db.session.get(Court, slot.court_id)
    if court is None or not court.is_active:
        raise ConflictError("Court is not accepting bookings")

    try:
        reserve_slot(slot.id)
        booking = Booking(
            user_id=user.id,
            time_slot_id=slot.id,
            status=status,
            total_price=slot.price,
        )
        db.session.add(booking)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s created user=%s slot=%s", booking.id, user.id, slot.id)
    return booking


def cancel_booking(booking_id: int) -> Booking:
    """Cancel a booking and free its slot.

    Cancelling an already cancelled booking changes nothing; the slot may
    belong to a newer booking by then.
    """
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    try:
        result = db.session.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status != BookingStatus.CANCELLED.value)
            .values(status=BookingStatus.CANCELLED.value)
        )
        if result.rowcount == 0:
            db.session.rollback()
            return booking
        release_slot(booking.time_slot_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s cancelled, slot %s released", booking.id, booking.time_slot_id)
    return booking


def update_booking(booking_id: int, data: dict) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    if "status" not in data:
        raise ValidationError("Nothing to update; only status can be changed")
    status = _parse_status(data.get("status"), {s.value for s in BookingStatus})

    if status == booking.status:
        return booking
    if status == BookingStatus.CANCELLED.value:
        return cancel_booking(booking_id)
    if booking.status == BookingStatus.CANCELLED.value:
        raise ConflictError("A cancelled booking cannot be reopened")
    if status == BookingStatus.PENDING.value:
        raise ConflictError("A confirmed booking cannot go back to pending")

    booking.status = status
    db.session.commit()
    logger.info("Booking %s marked %s", booking.id, status)
    return booking


def calendar_bookings(start, end):
    return (
        Booking.query
        .options(*_DETAILS)
        .join(TimeSlot, Booking.time_slot_id == TimeSlot.id)
        .filter(TimeSlot.date >= start, TimeSlot.date <= end)
        .order_by(TimeSlot.date.asc(), TimeSlot.start_time.asc())
        .all()
    )


def visible_bookings(user, status=None):
    if can_manage(user.role):
        return list_all_bookings(status)
    return list_user_bookings(user.id, status)
