"""Keeps ``TimeSlot.is_available`` in step with the booking lifecycle.

A slot is Available until a pending or confirmed booking takes it, and only
cancellation hands it back. The flip is a conditional UPDATE so that two
requests racing for one slot cannot both win; callers run it inside the same
transaction as the booking insert and commit once.
"""
import logging

from sqlalchemy import update

from errors import ConflictError
from models import db
from models.time_slot import TimeSlot

logger = logging.getLogger(__name__)


def reserve_slot(slot_id: int) -> None:
    result = db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id, TimeSlot.is_available.is_(True))
        .values(is_available=False)
    )
    if result.rowcount != 1:
        logger.info("Slot %s already taken", slot_id)
        raise ConflictError("Time slot is not available")


def release_slot(slot_id: int) -> None:
    db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id)
        .values(is_available=True)
    )
