import threading

import pytest

from config import TestConfig
from conftest import login, make_court, make_slot, make_user
from app import create_app
from errors import ConflictError
from models import db
from models.booking import Booking
from models.time_slot import TimeSlot
from models.user import User
from services.bookings import create_booking


def _book(client, slot_id, **extra):
    return client.post("/api/bookings", json={"timeSlotId": slot_id, **extra})


def _slot_available(slot_id):
    db.session.expire_all()
    return db.session.get(TimeSlot, slot_id).is_available


def test_create_booking_takes_the_slot(user_client, slot):
    resp = _book(user_client, slot.id)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "pending"
    assert body["totalPrice"] == "30.00"
    assert body["timeSlot"]["court"]["name"] == "Centre Court"
    assert body["user"]["username"] == "alice"
    assert "password" not in body["user"]
    assert _slot_available(slot.id) is False


def test_booking_price_is_the_slot_snapshot(user_client, court):
    slot = make_slot(court, start="10:00", end="10:30", price="17.50")
    body = _book(user_client, slot.id).get_json()
    assert body["totalPrice"] == "17.50"


def test_double_booking_conflicts(app, user_client, slot):
    assert _book(user_client, slot.id).status_code == 201

    make_user("bob")
    second = app.test_client()
    login(second, "bob")
    resp = _book(second, slot.id)
    assert resp.status_code == 409
    assert resp.get_json()["message"] == "Time slot is not available"
    assert Booking.query.count() == 1


def test_booking_unknown_slot(user_client):
    resp = _book(user_client, 999)
    assert resp.status_code == 404


def test_booking_requires_slot_id(user_client):
    resp = user_client.post("/api/bookings", json={})
    assert resp.status_code == 400


def test_booking_rejects_cancelled_status(user_client, slot):
    resp = _book(user_client, slot.id, status="cancelled")
    assert resp.status_code == 400
    assert _slot_available(slot.id) is True


def test_booking_inactive_court(user_client):
    court = make_court(name="Closed", active=False)
    slot = make_slot(court)
    resp = _book(user_client, slot.id)
    assert resp.status_code == 409
    assert _slot_available(slot.id) is True


def test_booking_requires_login(client, slot):
    resp = _book(client, slot.id)
    assert resp.status_code == 401


def test_cancel_releases_slot(user_client, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]
    resp = user_client.delete(f"/api/bookings/{booking_id}")
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Booking cancelled successfully"
    assert _slot_available(slot.id) is True
    assert db.session.get(Booking, booking_id).status == "cancelled"


def test_cancel_twice_does_not_free_a_rebooked_slot(user_client, slot):
    first = _book(user_client, slot.id).get_json()["id"]
    assert user_client.delete(f"/api/bookings/{first}").status_code == 200

    second = _book(user_client, slot.id)
    assert second.status_code == 201

    # repeating the first cancellation is a no-op
    assert user_client.delete(f"/api/bookings/{first}").status_code == 200
    assert _slot_available(slot.id) is False


def test_user_cannot_touch_another_users_booking(app, user_client, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]

    make_user("bob")
    bob = app.test_client()
    login(bob, "bob")
    assert bob.get(f"/api/bookings/{booking_id}").status_code == 403
    assert bob.put(f"/api/bookings/{booking_id}", json={"status": "cancelled"}).status_code == 403
    resp = bob.delete(f"/api/bookings/{booking_id}")
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Not authorized to modify this booking"
    assert _slot_available(slot.id) is False


def test_user_cannot_confirm(user_client, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]
    resp = user_client.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"})
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Only vendors and admins can confirm bookings"


def test_user_can_cancel_via_put(user_client, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]
    resp = user_client.put(f"/api/bookings/{booking_id}", json={"status": "cancelled"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "cancelled"
    assert _slot_available(slot.id) is True


def test_vendor_confirms_then_cannot_reopen(app, user_client, vendor, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]

    staff = app.test_client()
    login(staff, "vera")
    resp = staff.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "confirmed"

    assert staff.put(f"/api/bookings/{booking_id}", json={"status": "pending"}).status_code == 409

    assert staff.put(f"/api/bookings/{booking_id}", json={"status": "cancelled"}).status_code == 200
    assert staff.put(f"/api/bookings/{booking_id}", json={"status": "confirmed"}).status_code == 409
    assert _slot_available(slot.id) is True


def test_list_bookings_scoped_by_role(app, user_client, vendor, court):
    mine = make_slot(court, start="09:00", end="09:30")
    theirs = make_slot(court, start="09:30", end="10:00")
    _book(user_client, mine.id)

    make_user("bob")
    bob = app.test_client()
    login(bob, "bob")
    _book(bob, theirs.id)

    own = user_client.get("/api/bookings").get_json()
    assert [b["timeSlotId"] for b in own] == [mine.id]

    staff = app.test_client()
    login(staff, "vera")
    everything = staff.get("/api/bookings").get_json()
    assert {b["timeSlotId"] for b in everything} == {mine.id, theirs.id}

    assert staff.get("/api/bookings?status=cancelled").get_json() == []


def test_service_rejects_a_taken_slot(app, slot):
    alice = make_user("alice")
    bob = make_user("bob")
    create_booking(alice, {"timeSlotId": slot.id})

    with pytest.raises(ConflictError):
        create_booking(bob, {"timeSlotId": slot.id})
    assert Booking.query.count() == 1
    assert _slot_available(slot.id) is False


def test_concurrent_bookings_only_one_wins(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "race.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        court = make_court()
        slot_id = make_slot(court).id
        user_ids = [make_user(f"player{i}").id for i in range(5)]

    barrier = threading.Barrier(len(user_ids))
    results = []
    lock = threading.Lock()

    def attempt(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            barrier.wait()
            try:
                create_booking(user, {"timeSlotId": slot_id})
                outcome = "booked"
            except ConflictError:
                outcome = "conflict"
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["booked"] + ["conflict"] * 4
    with app.app_context():
        assert Booking.query.count() == 1
        assert db.session.get(TimeSlot, slot_id).is_available is False
        db.drop_all()


def test_user_cannot_create_confirmed_booking(user_client, slot):
    resp = _book(user_client, slot.id, status="confirmed")
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Only vendors and admins can confirm bookings"
    assert Booking.query.count() == 0
    assert _slot_available(slot.id) is True


def test_vendor_can_create_confirmed_booking(vendor_client, slot):
    resp = _book(vendor_client, slot.id, status="confirmed")
    assert resp.status_code == 201
    assert resp.get_json()["status"] == "confirmed"


def test_owner_put_without_status_is_a_bad_request(user_client, slot):
    booking_id = _book(user_client, slot.id).get_json()["id"]
    resp = user_client.put(f"/api/bookings/{booking_id}", json={"note": "late"})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Nothing to update; only status can be changed"
