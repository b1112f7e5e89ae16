from datetime import date, timedelta

from models import db
from models.booking import Booking
from services.stats import dashboard_stats
from conftest import make_court, make_slot, make_user


def _booking(user, slot, status):
    db.session.add(Booking(user_id=user.id, time_slot_id=slot.id, status=status, total_price=slot.price))
    db.session.commit()


def test_dashboard_stats(app):
    today = date(2030, 3, 15)
    alice = make_user("alice")
    make_user("mallory", blocked=True)
    court = make_court()
    make_court(name="Closed", active=False)

    _booking(alice, make_slot(court, day=today, start="09:00", end="09:30", price="10.00", available=False), "confirmed")
    _booking(alice, make_slot(court, day=today - timedelta(days=3), start="09:00", end="09:30", price="20.00",
                              available=False), "confirmed")
    _booking(alice, make_slot(court, day=today - timedelta(days=20), start="09:00", end="09:30", price="40.00",
                              available=False), "confirmed")
    _booking(alice, make_slot(court, day=today, start="10:00", end="10:30", price="99.00", available=False), "pending")
    _booking(alice, make_slot(court, day=today, start="11:00", end="11:30", price="99.00"), "cancelled")
    _booking(alice, make_slot(court, day=today, start="12:00", end="12:30", price="99.00"), "cancelled")

    stats = dashboard_stats(today)
    assert stats["totalUsers"] == 2
    assert stats["blockedUsers"] == 1
    assert stats["totalCourts"] == 1
    assert stats["activeBookings"] == 3
    assert stats["pendingBookings"] == 1
    assert stats["revenue"] == 70.0
    assert stats["dailyRevenue"] == 10.0
    assert stats["weeklyRevenue"] == 30.0
    assert stats["monthlyRevenue"] == 70.0
    assert stats["totalTimeSlots"] == 6
    assert stats["bookedTimeSlots"] == 3
    # 3 of 6 bookings confirmed
    assert stats["occupancyRate"] == 50


def test_occupancy_rounds_half_up(app):
    alice = make_user("alice")
    court = make_court()
    for i, status in enumerate(["confirmed", "pending", "pending", "pending", "pending", "pending", "pending", "pending"]):
        _booking(alice, make_slot(court, start=f"{9 + i:02d}:00", end=f"{9 + i:02d}:30"), status)
    # 1/8 = 12.5%
    assert dashboard_stats(date(2030, 1, 1))["occupancyRate"] == 13


def test_stats_empty(app):
    stats = dashboard_stats(date(2030, 1, 1))
    assert stats["occupancyRate"] == 0
    assert stats["revenue"] == 0.0


def test_stats_endpoints_need_vendor(app, user_client):
    assert user_client.get("/api/stats").status_code == 403
    assert user_client.get("/api/admin/stats").status_code == 403


def test_stats_endpoints(vendor_client):
    for path in ("/api/stats", "/api/admin/stats"):
        resp = vendor_client.get(path)
        assert resp.status_code == 200
        assert resp.get_json()["totalUsers"] == 1


def test_calendar(vendor_client, vendor, court):
    slot = make_slot(court, available=False)
    _booking(vendor, slot, "confirmed")
    make_slot(court, start="19:00", end="19:30")

    resp = vendor_client.get("/api/calendar?startDate=2030-01-01&endDate=2030-01-01")
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body) == 1
    assert body[0]["timeSlot"]["startTime"] == "18:00"

    assert vendor_client.get("/api/calendar?startDate=2030-01-01").status_code == 400
    assert vendor_client.get("/api/calendar?startDate=2030-01-02&endDate=2030-01-01").status_code == 400
