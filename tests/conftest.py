from datetime import date
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.court import Court
from models.time_slot import TimeSlot
from models.user import User
from security.password import hash_password
from security.roles import Role

PASSWORD = "secret123"

# 2030-01-01 is a Tuesday, 2030-01-05 a Saturday
TUESDAY = date(2030, 1, 1)
SATURDAY = date(2030, 1, 5)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(username, role=Role.USER, blocked=False, email=None):
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password=hash_password(PASSWORD),
        role=role,
        is_blocked=blocked,
    )
    db.session.add(user)
    db.session.commit()
    return user


def make_court(name="Centre Court", rate="20.00", open_time="07:00", close_time="23:00", active=True):
    court = Court(
        name=name,
        open_time=open_time,
        close_time=close_time,
        hourly_rate=Decimal(rate),
        is_active=active,
    )
    db.session.add(court)
    db.session.commit()
    return court


def make_slot(court, day=TUESDAY, start="18:00", end="18:30", price="30.00", available=True):
    slot = TimeSlot(
        court_id=court.id,
        date=day,
        start_time=start,
        end_time=end,
        price=Decimal(price),
        is_available=available,
    )
    db.session.add(slot)
    db.session.commit()
    return slot


def login(client, username, password=PASSWORD):
    resp = client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp


@pytest.fixture
def user(app):
    return make_user("alice")


@pytest.fixture
def other_user(app):
    return make_user("bob")


@pytest.fixture
def vendor(app):
    return make_user("vera", role=Role.VENDOR)


@pytest.fixture
def admin(app):
    return make_user("root", role=Role.ADMIN)


@pytest.fixture
def court(app):
    return make_court()


@pytest.fixture
def slot(court):
    return make_slot(court)


@pytest.fixture
def user_client(client, user):
    login(client, "alice")
    return client


@pytest.fixture
def vendor_client(client, vendor):
    login(client, "vera")
    return client


@pytest.fixture
def admin_client(client, admin):
    login(client, "root")
    return client
