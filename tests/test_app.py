import pytest

from app import create_app
from config import TestConfig
from errors import ConflictError
from models import db
from conftest import PASSWORD, make_user


class ProductionConfig(TestConfig):
    TESTING = False
    APP_ENV = "production"


class CsrfConfig(TestConfig):
    CSRF_ENABLED = True


@pytest.fixture
def prod_app():
    app = create_app(ProductionConfig)

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_security_headers(client):
    resp = client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_is_json(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_non_object_body_rejected(user_client, slot):
    resp = user_client.post("/api/bookings", json=[slot.id])
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Request body must be a JSON object"


def test_unhandled_error_hides_stack_in_production(prod_app):
    resp = prod_app.test_client().get("/boom")
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Internal server error"}


def test_unhandled_error_includes_stack_outside_production():
    app = create_app(TestConfig)
    app.config["PROPAGATE_EXCEPTIONS"] = False

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with app.app_context():
        resp = app.test_client().get("/boom")
    body = resp.get_json()
    assert resp.status_code == 500
    assert body["message"] == "Internal server error"
    assert any("kaboom" in line for line in body["stack"])


def test_domain_errors_carry_status():
    assert ConflictError().status_code == 409
    assert ConflictError("taken").to_dict() == {"message": "taken"}


def test_csrf_enforced_for_authenticated_writes():
    app = create_app(CsrfConfig)
    with app.app_context():
        db.create_all()
        make_user("alice")
        client = app.test_client()
        login = client.post("/api/login", json={"username": "alice", "password": PASSWORD})
        assert login.status_code == 200

        resp = client.post("/api/logout")
        assert resp.status_code == 403
        assert resp.get_json()["message"] == "CSRF validation failed"

        token = client.get_cookie("csrf_token").value
        resp = client.post("/api/logout", headers={"X-CSRF-Token": token})
        assert resp.status_code == 200
        db.drop_all()
