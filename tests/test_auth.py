from datetime import datetime, timedelta

from conftest import PASSWORD, make_user
from models import db
from models.session import Session
from models.user import User
from security.password import hash_password, is_well_formed, verify_password
from security.roles import Role


def test_password_hash_format():
    stored = hash_password("secret123")
    key_hex, salt_hex = stored.split(".")
    assert len(key_hex) == 128
    assert len(salt_hex) == 32
    assert is_well_formed(stored)
    assert verify_password("secret123", stored)
    assert not verify_password("secret124", stored)


def test_verify_rejects_malformed_hashes():
    assert not verify_password("secret123", "plaintext")
    assert not verify_password("secret123", "abc.def.ghi")
    assert not verify_password("secret123", "zz.zz")
    assert not verify_password("", hash_password("secret123"))


def test_register_creates_plain_user_and_session(client):
    resp = client.post("/api/register", json={
        "username": "newbie",
        "email": "Newbie@Example.com",
        "password": "secret123",
        "role": "admin",
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["role"] == "user"
    assert body["email"] == "newbie@example.com"
    assert "password" not in body

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.get_json()["username"] == "newbie"


def test_register_duplicate(client, user):
    resp = client.post("/api/register", json={
        "username": "alice",
        "email": "someone@example.com",
        "password": "secret123",
    })
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Username or email already exists"

    resp = client.post("/api/register", json={
        "username": "someone",
        "email": "alice@example.com",
        "password": "secret123",
    })
    assert resp.status_code == 400


def test_register_validation(client):
    resp = client.post("/api/register", json={"username": "x", "email": "x@example.com", "password": "123"})
    assert resp.status_code == 400
    resp = client.post("/api/register", json={"username": "x", "email": "not-an-email", "password": "secret123"})
    assert resp.status_code == 400
    resp = client.post("/api/register", json={"email": "x@example.com", "password": "secret123"})
    assert resp.status_code == 400


def test_login_with_username_or_email(client, user):
    assert client.post("/api/login", json={"username": "alice", "password": PASSWORD}).status_code == 200
    assert client.post("/api/login", json={"username": "alice@example.com", "password": PASSWORD}).status_code == 200


def test_login_failures(client, user):
    resp = client.post("/api/login", json={"username": "alice", "password": "wrong-one"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid username or password"

    resp = client.post("/api/login", json={"username": "ghost", "password": PASSWORD})
    assert resp.status_code == 401

    resp = client.post("/api/login", json={"username": "alice"})
    assert resp.status_code == 400


def test_blocked_user_cannot_login(client):
    make_user("mallory", blocked=True)
    resp = client.post("/api/login", json={"username": "mallory", "password": PASSWORD})
    assert resp.status_code == 403


def test_logout_ends_session(user_client):
    assert user_client.get("/api/user").status_code == 200
    assert user_client.post("/api/logout").status_code == 200
    assert user_client.get("/api/user").status_code == 401


def test_current_user_requires_session(client):
    resp = client.get("/api/user")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Authentication required"


def test_fix_passwords_command(app):
    broken = make_user("legacy")
    broken.password = "plaintext"
    healthy = make_user("fine")
    healthy_hash = healthy.password
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["fix-passwords"])
    assert result.exit_code == 0
    assert "Fixed 1 user password(s)" in result.output

    db.session.expire_all()
    assert verify_password(app.config["DEFAULT_RESET_PASSWORD"], db.session.get(User, broken.id).password)
    assert db.session.get(User, healthy.id).password == healthy_hash


def test_make_admin_command(app, user):
    result = app.test_cli_runner().invoke(args=["make-admin", "alice@example.com"])
    assert result.exit_code == 0
    db.session.expire_all()
    assert db.session.get(User, user.id).role is Role.ADMIN


def test_session_liveness():
    now = datetime(2030, 1, 1, 12, 0)
    idle = timedelta(hours=2)
    sess = Session(created_at=now - timedelta(hours=1), last_seen_at=now - timedelta(minutes=30),
                   expires_at=now + timedelta(days=1), revoked=False)
    assert sess.is_live(now, idle)

    sess.last_seen_at = now - timedelta(hours=3)
    assert not sess.is_live(now, idle)

    sess.last_seen_at = now
    sess.expires_at = now
    assert not sess.is_live(now, idle)

    sess.expires_at = now + timedelta(days=1)
    sess.revoked = True
    assert not sess.is_live(now, idle)


def test_idle_session_is_rejected(app, user_client):
    for sess in Session.query.all():
        sess.last_seen_at = datetime.utcnow() - timedelta(seconds=app.config["IDLE_TIMEOUT_SECONDS"] + 60)
    db.session.commit()
    assert user_client.get("/api/user").status_code == 401
