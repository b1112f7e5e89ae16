"""Cookie-backed server-side sessions.

The raw token only ever lives in the client's cookie. Sessions end at a fixed
lifetime, after an idle period, or when revoked (logout, account deletion).
"""
import hashlib
import secrets
from datetime import datetime, timedelta

from flask import current_app, request

from models import db
from models.session import Session

DEFAULT_COOKIE = "courtbook_session"


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", DEFAULT_COOKIE)


def _lifetime() -> timedelta:
    return timedelta(seconds=current_app.config.get("SESSION_LIFETIME_SECONDS", 7 * 24 * 3600))


def _idle_timeout() -> timedelta:
    return timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 2 * 3600))


def create_session(user_id: int) -> str:
    """Store a new session for ``user_id`` and return the raw cookie token."""
    raw_token = secrets.token_urlsafe(32)
    now = datetime.utcnow()
    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        created_at=now,
        last_seen_at=now,
        expires_at=now + _lifetime(),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token


def get_session_from_request():
    raw_token = request.cookies.get(cookie_name())
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    now = datetime.utcnow()
    if sess is None or not sess.is_live(now, _idle_timeout()):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def set_session_cookie(resp, raw_token: str):
    cfg = current_app.config
    resp.set_cookie(
        cookie_name(),
        raw_token,
        max_age=int(_lifetime().total_seconds()),
        httponly=cfg.get("SESSION_COOKIE_HTTPONLY", True),
        secure=cfg.get("SESSION_COOKIE_SECURE", False),
        samesite=cfg.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def clear_session_cookie(resp):
    resp.delete_cookie(cookie_name(), path="/")
    return resp


def revoke_session(raw_token) -> bool:
    if not raw_token:
        return False
    updated = (
        Session.query
        .filter_by(token_hash=_hash_token(raw_token), revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return updated > 0

