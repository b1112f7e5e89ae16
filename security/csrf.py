"""Double-submit CSRF check for cookie-authenticated writes."""
import secrets

from flask import current_app, g, jsonify, request

COOKIE_NAME = "csrf_token"
HEADER_NAME = "X-CSRF-Token"

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
EXEMPT_PATHS = frozenset({"/api/login", "/api/register", "/health"})


def issue_csrf_token(resp):
    resp.set_cookie(
        COOKIE_NAME,
        secrets.token_urlsafe(32),
        httponly=False,  # read by the client and echoed in the header
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def clear_csrf_token(resp):
    resp.delete_cookie(COOKIE_NAME, path="/")
    return resp


def _tokens_match() -> bool:
    cookie_token = request.cookies.get(COOKIE_NAME)
    header_token = request.headers.get(HEADER_NAME)
    return bool(cookie_token and header_token) and secrets.compare_digest(cookie_token, header_token)


def require_csrf():
    """Reject state-changing requests from a signed-in browser without a matching token."""
    if not current_app.config.get("CSRF_ENABLED", True):
        return None
    if request.method in SAFE_METHODS or request.path in EXEMPT_PATHS:
        return None
    if getattr(g, "user", None) is None:
        return None
    if not _tokens_match():
        return jsonify(message="CSRF validation failed"), 403
    return None
