import logging

from flask import Blueprint, request, jsonify, g

from security.csrf import clear_csrf_token, issue_csrf_token
from security.password import verify_password
from security.rbac import require_auth
from security.session import clear_session_cookie, cookie_name, create_session, revoke_session, set_session_cookie
from services.users import create_user, get_user_by_username, get_user_by_email
from utils.http import json_body
from utils.serialize import user_json

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _logged_in_response(user, status):
    raw_token = create_session(user.id)
    resp = jsonify(user_json(user))
    resp.status_code = status
    set_session_cookie(resp, raw_token)
    issue_csrf_token(resp)
    return resp


@auth_bp.post("/register")
def register():
    data = json_body()
    # self-registration always yields a plain user
    user = create_user(data, allow_role=False)
    logger.info("Registered %s", user.username)
    return _logged_in_response(user, 201)


@auth_bp.post("/login")
def login():
    data = json_body()
    username = (data.get("username") or "").strip() if isinstance(data.get("username"), str) else ""
    password = data.get("password") or ""
    if not username or not isinstance(password, str) or not password:
        return jsonify(message="username and password are required"), 400

    user = get_user_by_username(username) or get_user_by_email(username)
    if not user or not verify_password(password, user.password):
        logger.info("Failed login for %s", username)
        return jsonify(message="Invalid username or password"), 401

    if user.is_blocked:
        return jsonify(message="Account is blocked"), 403

    return _logged_in_response(user, 200)


@auth_bp.post("/logout")
def logout():
    revoke_session(request.cookies.get(cookie_name()))
    resp = jsonify(message="Logged out")
    clear_session_cookie(resp)
    clear_csrf_token(resp)
    return resp, 200


@auth_bp.get("/user")
@require_auth
def me():
    return jsonify(user_json(g.user)), 200
