import logging
import re

from flask import current_app

from errors import ConflictError, NotFoundError, ValidationError
from models import db
from models.booking import Booking
from models.session import Session
from models.user import User
from security.password import hash_password
from security.roles import Role
from utils.parsing import parse_bool, parse_date, require_text

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
GENDERS = ("male", "female")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL.match(email))


def _password_min_len() -> int:
    return int(current_app.config.get("PASSWORD_MIN_LEN", 6))


def _clean_user_fields(data: dict, partial: bool) -> dict:
    """Validate the user payload; only keys present in ``data`` are checked when partial."""
    out = {}

    if not partial or "username" in data:
        out["username"] = require_text(data, "username", max_len=64)

    if not partial or "email" in data:
        email = (data.get("email") or "").strip().lower() if isinstance(data.get("email"), str) else ""
        if not _is_valid_email(email):
            raise ValidationError("Invalid email")
        out["email"] = email

    if not partial or "password" in data:
        password = data.get("password")
        min_len = _password_min_len()
        if not isinstance(password, str) or len(password) < min_len:
            raise ValidationError(f"Password must be at least {min_len} characters")
        out["password"] = hash_password(password)

    if "gender" in data or not partial:
        gender = data.get("gender", "male")
        if gender not in GENDERS:
            raise ValidationError("gender must be male or female")
        out["gender"] = gender

    if "birthday" in data:
        out["birthday"] = parse_date(data["birthday"], "birthday") if data["birthday"] else None

    if "role" in data or not partial:
        role = Role.parse(data.get("role", Role.USER.value))
        if role is None:
            raise ValidationError("role must be one of: user, vendor, admin")
        out["role"] = role

    if "isBlocked" in data:
        out["is_blocked"] = parse_bool(data["isBlocked"], "isBlocked")

    return out


def _ensure_unique(username=None, email=None, exclude_id=None):
    if username is not None:
        q = User.query.filter(User.username == username)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ValidationError("Username or email already exists")
    if email is not None:
        q = User.query.filter(User.email == email)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ValidationError("Username or email already exists")


def get_user(user_id: int):
    return db.session.get(User, user_id)


def get_user_by_username(username: str):
    return User.query.filter_by(username=username).first()


def get_user_by_email(email: str):
    return User.query.filter_by(email=(email or "").strip().lower()).first()


def list_users():
    return User.query.order_by(User.username.asc()).all()


def create_user(data: dict, allow_role=True) -> User:
    fields = _clean_user_fields(data, partial=False)
    if not allow_role:
        fields["role"] = Role.USER
        fields.pop("is_blocked", None)
    _ensure_unique(fields["username"], fields["email"])

    user = User(**fields)
    db.session.add(user)
    db.session.commit()
    logger.info("User %s created with role %s", user.username, user.role.value)
    return user


def update_user(user_id: int, data: dict) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    fields = _clean_user_fields(data, partial=True)
    _ensure_unique(fields.get("username"), fields.get("email"), exclude_id=user.id)

    for key, value in fields.items():
        setattr(user, key, value)
    db.session.commit()
    return user


def delete_user(user_id: int) -> None:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if Booking.query.filter_by(user_id=user.id).first() is not None:
        raise ConflictError("User has bookings and cannot be deleted; block the account instead")

    Session.query.filter_by(user_id=user.id).delete(synchronize_session=False)
    db.session.delete(user)
    db.session.commit()
    logger.info("User %s deleted", user_id)


def _set_blocked(user_id: int, blocked: bool) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.is_blocked != blocked:
        user.is_blocked = blocked
        db.session.commit()
        logger.info("User %s %s", user.username, "blocked" if blocked else "unblocked")
    return user


def block_user(user_id: int) -> User:
    return _set_blocked(user_id, True)


def unblock_user(user_id: int) -> User:
    return _set_blocked(user_id, False)
