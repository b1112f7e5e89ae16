from functools import wraps
from flask import g, jsonify

from security.roles import Gate, Role, allowed, can_manage


def current_role():
    user = getattr(g, "user", None)
    if user is None:
        return None
    return user.role if isinstance(user.role, Role) else Role.parse(user.role)


def is_manager() -> bool:
    role = current_role()
    return role is not None and can_manage(role)


def _gate(gate: Gate, message: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(message="Authentication required"), 401
            if user.is_blocked:
                return jsonify(message="Account is blocked"), 403

            role = current_role()
            if role is None or not allowed(role, gate):
                return jsonify(message=message), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def require_auth(fn):
    return _gate(Gate.AUTH, "Forbidden")(fn)


def require_vendor(fn):
    return _gate(Gate.VENDOR, "Vendor access required")(fn)


def require_admin(fn):
    return _gate(Gate.ADMIN, "Admin access required")(fn)
