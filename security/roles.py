import enum


class Role(str, enum.Enum):
    USER = "user"
    VENDOR = "vendor"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


class Gate(str, enum.Enum):
    AUTH = "auth"
    VENDOR = "vendor"
    ADMIN = "admin"


def allowed(role: Role, gate: Gate) -> bool:
    """Whether a user holding ``role`` passes ``gate``."""
    if gate is Gate.AUTH:
        return True
    if gate is Gate.VENDOR:
        return can_manage(role)
    if gate is Gate.ADMIN:
        return role is Role.ADMIN
    raise ValueError(f"Unknown gate: {gate!r}")


def can_manage(role: Role) -> bool:
    """Vendors and admins run day-to-day operations (bookings, pricing, users)."""
    if role is Role.ADMIN or role is Role.VENDOR:
        return True
    if role is Role.USER:
        return False
    raise ValueError(f"Unknown role: {role!r}")
