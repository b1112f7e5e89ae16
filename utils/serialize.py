"""JSON shapes returned by the API (camelCase keys, prices as strings)."""


def _price(value):
    return None if value is None else f"{value:.2f}"


def _iso(value):
    return value.isoformat() if value else None


def user_json(u):
    # never includes the password
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "gender": u.gender,
        "birthday": _iso(u.birthday),
        "role": u.role.value,
        "isBlocked": u.is_blocked,
        "createdAt": _iso(u.created_at),
    }


def court_json(c):
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "openTime": c.open_time,
        "closeTime": c.close_time,
        "hourlyRate": _price(c.hourly_rate),
        "isActive": c.is_active,
    }


def pricing_rule_json(r):
    return {
        "id": r.id,
        "courtId": r.court_id,
        "dayOfWeek": r.day_of_week,
        "timeSlot": r.time_slot,
        "price": _price(r.price),
        "isActive": r.is_active,
    }


def time_slot_json(s, with_court=False):
    out = {
        "id": s.id,
        "courtId": s.court_id,
        "date": _iso(s.date),
        "startTime": s.start_time,
        "endTime": s.end_time,
        "price": _price(s.price),
        "isAvailable": s.is_available,
    }
    if with_court:
        out["court"] = court_json(s.court)
    return out


def time_slot_view_json(view):
    out = time_slot_json(view.slot, with_court=True)
    b = view.booking
    out["booking"] = None if b is None else {
        "id": b.id,
        "status": b.status,
        "totalPrice": _price(b.total_price),
        "user": {"id": b.user_id, "username": b.username},
    }
    return out


def booking_json(b, details=False):
    out = {
        "id": b.id,
        "userId": b.user_id,
        "timeSlotId": b.time_slot_id,
        "status": b.status,
        "totalPrice": _price(b.total_price),
        "createdAt": _iso(b.created_at),
    }
    if details:
        out["user"] = user_json(b.user)
        out["timeSlot"] = time_slot_json(b.time_slot, with_court=True)
    return out
