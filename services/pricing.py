"""Price resolution for court time slots and pricing rule management.

A slot's price comes from, in order of precedence:

1. an active pricing rule for the court, the slot's day of week and start time;
2. an active day-less rule for the court and start time;
3. the formula: hourly rate x (time-of-day multiplier + weekend premium),
   rounded half-up to a whole currency unit.
"""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select

from errors import NotFoundError, ValidationError
from models import db
from models.court import Court
from models.pricing_rule import PricingRule
from models.time_slot import TimeSlot
from utils.parsing import (
    day_of_week,
    end_minutes_of,
    format_minutes,
    minutes_of,
    parse_bool,
    parse_day_of_week,
    parse_hhmm,
    parse_int,
    parse_price,
)

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30

# (band, first hour, end hour, multiplier)
TIME_BANDS = (
    ("early", 0, 12, Decimal("1.0")),
    ("mid", 12, 17, Decimal("1.2")),
    ("peak", 17, 21, Decimal("1.5")),
    ("late", 21, 24, Decimal("1.1")),
)
WEEKEND_PREMIUM = Decimal("0.2")

SUNDAY, MONDAY, SATURDAY = 0, 1, 6
WEEKDAYS_AFTER_MONDAY = (2, 3, 4, 5)


def band_for(start_time: str):
    hour = minutes_of(start_time) // 60
    for name, first, end, multiplier in TIME_BANDS:
        if first <= hour < end:
            return name, multiplier
    raise ValueError(f"No pricing band covers {start_time}")


def is_weekend(day: date) -> bool:
    return day_of_week(day) in (SATURDAY, SUNDAY)


def formula_price(hourly_rate, day: date, start_time: str) -> Decimal:
    _, multiplier = band_for(start_time)
    if is_weekend(day):
        multiplier += WEEKEND_PREMIUM
    price = Decimal(hourly_rate) * multiplier
    return price.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def active_rules_for(court_id: int):
    return (
        PricingRule.query
        .filter_by(court_id=court_id, is_active=True)
        .all()
    )


def pick_rule(rules, dow: int, start_time: str):
    day_less = None
    for rule in rules:
        if not rule.is_active or rule.time_slot != start_time:
            continue
        if rule.day_of_week == dow:
            return rule
        if rule.day_of_week is None:
            day_less = rule
    return day_less


def resolve_price(court: Court, day: date, start_time: str, rules=None) -> Decimal:
    """Effective price for ``court`` on ``day`` for the slot starting at ``start_time``.

    ``rules`` may be passed in when resolving many slots of one court to
    avoid re-querying.
    """
    if rules is None:
        rules = active_rules_for(court.id)
    rule = pick_rule(rules, day_of_week(day), start_time)
    if rule is not None:
        return Decimal(rule.price)
    return formula_price(court.hourly_rate, day, start_time)


def half_hour_grid(open_time: str, close_time: str):
    """[(start, end), ...] half-hour slots between opening and closing time."""
    start = minutes_of(open_time)
    close = end_minutes_of(close_time)
    out = []
    while start + SLOT_MINUTES <= close:
        out.append((format_minutes(start), format_minutes(start + SLOT_MINUTES)))
        start += SLOT_MINUTES
    return out


def virtual_day_schedule(court: Court, day: date):
    """Every half-hour slot of ``court`` on ``day``.

    Persisted slots are returned as stored; the rest are generated with the
    resolver price and no id.
    """
    persisted = {
        s.start_time: s
        for s in TimeSlot.query.filter_by(court_id=court.id, date=day).all()
    }
    rules = active_rules_for(court.id)

    out = []
    for start, end in half_hour_grid(court.open_time, court.close_time):
        slot = persisted.pop(start, None)
        if slot is not None:
            out.append({
                "id": slot.id,
                "startTime": slot.start_time,
                "endTime": slot.end_time,
                "price": f"{slot.price:.2f}",
                "isAvailable": slot.is_available,
                "persisted": True,
            })
            continue
        out.append({
            "id": None,
            "startTime": start,
            "endTime": end,
            "price": f"{resolve_price(court, day, start, rules):.2f}",
            "isAvailable": True,
            "persisted": False,
        })

    # slots created by hand outside opening hours
    for slot in persisted.values():
        out.append({
            "id": slot.id,
            "startTime": slot.start_time,
            "endTime": slot.end_time,
            "price": f"{slot.price:.2f}",
            "isAvailable": slot.is_available,
            "persisted": True,
        })
    out.sort(key=lambda s: s["startTime"])
    return out


# ---------- weekly inheritance ----------

def expand_weekly_inheritance(entries, monday_to_weekdays=False, saturday_to_sunday=False):
    """Copy Monday entries to Tuesday-Friday and Saturday entries to Sunday.

    ``entries`` are dicts with ``day_of_week``, ``time_slot`` and ``price``.
    An explicit entry for the same court, target day and time wins over a
    copied one. The result carries no link back to the source day.
    """
    explicit = {(e.get("court_id"), e["day_of_week"], e["time_slot"]) for e in entries}
    out = list(entries)

    def _copy(source_day, target_days):
        for e in entries:
            if e["day_of_week"] != source_day:
                continue
            for target in target_days:
                if (e.get("court_id"), target, e["time_slot"]) in explicit:
                    continue
                out.append({**e, "day_of_week": target})

    if monday_to_weekdays:
        _copy(MONDAY, WEEKDAYS_AFTER_MONDAY)
    if saturday_to_sunday:
        _copy(SATURDAY, (SUNDAY,))
    return out


# ---------- pricing rules ----------

def _validate_time_key(value, field="timeSlot") -> str:
    # accept "HH:MM" or the "HH:MM-HH:MM" range form, keyed by its start
    if isinstance(value, str) and "-" in value:
        value = value.split("-", 1)[0].strip()
    key = parse_hhmm(value, field)
    if minutes_of(key) % SLOT_MINUTES:
        raise ValidationError(f"{field} must start on the hour or half hour")
    return key


def parse_rule_entry(item: dict, court_id=None) -> dict:
    """Validate one pricing rule payload (camelCase keys)."""
    if not isinstance(item, dict):
        raise ValidationError("Each pricing rule must be an object")
    entry = {
        "court_id": court_id if court_id is not None else parse_int(item.get("courtId"), "courtId"),
        "day_of_week": parse_day_of_week(item.get("dayOfWeek")),
        "time_slot": _validate_time_key(item.get("timeSlot")),
        "price": parse_price(item.get("price")),
    }
    if "isActive" in item:
        entry["is_active"] = parse_bool(item["isActive"], "isActive")
    return entry


def parse_inheritance_flags(data: dict):
    monday = data.get("applyMondayToWeekdays", False)
    saturday = data.get("applySaturdayToSunday", False)
    return (
        parse_bool(monday, "applyMondayToWeekdays"),
        parse_bool(saturday, "applySaturdayToSunday"),
    )


def list_pricing_rules(court_id=None):
    if court_id is not None:
        return (
            PricingRule.query
            .filter_by(court_id=court_id)
            .order_by(PricingRule.day_of_week.asc(), PricingRule.time_slot.asc())
            .all()
        )
    return (
        PricingRule.query
        .filter_by(is_active=True)
        .order_by(PricingRule.court_id.asc(), PricingRule.day_of_week.asc(), PricingRule.time_slot.asc())
        .all()
    )


def _find_rule(court_id: int, dow, time_slot: str):
    q = select(PricingRule).where(
        PricingRule.court_id == court_id,
        PricingRule.time_slot == time_slot,
    )
    if dow is None:
        q = q.where(PricingRule.day_of_week.is_(None))
    else:
        q = q.where(PricingRule.day_of_week == dow)
    return db.session.execute(q).scalars().first()


def _apply_entry(entry: dict) -> PricingRule:
    rule = _find_rule(entry["court_id"], entry["day_of_week"], entry["time_slot"])
    if rule is None:
        rule = PricingRule(
            court_id=entry["court_id"],
            day_of_week=entry["day_of_week"],
            time_slot=entry["time_slot"],
            price=entry["price"],
            is_active=entry.get("is_active", True),
        )
        db.session.add(rule)
    else:
        rule.price = entry["price"]
        rule.is_active = entry.get("is_active", True)
    return rule


def _require_courts(court_ids):
    found = {
        cid for (cid,) in db.session.execute(select(Court.id).where(Court.id.in_(set(court_ids))))
    }
    return sorted(set(court_ids) - found)


def upsert_pricing_rule(data: dict) -> PricingRule:
    entry = parse_rule_entry(data)
    if _require_courts([entry["court_id"]]):
        raise NotFoundError("Court not found")
    rule = _apply_entry(entry)
    db.session.commit()
    logger.info(
        "Pricing rule set court=%s day=%s slot=%s price=%s",
        entry["court_id"], entry["day_of_week"], entry["time_slot"], entry["price"],
    )
    return rule


def batch_upsert_pricing_rules(data: dict):
    """Apply many rule updates all-or-nothing.

    Every item is validated before anything is written; one bad item rejects
    the whole batch with per-item errors.
    """
    updates = data.get("updates")
    if not isinstance(updates, list):
        raise ValidationError("Updates must be an array")
    monday_to_weekdays, saturday_to_sunday = parse_inheritance_flags(data)

    entries, errors = [], []
    for index, item in enumerate(updates):
        try:
            entries.append(parse_rule_entry(item))
        except ValidationError as exc:
            errors.append({"index": index, "message": exc.message})

    if not errors:
        missing = _require_courts([e["court_id"] for e in entries])
        for index, entry in enumerate(entries):
            if entry["court_id"] in missing:
                errors.append({"index": index, "message": "Court not found"})
    if errors:
        raise ValidationError("Pricing update rejected; no changes were saved", errors=errors)

    entries = expand_weekly_inheritance(entries, monday_to_weekdays, saturday_to_sunday)
    try:
        rules = [_apply_entry(e) for e in entries]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Batch pricing update applied %d rule(s)", len(rules))
    return rules


def replace_court_rules(court: Court, raw_rules, monday_to_weekdays=False, saturday_to_sunday=False):
    """Swap the court's rules for ``raw_rules``. Caller commits."""
    if not isinstance(raw_rules, list):
        raise ValidationError("pricingRules must be an array")
    entries = [parse_rule_entry(item, court_id=court.id) for item in raw_rules]
    entries = expand_weekly_inheritance(entries, monday_to_weekdays, saturday_to_sunday)

    PricingRule.query.filter_by(court_id=court.id).delete(synchronize_session=False)
    db.session.flush()
    for entry in entries:
        db.session.add(PricingRule(
            court_id=court.id,
            day_of_week=entry["day_of_week"],
            time_slot=entry["time_slot"],
            price=entry["price"],
            is_active=entry.get("is_active", True),
        ))
    db.session.expire(court, ["pricing_rules"])
    return entries
