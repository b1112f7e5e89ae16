from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from models.booking import BookingStatus
from models.court import Court
from models.user import User
from services.bookings import list_all_bookings


def _revenue(bookings) -> Decimal:
    return sum((Decimal(b.total_price) for b in bookings), Decimal("0"))


def dashboard_stats(today) -> dict:
    """Aggregate counters for the vendor/admin dashboard.

    Revenue counts confirmed bookings only; the daily/weekly/monthly figures
    go by the slot date, not the booking date.
    """
    users = User.query.all()
    courts_count = Court.query.filter(Court.is_active.is_(True)).count()
    bookings = list_all_bookings()

    confirmed = [b for b in bookings if b.status == BookingStatus.CONFIRMED.value]
    pending = [b for b in bookings if b.status == BookingStatus.PENDING.value]

    week_ago = today - timedelta(days=7)
    month_ago = today - timedelta(days=30)

    total = len(bookings)
    occupancy = 0
    if total:
        ratio = Decimal(len(confirmed) * 100) / Decimal(total)
        occupancy = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return {
        "totalUsers": len(users),
        "totalCourts": courts_count,
        "activeBookings": len(confirmed),
        "pendingBookings": len(pending),
        "revenue": float(_revenue(confirmed)),
        "dailyRevenue": float(_revenue(b for b in confirmed if b.time_slot.date == today)),
        "weeklyRevenue": float(_revenue(b for b in confirmed if b.time_slot.date >= week_ago)),
        "monthlyRevenue": float(_revenue(b for b in confirmed if b.time_slot.date >= month_ago)),
        "occupancyRate": occupancy,
        "blockedUsers": sum(1 for u in users if u.is_blocked),
        "totalTimeSlots": total,
        "bookedTimeSlots": len(confirmed),
    }
