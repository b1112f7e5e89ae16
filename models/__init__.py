from .db import db
from .user import User
from .session import Session
from .court import Court
from .time_slot import TimeSlot
from .booking import Booking, BookingStatus
from .pricing_rule import PricingRule
