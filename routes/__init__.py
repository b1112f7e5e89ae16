from .health import health_bp
from .auth import auth_bp
from .users import users_bp
from .courts import courts_bp
from .time_slots import time_slots_bp
from .pricing import pricing_bp
from .booking import booking_bp
from .admin import admin_bp
