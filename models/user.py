from datetime import datetime
from models.db import db
from security.roles import Role


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    # stored as "<hex digest>.<hex salt>"
    password = db.Column(db.String(255), nullable=False)
    gender = db.Column(db.String(10), nullable=False, default="male")
    birthday = db.Column(db.Date, nullable=True)

    role = db.Column(db.Enum(Role, values_callable=lambda e: [r.value for r in e], native_enum=False, length=16),
                     nullable=False, default=Role.USER)
    is_blocked = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    bookings = db.relationship("Booking", back_populates="user", lazy=True)
