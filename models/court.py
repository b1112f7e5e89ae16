from decimal import Decimal
from models.db import db

class Court(db.Model):
    __tablename__ = "courts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # "HH:MM"; a close time of "00:00" means midnight
    open_time = db.Column(db.String(5), nullable=False, default="07:00")
    close_time = db.Column(db.String(5), nullable=False, default="23:00")

    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    time_slots = db.relationship("TimeSlot", back_populates="court", lazy=True)
    pricing_rules = db.relationship(
        "PricingRule", back_populates="court", lazy=True, cascade="all, delete-orphan"
    )
