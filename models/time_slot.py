from models.db import db

class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.Integer, primary_key=True)

    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)  # "HH:MM"
    end_time = db.Column(db.String(5), nullable=False)

    price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot at creation
    is_available = db.Column(db.Boolean, default=True, nullable=False)

    court = db.relationship("Court", back_populates="time_slots")
    bookings = db.relationship("Booking", back_populates="time_slot", lazy=True)

    __table_args__ = (
        db.UniqueConstraint("court_id", "date", "start_time", name="uq_time_slot_court_date_start"),
    )
