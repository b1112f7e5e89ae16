from models.db import db

class PricingRule(db.Model):
    __tablename__ = "court_pricing_rules"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)

    # 0-6, Sunday-Saturday; NULL applies to every day
    day_of_week = db.Column(db.Integer, nullable=True)
    time_slot = db.Column(db.String(5), nullable=False)  # start of the half-hour slot, "HH:MM"
    price = db.Column(db.Numeric(10, 2), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    court = db.relationship("Court", back_populates="pricing_rules")

    __table_args__ = (
        db.UniqueConstraint("court_id", "day_of_week", "time_slot", name="uq_pricing_rule_key"),
    )
