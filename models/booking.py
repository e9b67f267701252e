from models.db import db
from services.interval import Interval

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    resource_id = db.Column(db.Integer, db.ForeignKey("resources.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # naive UTC, half-open [start_time, end_time)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    # stamped once by the booking store on insert
    booking_time = db.Column(db.DateTime, nullable=False)

    resource = db.relationship("Resource", back_populates="bookings")
    user = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint("start_time < end_time", name="ck_booking_interval"),
        # serves the conflict query
        db.Index("ix_bookings_resource_window", "resource_id", "start_time", "end_time"),
    )

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)

    def __repr__(self) -> str:
        return (
            f"<Booking id={self.id} resource={self.resource_id} user={self.user_id} "
            f"[{self.start_time.isoformat()}, {self.end_time.isoformat()})>"
        )
