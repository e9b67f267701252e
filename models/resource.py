from utils.clock import utcnow
from models.db import db

class Resource(db.Model):
    __tablename__ = "resources"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # no cascade: deleting a resource with live bookings is refused by the catalog
    bookings = db.relationship("Booking", back_populates="resource", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Resource id={self.id} name={self.name!r}>"
