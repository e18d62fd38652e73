from sqlalchemy import Column, String, DateTime, Index, Uuid
import uuid
from devevent.db.session import Base
from devevent.db.models.event import utcnow


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Checked against events at write time; deliberately not a foreign key.
    event_id = Column(Uuid, nullable=False)
    slug = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('idx_booking_event', 'event_id'),
        Index('idx_booking_slug', 'slug'),
    )
