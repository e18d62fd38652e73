from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Enum, Index, JSON, Uuid
import uuid
from datetime import datetime, timezone
from sqlalchemy.orm import relationship
from devevent.db.session import Base
import enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventMode(str, enum.Enum):
    online = "online"
    offline = "offline"
    hybrid = "hybrid"


class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    overview = Column(Text, nullable=False)
    image = Column(String(1024), nullable=False)
    venue = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    date = Column(String(10), nullable=False)
    time = Column(String(8), nullable=False)
    mode = Column(Enum(EventMode, name="eventmode"), nullable=False)
    audience = Column(String(255), nullable=False)
    agenda = Column(JSON, nullable=False)
    organizer = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    tag_rows = relationship(
        "EventTag",
        order_by="EventTag.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index('uq_events_slug', 'slug', unique=True),
        Index('idx_event_created_at', 'created_at'),
    )

    @property
    def tags(self) -> list:
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values) -> None:
        rows = list(self.tag_rows)
        for position, tag in enumerate(values):
            if position < len(rows):
                rows[position].tag = tag
            else:
                rows.append(EventTag(position=position, tag=tag))
        self.tag_rows = rows[:len(values)]


class EventTag(Base):
    """One tag of an event; position keeps the submitted display order."""
    __tablename__ = "event_tags"
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, primary_key=True)
    tag = Column(String(100), nullable=False)

    __table_args__ = (
        Index('idx_event_tag', 'tag'),
    )
