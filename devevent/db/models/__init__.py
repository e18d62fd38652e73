"""Database models package."""
from devevent.db.models.event import Event, EventMode, EventTag
from devevent.db.models.booking import Booking

__all__ = ["Event", "EventMode", "EventTag", "Booking"]
