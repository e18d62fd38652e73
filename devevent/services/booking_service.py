from sqlalchemy.ext.asyncio import AsyncSession
from devevent.db.repositories import create_booking as db_create_booking
from devevent.cache.redis_client import cache
from devevent.core.logging import logger
from devevent.schemas import BookingCreate, BookingOut


class BookingService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_booking(self, payload: BookingCreate) -> dict:
        booking = await db_create_booking(self.session, payload.event_id, payload.slug, payload.email)
        logger.info(f"Booking created for {booking.slug}")
        await cache.delete_pattern("bookings:count:*")
        return BookingOut.model_validate(booking).model_dump(mode="json", by_alias=True)
