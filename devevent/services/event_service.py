from sqlalchemy.ext.asyncio import AsyncSession
from devevent.db.repositories import (
    create_event as db_create_event,
    prepare_event,
    update_event as db_update_event,
    get_event_by_slug as db_get_event_by_slug,
    list_events as db_list_events,
    find_events_by_tags_excluding as db_find_events_by_tags_excluding,
    count_bookings_by_slug as db_count_bookings_by_slug,
)
from devevent.cache.cache_decorators import cached
from devevent.cache.redis_client import cache
from devevent.core.config import settings
from devevent.core.errors import EventNotFound, ValidationError
from devevent.core.logging import logger
from devevent.schemas import EventOut, EventFeed, PaginationMetadata
from devevent.services.image_uploader import ImageUploader
from typing import Any, List, Mapping, Optional
import math


def serialize_event(ev) -> dict:
    return EventOut.model_validate(ev).model_dump(mode="json", by_alias=True)


class EventService:
    """
    Event writes and the read-side queries built on the repositories.

    Read results are plain JSON-ready dicts so they can be cached as-is.
    """

    def __init__(self, session: AsyncSession, uploader: Optional[ImageUploader] = None):
        self.session = session
        self.uploader = uploader

    async def _invalidate(self) -> None:
        await cache.delete_pattern("events:feed:*")
        await cache.delete_pattern("events:detail:*")

    async def create_event(self, fields: Mapping[str, Any], image: Optional[bytes]) -> dict:
        """
        Validate the fields, upload the banner image, then persist the event.

        Nothing is uploaded for invalid input, and nothing is written unless
        the upload succeeded.

        Raises:
            ValidationError: No image, or invalid fields
            UploadError: The upload collaborator failed
            DuplicateSlug: The title's slug is taken
        """
        if not image:
            raise ValidationError("image", "Image is required")
        if self.uploader is None:
            raise RuntimeError("EventService needs an image uploader to create events")

        prepare_event(fields, with_image=False)

        image_url = await self.uploader.upload(image)
        event = await db_create_event(self.session, {**fields, "image": image_url})
        logger.info(f"Event created: {event.slug}")
        await self._invalidate()
        return serialize_event(event)

    async def update_event(self, slug: str, changes: Mapping[str, Any]) -> dict:
        event = await db_update_event(self.session, slug, changes)
        logger.info(f"Event updated: {event.slug}")
        await self._invalidate()
        return serialize_event(event)

    @cached('events:detail')
    async def get_event(self, slug: str) -> dict:
        event = await db_get_event_by_slug(self.session, slug)
        if event is None:
            raise EventNotFound(slug)
        return serialize_event(event)

    @cached('events:feed')
    async def get_event_feed(self, page: int = 1, limit: int = settings.DEFAULT_PAGE_SIZE) -> dict:
        """
        One page of the newest-first event feed with pagination metadata.

        Raises:
            InvalidPagination: page < 1 or limit outside [1, MAX_PAGE_SIZE]
        """
        events, total = await db_list_events(self.session, page=page, limit=limit)
        feed = EventFeed(
            events=[EventOut.model_validate(ev) for ev in events],
            pagination=PaginationMetadata(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )
        return feed.model_dump(mode="json", by_alias=True)

    async def get_similar_events(self, slug: str) -> List[dict]:
        """Events sharing a tag with ``slug``'s event; empty when anything goes wrong."""
        try:
            event = await db_get_event_by_slug(self.session, slug)
            if event is None:
                return []
            similar = await db_find_events_by_tags_excluding(
                self.session, event.id, event.tags, settings.SIMILAR_EVENTS_LIMIT
            )
            return [serialize_event(ev) for ev in similar]
        except Exception as e:
            logger.warning(f"Similar events lookup failed for {slug}: {e}")
            return []

    async def get_booking_count(self, slug: str) -> int:
        """Number of bookings for ``slug``; 0 when the lookup fails. The fallback is never cached."""
        try:
            return await self._count_bookings(slug)
        except Exception as e:
            logger.warning(f"Booking count lookup failed for {slug}: {e}")
            return 0

    @cached('bookings:count')
    async def _count_bookings(self, slug: str) -> int:
        return await db_count_bookings_by_slug(self.session, slug)
