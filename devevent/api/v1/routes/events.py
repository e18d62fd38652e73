from fastapi import APIRouter, Body, Depends, Request, status
from devevent.schemas import (
    BookingCountResponse,
    EventListResponse,
    EventResponse,
    SimilarEventsResponse,
)
from devevent.db.session import get_session, get_optional_session
from devevent.services.event_service import EventService
from devevent.services.image_uploader import ImageUploader, get_image_uploader
from devevent.core.config import settings
from devevent.core.errors import InvalidPagination, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from typing import Any, Dict, List, Optional
import json

router = APIRouter(prefix="/events", tags=["events"])

ARRAY_FIELDS = ("agenda", "tags")


def get_event_service(
    session: AsyncSession = Depends(get_session),
    uploader: ImageUploader = Depends(get_image_uploader),
) -> EventService:
    return EventService(session, uploader)


def get_readonly_event_service(session: Optional[AsyncSession] = Depends(get_optional_session)) -> EventService:
    return EventService(session)


def parse_array_field(values: List[Any]) -> List[str]:
    """
    Read a list field sent either as one JSON-encoded string or as repeated
    form fields. Anything that is not valid JSON is taken as repeated fields.
    """
    items = [v for v in values if isinstance(v, str)]
    if len(items) == 1:
        try:
            decoded = json.loads(items[0])
        except ValueError:
            return items
        if isinstance(decoded, list):
            return [str(item) for item in decoded]
        if isinstance(decoded, str):
            return [decoded]
    return items


async def read_event_form(request: Request) -> tuple:
    """Split a multipart event form into (fields, image bytes)."""
    try:
        form = await request.form()
    except Exception as e:
        raise ValidationError("form", "Invalid form data format") from e

    fields: Dict[str, Any] = {}
    for key in form.keys():
        if key in ("image", "slug"):
            continue
        if key in ARRAY_FIELDS:
            fields[key] = parse_array_field(form.getlist(key))
        else:
            value = form.get(key)
            if isinstance(value, str):
                fields[key] = value

    image = form.get("image")
    data = await image.read() if isinstance(image, UploadFile) else None
    return fields, data


def parse_pagination(page: Optional[str], limit: Optional[str]) -> tuple:
    try:
        page_num = int(page) if page not in (None, "") else 1
        limit_num = int(limit) if limit not in (None, "") else settings.DEFAULT_PAGE_SIZE
    except ValueError as e:
        raise InvalidPagination(page, limit) from e
    return page_num, limit_num


@router.post("", status_code=status.HTTP_201_CREATED, response_model=EventResponse)
async def create_event_endpoint(
    request: Request,
    event_service: EventService = Depends(get_event_service),
):
    """
    Create an event from a multipart form.

    - agenda, tags: JSON-encoded array or repeated fields
    - image: banner file, uploaded before the event is stored
    - slug: ignored, always derived from the title
    """
    fields, image = await read_event_form(request)
    event = await event_service.create_event(fields, image)
    return {"success": True, "message": "Event created successfully", "event": event}


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    event_service: EventService = Depends(get_event_service),
):
    """
    Newest-first event feed.
    - page: Page number, 1-indexed (default: 1)
    - limit: Number of items per page (default: 10, max: 100)
    """
    page_num, limit_num = parse_pagination(page, limit)
    feed = await event_service.get_event_feed(page_num, limit_num)
    return {"success": True, "message": "Events fetched successfully", **feed}


@router.get("/{slug}", response_model=EventResponse)
async def get_event_endpoint(slug: str, event_service: EventService = Depends(get_event_service)):
    event = await event_service.get_event(slug)
    return {"success": True, "message": "Event fetched successfully", "event": event}


@router.patch("/{slug}", response_model=EventResponse)
async def update_event_endpoint(
    slug: str,
    changes: Dict[str, Any] = Body(...),
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.update_event(slug, changes)
    return {"success": True, "message": "Event updated successfully", "event": event}


@router.get("/{slug}/similar", response_model=SimilarEventsResponse)
async def similar_events_endpoint(slug: str, event_service: EventService = Depends(get_readonly_event_service)):
    events = await event_service.get_similar_events(slug)
    return {"success": True, "events": events}


@router.get("/{slug}/bookings/count", response_model=BookingCountResponse)
async def booking_count_endpoint(slug: str, event_service: EventService = Depends(get_readonly_event_service)):
    count = await event_service.get_booking_count(slug)
    return {"success": True, "count": count}
