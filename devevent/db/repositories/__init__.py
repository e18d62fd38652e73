"""
Repository layer for database operations.

Event repository: validation and normalization before every write, unique
slugs, paginated listing and tag-overlap lookups. Booking repository:
write-time check that the referenced event exists, and per-slug counts.
"""
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError as PydanticValidationError
from devevent.db.models.event import Event, EventTag
from devevent.db.models.booking import Booking
from devevent.schemas import EventCreate, EventDetails, EventUpdate
from devevent.core.config import settings
from devevent.core.errors import (
    DuplicateSlug,
    EventNotFound,
    InvalidPagination,
    ReferentialIntegrityError,
    ValidationError,
)
from devevent.core.normalizers import (
    generate_slug,
    is_valid_email,
    normalize_date,
    normalize_slug,
    normalize_time,
)
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import uuid


def _field_error(exc: PydanticValidationError) -> ValidationError:
    """Turn the first pydantic error into a field-level ValidationError."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error.get("loc") else "event"
    label = field.capitalize()
    kind = error.get("type", "")

    if kind == "missing":
        message = f"{label} is required"
    elif field == "mode":
        message = "Mode must be one of: online, offline, hybrid"
    elif field in ("agenda", "tags") and kind == "too_short":
        message = f"{label} must contain at least one item"
    elif kind == "string_too_short":
        message = f"{label} cannot be empty"
    else:
        message = f"{label}: {error.get('msg', 'invalid value')}"
    return ValidationError(field, message)


def prepare_event(fields: Mapping[str, Any], with_image: bool = True) -> Dict[str, Any]:
    """
    Validate and normalize event fields before they are written.

    Any caller-supplied slug is discarded; the slug is always derived from
    the title. Date and time are stored only in canonical form. With
    ``with_image=False`` the image URL is neither required nor returned,
    so input can be checked before the image is uploaded.

    Raises:
        ValidationError: Missing or invalid field
        InvalidDate: Unparseable date
        InvalidTime: Unparseable time
    """
    data = {k: v for k, v in fields.items() if k != "slug"}
    schema = EventCreate if with_image else EventDetails
    try:
        payload = schema.model_validate(data)
    except PydanticValidationError as e:
        raise _field_error(e) from e

    record = payload.model_dump()
    record["slug"] = generate_slug(payload.title)
    record["date"] = normalize_date(payload.date)
    record["time"] = normalize_time(payload.time)
    return record


async def _commit_event(db: AsyncSession, ev: Event) -> Event:
    slug = ev.slug
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if "slug" in str(e.orig).lower():
            raise DuplicateSlug(slug) from e
        raise
    except Exception:
        await db.rollback()
        raise
    await db.refresh(ev)
    return ev


async def create_event(db: AsyncSession, fields: Mapping[str, Any]) -> Event:
    """
    Validate, normalize and persist a new event.

    Args:
        db: Database session
        fields: Raw event fields, including the uploaded image URL

    Returns:
        Created Event object

    Raises:
        ValidationError: Missing or invalid field (incl. InvalidDate/InvalidTime)
        DuplicateSlug: Another event already owns the derived slug
    """
    record = prepare_event(fields)
    ev = Event(**record)
    db.add(ev)
    return await _commit_event(db, ev)


async def update_event(db: AsyncSession, slug: str, changes: Mapping[str, Any]) -> Event:
    """
    Apply a partial update to an event.

    The slug is re-derived only when the title actually changes; date and
    time are re-normalized only when supplied.

    Raises:
        EventNotFound: The slug does not resolve
        ValidationError: Invalid field value
        DuplicateSlug: The new title collides with another event's slug
    """
    ev = await get_event_by_slug(db, slug)
    if ev is None:
        raise EventNotFound(slug)

    data = {k: v for k, v in changes.items() if k != "slug"}
    try:
        payload = EventUpdate.model_validate(data)
    except PydanticValidationError as e:
        raise _field_error(e) from e

    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None:
            raise ValidationError(field, f"{field.capitalize()} cannot be empty")

    if "date" in updates:
        updates["date"] = normalize_date(updates["date"])
    if "time" in updates:
        updates["time"] = normalize_time(updates["time"])
    if "title" in updates and updates["title"] != ev.title:
        updates["slug"] = generate_slug(updates["title"])

    for field, value in updates.items():
        setattr(ev, field, value)
    return await _commit_event(db, ev)


async def get_event(db: AsyncSession, event_id) -> Optional[Event]:
    """
    Retrieve event by ID.

    Args:
        db: Database session
        event_id: Event UUID, or its string form

    Returns:
        Event object if found, None otherwise (including malformed IDs)
    """
    if not isinstance(event_id, uuid.UUID):
        try:
            event_id = uuid.UUID(str(event_id))
        except ValueError:
            return None
    q = select(Event).where(Event.id == event_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_event_by_slug(db: AsyncSession, slug: str) -> Optional[Event]:
    """Exact, case-insensitive slug lookup."""
    q = select(Event).where(Event.slug == normalize_slug(slug))
    res = await db.execute(q)
    return res.scalars().first()


async def count_events(db: AsyncSession) -> int:
    q = select(func.count(Event.id))
    res = await db.execute(q)
    return res.scalar() or 0


async def list_events(db: AsyncSession, page: int = 1, limit: int = settings.DEFAULT_PAGE_SIZE) -> Tuple[List[Event], int]:
    """
    List events newest first.

    Args:
        db: Database session
        page: 1-indexed page number
        limit: Page size, 1 to MAX_PAGE_SIZE

    Returns:
        Tuple of (events on this page, total event count)

    Raises:
        InvalidPagination: page < 1 or limit out of range
    """
    if page < 1 or limit < 1 or limit > settings.MAX_PAGE_SIZE:
        raise InvalidPagination(page, limit)

    q = (
        select(Event)
        .order_by(Event.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    res = await db.execute(q)
    events = list(res.scalars().all())
    total = await count_events(db)
    return events, total


async def find_events_by_tags_excluding(
    db: AsyncSession,
    exclude_id,
    tags: Sequence[str],
    max_results: int = settings.SIMILAR_EVENTS_LIMIT,
) -> List[Event]:
    """
    Events sharing at least one tag with ``tags``, other than ``exclude_id``.

    At most ``max_results`` events; order beyond that follows storage order.
    """
    if not tags or max_results < 1:
        return []
    sharing = select(EventTag.event_id).where(EventTag.tag.in_(list(tags)))
    q = (
        select(Event)
        .where(Event.id != exclude_id, Event.id.in_(sharing))
        .limit(max_results)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_booking(db: AsyncSession, event_id, slug: str, email: str) -> Booking:
    """
    Create a booking after checking that the event exists.

    The check and the insert are separate round-trips; events have no
    delete path, so the reference cannot go stale in between.

    Raises:
        ValidationError: Invalid email or empty slug
        ReferentialIntegrityError: event_id does not resolve to an event
    """
    email = (email or "").strip().lower()
    if not is_valid_email(email):
        raise ValidationError("email", "Please provide a valid email address")
    slug = normalize_slug(slug)
    if not slug:
        raise ValidationError("slug", "Slug is required")

    event = await get_event(db, event_id)
    if event is None:
        raise ReferentialIntegrityError(event_id)

    booking = Booking(event_id=event.id, slug=slug, email=email)
    db.add(booking)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(booking)
    return booking


async def count_bookings_by_slug(db: AsyncSession, slug: str) -> int:
    q = select(func.count(Booking.id)).where(Booking.slug == normalize_slug(slug))
    res = await db.execute(q)
    return res.scalar() or 0


async def list_bookings_for_event(db: AsyncSession, event_id) -> List[Booking]:
    q = select(Booking).where(Booking.event_id == event_id).order_by(Booking.created_at)
    res = await db.execute(q)
    return list(res.scalars().all())
