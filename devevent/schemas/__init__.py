from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from devevent.db.models.event import EventMode


def _clean_items(value):
    """Trim sequence items and drop blanks; a lone string is one item."""
    if value is None:
        return value
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return value
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class EventDetails(BaseModel):
    """Validated event fields except the image; date and time are still raw here."""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    overview: str = Field(..., min_length=1)
    venue: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    mode: EventMode
    audience: str = Field(..., min_length=1)
    agenda: List[str] = Field(..., min_length=1)
    organizer: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True

    @field_validator("mode", mode="before")
    @classmethod
    def lowercase_mode(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("agenda", "tags", mode="before")
    @classmethod
    def clean_items(cls, v):
        return _clean_items(v)


class EventCreate(EventDetails):
    image: str = Field(..., min_length=1)


class EventUpdate(BaseModel):
    """Partial event update; omitted fields keep their stored values."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    overview: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = Field(None, min_length=1)
    venue: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = Field(None, min_length=1)
    time: Optional[str] = Field(None, min_length=1)
    mode: Optional[EventMode] = None
    audience: Optional[str] = Field(None, min_length=1)
    agenda: Optional[List[str]] = Field(None, min_length=1)
    organizer: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = Field(None, min_length=1)

    class Config:
        str_strip_whitespace = True

    @field_validator("mode", mode="before")
    @classmethod
    def lowercase_mode(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("agenda", "tags", mode="before")
    @classmethod
    def clean_items(cls, v):
        return _clean_items(v)


class EventOut(BaseModel):
    id: UUID
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: EventMode
    audience: str
    agenda: List[str]
    organizer: str
    tags: List[str]
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"), serialization_alias="createdAt")
    updated_at: datetime = Field(validation_alias=AliasChoices("updated_at", "updatedAt"), serialization_alias="updatedAt")

    class Config:
        from_attributes = True


class PaginationMetadata(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(validation_alias=AliasChoices("total_pages", "totalPages"), serialization_alias="totalPages")


class EventFeed(BaseModel):
    events: List[EventOut]
    pagination: PaginationMetadata


class EventResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    event: EventOut


class EventListResponse(BaseModel):
    success: bool = True
    message: str = "Events fetched successfully"
    events: List[EventOut]
    pagination: PaginationMetadata


class SimilarEventsResponse(BaseModel):
    success: bool = True
    events: List[EventOut]


class BookingCountResponse(BaseModel):
    success: bool = True
    count: int


class BookingCreate(BaseModel):
    event_id: str = Field(..., alias="eventId")
    slug: str
    email: str

    class Config:
        populate_by_name = True


class BookingOut(BaseModel):
    id: UUID
    event_id: UUID = Field(validation_alias=AliasChoices("event_id", "eventId"), serialization_alias="eventId")
    slug: str
    email: str
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"), serialization_alias="createdAt")
    updated_at: datetime = Field(validation_alias=AliasChoices("updated_at", "updatedAt"), serialization_alias="updatedAt")

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    success: bool = True
    booking: BookingOut
