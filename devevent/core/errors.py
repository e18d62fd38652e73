"""
Error taxonomy for the event and booking layer.

Every error carries a stable code, a user-safe message and the HTTP status
the API boundary reports it with.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable error codes returned to API callers."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE = "INVALID_DATE"
    INVALID_TIME = "INVALID_TIME"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    INVALID_PAGINATION = "INVALID_PAGINATION"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"


class DevEventError(Exception):
    """Base error with code, message and HTTP status."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "code": self.code.value, "message": self.message}


class ValidationError(DevEventError):
    """A required field is missing, empty, or has an invalid value."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["field"] = self.field
        return body


class InvalidDate(ValidationError):
    code = ErrorCode.INVALID_DATE

    def __init__(self, value: Any) -> None:
        super().__init__("date", f"Invalid date format: {value}")
        self.value = value


class InvalidTime(ValidationError):
    code = ErrorCode.INVALID_TIME

    def __init__(self, value: Any) -> None:
        super().__init__("time", f"Invalid time format: {value}")
        self.value = value


class DuplicateSlug(DevEventError):
    """Another event already owns the slug derived from this title."""

    code = ErrorCode.DUPLICATE_SLUG
    status_code = 409

    def __init__(self, slug: str) -> None:
        super().__init__(f"An event with slug '{slug}' already exists")
        self.slug = slug


class ReferentialIntegrityError(DevEventError):
    """A booking references an event that does not exist."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: Any) -> None:
        super().__init__(f"Event with ID {event_id} does not exist")
        self.event_id = event_id


class EventNotFound(DevEventError):
    code = ErrorCode.EVENT_NOT_FOUND
    status_code = 404

    def __init__(self, slug: str) -> None:
        super().__init__("Event not found")
        self.slug = slug


class InvalidPagination(DevEventError):
    code = ErrorCode.INVALID_PAGINATION

    def __init__(self, page: Any, limit: Any) -> None:
        super().__init__("Invalid pagination parameters")
        self.page = page
        self.limit = limit


class UploadError(DevEventError):
    """The image upload collaborator failed; the cause is kept for diagnostics."""

    code = ErrorCode.UPLOAD_FAILED
    status_code = 500

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        super().__init__("Event creation failed")
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["error"] = str(self.cause) if self.cause else "Unknown error"
        return body


class StorageUnavailable(DevEventError):
    code = ErrorCode.STORAGE_UNAVAILABLE
    status_code = 503

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        super().__init__("Storage is unavailable")
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["error"] = str(self.cause) if self.cause else "Unknown error"
        return body
