"""
Canonicalization of loosely-typed event input.

Titles become URL slugs, free-text dates become ISO calendar dates and
free-text times become a fixed 12-hour display string.
"""
import re
import secrets
import string
import time
import unicodedata
from datetime import datetime, timezone

from dateutil import parser as date_parser

from devevent.core.errors import InvalidDate, InvalidTime

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_12H_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s?(AM|PM)$", re.IGNORECASE)
TIME_24H_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _fallback_slug() -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(7))
    return f"event-{int(time.time() * 1000)}-{suffix}"


def generate_slug(title: str) -> str:
    """
    Derive a URL-safe slug from an event title.

    Accented letters are folded to ASCII, anything that is not a letter,
    digit, whitespace or hyphen is dropped, whitespace and underscores become
    single hyphens, and leading/trailing hyphens are trimmed. A title with
    nothing usable left falls back to ``event-<millis>-<random>``.

    Args:
        title: Event title as submitted

    Returns:
        Non-empty slug containing only ``[a-z0-9-]``
    """
    folded = unicodedata.normalize("NFKD", title or "").encode("ascii", "ignore").decode("ascii")
    slug = folded.lower().replace("_", " ").strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    slug = slug.strip("-")

    if not slug:
        return _fallback_slug()
    return slug


def normalize_date(value: str) -> str:
    """
    Normalize a date string to ``YYYY-MM-DD`` anchored at UTC midnight.

    Strict ``YYYY-MM-DD`` input is read as a UTC calendar date so the process
    timezone can never shift the day. Anything else goes through dateutil;
    naive results are taken as UTC, aware ones are converted to UTC.

    Raises:
        InvalidDate: If the input is not a valid calendar date
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidDate(value)

    trimmed = value.strip()
    try:
        if ISO_DATE_PATTERN.match(trimmed):
            parsed = datetime.strptime(trimmed, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        else:
            parsed = date_parser.parse(trimmed)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            else:
                parsed = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as e:
        raise InvalidDate(value) from e

    return parsed.date().isoformat()


def normalize_time(value: str) -> str:
    """
    Normalize a time string to ``H:MM AM|PM``.

    Input already in 12-hour form is uppercased and returned without
    re-checking its range. 24-hour ``HH:MM`` is range-checked and converted;
    the minutes are kept exactly as written.

    Raises:
        InvalidTime: If the input matches neither form or is out of range
    """
    if not isinstance(value, str):
        raise InvalidTime(value)

    trimmed = value.strip()
    if TIME_12H_PATTERN.match(trimmed):
        return trimmed.upper()

    match = TIME_24H_PATTERN.match(trimmed)
    if not match:
        raise InvalidTime(value)

    hours = int(match.group(1))
    minutes = match.group(2)
    if hours > 23 or int(minutes) > 59:
        raise InvalidTime(value)

    period = "PM" if hours >= 12 else "AM"
    if hours == 0:
        hours12 = 12
    elif hours > 12:
        hours12 = hours - 12
    else:
        hours12 = hours
    return f"{hours12}:{minutes} {period}"


def normalize_slug(slug: str) -> str:
    """Match the storage form of a slug (trimmed, lowercase)."""
    return (slug or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None
