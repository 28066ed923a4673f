"""Small helpers shared by services: identifiers, timestamps and filenames."""

import secrets
from datetime import datetime, timezone
from typing import Optional

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


def generate_id(prefix: Optional[str] = None, nbytes: int = 12) -> str:
    """Return a random URL-safe identifier, optionally ``<prefix>_<random>``."""
    token = secrets.token_urlsafe(nbytes)
    return f"{prefix}_{token}" if prefix else token


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialise a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive datetimes are taken to be UTC.  All stored timestamps use
    this fixed-width form so that string comparison in SQL matches
    chronological order.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Inverse of ``format_timestamp``."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_future_date(value: datetime, now: Optional[datetime] = None) -> bool:
    """Return True if ``value`` lies strictly after ``now`` (default: current time)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value > (now or utcnow())


def is_valid_image_type(mime_type: Optional[str]) -> bool:
    return mime_type in ALLOWED_IMAGE_TYPES


def generate_safe_filename(original_name: Optional[str], prefix: Optional[str] = None) -> str:
    """Build a random filename that keeps the extension of ``original_name``.

    The client-supplied name is never used as a path component; only a
    purely alphanumeric extension is carried over (``jpg`` otherwise).
    """
    ext = "jpg"
    if original_name and "." in original_name:
        candidate = original_name.rsplit(".", 1)[1].lower()
        if candidate.isalnum():
            ext = candidate
    token = secrets.token_urlsafe(9).replace("-", "").replace("_", "") or secrets.token_hex(6)
    return f"{prefix}_{token}.{ext}" if prefix else f"{token}.{ext}"
