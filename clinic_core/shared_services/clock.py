"""
Clock and Identifier Providers

Agents receive these as collaborators so reports stay deterministic under test.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Protocol
from uuid import uuid4

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: object) -> Optional[datetime]:
    """
    Parse an ISO 8601 value into an aware UTC datetime.

    Returns None for missing or unparseable values instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


class IdGenerator(Protocol):
    """Produces unique entity identifiers."""

    def new_id(self, prefix: str) -> str: ...


class UUIDIdGenerator:
    """Default id generator: ``{prefix}-{uuid4 hex}``."""

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex}"
