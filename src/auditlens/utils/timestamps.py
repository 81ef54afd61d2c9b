"""Timestamp helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_key(value: Optional[datetime]) -> datetime:
    """Ordering key that puts missing timestamps first."""
    return EARLIEST if value is None else to_utc(value)
