"""
Rounding helpers shared by progress and analytics figures.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """Rounded ``part / whole * 100``; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def rounded_mean(values: Iterable[float]) -> Optional[int]:
    """Rounded mean of the values, None for an empty sequence."""
    values = list(values)
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def as_utc(value: datetime) -> datetime:
    """Naive UTC view of a datetime; SQLite hands timestamps back without a zone."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
