"""Pure numeric helpers for visual, geographic and temporal similarity."""

from __future__ import annotations

import math
from typing import Any, Sequence

from petmatch.utils.time import to_datetime


EARTH_RADIUS_KM = 6371.0
SECONDS_PER_DAY = 86400


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return dot(a, b) / (|a| * |b|), or 0.0 when either vector is all-zero."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    # sqrt of the product keeps (v, v) at exactly 1.0.
    similarity = dot / math.sqrt(norm_a * norm_b)
    return max(-1.0, min(1.0, similarity))


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push a just past 1.0 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def days_between(t1: Any, t2: Any) -> int:
    """Absolute difference in days between two instants, partial days rounded up."""
    first = to_datetime(t1)
    second = to_datetime(t2)
    if first is None or second is None:
        raise ValueError(f"Cannot compare timestamps {t1!r} and {t2!r}")

    seconds = abs((second - first).total_seconds())
    return math.ceil(seconds / SECONDS_PER_DAY)
