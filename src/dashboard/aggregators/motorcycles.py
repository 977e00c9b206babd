"""Recently registered and recently serviced motorcycles."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.fields import (
    MOTORCYCLE_REGISTERED_FIELDS,
    MOTORCYCLE_UPDATED_FIELDS,
    Record,
    is_active,
    record_timestamp,
)
from src.dashboard.windows import TimeWindows


def recently_registered(
    motorcycles: Sequence[Record],
    windows: TimeWindows,
    *,
    limit: int,
) -> list[dict]:
    """Newest registrations first, each with ``daysSinceRegistered``."""
    dated = [
        (ts, moto)
        for moto in motorcycles
        if (ts := record_timestamp(moto, MOTORCYCLE_REGISTERED_FIELDS, windows.tz)) is not None
    ]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {**moto, "daysSinceRegistered": windows.days_since(ts)}
        for ts, moto in dated[:limit]
    ]


def recently_modified(
    motorcycles: Sequence[Record],
    windows: TimeWindows,
    *,
    days: int,
    limit: int,
) -> list[dict]:
    """Active motorcycles touched within the last ``days`` days, newest first.

    Each entry carries ``daysSinceModified``.
    """
    dated = []
    for moto in motorcycles:
        if not is_active(moto):
            continue
        ts = record_timestamp(moto, MOTORCYCLE_UPDATED_FIELDS, windows.tz)
        if windows.in_rolling(ts, days):
            dated.append((ts, moto))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {**moto, "daysSinceModified": windows.days_since(ts)}
        for ts, moto in dated[:limit]
    ]
