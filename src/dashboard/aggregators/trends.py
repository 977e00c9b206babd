"""Period-over-period order volume deltas."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.aggregators.orders import created_at
from src.dashboard.fields import Record
from src.dashboard.windows import TimeWindows
from src.models.common import TrendDirection
from src.models.summary import TrendDelta, TrendSummary


def change_percent(current: int, previous: int) -> float:
    """Percentage change to one decimal; 0 when there is no previous volume."""
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def classify(change: float, dead_band: float) -> TrendDirection:
    if change > dead_band:
        return TrendDirection.POSITIVE
    if change < -dead_band:
        return TrendDirection.NEGATIVE
    return TrendDirection.NEUTRAL


def trend_delta(current: int, previous: int, *, dead_band: float = 5.0) -> TrendDelta:
    change = change_percent(current, previous)
    return TrendDelta(change_percent=change, direction=classify(change, dead_band))


def monthly_trend(
    orders: Sequence[Record],
    windows: TimeWindows,
    *,
    dead_band: float = 5.0,
) -> TrendSummary:
    """Calendar month to date against the whole previous month."""
    created = [created_at(o, windows.tz) for o in orders]
    this_month = sum(1 for ts in created if windows.in_this_month(ts))
    last_month = sum(1 for ts in created if windows.in_previous_month(ts))
    delta = trend_delta(this_month, last_month, dead_band=dead_band)
    return TrendSummary(
        monthly_growth_percent=delta.change_percent,
        orders_this_month=this_month,
        orders_last_month=last_month,
        direction=delta.direction,
    )


def rolling_trend(
    orders: Sequence[Record],
    windows: TimeWindows,
    *,
    days: int,
    dead_band: float = 5.0,
) -> TrendDelta:
    """Last ``days`` days against the ``days`` days before them."""
    created = [created_at(o, windows.tz) for o in orders]
    current = sum(1 for ts in created if windows.in_rolling(ts, days))
    previous = sum(1 for ts in created if windows.in_previous_rolling(ts, days))
    return trend_delta(current, previous, dead_band=dead_band)
