"""Calendar-aligned and rolling time windows relative to a fixed ``now``.

All windows are computed once per report from a single instant so every
aggregator of one summary agrees on what "today" and "this month" mean.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo


def _start_of_month(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class TimeWindows:
    """Window boundaries for one report cycle."""

    now: datetime

    @classmethod
    def at(cls, now: datetime, tz: tzinfo) -> TimeWindows:
        """Anchor the windows at ``now`` expressed in the workshop zone."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=tz)
        return cls(now=now.astimezone(tz))

    @property
    def tz(self) -> tzinfo:
        return self.now.tzinfo  # type: ignore[return-value]

    @property
    def start_of_today(self) -> datetime:
        return self.now.replace(hour=0, minute=0, second=0, microsecond=0)

    @property
    def start_of_month(self) -> datetime:
        return _start_of_month(self.now)

    @property
    def start_of_previous_month(self) -> datetime:
        return _start_of_month(self.start_of_month - timedelta(days=1))

    def days_ago(self, days: int) -> datetime:
        """Start of a rolling window of ``days`` days ending now."""
        return self.now - timedelta(days=days)

    # ----- Membership -----

    def is_today(self, moment: datetime | None) -> bool:
        return (
            moment is not None
            and self.start_of_today <= moment < self.start_of_today + timedelta(days=1)
        )

    def in_rolling(self, moment: datetime | None, days: int) -> bool:
        return moment is not None and self.days_ago(days) <= moment <= self.now

    def in_previous_rolling(self, moment: datetime | None, days: int) -> bool:
        """Window of ``days`` days immediately before the current rolling one."""
        return (
            moment is not None
            and self.days_ago(2 * days) <= moment < self.days_ago(days)
        )

    def in_this_month(self, moment: datetime | None) -> bool:
        return moment is not None and self.start_of_month <= moment <= self.now

    def in_previous_month(self, moment: datetime | None) -> bool:
        return (
            moment is not None
            and self.start_of_previous_month <= moment < self.start_of_month
        )

    def days_since(self, moment: datetime | None) -> int:
        """Whole days elapsed since ``moment``; 0 when unknown."""
        if moment is None:
            return 0
        return max(0, (self.now - moment).days)

    @property
    def day_of_month(self) -> int:
        return self.now.day
