"""Completion, on-time and throughput ratios.

Percentages are whole numbers rounded half up; durations are days to one
decimal. An order counts as completed when its effective state is
COMPLETED or DELIVERED, so billed orders always count.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from src.dashboard.aggregators.clients import new_clients_this_month
from src.dashboard.aggregators.orders import active_orders, completed_at, created_at, deadline
from src.dashboard.aggregators.trends import rolling_trend
from src.dashboard.aggregators.users import mechanics
from src.dashboard.correlate import BillingIndex
from src.dashboard.fields import PAYMENT_DATE_FIELDS, Record, record_timestamp
from src.dashboard.windows import TimeWindows
from src.models.common import FINISHED_STATES, OrderState
from src.models.summary import (
    MechanicOrderStats,
    MechanicProductivity,
    ReceptionProductivity,
    WorkshopProductivity,
)


# Orders a mechanic has started: diagnosed or being repaired.
WORKBENCH_STATES = frozenset({OrderState.DIAGNOSED, OrderState.IN_PROGRESS})


def _half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """``part / whole`` as a whole percentage; 0 for an empty whole."""
    if whole <= 0:
        return 0
    return _half_up(Decimal(part) * 100 / Decimal(whole))


def _one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def is_finished(order: Record, billing: BillingIndex) -> bool:
    return billing.effective_state(order) in FINISHED_STATES


def on_time_rate(orders: Sequence[Record], billing: BillingIndex, windows: TimeWindows) -> int:
    """Share of finished orders delivered by their estimated date.

    Only orders with both a completion time and a deadline take part.
    """
    on_time = 0
    measured = 0
    for order in orders:
        state = billing.effective_state(order)
        if state not in FINISHED_STATES:
            continue
        done = completed_at(order, state, windows.tz)
        due = deadline(order, windows.tz)
        if done is None or due is None:
            continue
        measured += 1
        if done <= due:
            on_time += 1
    return percent(on_time, measured)


def average_completion_days(
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
) -> float:
    """Mean days from creation to completion over finished orders."""
    durations: list[float] = []
    for order in orders:
        state = billing.effective_state(order)
        if state not in FINISHED_STATES:
            continue
        opened = created_at(order, windows.tz)
        done = completed_at(order, state, windows.tz)
        if opened is None or done is None or done < opened:
            continue
        durations.append((done - opened).total_seconds() / 86400)
    if not durations:
        return 0.0
    return _one_decimal(sum(durations) / len(durations))


def created_within(orders: Sequence[Record], windows: TimeWindows, days: int) -> list[Record]:
    return [o for o in orders if windows.in_rolling(created_at(o, windows.tz), days)]


# ---------------------------------------------------------------------------
# Mechanic
# ---------------------------------------------------------------------------


def mechanic_order_stats(
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
) -> MechanicOrderStats:
    this_month = [o for o in orders if windows.in_this_month(created_at(o, windows.tz))]
    completed = sum(1 for o in orders if is_finished(o, billing))
    completed_month = sum(1 for o in this_month if is_finished(o, billing))

    return MechanicOrderStats(
        total_historic=len(orders),
        completed_historic=completed,
        orders_this_month=len(this_month),
        completed_this_month=completed_month,
        completion_rate=percent(completed, len(orders)),
        completion_rate_this_month=percent(completed_month, len(this_month)),
    )


def mechanic_productivity(
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
    *,
    days: int = 30,
    dead_band: float = 5.0,
) -> MechanicProductivity:
    """Rolling-window productivity for one mechanic's orders."""
    recent = created_within(orders, windows, days)
    completed = sum(1 for o in recent if is_finished(o, billing))
    # A 30-day window counts as 4.3 weeks.
    weeks = Decimal(str(round(days / 7, 1)))

    return MechanicProductivity(
        orders_last_30_days=len(recent),
        completed_last_30_days=completed,
        completion_rate=percent(completed, len(recent)),
        on_time_rate=on_time_rate(recent, billing, windows),
        avg_orders_per_week=_half_up(Decimal(len(recent)) / weeks) if weeks else 0,
        trend=rolling_trend(orders, windows, days=days, dead_band=dead_band),
    )


# ---------------------------------------------------------------------------
# Workshop
# ---------------------------------------------------------------------------


def workshop_productivity(
    orders: Sequence[Record],
    users: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
    *,
    days: int = 30,
) -> WorkshopProductivity:
    active = active_orders(orders)
    recent = created_within(active, windows, days)
    staff = len(mechanics(users))
    completed = sum(1 for o in active if is_finished(o, billing))

    return WorkshopProductivity(
        completed_orders=completed,
        avg_completion_days=average_completion_days(active, billing, windows),
        total_mechanics=staff,
        orders_in_progress=sum(1 for o in active if billing.effective_state(o) in WORKBENCH_STATES),
        orders_per_mechanic=_one_decimal(len(active) / staff) if staff else 0.0,
        mechanic_efficiency=_one_decimal(completed / staff) if staff else 0.0,
        completion_rate_30_days=percent(
            sum(1 for o in recent if is_finished(o, billing)), len(recent),
        ),
        on_time_rate=on_time_rate(recent, billing, windows),
    )


# ---------------------------------------------------------------------------
# Reception
# ---------------------------------------------------------------------------


def reception_productivity(
    orders: Sequence[Record],
    clients: Sequence[Record],
    payments: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
) -> ReceptionProductivity:
    """Month-to-date front-desk throughput."""
    active = active_orders(orders)
    registered = sum(1 for o in active if windows.in_this_month(created_at(o, windows.tz)))
    new_clients = new_clients_this_month(clients, windows)
    collected = sum(
        1 for p in payments
        if windows.in_this_month(record_timestamp(p, PAYMENT_DATE_FIELDS, windows.tz))
    )

    return ReceptionProductivity(
        orders_registered=registered,
        clients_registered=new_clients,
        payments_collected=collected,
        avg_orders_per_day=_one_decimal(registered / windows.day_of_month),
        avg_attention_time_days=average_completion_days(active, billing, windows),
    )
