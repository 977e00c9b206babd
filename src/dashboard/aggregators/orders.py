"""Order-state tally, time-window counts and assigned-order breakdowns."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo

from src.dashboard.correlate import BillingIndex
from src.dashboard.fields import (
    ORDER_ACTIVITY_FIELDS,
    ORDER_COMPLETED_FIELDS,
    ORDER_CREATED_FIELDS,
    ORDER_DEADLINE_FIELDS,
    ORDER_UPDATED_FIELDS,
    Record,
    order_priority,
    order_state,
    record_deadline,
    record_timestamp,
)
from src.dashboard.windows import TimeWindows
from src.models.common import FINISHED_STATES, OPEN_STATES, OrderPriority, OrderState
from src.models.summary import (
    AssignedOrders,
    CriticalAlerts,
    OrderStats,
    StockAlerts,
    empty_state_distribution,
    empty_state_tally,
)


# ---------------------------------------------------------------------------
# Per-order accessors
# ---------------------------------------------------------------------------


def created_at(order: Record, tz: tzinfo) -> datetime | None:
    return record_timestamp(order, ORDER_CREATED_FIELDS, tz)


def completed_at(order: Record, state: OrderState, tz: tzinfo) -> datetime | None:
    """Completion time; the last update stands in for finished orders without one."""
    explicit = record_timestamp(order, ORDER_COMPLETED_FIELDS, tz)
    if explicit is not None or state not in FINISHED_STATES:
        return explicit
    return record_timestamp(order, ORDER_UPDATED_FIELDS, tz)


def deadline(order: Record, tz: tzinfo) -> datetime | None:
    return record_deadline(order, ORDER_DEADLINE_FIELDS, tz)


def active_orders(orders: Sequence[Record]) -> list[Record]:
    """Orders that are not cancelled."""
    return [o for o in orders if order_state(o) != OrderState.CANCELLED]


# ---------------------------------------------------------------------------
# Tally
# ---------------------------------------------------------------------------


def tally_states(orders: Sequence[Record], billing: BillingIndex) -> dict[str, int]:
    """Count non-cancelled orders per displayed state.

    Billed orders count as DELIVERED. The counts always sum to the number of
    non-cancelled orders.
    """
    tally = empty_state_tally()
    for order in active_orders(orders):
        state = billing.effective_state(order)
        tally[state.value if state.value in tally else OrderState.UNKNOWN.value] += 1
    return tally


def awaiting_billing(orders: Sequence[Record], billing: BillingIndex) -> int:
    """Completed orders no payment references yet."""
    return sum(
        1 for order in active_orders(orders)
        if billing.effective_state(order) == OrderState.COMPLETED
    )


def order_stats(
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
    *,
    week_days: int = 7,
) -> OrderStats:
    """Receptionist order statistics over non-cancelled orders."""
    active = active_orders(orders)
    created = [created_at(o, windows.tz) for o in active]
    tally = tally_states(active, billing)

    return OrderStats(
        total=len(active),
        new_today=sum(1 for ts in created if windows.is_today(ts)),
        this_week=sum(1 for ts in created if windows.in_rolling(ts, week_days)),
        this_month=sum(1 for ts in created if windows.in_this_month(ts)),
        by_state=tally,
        billed=sum(1 for o in active if billing.is_billed(o)),
        awaiting_billing=awaiting_billing(active, billing),
    )


def state_distribution(orders: Sequence[Record], billing: BillingIndex) -> dict[str, int]:
    """Count of orders in each lifecycle state, cancelled included."""
    distribution = empty_state_distribution()
    for order in orders:
        state = billing.effective_state(order)
        if state.value in distribution:
            distribution[state.value] += 1
    return distribution


# ---------------------------------------------------------------------------
# Recency
# ---------------------------------------------------------------------------


def recent_orders(orders: Sequence[Record], windows: TimeWindows, *, limit: int) -> list[dict]:
    """Newest orders first, each with ``daysElapsed`` since it was opened."""
    dated = [
        (ts, order)
        for order in orders
        if (ts := record_timestamp(order, ORDER_ACTIVITY_FIELDS, windows.tz)) is not None
    ]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [
        {**order, "daysElapsed": windows.days_since(ts)}
        for ts, order in dated[:limit]
    ]


# ---------------------------------------------------------------------------
# Mechanic work queue
# ---------------------------------------------------------------------------


def is_overdue(order: Record, state: OrderState, windows: TimeWindows) -> bool:
    due = deadline(order, windows.tz)
    return state in OPEN_STATES and due is not None and due < windows.now


def is_urgent(order: Record, state: OrderState) -> bool:
    return state in OPEN_STATES and order_priority(order) == OrderPriority.URGENT


def assigned_orders(
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
) -> AssignedOrders:
    """Break a mechanic's orders down into work-queue buckets."""
    pending: list[dict] = []
    in_progress: list[dict] = []
    urgent: list[dict] = []
    overdue: list[dict] = []

    for order in orders:
        state = billing.effective_state(order)
        if state in (OrderState.RECEIVED, OrderState.DIAGNOSED):
            pending.append(dict(order))
        elif state == OrderState.IN_PROGRESS:
            in_progress.append(dict(order))
        if is_urgent(order, state):
            urgent.append(dict(order))
        if is_overdue(order, state, windows):
            overdue.append(dict(order))

    return AssignedOrders(
        pending=pending,
        in_progress=in_progress,
        urgent=urgent,
        overdue=overdue,
        total_assigned=len(orders),
    )


def critical_alerts(assigned: AssignedOrders, stock: StockAlerts) -> CriticalAlerts:
    overdue = len(assigned.overdue)
    urgent = len(assigned.urgent)
    out_of_stock = stock.total_out_of_stock
    return CriticalAlerts(
        overdue_orders=overdue,
        urgent_orders=urgent,
        out_of_stock_parts=out_of_stock,
        has_alerts=bool(overdue or urgent or out_of_stock),
    )
