"""Payment totals, time-bucketed amounts and billing backlog."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from src.dashboard.aggregators.orders import awaiting_billing
from src.dashboard.correlate import BillingIndex
from src.dashboard.fields import (
    PAYMENT_AMOUNT_FIELDS,
    PAYMENT_DATE_FIELDS,
    PAYMENT_METHOD_FIELDS,
    Record,
    first_present,
    number_field,
    payment_status,
    record_timestamp,
)
from src.dashboard.windows import TimeWindows
from src.models.common import PaymentStatus
from src.models.summary import FinancialSummary, PaymentSummary

UNKNOWN_METHOD = "UNKNOWN"


def payment_amount(payment: Record) -> float:
    return number_field(payment, PAYMENT_AMOUNT_FIELDS)


def payment_method(payment: Record) -> str | None:
    method = first_present(payment, PAYMENT_METHOD_FIELDS)
    if isinstance(method, str):
        return method.strip().upper()
    return None


def money(amount: float) -> float:
    return round(amount, 2)


def most_used_method(payments: Sequence[Record]) -> str:
    """Most frequent payment method; ties go to the first seen."""
    counts = Counter(m for p in payments if (m := payment_method(p)))
    if not counts:
        return UNKNOWN_METHOD
    return counts.most_common(1)[0][0]


def recent_payments(payments: Sequence[Record], windows: TimeWindows, *, limit: int) -> list[dict]:
    dated = [
        (ts, payment)
        for payment in payments
        if (ts := record_timestamp(payment, PAYMENT_DATE_FIELDS, windows.tz)) is not None
    ]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [dict(payment) for _, payment in dated[:limit]]


def payment_summary(
    payments: Sequence[Record],
    windows: TimeWindows,
    *,
    week_days: int = 7,
    recent_limit: int = 5,
) -> PaymentSummary:
    """Receptionist view of collected payments."""
    this_month: list[Record] = []
    this_week: list[Record] = []
    for payment in payments:
        ts = record_timestamp(payment, PAYMENT_DATE_FIELDS, windows.tz)
        if windows.in_this_month(ts):
            this_month.append(payment)
        if windows.in_rolling(ts, week_days):
            this_week.append(payment)

    return PaymentSummary(
        total_payments=len(payments),
        this_month=len(this_month),
        this_week=len(this_week),
        amount_this_month=money(sum(payment_amount(p) for p in this_month)),
        amount_this_week=money(sum(payment_amount(p) for p in this_week)),
        pending=sum(1 for p in payments if payment_status(p) == PaymentStatus.PENDING),
        most_used_method=most_used_method(payments),
        recent=recent_payments(payments, windows, limit=recent_limit),
    )


def financial_summary(
    payments: Sequence[Record],
    orders: Sequence[Record],
    billing: BillingIndex,
    windows: TimeWindows,
) -> FinancialSummary:
    """Workshop-wide revenue figures.

    ``average_payment`` is the all-time mean amount, 0 when there are no
    payments.
    """
    amounts = [payment_amount(p) for p in payments]
    month_amounts = [
        payment_amount(p) for p in payments
        if windows.in_this_month(record_timestamp(p, PAYMENT_DATE_FIELDS, windows.tz))
    ]
    total = sum(amounts)

    return FinancialSummary(
        amount_all_time=money(total),
        amount_this_month=money(sum(month_amounts)),
        awaiting_billing=awaiting_billing(orders, billing),
        average_payment=money(total / len(amounts)) if amounts else 0.0,
        payment_count=len(amounts),
        payments_this_month=len(month_amounts),
    )
