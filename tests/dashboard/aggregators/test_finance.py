"""Tests for payment and financial summaries."""

from datetime import datetime, timedelta, timezone

import pytest

from src.dashboard.aggregators.finance import financial_summary, most_used_method, payment_summary
from src.dashboard.correlate import BillingIndex
from src.dashboard.windows import TimeWindows

NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


def _ago(days: float) -> str:
    return (NOW - timedelta(days=days)).isoformat()


def _make_payment(pid: int, monto, days_ago: float, **fields) -> dict:
    payment = {"idPago": pid, "monto": monto, "fechaPago": _ago(days_ago)}
    payment.update(fields)
    return payment


# ===================================================================
# Financial summary
# ===================================================================


class TestFinancialSummary:
    def test_ten_payments_this_month(self, windows: TimeWindows) -> None:
        payments = [_make_payment(i, 150, days_ago=i) for i in range(10)]

        summary = financial_summary(payments, [], BillingIndex(payments), windows)

        assert summary.amount_this_month == pytest.approx(1500.00)
        assert summary.average_payment == pytest.approx(150.00)
        assert summary.payments_this_month == 10
        assert summary.amount_all_time == pytest.approx(1500.00)

    def test_month_vs_all_time(self, windows: TimeWindows) -> None:
        payments = [
            _make_payment(1, "100.50", days_ago=1),
            _make_payment(2, 200, days_ago=40),
            _make_payment(3, "abc", days_ago=2),
        ]
        summary = financial_summary(payments, [], BillingIndex(payments), windows)

        assert summary.amount_this_month == pytest.approx(100.50)
        assert summary.amount_all_time == pytest.approx(300.50)
        assert summary.payment_count == 3
        assert summary.average_payment == pytest.approx(100.17)

    def test_awaiting_billing(self, windows: TimeWindows) -> None:
        orders = [
            {"idOrden": 1, "estado": "COMPLETADA"},
            {"idOrden": 2, "estado": "COMPLETADA"},
            {"idOrden": 3, "estado": "EN_PROCESO"},
        ]
        payments = [_make_payment(1, 50, days_ago=1, idOrden=1)]
        summary = financial_summary(payments, orders, BillingIndex(payments), windows)
        assert summary.awaiting_billing == 1

    def test_no_payments(self, windows: TimeWindows) -> None:
        summary = financial_summary([], [], BillingIndex([]), windows)
        assert summary.average_payment == 0.0
        assert summary.amount_all_time == 0.0


# ===================================================================
# Payment summary
# ===================================================================


class TestPaymentSummary:
    def test_buckets(self, windows: TimeWindows) -> None:
        payments = [
            _make_payment(1, 100, days_ago=1, metodo="TARJETA", estado="COMPLETADO"),
            _make_payment(2, 50, days_ago=5, metodo="efectivo", estado="PENDIENTE"),
            _make_payment(3, 70, days_ago=10, metodo="EFECTIVO"),
            _make_payment(4, 30, days_ago=50, metodo="TARJETA"),
            _make_payment(5, 10, days_ago=60, metodoPago="EFECTIVO"),
        ]
        summary = payment_summary(payments, windows, recent_limit=2)

        assert summary.total_payments == 5
        assert summary.this_week == 2
        assert summary.this_month == 3
        assert summary.amount_this_week == pytest.approx(150.0)
        assert summary.amount_this_month == pytest.approx(220.0)
        assert summary.pending == 1
        assert summary.most_used_method == "EFECTIVO"
        assert [p["idPago"] for p in summary.recent] == [1, 2]

    def test_empty(self, windows: TimeWindows) -> None:
        summary = payment_summary([], windows)
        assert summary.total_payments == 0
        assert summary.most_used_method == "UNKNOWN"
        assert summary.recent == []

    def test_method_tie_goes_to_first_seen(self) -> None:
        payments = [{"metodo": "YAPE"}, {"metodo": "TARJETA"}, {"metodo": "TARJETA"}, {"metodo": "YAPE"}]
        assert most_used_method(payments) == "YAPE"
