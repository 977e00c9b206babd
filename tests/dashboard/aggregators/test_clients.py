"""Tests for client counts and the frequent-client ranking."""

from datetime import datetime, timedelta, timezone

from src.dashboard.aggregators.clients import client_summary, frequent_clients, recent_clients
from src.dashboard.windows import TimeWindows

NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


def _ago(days: float) -> str:
    return (NOW - timedelta(days=days)).isoformat()


def _make_clients() -> list[dict]:
    return [
        {"idCliente": 1, "nombre": "Ana", "dni": "11111111", "fechaRegistro": _ago(2)},
        {"idCliente": 2, "nombre": "Luis", "dni": "22222222", "fechaRegistro": _ago(20)},
        {"idCliente": 3, "nombre": "Rosa", "dni": "33333333", "fechaRegistro": _ago(45)},
    ]


class TestFrequentClients:
    def test_ranked_by_order_count(self) -> None:
        orders = [
            {"idCliente": 2},
            {"clienteId": "2"},
            {"cliente": {"dni": "22222222"}},
            {"cliente": {"idCliente": 1}},
        ]
        ranked = frequent_clients(_make_clients(), orders, [], limit=5)

        assert [(c["idCliente"], c["orderCount"]) for c in ranked] == [(2, 3), (1, 1)]
        assert all(c["isSynthetic"] is False for c in ranked)

    def test_correlated_through_motorcycle(self) -> None:
        motos = [{"idMoto": 50, "idCliente": 3}]
        ranked = frequent_clients(_make_clients(), [{"idMoto": 50}], motos, limit=5)
        assert [(c["idCliente"], c["orderCount"]) for c in ranked] == [(3, 1)]

    def test_no_correlation_gives_empty_ranking(self) -> None:
        ranked = frequent_clients(_make_clients(), [{"idOrden": 9}], [], limit=5)
        assert ranked == []

    def test_synthetic_fallback_is_flagged(self) -> None:
        ranked = frequent_clients(
            _make_clients(), [{"idOrden": 9}], [], limit=2, synthetic_fallback=True,
        )
        assert [c["orderCount"] for c in ranked] == [2, 1]
        assert all(c["isSynthetic"] is True for c in ranked)


class TestClientSummary:
    def test_counts_and_recent(self, windows: TimeWindows) -> None:
        summary = client_summary(
            _make_clients(), [], [], windows, frequent_limit=5, recent_limit=2,
        )
        assert summary.total == 3
        assert summary.new_this_month == 1
        assert [c["idCliente"] for c in summary.recent_clients] == [1, 2]
        assert summary.frequent_clients == []

    def test_empty(self, windows: TimeWindows) -> None:
        summary = client_summary([], [{"idCliente": 1}], [], windows, frequent_limit=5, recent_limit=5)
        assert summary.total == 0
        assert summary.frequent_clients == []
        assert summary.recent_clients == []

    def test_recent_skips_undated(self, windows: TimeWindows) -> None:
        clients = [{"idCliente": 1}, {"idCliente": 2, "createdAt": _ago(1)}]
        assert [c["idCliente"] for c in recent_clients(clients, windows, limit=5)] == [2]
