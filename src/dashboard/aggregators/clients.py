"""Client counts, frequent-client ranking and recent registrations."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.correlate import CLIENT_ID, order_client_keys, rank_correlated
from src.dashboard.fields import CLIENT_REGISTERED_FIELDS, Record, record_timestamp
from src.dashboard.windows import TimeWindows
from src.models.summary import ClientSummary


def frequent_clients(
    clients: Sequence[Record],
    orders: Sequence[Record],
    motorcycles: Sequence[Record],
    *,
    limit: int,
    synthetic_fallback: bool = False,
) -> list[dict]:
    """Clients with the most orders, each with ``orderCount`` and ``isSynthetic``."""
    ranking = rank_correlated(
        clients,
        orders,
        primary_keys=CLIENT_ID,
        secondary_keys=order_client_keys(motorcycles),
        limit=limit,
        synthetic_fallback=synthetic_fallback,
    )
    return [
        {**client, "orderCount": count, "isSynthetic": ranking.synthetic}
        for client, count in ranking.entries
    ]


def recent_clients(clients: Sequence[Record], windows: TimeWindows, *, limit: int) -> list[dict]:
    dated = [
        (ts, client)
        for client in clients
        if (ts := record_timestamp(client, CLIENT_REGISTERED_FIELDS, windows.tz)) is not None
    ]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [dict(client) for _, client in dated[:limit]]


def new_clients_this_month(clients: Sequence[Record], windows: TimeWindows) -> int:
    return sum(
        1 for client in clients
        if windows.in_this_month(record_timestamp(client, CLIENT_REGISTERED_FIELDS, windows.tz))
    )


def client_summary(
    clients: Sequence[Record],
    orders: Sequence[Record],
    motorcycles: Sequence[Record],
    windows: TimeWindows,
    *,
    frequent_limit: int,
    recent_limit: int,
    synthetic_fallback: bool = False,
) -> ClientSummary:
    return ClientSummary(
        total=len(clients),
        new_this_month=new_clients_this_month(clients, windows),
        frequent_clients=frequent_clients(
            clients,
            orders,
            motorcycles,
            limit=frequent_limit,
            synthetic_fallback=synthetic_fallback,
        ),
        recent_clients=recent_clients(clients, windows, limit=recent_limit),
    )
