"""Service popularity ranking and the mechanic's reference price list."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.correlate import ORDER_SERVICE, SERVICE_ID, rank_correlated
from src.dashboard.fields import (
    SERVICE_CATEGORY_FIELDS,
    SERVICE_PRICE_FIELDS,
    Record,
    first_present,
    is_active,
    number_field,
)


def service_price(service: Record) -> float:
    """Numeric price; strings are coerced and unparseable values give 0."""
    return number_field(service, SERVICE_PRICE_FIELDS)


def service_category(service: Record) -> str:
    category = first_present(service, SERVICE_CATEGORY_FIELDS)
    return str(category).strip() if category is not None else ""


def popular_services(
    services: Sequence[Record],
    orders: Sequence[Record],
    *,
    limit: int,
    synthetic_fallback: bool = False,
) -> list[dict]:
    """Services ranked by how many orders reference them.

    Each entry is the service record plus ``occurrenceCount``, ``price`` and
    ``isSynthetic``.
    """
    ranking = rank_correlated(
        services,
        orders,
        primary_keys=SERVICE_ID,
        secondary_keys=ORDER_SERVICE,
        limit=limit,
        synthetic_fallback=synthetic_fallback,
    )
    return [
        {
            **service,
            "occurrenceCount": count,
            "price": service_price(service),
            "isSynthetic": ranking.synthetic,
        }
        for service, count in ranking.entries
    ]


def reference_services(services: Sequence[Record], *, limit: int) -> list[dict]:
    """Active catalogue services ordered by category, then price."""
    active = [s for s in services if is_active(s)]
    active.sort(key=lambda s: (service_category(s).lower(), service_price(s)))
    return [{**s, "price": service_price(s)} for s in active[:limit]]
