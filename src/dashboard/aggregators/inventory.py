"""Stock-alert detection and inventory valuation over active parts."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.fields import (
    PART_CATEGORY_FIELDS,
    PART_MIN_STOCK_FIELDS,
    PART_PRICE_FIELDS,
    PART_STOCK_FIELDS,
    Record,
    first_present,
    is_active,
    number_field,
    to_number,
)
from src.models.summary import InventoryCategory, InventoryStatus, StockAlerts

UNCATEGORISED = "Sin categoría"


def stock_level(part: Record) -> float:
    return number_field(part, PART_STOCK_FIELDS)


def minimum_stock(part: Record, default: float) -> float:
    return to_number(first_present(part, PART_MIN_STOCK_FIELDS), default)


def unit_price(part: Record) -> float:
    return number_field(part, PART_PRICE_FIELDS)


def part_category(part: Record) -> str:
    category = first_present(part, PART_CATEGORY_FIELDS)
    if isinstance(category, dict):
        category = category.get("nombre") or category.get("name")
    return str(category).strip() if category else UNCATEGORISED


def active_parts(parts: Sequence[Record]) -> list[Record]:
    return [p for p in parts if is_active(p)]


def partition_stock(
    parts: Sequence[Record],
    default_minimum: float,
) -> tuple[list[Record], list[Record]]:
    """Split active parts into (low stock, out of stock).

    Out of stock means a level of zero or less; low stock means a positive
    level at or below the part's minimum threshold.
    """
    low: list[Record] = []
    out: list[Record] = []
    for part in active_parts(parts):
        level = stock_level(part)
        if level <= 0:
            out.append(part)
        elif level <= minimum_stock(part, default_minimum):
            low.append(part)
    return low, out


def stock_alerts(
    parts: Sequence[Record],
    *,
    low_limit: int,
    out_limit: int,
    default_minimum: float = 5.0,
) -> StockAlerts:
    """Capped alert lists with uncapped totals."""
    low, out = partition_stock(parts, default_minimum)
    return StockAlerts(
        low_stock=[dict(p) for p in low[:low_limit]],
        out_of_stock=[dict(p) for p in out[:out_limit]],
        total_low_stock=len(low),
        total_out_of_stock=len(out),
    )


def inventory_status(parts: Sequence[Record], *, default_minimum: float = 5.0) -> InventoryStatus:
    active = active_parts(parts)
    low, out = partition_stock(active, default_minimum)

    categories: dict[str, InventoryCategory] = {}
    total_value = 0.0
    for part in active:
        level = max(stock_level(part), 0.0)
        value = level * unit_price(part)
        total_value += value
        name = part_category(part)
        entry = categories.setdefault(name, InventoryCategory(name=name))
        entry.quantity += int(level)
        entry.value = round(entry.value + value, 2)

    return InventoryStatus(
        total_parts=len(active),
        low_stock=len(low),
        out_of_stock=len(out),
        inventory_value=round(total_value, 2),
        categories=sorted(categories.values(), key=lambda c: c.value, reverse=True),
    )
