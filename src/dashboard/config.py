"""Aggregation tunables: display caps, rolling windows and thresholds.

Defaults follow what the workshop dashboards display; every value can be
overridden per deployment.
"""

from __future__ import annotations

from pydantic import Field

from src.models.common import DashboardBase


class DashboardConfig(DashboardBase):
    """Configuration shared by all aggregators."""

    low_stock_display_limit: int = Field(default=10, ge=0)
    out_of_stock_display_limit: int = Field(default=5, ge=0)
    default_minimum_stock: float = 5.0

    popular_services_limit: int = Field(default=6, ge=0)
    admin_popular_services_limit: int = Field(default=5, ge=0)
    frequent_clients_limit: int = Field(default=5, ge=0)
    recent_clients_limit: int = Field(default=5, ge=0)
    recent_orders_limit: int = Field(default=10, ge=0)
    recent_motorcycles_limit: int = Field(default=8, ge=0)
    recent_payments_limit: int = Field(default=5, ge=0)
    reference_services_limit: int = Field(default=12, ge=0)

    rolling_week_days: int = 7
    productivity_window_days: int = 30
    recently_modified_days: int = 7

    trend_dead_band_pct: float = 5.0
    synthetic_ranking_fallback: bool = False
