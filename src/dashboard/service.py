"""Summary assembler: role-specific dashboard summaries.

Fetches the collections a role needs, runs the applicable aggregators over
the immutable snapshot and merges their outputs into one fixed-shape
summary. Each section is computed independently: a section that fails
takes its default while the others are still filled in. Any other failure
produces the degraded summary (every field at its zero/empty default).
Task cancellation is never swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar
from zoneinfo import ZoneInfo

import httpx

from src.config.settings import Settings, get_settings
from src.dashboard.aggregators import (
    clients,
    finance,
    inventory,
    motorcycles,
    orders,
    popularity,
    productivity,
    trends,
    users,
)
from src.dashboard.config import DashboardConfig
from src.dashboard.correlate import BillingIndex, assigned_to
from src.dashboard.fetch import (
    CollectionSnapshot,
    FetchOrchestrator,
    RetryPolicy,
    Sleep,
    build_client,
)
from src.dashboard.windows import TimeWindows
from src.models.common import Resource, utc_now
from src.models.summary import (
    AdministratorSummary,
    GeneralStats,
    MechanicSummary,
    ReceptionistSummary,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECEPTIONIST_RESOURCES: tuple[Resource, ...] = (
    Resource.WORK_ORDERS,
    Resource.CLIENTS,
    Resource.MOTORCYCLES,
    Resource.PAYMENTS,
    Resource.SERVICES,
)
ADMINISTRATOR_RESOURCES: tuple[Resource, ...] = tuple(Resource)
MECHANIC_RESOURCES: tuple[Resource, ...] = (
    Resource.WORK_ORDERS,
    Resource.PAYMENTS,
    Resource.PARTS,
    Resource.MOTORCYCLES,
    Resource.SERVICES,
)


class DashboardService:
    """Build dashboard summaries for receptionists, administrators and mechanics.

    ``transport``, ``clock`` and ``sleep`` exist for tests: an
    ``httpx.MockTransport`` stands in for the backend, the clock fixes
    ``now`` and the sleep replaces the retry delay.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        config: DashboardConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Sleep = asyncio.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = config or DashboardConfig(
            synthetic_ranking_fallback=self._settings.SYNTHETIC_RANKING_FALLBACK,
        )
        self._transport = transport
        self._clock = clock
        self._sleep = sleep
        self._log = log or logger
        self._policy = RetryPolicy.from_settings(self._settings)
        self._endpoints = {r.value: self._settings.endpoint_for(r.value) for r in Resource}
        self._tz = ZoneInfo(self._settings.TIMEZONE)

    @property
    def config(self) -> DashboardConfig:
        return self._config

    # ----- Plumbing -----

    async def _snapshot(
        self,
        resources: tuple[Resource, ...],
        authorization: str | None,
    ) -> CollectionSnapshot:
        async with build_client(
            self._settings,
            authorization=authorization,
            transport=self._transport,
        ) as client:
            orchestrator = FetchOrchestrator(
                client,
                self._endpoints,
                policy=self._policy,
                sleep=self._sleep,
                log=self._log,
            )
            return await orchestrator.fetch_all(resources)

    def _windows(self) -> TimeWindows:
        return TimeWindows.at(self._clock(), self._tz)

    def _section(self, role: str, name: str, compute: Callable[[], T], default: Callable[[], T]) -> T:
        try:
            return compute()
        except Exception:
            self._log.exception("%s dashboard: section %s failed, using default", role, name)
            return default()

    # ----- Receptionist -----

    async def receptionist_summary(self, authorization: str | None = None) -> ReceptionistSummary:
        """Front-desk summary; the degraded summary on any failure."""
        try:
            snapshot = await self._snapshot(RECEPTIONIST_RESOURCES, authorization)
            return self.build_receptionist(snapshot, self._windows())
        except Exception:
            self._log.exception("Receptionist dashboard failed, returning degraded summary")
            return ReceptionistSummary()

    def build_receptionist(
        self,
        snapshot: CollectionSnapshot,
        windows: TimeWindows,
    ) -> ReceptionistSummary:
        cfg = self._config
        order_rows = snapshot[Resource.WORK_ORDERS]
        client_rows = snapshot[Resource.CLIENTS]
        moto_rows = snapshot[Resource.MOTORCYCLES]
        payment_rows = snapshot[Resource.PAYMENTS]
        service_rows = snapshot[Resource.SERVICES]
        billing = BillingIndex(payment_rows)
        defaults = ReceptionistSummary.model_fields

        def section(name: str, compute: Callable[[], Any]) -> Any:
            return self._section("Receptionist", name, compute, defaults[name].default_factory)

        return ReceptionistSummary(
            order_stats=section(
                "order_stats",
                lambda: orders.order_stats(order_rows, billing, windows, week_days=cfg.rolling_week_days),
            ),
            recent_orders=section(
                "recent_orders",
                lambda: orders.recent_orders(order_rows, windows, limit=cfg.recent_orders_limit),
            ),
            client_summary=section(
                "client_summary",
                lambda: clients.client_summary(
                    client_rows,
                    order_rows,
                    moto_rows,
                    windows,
                    frequent_limit=cfg.frequent_clients_limit,
                    recent_limit=cfg.recent_clients_limit,
                    synthetic_fallback=cfg.synthetic_ranking_fallback,
                ),
            ),
            recent_motorcycles=section(
                "recent_motorcycles",
                lambda: motorcycles.recently_registered(
                    moto_rows, windows, limit=cfg.recent_motorcycles_limit,
                ),
            ),
            payment_summary=section(
                "payment_summary",
                lambda: finance.payment_summary(
                    payment_rows,
                    windows,
                    week_days=cfg.rolling_week_days,
                    recent_limit=cfg.recent_payments_limit,
                ),
            ),
            popular_services=section(
                "popular_services",
                lambda: popularity.popular_services(
                    service_rows,
                    order_rows,
                    limit=cfg.popular_services_limit,
                    synthetic_fallback=cfg.synthetic_ranking_fallback,
                ),
            ),
            productivity_summary=section(
                "productivity_summary",
                lambda: productivity.reception_productivity(
                    order_rows, client_rows, payment_rows, billing, windows,
                ),
            ),
        )

    # ----- Administrator -----

    async def administrator_summary(self, authorization: str | None = None) -> AdministratorSummary:
        """Workshop-wide summary; the degraded summary on any failure."""
        try:
            snapshot = await self._snapshot(ADMINISTRATOR_RESOURCES, authorization)
            return self.build_administrator(snapshot, self._windows())
        except Exception:
            self._log.exception("Administrator dashboard failed, returning degraded summary")
            return AdministratorSummary()

    def build_administrator(
        self,
        snapshot: CollectionSnapshot,
        windows: TimeWindows,
    ) -> AdministratorSummary:
        cfg = self._config
        order_rows = snapshot[Resource.WORK_ORDERS]
        client_rows = snapshot[Resource.CLIENTS]
        moto_rows = snapshot[Resource.MOTORCYCLES]
        payment_rows = snapshot[Resource.PAYMENTS]
        service_rows = snapshot[Resource.SERVICES]
        part_rows = snapshot[Resource.PARTS]
        user_rows = snapshot[Resource.USERS]
        billing = BillingIndex(payment_rows)
        defaults = AdministratorSummary.model_fields

        def section(name: str, compute: Callable[[], Any]) -> Any:
            return self._section("Administrator", name, compute, defaults[name].default_factory)

        def general_stats() -> GeneralStats:
            stats = orders.order_stats(order_rows, billing, windows)
            return GeneralStats(
                total_orders=stats.total,
                total_clients=len(client_rows),
                total_motorcycles=len(moto_rows),
                total_users=len(user_rows),
                new_today=stats.new_today,
                new_clients_this_month=clients.new_clients_this_month(client_rows, windows),
                orders_this_month=stats.this_month,
            )

        return AdministratorSummary(
            general_stats=section("general_stats", general_stats),
            financial_summary=section(
                "financial_summary",
                lambda: finance.financial_summary(payment_rows, order_rows, billing, windows),
            ),
            user_summary=section("user_summary", lambda: users.user_summary(user_rows)),
            inventory_status=section(
                "inventory_status",
                lambda: inventory.inventory_status(
                    part_rows, default_minimum=cfg.default_minimum_stock,
                ),
            ),
            stock_alerts=section(
                "stock_alerts",
                lambda: inventory.stock_alerts(
                    part_rows,
                    low_limit=cfg.low_stock_display_limit,
                    out_limit=cfg.out_of_stock_display_limit,
                    default_minimum=cfg.default_minimum_stock,
                ),
            ),
            workshop_productivity=section(
                "workshop_productivity",
                lambda: productivity.workshop_productivity(
                    order_rows, user_rows, billing, windows, days=cfg.productivity_window_days,
                ),
            ),
            popular_services=section(
                "popular_services",
                lambda: popularity.popular_services(
                    service_rows,
                    order_rows,
                    limit=cfg.admin_popular_services_limit,
                    synthetic_fallback=cfg.synthetic_ranking_fallback,
                ),
            ),
            trends=section(
                "trends",
                lambda: trends.monthly_trend(order_rows, windows, dead_band=cfg.trend_dead_band_pct),
            ),
        )

    # ----- Mechanic -----

    async def mechanic_summary(
        self,
        user_id: str | int,
        authorization: str | None = None,
    ) -> MechanicSummary:
        """Personal summary for one mechanic; the degraded summary on any failure."""
        try:
            snapshot = await self._snapshot(MECHANIC_RESOURCES, authorization)
            return self.build_mechanic(snapshot, self._windows(), user_id)
        except Exception:
            self._log.exception(
                "Mechanic dashboard for %s failed, returning degraded summary", user_id,
            )
            return MechanicSummary(mechanic_id=str(user_id))

    def build_mechanic(
        self,
        snapshot: CollectionSnapshot,
        windows: TimeWindows,
        user_id: str | int,
    ) -> MechanicSummary:
        cfg = self._config
        payment_rows = snapshot[Resource.PAYMENTS]
        part_rows = snapshot[Resource.PARTS]
        moto_rows = snapshot[Resource.MOTORCYCLES]
        service_rows = snapshot[Resource.SERVICES]
        own_orders = assigned_to(snapshot[Resource.WORK_ORDERS], user_id)
        billing = BillingIndex(payment_rows)
        defaults = MechanicSummary.model_fields

        def section(name: str, compute: Callable[[], Any]) -> Any:
            return self._section("Mechanic", name, compute, defaults[name].default_factory)

        assigned = section(
            "assigned_orders",
            lambda: orders.assigned_orders(own_orders, billing, windows),
        )
        stock = section(
            "stock_alerts",
            lambda: inventory.stock_alerts(
                part_rows,
                low_limit=cfg.low_stock_display_limit,
                out_limit=cfg.out_of_stock_display_limit,
                default_minimum=cfg.default_minimum_stock,
            ),
        )

        return MechanicSummary(
            mechanic_id=str(user_id),
            assigned_orders=assigned,
            order_stats=section(
                "order_stats",
                lambda: productivity.mechanic_order_stats(own_orders, billing, windows),
            ),
            state_distribution=section(
                "state_distribution",
                lambda: orders.state_distribution(own_orders, billing),
            ),
            stock_alerts=stock,
            recent_motorcycles=section(
                "recent_motorcycles",
                lambda: motorcycles.recently_modified(
                    moto_rows,
                    windows,
                    days=cfg.recently_modified_days,
                    limit=cfg.recent_motorcycles_limit,
                ),
            ),
            reference_services=section(
                "reference_services",
                lambda: popularity.reference_services(
                    service_rows, limit=cfg.reference_services_limit,
                ),
            ),
            productivity=section(
                "productivity",
                lambda: productivity.mechanic_productivity(
                    own_orders,
                    billing,
                    windows,
                    days=cfg.productivity_window_days,
                    dead_band=cfg.trend_dead_band_pct,
                ),
            ),
            critical_alerts=section(
                "critical_alerts",
                lambda: orders.critical_alerts(assigned, stock),
            ),
        )
