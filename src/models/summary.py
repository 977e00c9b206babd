"""Fixed-shape dashboard summaries for the three workshop roles.

Every field has a zero/empty default, so ``ReceptionistSummary()`` (and
its siblings) is exactly the degraded response: consumers never need a
null check. Serialised keys are camelCase.

List fields that echo backend records (recent orders, ranked services,
stock alerts...) hold the raw record plus the derived keys documented on
each field.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from src.models.common import DashboardBase, OrderState, TrendDirection, UserRole

# States shown in the order-state tally (cancelled orders are excluded).
TALLY_STATES: tuple[OrderState, ...] = (
    OrderState.RECEIVED,
    OrderState.DIAGNOSED,
    OrderState.IN_PROGRESS,
    OrderState.COMPLETED,
    OrderState.DELIVERED,
    OrderState.UNKNOWN,
)

# States shown in a mechanic's distribution chart.
DISTRIBUTION_STATES: tuple[OrderState, ...] = (
    OrderState.RECEIVED,
    OrderState.DIAGNOSED,
    OrderState.IN_PROGRESS,
    OrderState.COMPLETED,
    OrderState.DELIVERED,
    OrderState.CANCELLED,
)

STAFF_ROLES: tuple[UserRole, ...] = (UserRole.ADMIN, UserRole.RECEPTIONIST, UserRole.MECHANIC)


def empty_state_tally() -> dict[str, int]:
    return {state.value: 0 for state in TALLY_STATES}


def empty_state_distribution() -> dict[str, int]:
    return {state.value: 0 for state in DISTRIBUTION_STATES}


def empty_role_distribution() -> dict[str, int]:
    return {role.value: 0 for role in STAFF_ROLES}


Records = list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Shared blocks
# ---------------------------------------------------------------------------


class StockAlerts(DashboardBase):
    """Active parts out of stock or at/below their minimum threshold.

    Lists are capped for display; totals are the true counts.
    """

    low_stock: Records = Field(default_factory=list)
    out_of_stock: Records = Field(default_factory=list)
    total_low_stock: int = 0
    total_out_of_stock: int = 0


class TrendDelta(DashboardBase):
    """Signed percentage change and its dead-band classification."""

    change_percent: float = 0.0
    direction: TrendDirection = TrendDirection.NEUTRAL


# ---------------------------------------------------------------------------
# Receptionist
# ---------------------------------------------------------------------------


class OrderStats(DashboardBase):
    """Active (non-cancelled) order counts with billing applied to ``by_state``."""

    total: int = 0
    new_today: int = 0
    this_week: int = 0
    this_month: int = 0
    by_state: dict[str, int] = Field(default_factory=empty_state_tally)
    billed: int = 0
    awaiting_billing: int = 0


class ClientSummary(DashboardBase):
    total: int = 0
    new_this_month: int = 0
    # Client records plus ``orderCount`` and ``isSynthetic``.
    frequent_clients: Records = Field(default_factory=list)
    recent_clients: Records = Field(default_factory=list)


class PaymentSummary(DashboardBase):
    total_payments: int = 0
    this_month: int = 0
    this_week: int = 0
    amount_this_month: float = 0.0
    amount_this_week: float = 0.0
    pending: int = 0
    most_used_method: str = "UNKNOWN"
    recent: Records = Field(default_factory=list)


class ReceptionProductivity(DashboardBase):
    orders_registered: int = 0
    clients_registered: int = 0
    payments_collected: int = 0
    avg_orders_per_day: float = 0.0
    avg_attention_time_days: float = 0.0


class ReceptionistSummary(DashboardBase):
    order_stats: OrderStats = Field(default_factory=OrderStats)
    # Order records plus ``daysElapsed``.
    recent_orders: Records = Field(default_factory=list)
    client_summary: ClientSummary = Field(default_factory=ClientSummary)
    # Motorcycle records plus ``daysSinceRegistered``.
    recent_motorcycles: Records = Field(default_factory=list)
    payment_summary: PaymentSummary = Field(default_factory=PaymentSummary)
    # Service records plus ``occurrenceCount``, numeric ``price`` and ``isSynthetic``.
    popular_services: Records = Field(default_factory=list)
    productivity_summary: ReceptionProductivity = Field(default_factory=ReceptionProductivity)


# ---------------------------------------------------------------------------
# Administrator
# ---------------------------------------------------------------------------


class GeneralStats(DashboardBase):
    total_orders: int = 0
    total_clients: int = 0
    total_motorcycles: int = 0
    total_users: int = 0
    new_today: int = 0
    new_clients_this_month: int = 0
    orders_this_month: int = 0


class FinancialSummary(DashboardBase):
    amount_all_time: float = 0.0
    amount_this_month: float = 0.0
    awaiting_billing: int = 0
    average_payment: float = 0.0
    payment_count: int = 0
    payments_this_month: int = 0


class UserSummary(DashboardBase):
    total_users: int = 0
    admins: int = 0
    receptionists: int = 0
    mechanics: int = 0
    active_users: int = 0
    role_distribution: dict[str, int] = Field(default_factory=empty_role_distribution)


class InventoryCategory(DashboardBase):
    name: str
    quantity: int = 0
    value: float = 0.0


class InventoryStatus(DashboardBase):
    total_parts: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    inventory_value: float = 0.0
    categories: list[InventoryCategory] = Field(default_factory=list)


class WorkshopProductivity(DashboardBase):
    completed_orders: int = 0
    avg_completion_days: float = 0.0
    total_mechanics: int = 0
    orders_in_progress: int = 0
    orders_per_mechanic: float = 0.0
    mechanic_efficiency: float = 0.0
    completion_rate_30_days: int = 0
    on_time_rate: int = 0


class TrendSummary(DashboardBase):
    monthly_growth_percent: float = 0.0
    orders_this_month: int = 0
    orders_last_month: int = 0
    direction: TrendDirection = TrendDirection.NEUTRAL


class AdministratorSummary(DashboardBase):
    general_stats: GeneralStats = Field(default_factory=GeneralStats)
    financial_summary: FinancialSummary = Field(default_factory=FinancialSummary)
    user_summary: UserSummary = Field(default_factory=UserSummary)
    inventory_status: InventoryStatus = Field(default_factory=InventoryStatus)
    stock_alerts: StockAlerts = Field(default_factory=StockAlerts)
    workshop_productivity: WorkshopProductivity = Field(default_factory=WorkshopProductivity)
    popular_services: Records = Field(default_factory=list)
    trends: TrendSummary = Field(default_factory=TrendSummary)


# ---------------------------------------------------------------------------
# Mechanic
# ---------------------------------------------------------------------------


class AssignedOrders(DashboardBase):
    pending: Records = Field(default_factory=list)
    in_progress: Records = Field(default_factory=list)
    urgent: Records = Field(default_factory=list)
    overdue: Records = Field(default_factory=list)
    total_assigned: int = 0


class MechanicOrderStats(DashboardBase):
    total_historic: int = 0
    completed_historic: int = 0
    orders_this_month: int = 0
    completed_this_month: int = 0
    completion_rate: int = 0
    completion_rate_this_month: int = 0


class MechanicProductivity(DashboardBase):
    orders_last_30_days: int = 0
    completed_last_30_days: int = 0
    completion_rate: int = 0
    on_time_rate: int = 0
    avg_orders_per_week: int = 0
    trend: TrendDelta = Field(default_factory=TrendDelta)


class CriticalAlerts(DashboardBase):
    overdue_orders: int = 0
    urgent_orders: int = 0
    out_of_stock_parts: int = 0
    has_alerts: bool = False


class MechanicSummary(DashboardBase):
    mechanic_id: str = "UNKNOWN"
    assigned_orders: AssignedOrders = Field(default_factory=AssignedOrders)
    order_stats: MechanicOrderStats = Field(default_factory=MechanicOrderStats)
    state_distribution: dict[str, int] = Field(default_factory=empty_state_distribution)
    stock_alerts: StockAlerts = Field(default_factory=StockAlerts)
    # Motorcycle records plus ``daysSinceModified``.
    recent_motorcycles: Records = Field(default_factory=list)
    reference_services: Records = Field(default_factory=list)
    productivity: MechanicProductivity = Field(default_factory=MechanicProductivity)
    critical_alerts: CriticalAlerts = Field(default_factory=CriticalAlerts)
