"""Shared types, enums, and base models used across the dashboard models."""

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


# --- Shared enums ---


class Resource(StrEnum):
    """REST collections the dashboards read from."""

    WORK_ORDERS = "work_orders"
    CLIENTS = "clients"
    MOTORCYCLES = "motorcycles"
    PAYMENTS = "payments"
    SERVICES = "services"
    PARTS = "parts"
    USERS = "users"


class OrderState(StrEnum):
    """Work order lifecycle states."""

    RECEIVED = "RECEIVED"
    DIAGNOSED = "DIAGNOSED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


class OrderPriority(StrEnum):
    """Work order priority levels."""

    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class UserRole(StrEnum):
    """Workshop staff roles."""

    ADMIN = "ADMIN"
    RECEPTIONIST = "RECEPTIONIST"
    MECHANIC = "MECHANIC"
    UNKNOWN = "UNKNOWN"


class PaymentStatus(StrEnum):
    """Payment settlement status."""

    PENDING = "PENDING"
    COMPLETE = "COMPLETE"
    UNKNOWN = "UNKNOWN"


class TrendDirection(StrEnum):
    """Classification of a percentage change around a dead-band."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


# States that still require workshop action.
OPEN_STATES: frozenset[OrderState] = frozenset({
    OrderState.RECEIVED,
    OrderState.DIAGNOSED,
    OrderState.IN_PROGRESS,
})

# States in which the work itself is finished.
FINISHED_STATES: frozenset[OrderState] = frozenset({
    OrderState.COMPLETED,
    OrderState.DELIVERED,
})


# --- Base model ---


class DashboardBase(BaseModel):
    """Base model for every dashboard output; serialises with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
