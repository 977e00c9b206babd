"""Drift-tolerant access to raw backend records.

Backend payloads are plain JSON objects whose field names vary between
endpoints and releases (Spanish DTO names, English names, nested objects).
Every helper here takes a list of candidate field paths in priority order
and never raises: absent or malformed values come back as ``None`` or the
documented default.
"""

from __future__ import annotations

import math
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time, tzinfo
from decimal import Decimal
from typing import Any

from src.models.common import OrderPriority, OrderState, PaymentStatus, UserRole

Record = Mapping[str, Any]

# ---------------------------------------------------------------------------
# Candidate field names, highest priority first
# ---------------------------------------------------------------------------

ORDER_CREATED_FIELDS = ("fechaCreacion", "fechaIngreso", "createdAt", "creationDate", "createdDate")
ORDER_ACTIVITY_FIELDS = ORDER_CREATED_FIELDS + ("fechaActualizacion", "updatedAt")
ORDER_COMPLETED_FIELDS = ("fechaCompletada", "fechaFinalizacion", "fechaCompletado", "completedAt", "completionDate")
ORDER_UPDATED_FIELDS = ("fechaActualizacion", "updatedAt")
ORDER_DEADLINE_FIELDS = ("fechaEstimadaEntrega", "fechaEntregaEstimada", "estimatedDelivery", "estimatedDeliveryDate")
ORDER_STATE_FIELDS = ("estado", "state", "status")
ORDER_PRIORITY_FIELDS = ("prioridad", "priority")

CLIENT_REGISTERED_FIELDS = ("fechaRegistro", "fechaCreacion", "fecha", "createdAt", "updatedAt")
MOTORCYCLE_REGISTERED_FIELDS = ("fechaRegistro", "fechaCreacion", "createdAt")
MOTORCYCLE_UPDATED_FIELDS = ("updatedAt", "fechaActualizacion")

PAYMENT_DATE_FIELDS = ("fechaPago", "fecha", "paymentDate", "createdAt")
PAYMENT_AMOUNT_FIELDS = ("monto", "amount", "total")
PAYMENT_METHOD_FIELDS = ("metodoPago", "metodo", "paymentMethod", "method")
PAYMENT_STATUS_FIELDS = ("estado", "status", "estadoPago")

SERVICE_PRICE_FIELDS = ("precio", "precioBase", "costo", "basePrice", "price")
SERVICE_CATEGORY_FIELDS = ("categoria", "category")

PART_STOCK_FIELDS = ("stockActual", "cantidadStock", "stock", "currentStock")
PART_MIN_STOCK_FIELDS = ("stockMinimo", "minimumStock", "minStock")
PART_PRICE_FIELDS = ("precioUnitario", "precio", "unitPrice", "price")
PART_CATEGORY_FIELDS = ("categoria", "category")

USER_ROLE_FIELDS = ("rol", "role")

ACTIVE_FIELDS = ("activo", "active", "enabled")

# ---------------------------------------------------------------------------
# Vocabulary normalisation (backend emits Spanish values)
# ---------------------------------------------------------------------------

_STATE_ALIASES: dict[str, OrderState] = {
    "RECIBIDA": OrderState.RECEIVED,
    "RECIBIDO": OrderState.RECEIVED,
    "DIAGNOSTICADA": OrderState.DIAGNOSED,
    "DIAGNOSTICADO": OrderState.DIAGNOSED,
    "EN_PROCESO": OrderState.IN_PROGRESS,
    "EN_PROGRESO": OrderState.IN_PROGRESS,
    "COMPLETADA": OrderState.COMPLETED,
    "COMPLETADO": OrderState.COMPLETED,
    "ENTREGADA": OrderState.DELIVERED,
    "ENTREGADO": OrderState.DELIVERED,
    "CANCELADA": OrderState.CANCELLED,
    "CANCELADO": OrderState.CANCELLED,
    "CANCELED": OrderState.CANCELLED,
}

_PRIORITY_ALIASES: dict[str, OrderPriority] = {
    "BAJA": OrderPriority.LOW,
    "MEDIA": OrderPriority.NORMAL,
    "ALTA": OrderPriority.HIGH,
    "URGENTE": OrderPriority.URGENT,
}

_ROLE_ALIASES: dict[str, UserRole] = {
    "ADMINISTRADOR": UserRole.ADMIN,
    "ADMINISTRATOR": UserRole.ADMIN,
    "RECEPCIONISTA": UserRole.RECEPTIONIST,
    "MECANICO": UserRole.MECHANIC,
}

_PAYMENT_STATUS_ALIASES: dict[str, PaymentStatus] = {
    "PENDIENTE": PaymentStatus.PENDING,
    "COMPLETADO": PaymentStatus.COMPLETE,
    "COMPLETADA": PaymentStatus.COMPLETE,
    "COMPLETED": PaymentStatus.COMPLETE,
    "PAGADO": PaymentStatus.COMPLETE,
    "PAID": PaymentStatus.COMPLETE,
}

_FALSE_STRINGS = frozenset({"false", "0", "no", "n", "inactive", "inactivo"})


# ---------------------------------------------------------------------------
# Raw access
# ---------------------------------------------------------------------------


def get_path(record: Any, path: str) -> Any:
    """Resolve a dotted path (``"cliente.id"``) against nested mappings."""
    current = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def first_present(record: Any, paths: Iterable[str]) -> Any:
    """Return the first non-blank value among candidate paths, else ``None``."""
    for path in paths:
        value = get_path(record, path)
        if not _is_blank(value):
            return value
    return None


def as_records(value: Any) -> list[dict]:
    """Keep only mapping items from a list-like value."""
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return []
    return [item for item in value if isinstance(item, dict)]


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON value to a finite float; ``default`` when impossible."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        text = value.strip().replace(" ", "")
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        else:
            text = text.replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def number_field(record: Any, paths: Iterable[str], default: float = 0.0) -> float:
    """Numeric value of the first present candidate field."""
    return to_number(first_present(record, paths), default)


def is_active(record: Any) -> bool:
    """Active flag; records that carry no flag count as active."""
    value = first_present(record, ACTIVE_FIELDS)
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def _from_parts(parts: Sequence[Any]) -> datetime | None:
    # Jackson without the JavaTime module serialises LocalDateTime as [y, m, d, H, M, S, ns].
    try:
        numbers = [int(p) for p in parts]
    except (TypeError, ValueError):
        return None
    if len(numbers) < 3:
        return None
    if len(numbers) > 6:
        numbers[6] = numbers[6] // 1000
    try:
        return datetime(*numbers[:7])
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any, tz: tzinfo) -> datetime | None:
    """Parse a backend timestamp into an aware datetime.

    Accepts ISO-8601 strings (with or without offset, date-only), epoch
    seconds or milliseconds, ``datetime``/``date`` objects and Jackson
    component arrays. Naive values are interpreted in ``tz``.
    """
    parsed: datetime | None
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > 100_000_000_000 else value
        try:
            return datetime.fromtimestamp(seconds, tz=tz)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    elif isinstance(value, Sequence):
        parsed = _from_parts(value)
    else:
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _is_date_only(value: Any) -> bool:
    if isinstance(value, str):
        return len(value.strip()) == 10
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return len(value) == 3
    return isinstance(value, date) and not isinstance(value, datetime)


def record_timestamp(record: Any, paths: Iterable[str], tz: tzinfo) -> datetime | None:
    """First candidate field that parses as a timestamp."""
    for path in paths:
        parsed = parse_timestamp(get_path(record, path), tz)
        if parsed is not None:
            return parsed
    return None


def record_deadline(record: Any, paths: Iterable[str], tz: tzinfo) -> datetime | None:
    """Like :func:`record_timestamp`, but a date-only deadline covers the whole day."""
    for path in paths:
        raw = get_path(record, path)
        parsed = parse_timestamp(raw, tz)
        if parsed is None:
            continue
        if _is_date_only(raw):
            return datetime.combine(parsed.date(), time.max, tzinfo=parsed.tzinfo)
        return parsed
    return None


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


def _token(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return folded.strip().upper().replace("-", "_").replace(" ", "_")


def normalise_state(value: Any) -> OrderState:
    """Map a raw state to :class:`OrderState`; blank means RECEIVED."""
    token = _token(value)
    if not token:
        return OrderState.RECEIVED
    if token in OrderState.__members__:
        return OrderState(token)
    return _STATE_ALIASES.get(token, OrderState.UNKNOWN)


def normalise_priority(value: Any) -> OrderPriority:
    token = _token(value)
    if token in OrderPriority.__members__:
        return OrderPriority(token)
    return _PRIORITY_ALIASES.get(token, OrderPriority.NORMAL)


def normalise_role(value: Any) -> UserRole:
    token = _token(value)
    if token.startswith("ROLE_"):
        token = token[len("ROLE_"):]
    if token in UserRole.__members__:
        return UserRole(token)
    return _ROLE_ALIASES.get(token, UserRole.UNKNOWN)


def normalise_payment_status(value: Any) -> PaymentStatus:
    token = _token(value)
    if token in PaymentStatus.__members__:
        return PaymentStatus(token)
    return _PAYMENT_STATUS_ALIASES.get(token, PaymentStatus.UNKNOWN)


def order_state(order: Any) -> OrderState:
    """Stored lifecycle state of an order."""
    return normalise_state(first_present(order, ORDER_STATE_FIELDS))


def order_priority(order: Any) -> OrderPriority:
    return normalise_priority(first_present(order, ORDER_PRIORITY_FIELDS))


def user_role(user: Any) -> UserRole:
    return normalise_role(first_present(user, USER_ROLE_FIELDS))


def payment_status(payment: Any) -> PaymentStatus:
    return normalise_payment_status(first_present(payment, PAYMENT_STATUS_FIELDS))
