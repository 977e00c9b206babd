"""Entity correlator: best-effort joins across loosely-keyed collections.

The backend does not guarantee a relational contract between collections:
an order may point at its client through ``idCliente``, ``clienteId``, a
nested ``cliente`` object, a national-ID string, or only indirectly through
its motorcycle. Each side of a relationship is therefore described by a
:class:`KeySpec` (a list of candidate identifier fields), and two records
correlate iff their candidate identifier sets intersect when compared as
strings.

The derived "billed" state of an order lives here too (:class:`BillingIndex`)
so that every aggregator reads the same answer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.dashboard.fields import Record, get_path, order_state
from src.models.common import OrderState


def _key(value: Any) -> str | None:
    """Canonical string form of an identifier value."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


@dataclass(frozen=True)
class KeySpec:
    """Candidate identifier fields for one side of a soft relationship.

    ``paths`` are dotted field paths whose value is an identifier or a list
    of identifiers. ``nested`` pairs a path to a list of sub-records with the
    identifier paths to read inside each sub-record.
    """

    name: str
    paths: tuple[str, ...]
    nested: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def candidates(self, record: Any) -> frozenset[str]:
        """All identifier candidates a record exposes for this relationship."""
        keys: set[str] = set()
        for path in self.paths:
            _collect(keys, get_path(record, path))
        for list_path, item_paths in self.nested:
            items = get_path(record, list_path)
            if not isinstance(items, list):
                continue
            for item in items:
                for item_path in item_paths:
                    _collect(keys, get_path(item, item_path))
        return frozenset(keys)


def _collect(keys: set[str], value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            key = _key(item)
            if key is not None:
                keys.add(key)
        return
    key = _key(value)
    if key is not None:
        keys.add(key)


KeyFunction = Callable[[Record], frozenset[str]]


def _as_key_function(keys: KeySpec | KeyFunction) -> KeyFunction:
    return keys.candidates if isinstance(keys, KeySpec) else keys


# ---------------------------------------------------------------------------
# Relationship catalogue
# ---------------------------------------------------------------------------

CLIENT_ID = KeySpec("client", ("idCliente", "id", "dni"))
ORDER_CLIENT = KeySpec("order.client", (
    "idCliente",
    "clienteId",
    "cliente.id",
    "cliente.idCliente",
    "cliente.dni",
    "dniCliente",
    "moto.cliente.idCliente",
    "moto.cliente.id",
    "moto.idCliente",
))

MOTORCYCLE_ID = KeySpec("motorcycle", ("idMoto", "id"))
ORDER_MOTORCYCLE = KeySpec("order.motorcycle", ("idMoto", "motoId", "moto.idMoto", "moto.id"))
MOTORCYCLE_CLIENT = KeySpec("motorcycle.client", (
    "idCliente",
    "clienteId",
    "cliente.idCliente",
    "cliente.id",
    "cliente.dni",
))

ORDER_ID = KeySpec("order", ("idOrden", "id", "numeroOrden", "orderNumber"))
PAYMENT_ORDER = KeySpec("payment.order", (
    "numeroOrden",
    "ordenTrabajoId",
    "idOrden",
    "ordenId",
    "orderId",
    "orderNumber",
    "workOrderId",
    "ordenTrabajo.idOrden",
    "ordenTrabajo.numeroOrden",
    "ordenTrabajo.id",
))

USER_ID = KeySpec("user", ("idUsuario", "id"))
ORDER_MECHANIC = KeySpec("order.mechanic", (
    "idMecanicoAsignado",
    "mecanicoAsignadoId",
    "mecanicoId",
    "mechanicId",
    "mecanicoAsignado.idUsuario",
    "mecanicoAsignado.id",
))

SERVICE_ID = KeySpec("service", ("idServicio", "id"))
ORDER_SERVICE = KeySpec(
    "order.service",
    ("servicioId", "idServicio", "servicio.idServicio", "servicio.id", "serviciosIds"),
    nested=(
        ("servicios", ("idServicio", "id", "servicio.idServicio", "servicio.id")),
        ("detalles", ("idServicio", "servicio.idServicio", "servicio.id")),
        ("detallesOrden", ("idServicio", "servicio.idServicio", "servicio.id")),
    ),
)


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


class KeyIndex:
    """Inverted index from candidate identifier to records."""

    def __init__(self, records: Iterable[Record], keys: KeySpec | KeyFunction) -> None:
        key_fn = _as_key_function(keys)
        self._records: list[Record] = list(records)
        self._index: dict[str, list[int]] = {}
        for position, record in enumerate(self._records):
            for key in key_fn(record):
                self._index.setdefault(key, []).append(position)

    def lookup(self, keys: Iterable[str]) -> list[Record]:
        """Records matching any of ``keys``, in source order, without duplicates."""
        positions: set[int] = set()
        for key in keys:
            positions.update(self._index.get(key, ()))
        return [self._records[p] for p in sorted(positions)]


@dataclass(frozen=True)
class Correlation:
    """A primary record and the secondary records correlated with it."""

    record: Record
    matches: tuple[Record, ...] = ()

    @property
    def count(self) -> int:
        return len(self.matches)


def correlate(
    primary: Sequence[Record],
    secondary: Sequence[Record],
    *,
    primary_keys: KeySpec | KeyFunction,
    secondary_keys: KeySpec | KeyFunction,
) -> list[Correlation]:
    """Correlate every primary record with its matching secondary records."""
    index = KeyIndex(secondary, secondary_keys)
    key_fn = _as_key_function(primary_keys)
    return [
        Correlation(record=record, matches=tuple(index.lookup(key_fn(record))))
        for record in primary
    ]


def order_client_keys(motorcycles: Sequence[Record]) -> KeyFunction:
    """Client candidates of an order, including those reachable via its motorcycle."""
    moto_index = KeyIndex(motorcycles, MOTORCYCLE_ID)

    def keys(order: Record) -> frozenset[str]:
        direct = ORDER_CLIENT.candidates(order)
        via_moto = [
            MOTORCYCLE_CLIENT.candidates(moto)
            for moto in moto_index.lookup(ORDER_MOTORCYCLE.candidates(order))
        ]
        return direct.union(*via_moto)

    return keys


def assigned_to(orders: Sequence[Record], user_id: Any) -> list[Record]:
    """Orders whose assigned mechanic correlates with ``user_id``."""
    wanted = _key(user_id)
    if wanted is None:
        return []
    return [order for order in orders if wanted in ORDER_MECHANIC.candidates(order)]


# ---------------------------------------------------------------------------
# Ranking with an explicit synthetic fallback
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ranking:
    """Top-N records by correlation count.

    ``synthetic`` is True when no real correlation existed and placeholder
    counts were substituted; such counts carry no information.
    """

    entries: list[tuple[Record, int]] = field(default_factory=list)
    synthetic: bool = False


def synthetic_counts(size: int) -> list[int]:
    """Deterministic decreasing placeholder counts (``size, size-1, ..., 1``)."""
    return [max(1, size - position) for position in range(size)]


def rank_correlated(
    primary: Sequence[Record],
    secondary: Sequence[Record],
    *,
    primary_keys: KeySpec | KeyFunction,
    secondary_keys: KeySpec | KeyFunction,
    limit: int,
    synthetic_fallback: bool = False,
) -> Ranking:
    """Rank primary records by how many secondary records correlate with them.

    Only records with at least one match are ranked. Ties keep source order.
    When nothing correlates at all and ``synthetic_fallback`` is enabled, the
    first ``limit`` primary records are returned with placeholder counts and
    the ranking is flagged synthetic.
    """
    correlations = correlate(
        primary,
        secondary,
        primary_keys=primary_keys,
        secondary_keys=secondary_keys,
    )
    matched = [c for c in correlations if c.count > 0]
    if matched:
        matched.sort(key=lambda c: c.count, reverse=True)
        return Ranking(entries=[(c.record, c.count) for c in matched[:limit]])

    if synthetic_fallback and primary and secondary:
        head = list(primary[:limit])
        return Ranking(
            entries=list(zip(head, synthetic_counts(len(head)))),
            synthetic=True,
        )
    return Ranking()


# ---------------------------------------------------------------------------
# Derived billing state
# ---------------------------------------------------------------------------


class BillingIndex:
    """Which orders are billed, derived from the payment collection.

    An order is billed iff some payment references one of its identifiers.
    A billed order is displayed as DELIVERED whatever its stored state,
    except that cancelled orders stay cancelled.
    """

    def __init__(self, payments: Iterable[Record]) -> None:
        referenced: set[str] = set()
        for payment in payments:
            referenced.update(PAYMENT_ORDER.candidates(payment))
        self._referenced = frozenset(referenced)

    def __len__(self) -> int:
        return len(self._referenced)

    def is_billed(self, order: Record) -> bool:
        return not self._referenced.isdisjoint(ORDER_ID.candidates(order))

    def effective_state(self, order: Mapping[str, Any]) -> OrderState:
        stored = order_state(order)
        if stored == OrderState.CANCELLED:
            return stored
        if self.is_billed(order):
            return OrderState.DELIVERED
        return stored
