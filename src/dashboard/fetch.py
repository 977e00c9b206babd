"""Fetch orchestrator: concurrent reads of the backend collections.

One GET per resource, all issued at once on the event loop. Each resource
is independent: a 403 is retried after a fixed delay (authorisation is
sometimes still propagating right after login), every other failure
degrades that resource to an empty collection immediately, and nothing
propagates to the caller. The result is always fully populated for every
requested resource.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeVar

import httpx

from src.config.settings import Settings
from src.dashboard.fields import as_records
from src.models.common import Resource

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]

# Wrapper keys under which list endpoints sometimes nest their rows.
_ENVELOPE_KEYS = ("content", "data", "items", "results")


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


def is_forbidden(exc: BaseException) -> bool:
    """True for an HTTP 403 response."""
    return (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code == httpx.codes.FORBIDDEN
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async operation a bounded number of times with a fixed delay.

    Only exceptions accepted by ``retryable`` are retried; anything else,
    or a retryable failure on the last attempt, is re-raised.
    """

    max_attempts: int = 2
    delay_s: float = 1.0
    retryable: Callable[[BaseException], bool] = is_forbidden

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.FORBIDDEN_MAX_RETRIES + 1,
            delay_s=settings.FORBIDDEN_RETRY_DELAY_S,
        )

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        sleep: Sleep = asyncio.sleep,
        on_retry: Callable[[int, Exception], None] | None = None,
    ) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self.max_attempts or not self.retryable(exc):
                    raise
                if on_retry is not None:
                    on_retry(attempt, exc)
                await sleep(self.delay_s)
                attempt += 1


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollectionSnapshot:
    """Read-only view of the collections fetched for one report cycle."""

    collections: Mapping[Resource, tuple[dict, ...]] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    unavailable: frozenset[Resource] = frozenset()

    @classmethod
    def build(
        cls,
        collections: Mapping[Resource, Iterable[dict]],
        unavailable: Iterable[Resource] = (),
    ) -> CollectionSnapshot:
        frozen = {Resource(name): tuple(rows) for name, rows in collections.items()}
        return cls(
            collections=MappingProxyType(frozen),
            unavailable=frozenset(unavailable),
        )

    def __getitem__(self, resource: Resource) -> tuple[dict, ...]:
        return self.collections.get(resource, ())

    def sizes(self) -> dict[str, int]:
        return {str(name): len(rows) for name, rows in self.collections.items()}


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def build_client(
    settings: Settings,
    *,
    authorization: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """AsyncClient for the workshop backend with the configured timeout.

    ``authorization`` is a full header value forwarded from the caller;
    without it the configured ``API_TOKEN`` is sent as a bearer token.
    """
    headers = {"Accept": "application/json"}
    if authorization:
        headers["Authorization"] = authorization
    elif settings.API_TOKEN:
        headers["Authorization"] = f"Bearer {settings.API_TOKEN}"

    return httpx.AsyncClient(
        base_url=settings.API_BASE_URL,
        headers=headers,
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT_S),
        transport=transport,
    )


def extract_records(body: Any) -> list[dict] | None:
    """Rows of a list endpoint body; ``None`` when the body has no list."""
    if isinstance(body, list):
        return as_records(body)
    if isinstance(body, dict):
        for key in _ENVELOPE_KEYS:
            if isinstance(body.get(key), list):
                return as_records(body[key])
    return None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class FetchOrchestrator:
    """Fetch several resource collections concurrently with per-resource fallback."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: Mapping[str, str],
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._endpoints = endpoints
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._log = log or logger

    async def fetch(self, resource: Resource) -> list[dict] | None:
        """Fetch one collection; ``None`` means the resource is unavailable."""
        endpoint = self._endpoints[resource.value]

        async def _get() -> httpx.Response:
            response = await self._client.get(endpoint)
            response.raise_for_status()
            return response

        def _on_retry(attempt: int, exc: Exception) -> None:
            self._log.warning(
                "Fetch %s (%s): attempt %d forbidden, retrying in %.1fs",
                resource.value, endpoint, attempt, self._policy.delay_s,
            )

        try:
            response = await self._policy.run(_get, sleep=self._sleep, on_retry=_on_retry)
            body = response.json()
        except httpx.HTTPStatusError as exc:
            if is_forbidden(exc):
                self._log.warning(
                    "Fetch %s (%s): still forbidden after %d attempts, using empty collection",
                    resource.value, endpoint, self._policy.max_attempts,
                )
            else:
                self._log.warning(
                    "Fetch %s (%s): HTTP %d, using empty collection",
                    resource.value, endpoint, exc.response.status_code,
                )
            return None
        except httpx.HTTPError as exc:
            self._log.warning(
                "Fetch %s (%s): %s, using empty collection",
                resource.value, endpoint, type(exc).__name__,
            )
            return None
        except ValueError:
            self._log.warning(
                "Fetch %s (%s): response is not JSON, using empty collection",
                resource.value, endpoint,
            )
            return None
        except Exception:
            self._log.exception(
                "Fetch %s (%s): unexpected failure, using empty collection",
                resource.value, endpoint,
            )
            return None

        records = extract_records(body)
        if records is None:
            self._log.warning(
                "Fetch %s (%s): body is not a collection, using empty collection",
                resource.value, endpoint,
            )
            return None
        return records

    async def fetch_all(self, resources: Iterable[Resource]) -> CollectionSnapshot:
        """Fetch every requested resource concurrently and wait for all of them."""
        wanted = list(dict.fromkeys(resources))
        results = await asyncio.gather(*(self.fetch(resource) for resource in wanted))

        unavailable = [r for r, rows in zip(wanted, results) if rows is None]
        snapshot = CollectionSnapshot.build(
            {r: rows or [] for r, rows in zip(wanted, results)},
            unavailable,
        )
        self._log.info(
            "Fetched collections %s (unavailable: %s)",
            snapshot.sizes(), sorted(r.value for r in unavailable) or "none",
        )
        return snapshot
