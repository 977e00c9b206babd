"""Tests for the fetch orchestrator and its retry policy."""

import asyncio
import logging

import httpx
import pytest

from src.config.settings import DEFAULT_RESOURCE_ENDPOINTS, Settings
from src.dashboard.fetch import (
    CollectionSnapshot,
    FetchOrchestrator,
    RetryPolicy,
    build_client,
    extract_records,
    is_forbidden,
)
from src.models.common import Resource


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Recorder:
    """MockTransport handler that answers from a per-path script."""

    def __init__(self, script: dict[str, list]) -> None:
        self.script = script
        self.calls: dict[str, int] = {}
        self.headers: list[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] = self.calls.get(path, 0) + 1
        self.headers.append(request.headers)
        answers = self.script.get(path, [[]])
        answer = answers[min(self.calls[path], len(answers)) - 1]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, int):
            return httpx.Response(answer)
        if isinstance(answer, bytes):
            return httpx.Response(200, content=answer)
        return httpx.Response(200, json=answer)


class _SleepLog:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _orchestrator(recorder: _Recorder, sleep: _SleepLog | None = None) -> FetchOrchestrator:
    client = httpx.AsyncClient(
        base_url="http://backend.test",
        transport=httpx.MockTransport(recorder),
    )
    return FetchOrchestrator(
        client,
        DEFAULT_RESOURCE_ENDPOINTS,
        policy=RetryPolicy(max_attempts=2, delay_s=1.0),
        sleep=sleep or _SleepLog(),
    )


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://backend.test/clients")
    return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))


# ===================================================================
# Retry policy
# ===================================================================


class TestRetryPolicy:
    @pytest.mark.anyio
    async def test_returns_first_success(self) -> None:
        calls = []

        async def op() -> str:
            calls.append(1)
            return "ok"

        assert await RetryPolicy().run(op, sleep=_SleepLog()) == "ok"
        assert len(calls) == 1

    @pytest.mark.anyio
    async def test_retries_retryable_then_raises(self) -> None:
        calls = []
        sleep = _SleepLog()

        async def op() -> str:
            calls.append(1)
            raise _status_error(403)

        with pytest.raises(httpx.HTTPStatusError):
            await RetryPolicy(max_attempts=2, delay_s=1.0).run(op, sleep=sleep)
        assert len(calls) == 2
        assert sleep.delays == [1.0]

    @pytest.mark.anyio
    async def test_non_retryable_raises_immediately(self) -> None:
        calls = []

        async def op() -> str:
            calls.append(1)
            raise _status_error(500)

        with pytest.raises(httpx.HTTPStatusError):
            await RetryPolicy(max_attempts=3).run(op, sleep=_SleepLog())
        assert len(calls) == 1

    @pytest.mark.anyio
    async def test_recovers_on_second_attempt(self) -> None:
        attempts = iter([_status_error(403), None])
        retried: list[int] = []

        async def op() -> str:
            exc = next(attempts)
            if exc is not None:
                raise exc
            return "ok"

        result = await RetryPolicy().run(
            op, sleep=_SleepLog(), on_retry=lambda n, exc: retried.append(n),
        )
        assert result == "ok"
        assert retried == [1]

    def test_from_settings(self) -> None:
        policy = RetryPolicy.from_settings(
            Settings(FORBIDDEN_MAX_RETRIES=2, FORBIDDEN_RETRY_DELAY_S=0.5),
        )
        assert policy.max_attempts == 3
        assert policy.delay_s == 0.5

    def test_is_forbidden(self) -> None:
        assert is_forbidden(_status_error(403))
        assert not is_forbidden(_status_error(401))
        assert not is_forbidden(ValueError())


# ===================================================================
# Body extraction
# ===================================================================


class TestExtractRecords:
    def test_plain_list(self) -> None:
        assert extract_records([{"id": 1}, 5]) == [{"id": 1}]

    @pytest.mark.parametrize("key", ["content", "data", "items", "results"])
    def test_envelopes(self, key: str) -> None:
        assert extract_records({key: [{"id": 1}], "total": 1}) == [{"id": 1}]

    def test_non_collection(self) -> None:
        assert extract_records({"message": "hi"}) is None
        assert extract_records("hi") is None
        assert extract_records(None) is None


# ===================================================================
# Orchestrator
# ===================================================================


class TestFetch:
    @pytest.mark.anyio
    async def test_forbidden_twice_is_retried_exactly_once(self, caplog) -> None:
        recorder = _Recorder({"/clients": [403, 403]})
        sleep = _SleepLog()
        orchestrator = _orchestrator(recorder, sleep)

        with caplog.at_level(logging.WARNING, logger="src.dashboard.fetch"):
            rows = await orchestrator.fetch(Resource.CLIENTS)

        assert rows is None
        assert recorder.calls["/clients"] == 2
        assert sleep.delays == [1.0]
        assert "retrying" in caplog.text
        assert "still forbidden" in caplog.text

    @pytest.mark.anyio
    async def test_forbidden_then_ok(self) -> None:
        recorder = _Recorder({"/clients": [403, [{"idCliente": 1}]]})
        rows = await _orchestrator(recorder).fetch(Resource.CLIENTS)
        assert rows == [{"idCliente": 1}]
        assert recorder.calls["/clients"] == 2

    @pytest.mark.anyio
    async def test_server_error_not_retried(self, caplog) -> None:
        recorder = _Recorder({"/payments": [500, [{"id": 1}]]})
        sleep = _SleepLog()

        with caplog.at_level(logging.WARNING, logger="src.dashboard.fetch"):
            rows = await _orchestrator(recorder, sleep).fetch(Resource.PAYMENTS)

        assert rows is None
        assert recorder.calls["/payments"] == 1
        assert sleep.delays == []
        assert "HTTP 500" in caplog.text

    @pytest.mark.anyio
    async def test_network_error(self) -> None:
        request = httpx.Request("GET", "http://backend.test/parts")
        recorder = _Recorder({"/parts": [httpx.ConnectError("down", request=request)]})
        assert await _orchestrator(recorder).fetch(Resource.PARTS) is None
        assert recorder.calls["/parts"] == 1

    @pytest.mark.anyio
    async def test_invalid_json(self) -> None:
        recorder = _Recorder({"/users": [b"<html>oops</html>"]})
        assert await _orchestrator(recorder).fetch(Resource.USERS) is None

    @pytest.mark.anyio
    async def test_non_collection_body(self) -> None:
        recorder = _Recorder({"/users": [{"message": "ok"}]})
        assert await _orchestrator(recorder).fetch(Resource.USERS) is None


class TestFetchAll:
    @pytest.mark.anyio
    async def test_every_resource_populated(self) -> None:
        recorder = _Recorder({
            "/work-orders": [[{"idOrden": 1}]],
            "/clients": [403, 403],
            "/payments": [500],
            "/services": [{"content": [{"idServicio": 1}]}],
        })
        wanted = [Resource.WORK_ORDERS, Resource.CLIENTS, Resource.PAYMENTS, Resource.SERVICES]
        snapshot = await _orchestrator(recorder).fetch_all(wanted)

        assert set(snapshot.collections) == set(wanted)
        assert snapshot[Resource.WORK_ORDERS] == ({"idOrden": 1},)
        assert snapshot[Resource.CLIENTS] == ()
        assert snapshot[Resource.PAYMENTS] == ()
        assert snapshot[Resource.SERVICES] == ({"idServicio": 1},)
        assert snapshot.unavailable == frozenset({Resource.CLIENTS, Resource.PAYMENTS})

    @pytest.mark.anyio
    async def test_duplicates_fetched_once(self) -> None:
        recorder = _Recorder({})
        await _orchestrator(recorder).fetch_all([Resource.PARTS, Resource.PARTS])
        assert recorder.calls["/parts"] == 1

    @pytest.mark.anyio
    async def test_retry_delay_does_not_block_other_resources(self) -> None:
        # The retry delay only ends once /parts has been fetched.
        gate = asyncio.Event()
        seen: list[str] = []

        async def gated_sleep(_: float) -> None:
            await gate.wait()

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path == "/clients":
                if seen.count("/clients") == 1:
                    return httpx.Response(403)
                return httpx.Response(200, json=[{"idCliente": 1}])
            gate.set()
            return httpx.Response(200, json=[])

        client = httpx.AsyncClient(base_url="http://backend.test", transport=httpx.MockTransport(handler))
        orchestrator = FetchOrchestrator(client, DEFAULT_RESOURCE_ENDPOINTS, sleep=gated_sleep)
        snapshot = await asyncio.wait_for(
            orchestrator.fetch_all([Resource.CLIENTS, Resource.PARTS]), timeout=5,
        )

        assert snapshot[Resource.CLIENTS] == ({"idCliente": 1},)
        assert seen.count("/clients") == 2
        assert seen.count("/parts") == 1

    def test_snapshot_is_read_only(self) -> None:
        snapshot = CollectionSnapshot.build({Resource.PARTS: [{"id": 1}]})
        with pytest.raises(TypeError):
            snapshot.collections[Resource.PARTS] = ()  # type: ignore[index]
        assert snapshot[Resource.USERS] == ()
        assert snapshot.sizes() == {"parts": 1}


# ===================================================================
# Client construction
# ===================================================================


class TestBuildClient:
    def test_service_token(self) -> None:
        client = build_client(Settings(API_TOKEN="abc"))
        assert client.headers["Authorization"] == "Bearer abc"
        assert client.timeout.read == 10.0

    def test_forwarded_authorization_wins(self) -> None:
        client = build_client(Settings(API_TOKEN="abc"), authorization="Bearer user")
        assert client.headers["Authorization"] == "Bearer user"

    def test_no_token(self) -> None:
        client = build_client(Settings(API_TOKEN=""))
        assert "Authorization" not in client.headers
