"""Tests for the dashboard HTTP endpoints.

The dashboard service dependency is overridden with one wired to the fake
backend, so requests never leave the process.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_dashboard_service
from src.api.main import app


@pytest.fixture
async def client(make_service, backend) -> AsyncClient:
    app.dependency_overrides[get_dashboard_service] = lambda: make_service()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


def _seed(backend) -> None:
    backend.serve("/work-orders", [
        {"idOrden": 1, "numeroOrden": "OT-1", "estado": "RECIBIDA", "idMecanicoAsignado": 4},
        {"idOrden": 2, "numeroOrden": "OT-2", "estado": "COMPLETADA", "idMecanicoAsignado": 4},
        {"idOrden": 3, "numeroOrden": "OT-3", "estado": "CANCELADA"},
    ])
    backend.serve("/payments", [{"numeroOrden": "OT-2", "monto": 100}])


class TestReceptionistEndpoint:
    @pytest.mark.anyio
    async def test_camel_case_shape(self, client: AsyncClient, backend) -> None:
        _seed(backend)
        response = await client.get("/v1/dashboard/receptionist")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {
            "orderStats",
            "recentOrders",
            "clientSummary",
            "recentMotorcycles",
            "paymentSummary",
            "popularServices",
            "productivitySummary",
        }
        assert data["orderStats"]["total"] == 2
        assert data["orderStats"]["byState"]["DELIVERED"] == 1
        assert data["orderStats"]["awaitingBilling"] == 0
        assert data["paymentSummary"]["mostUsedMethod"] == "UNKNOWN"

    @pytest.mark.anyio
    async def test_authorization_header_forwarded(self, client: AsyncClient, backend) -> None:
        await client.get("/v1/dashboard/receptionist", headers={"Authorization": "Bearer abc"})
        assert backend.calls
        assert all(r.headers["Authorization"] == "Bearer abc" for r in backend.calls)

    @pytest.mark.anyio
    async def test_backend_down_still_200(self, client: AsyncClient, backend) -> None:
        backend.serve("/work-orders", 503)
        backend.serve("/clients", 403)
        response = await client.get("/v1/dashboard/receptionist")
        assert response.status_code == 200
        assert response.json()["clientSummary"]["frequentClients"] == []


class TestAdministratorEndpoint:
    @pytest.mark.anyio
    async def test_shape(self, client: AsyncClient, backend) -> None:
        _seed(backend)
        response = await client.get("/v1/dashboard/administrator")

        assert response.status_code == 200
        data = response.json()
        assert data["generalStats"]["totalOrders"] == 2
        assert data["financialSummary"]["amountAllTime"] == 100.0
        assert data["trends"]["direction"] == "neutral"
        assert data["stockAlerts"] == {
            "lowStock": [],
            "outOfStock": [],
            "totalLowStock": 0,
            "totalOutOfStock": 0,
        }


class TestMechanicEndpoint:
    @pytest.mark.anyio
    async def test_shape(self, client: AsyncClient, backend) -> None:
        _seed(backend)
        response = await client.get("/v1/dashboard/mechanic/4")

        assert response.status_code == 200
        data = response.json()
        assert data["mechanicId"] == "4"
        assert data["assignedOrders"]["totalAssigned"] == 2
        assert data["stateDistribution"]["DELIVERED"] == 1
        assert data["productivity"]["trend"]["direction"] == "neutral"

    @pytest.mark.anyio
    async def test_invalid_user_id(self, client: AsyncClient) -> None:
        response = await client.get("/v1/dashboard/mechanic/a%20b")
        assert response.status_code == 422
