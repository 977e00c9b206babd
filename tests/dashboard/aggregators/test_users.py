"""Tests for the staff role breakdown."""

from src.dashboard.aggregators.users import mechanics, user_summary


def _make_users() -> list[dict]:
    return [
        {"idUsuario": 1, "rol": "ADMIN", "activo": True},
        {"idUsuario": 2, "rol": "RECEPCIONISTA", "activo": True},
        {"idUsuario": 3, "rol": "MECANICO", "activo": True},
        {"idUsuario": 4, "rol": "ROLE_MECHANIC", "activo": False},
        {"idUsuario": 5, "role": "mecánico"},
        {"idUsuario": 6, "rol": "CLIENTE"},
    ]


class TestUserSummary:
    def test_role_counts(self) -> None:
        summary = user_summary(_make_users())
        assert summary.total_users == 6
        assert summary.admins == 1
        assert summary.receptionists == 1
        assert summary.mechanics == 3
        assert summary.active_users == 5
        assert summary.role_distribution == {"ADMIN": 1, "RECEPTIONIST": 1, "MECHANIC": 3}

    def test_empty(self) -> None:
        summary = user_summary([])
        assert summary.total_users == 0
        assert summary.role_distribution == {"ADMIN": 0, "RECEPTIONIST": 0, "MECHANIC": 0}

    def test_active_mechanics(self) -> None:
        assert [u["idUsuario"] for u in mechanics(_make_users())] == [3, 5]
