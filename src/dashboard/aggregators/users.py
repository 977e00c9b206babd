"""Staff breakdown by role."""

from __future__ import annotations

from collections.abc import Sequence

from src.dashboard.fields import Record, is_active, user_role
from src.models.common import UserRole
from src.models.summary import UserSummary, empty_role_distribution


def mechanics(users: Sequence[Record]) -> list[Record]:
    """Active users with the mechanic role."""
    return [u for u in users if user_role(u) == UserRole.MECHANIC and is_active(u)]


def user_summary(users: Sequence[Record]) -> UserSummary:
    distribution = empty_role_distribution()
    for user in users:
        role = user_role(user)
        if role.value in distribution:
            distribution[role.value] += 1

    return UserSummary(
        total_users=len(users),
        admins=distribution[UserRole.ADMIN.value],
        receptionists=distribution[UserRole.RECEPTIONIST.value],
        mechanics=distribution[UserRole.MECHANIC.value],
        active_users=sum(1 for u in users if is_active(u)),
        role_distribution=distribution,
    )
