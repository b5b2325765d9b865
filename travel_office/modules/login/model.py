# travel_office/modules/login/model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ...database.repositories.users_repo import User
from ...enums import UserRole


@dataclass(frozen=True)
class UserSession:
    """
    App-facing user object (no secrets).

    Built from a User on successful login; carries what page guards need.
    """
    user_id: int
    username: str
    full_name: str
    role: UserRole = UserRole.EMPLOYEE
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, u: User) -> "UserSession":
        return cls(
            user_id=int(u.user_id or 0),
            username=u.username,
            full_name=u.full_name,
            role=UserRole(u.role),
            permissions=frozenset(u.permissions),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
