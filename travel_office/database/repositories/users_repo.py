from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional

from ...enums import UserRole
from ...errors import DomainError


@dataclass
class User:
    username: str
    full_name: str
    role: UserRole = UserRole.EMPLOYEE
    permissions: List[str] = field(default_factory=list)   # page keys
    is_active: bool = True
    user_id: int | None = None


class UsersRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    @staticmethod
    def _to_user(r: sqlite3.Row) -> User:
        return User(
            user_id=r["user_id"],
            username=r["username"],
            full_name=r["full_name"],
            role=UserRole(r["role"]),
            permissions=list(json.loads(r["permissions"] or "[]")),
            is_active=bool(r["is_active"]),
        )

    def get_by_username(self, username: str) -> Optional[User]:
        row = self.conn.execute("SELECT * FROM users WHERE username=?", (username,)).fetchone()
        return self._to_user(row) if row else None

    def get_password_hash(self, username: str) -> Optional[str]:
        row = self.conn.execute("SELECT password_hash FROM users WHERE username=?", (username,)).fetchone()
        return row["password_hash"] if row else None

    def list_users(self) -> List[User]:
        rows = self.conn.execute("SELECT * FROM users ORDER BY username").fetchall()
        return [self._to_user(r) for r in rows]

    def create(self, user: User, password_hash: str) -> int:
        if not user.username or not user.username.strip():
            raise DomainError("Username cannot be empty.")
        try:
            cur = self.conn.execute(
                """
                INSERT INTO users(username, password_hash, full_name, role, permissions, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user.username.strip(), password_hash, user.full_name, UserRole(user.role).value,
                    json.dumps(list(user.permissions)), 1 if user.is_active else 0,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DomainError(f"Username '{user.username}' is already taken.") from e
        user.user_id = int(cur.lastrowid)
        return user.user_id

    def update(self, user: User) -> None:
        self.conn.execute(
            "UPDATE users SET full_name=?, role=?, permissions=?, is_active=? WHERE username=?",
            (
                user.full_name, UserRole(user.role).value, json.dumps(list(user.permissions)),
                1 if user.is_active else 0, user.username,
            ),
        )

    def set_password_hash(self, username: str, password_hash: str) -> None:
        self.conn.execute("UPDATE users SET password_hash=? WHERE username=?", (password_hash, username))

    def count_active_admins(self) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM users WHERE role=? AND is_active=1", (UserRole.ADMIN.value,)
        ).fetchone()
        return int(row["n"])

    def delete(self, username: str) -> bool:
        cur = self.conn.execute("DELETE FROM users WHERE username=?", (username,))
        return cur.rowcount > 0
