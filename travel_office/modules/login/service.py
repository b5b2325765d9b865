# travel_office/modules/login/service.py
"""
Login and page permissions.

Passwords are bcrypt hashes (utils.auth). A successful login on a hash below
the current cost policy re-hashes the password transparently.

Pages are plain string keys. Admins reach every page; everybody reaches the
pages in ALWAYS_ALLOWED; any other page must be listed in the user's
permissions.

User admin keeps at least one active Admin: the last one cannot lose that
role or be removed. Every account change writes an audit entry.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from typing import List, Optional

from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.users_repo import User, UsersRepo
from ...enums import EntityType, UserRole
from ...errors import NotFoundError, ValidationError
from ...utils.auth import hash_password, needs_rehash, verify_password
from .model import UserSession

_log = logging.getLogger(__name__)

PAGES = (
    "dashboard", "bookings", "itineraries", "clients", "agents", "expenses", "treasury",
    "tasks", "audit_log", "inventory", "reports", "users", "ai_advisor",
    "exchange_rates", "profile", "settings",
)
ALWAYS_ALLOWED = frozenset({"dashboard", "profile", "settings"})


def can_access(user: Optional[UserSession], page: str) -> bool:
    if user is None:
        return False
    if user.is_admin:
        return True
    return page in ALWAYS_ALLOWED or page in user.permissions


class AuthService:
    """
    Public attrs (set after each authenticate()):
      - last_error_code: str | None   ("empty_fields", "user_not_found", "user_inactive", "wrong_password")
    """

    def __init__(self, conn: sqlite3.Connection, *, user: Optional[str] = None) -> None:
        self.conn = conn
        self.user = user
        self.repo = UsersRepo(conn)
        self.audit = AuditRepo(conn)
        self.last_error_code: Optional[str] = None

    def _log_audit(self, action: str, details: str, performed_by: Optional[str] = None) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, EntityType.SYSTEM, performed_by or self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def _fail(self, code: str, username: str) -> None:
        self.last_error_code = code
        _log.info("login failed for %r: %s", username, code)

    def authenticate(self, username: str, password: str) -> Optional[UserSession]:
        """Return a session on success, None otherwise (see last_error_code)."""
        self.last_error_code = None
        name = (username or "").strip()
        if not name or not password:
            self._fail("empty_fields", name)
            return None

        user = self.repo.get_by_username(name)
        if user is None:
            self._fail("user_not_found", name)
            return None
        if not user.is_active:
            self._fail("user_inactive", name)
            return None

        stored = self.repo.get_password_hash(name)
        if not verify_password(password, stored):
            self._fail("wrong_password", name)
            return None

        if needs_rehash(stored):
            with self.conn:
                self.repo.set_password_hash(name, hash_password(password))

        self._log_audit("LOGIN", f"User {name} logged in", name)
        return UserSession.from_user(user)

    @staticmethod
    def _check_pages(permissions) -> list:
        pages = list(permissions or [])
        unknown = set(pages) - set(PAGES)
        if unknown:
            raise ValidationError(f"Unknown pages: {', '.join(sorted(unknown))}")
        return pages

    @staticmethod
    def _parse_role(role) -> UserRole:
        try:
            return UserRole(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role!r}") from None

    def _get(self, username: str) -> User:
        user = self.repo.get_by_username(username)
        if user is None:
            raise NotFoundError(f"User {username} does not exist.")
        return user

    def _keeps_an_admin(self, before: User, after: Optional[User]) -> None:
        # the last active admin must stay one
        was_admin = before.is_active and before.role == UserRole.ADMIN
        still_admin = after is not None and after.is_active and after.role == UserRole.ADMIN
        if was_admin and not still_admin and self.repo.count_active_admins() <= 1:
            raise ValidationError("At least one active admin account is required.")

    def list_users(self) -> List[User]:
        return self.repo.list_users()

    def create_user(
        self,
        username: str,
        password: str,
        full_name: str,
        role: UserRole = UserRole.EMPLOYEE,
        permissions: Optional[list] = None,
    ) -> User:
        pages = self._check_pages(permissions)
        if not password:
            raise ValidationError("Password cannot be empty.")
        user = User(username=(username or "").strip(), full_name=full_name, role=self._parse_role(role), permissions=pages)
        with self.conn:
            self.repo.create(user, hash_password(password))
        self._log_audit("ADD_USER", f"New user: {user.username}")
        return user

    def update_user(
        self,
        username: str,
        *,
        full_name: Optional[str] = None,
        role: UserRole | str | None = None,
        permissions: Optional[list] = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """Change profile, role, page permissions or the active flag. None leaves a field as is."""
        current = self._get(username)
        changes = {}
        if full_name is not None:
            if not full_name.strip():
                raise ValidationError("Full name cannot be empty.")
            changes["full_name"] = full_name.strip()
        if role is not None:
            changes["role"] = self._parse_role(role)
        if permissions is not None:
            changes["permissions"] = self._check_pages(permissions)
        if is_active is not None:
            changes["is_active"] = bool(is_active)
        updated = replace(current, **changes)
        self._keeps_an_admin(current, updated)
        with self.conn:
            self.repo.update(updated)
        self._log_audit("UPDATE_USER", f"User updated: {username} ({', '.join(sorted(changes)) or 'no changes'})")
        return updated

    def deactivate_user(self, username: str) -> User:
        return self.update_user(username, is_active=False)

    def delete_user(self, username: str) -> None:
        current = self._get(username)
        if self.user and username == self.user:
            raise ValidationError("You cannot delete your own account.")
        self._keeps_an_admin(current, None)
        with self.conn:
            self.repo.delete(username)
        self._log_audit("DELETE_USER", f"User deleted: {username}")

    def change_password(self, username: str, old_password: str, new_password: str) -> bool:
        if not verify_password(old_password, self.repo.get_password_hash(username)):
            return False
        if not new_password:
            raise ValidationError("Password cannot be empty.")
        with self.conn:
            self.repo.set_password_hash(username, hash_password(new_password))
        self._log_audit("CHANGE_PASSWORD", f"Password changed for {username}", username)
        return True
