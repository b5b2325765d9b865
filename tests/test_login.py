# tests/test_login.py
from __future__ import annotations

import pytest

from travel_office.constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from travel_office.database.repositories.audit_repo import AuditRepo
from travel_office.enums import UserRole
from travel_office.errors import DomainError, NotFoundError, ValidationError
from travel_office.modules.login import service as login_service
from travel_office.modules.login.model import UserSession
from travel_office.modules.login.service import AuthService, can_access
from travel_office.utils.auth import hash_password, needs_rehash, verify_password


@pytest.fixture(autouse=True)
def _fast_login_hashes(monkeypatch):
    monkeypatch.setattr(login_service, "hash_password", lambda pw: hash_password(pw, rounds=4))


@pytest.fixture()
def auth(conn) -> AuthService:
    return AuthService(conn)


def test_admin_logs_in_with_seeded_password(conn, auth):
    session = auth.authenticate(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    assert session is not None
    assert session.is_admin
    assert auth.last_error_code is None
    assert AuditRepo(conn).list_recent()[0]["action"] == "LOGIN"


@pytest.mark.parametrize(
    "username, password, code",
    [
        ("", "x", "empty_fields"),
        ("admin", "", "empty_fields"),
        ("ghost", "x", "user_not_found"),
        ("admin", "wrong", "wrong_password"),
    ],
)
def test_failed_logins_report_a_reason(auth, username, password, code):
    assert auth.authenticate(username, password) is None
    assert auth.last_error_code == code


def test_inactive_user_is_refused(auth):
    user = auth.create_user("rana", "s3cret", "Rana Aziz")
    user.is_active = False
    with auth.conn:
        auth.repo.update(user)
    assert auth.authenticate("rana", "s3cret") is None
    assert auth.last_error_code == "user_inactive"


def test_weak_hash_is_upgraded_on_login(monkeypatch, auth):
    monkeypatch.setattr(login_service, "hash_password", lambda pw: hash_password(pw, rounds=12))
    assert needs_rehash(auth.repo.get_password_hash("admin"))
    auth.authenticate("admin", DEFAULT_ADMIN_PASSWORD)
    stored = auth.repo.get_password_hash("admin")
    assert not needs_rehash(stored)
    assert verify_password(DEFAULT_ADMIN_PASSWORD, stored)


def test_create_user_validates_pages(auth):
    with pytest.raises(ValidationError):
        auth.create_user("sami", "pw", "Sami", permissions=["bookings", "payroll"])
    with pytest.raises(ValidationError):
        auth.create_user("sami", "", "Sami")
    auth.create_user("sami", "pw", "Sami", permissions=["bookings"])
    with pytest.raises(DomainError):
        auth.create_user("sami", "pw2", "Sami again")


def test_change_password(auth):
    auth.create_user("huda", "old-pw", "Huda")
    assert auth.change_password("huda", "nope", "new-pw") is False
    assert auth.change_password("huda", "old-pw", "new-pw") is True
    assert auth.authenticate("huda", "new-pw") is not None


def test_page_access_rules():
    admin = UserSession(1, "admin", "Admin", role=UserRole.ADMIN)
    clerk = UserSession(2, "clerk", "Clerk", permissions=frozenset({"bookings", "clients"}))
    assert can_access(admin, "users")
    assert can_access(clerk, "bookings")
    assert can_access(clerk, "dashboard") and can_access(clerk, "settings")
    assert not can_access(clerk, "treasury")
    assert not can_access(None, "dashboard")


def test_session_from_created_user(auth):
    user = auth.create_user("lama", "pw", "Lama", permissions=["reports"])
    session = auth.authenticate("lama", "pw")
    assert session.username == "lama"
    assert session.user_id == user.user_id
    assert session.permissions == frozenset({"reports"})
    assert not session.is_admin


def _actions(conn):
    return [r["action"] for r in AuditRepo(conn).list_recent()]


def test_list_users_includes_seeded_admin(auth):
    auth.create_user("rana", "pw", "Rana Aziz")
    assert [u.username for u in auth.list_users()] == ["admin", "rana"]


def test_update_user_changes_role_pages_and_flag(conn):
    auth = AuthService(conn, user="admin")
    auth.create_user("sami", "pw", "Sami", permissions=["bookings"])

    updated = auth.update_user("sami", role="Admin", permissions=["bookings", "reports"], full_name="Sami Haddad")
    stored = auth.repo.get_by_username("sami")
    assert stored == updated
    assert stored.role == UserRole.ADMIN
    assert stored.permissions == ["bookings", "reports"]
    assert stored.full_name == "Sami Haddad"

    auth.deactivate_user("sami")
    assert auth.repo.get_by_username("sami").is_active is False
    assert auth.authenticate("sami", "pw") is None

    logs = AuditRepo(conn).list_recent()
    assert logs[0]["performed_by"] == "admin"
    assert [a for a in _actions(conn) if a in ("ADD_USER", "UPDATE_USER")] == ["UPDATE_USER", "UPDATE_USER", "ADD_USER"]


@pytest.mark.parametrize(
    "changes",
    [
        {"role": "Owner"},
        {"permissions": ["payroll"]},
        {"full_name": "  "},
    ],
)
def test_update_user_rejects_bad_values(auth, changes):
    auth.create_user("sami", "pw", "Sami")
    with pytest.raises(ValidationError):
        auth.update_user("sami", **changes)
    assert auth.repo.get_by_username("sami").full_name == "Sami"
    assert "UPDATE_USER" not in _actions(auth.conn)


def test_unknown_user_cannot_be_updated_or_deleted(auth):
    with pytest.raises(NotFoundError):
        auth.update_user("ghost", is_active=False)
    with pytest.raises(NotFoundError):
        auth.delete_user("ghost")


def test_last_active_admin_is_kept(auth):
    with pytest.raises(ValidationError):
        auth.deactivate_user("admin")
    with pytest.raises(ValidationError):
        auth.update_user("admin", role=UserRole.EMPLOYEE)
    with pytest.raises(ValidationError):
        auth.delete_user("admin")
    assert auth.repo.get_by_username("admin").is_active

    # with a second admin the first one can step down
    auth.create_user("boss", "pw", "Boss", role=UserRole.ADMIN)
    auth.update_user("admin", role=UserRole.EMPLOYEE)
    assert auth.repo.count_active_admins() == 1


def test_delete_user(conn):
    auth = AuthService(conn, user="admin")
    auth.create_user("huda", "pw", "Huda")
    auth.delete_user("huda")
    assert auth.repo.get_by_username("huda") is None
    assert _actions(conn)[0] == "DELETE_USER"
    with pytest.raises(ValidationError):
        auth.delete_user("admin")
