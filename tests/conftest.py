# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication; model tests take the qapp fixture
# - Every test gets its own SQLite file under tmp_path, built from the
#   schema and default seed by get_connection()
# - bcrypt runs at the minimum cost so seeding the admin stays fast
# - Qt's "already connected" style chatter is dropped, the rest goes to stderr
# ---------------------------------------------------------------------

from __future__ import annotations

import os
import re
import sqlite3
import sys
from datetime import date

import pytest

# Headless runs have no display; let Qt fall back to the offscreen platform
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6 import QtCore

from travel_office.database import get_connection
from travel_office.database.seeders.default_data import DEFAULT_TREASURY_ID
from travel_office.utils import auth


_QT_NOISE = re.compile(
    r"^(QObject::connect: .* already connected"
    r"|QObject::disconnect: Unexpected null parameter"
    r"|QBasicTimer::stop: Failed)"
)


@pytest.fixture(autouse=True, scope="session")
def _quiet_qt():
    def handler(msg_type, context, message):
        text = str(message)
        if not _QT_NOISE.search(text):
            print(text, file=sys.stderr)

    previous = QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(previous)


# ---------- Cheap bcrypt for the seeded admin ----------
@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    real = auth.hash_password
    monkeypatch.setattr(
        "travel_office.database.seeders.default_data.hash_password",
        lambda pw, **kw: real(pw, rounds=4),
    )


# ---------- Per-test database ----------
@pytest.fixture()
def conn(tmp_path) -> sqlite3.Connection:
    con = get_connection(tmp_path / "test.db")
    try:
        yield con
    finally:
        con.close()


@pytest.fixture()
def treasury_id() -> str:
    return DEFAULT_TREASURY_ID


@pytest.fixture()
def today() -> date:
    return date(2025, 3, 10)

