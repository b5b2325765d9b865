"""
Application bootstrap: open the database, wire the services around one
connection and one notifier.

    python -m travel_office.main            # headless check: prints dashboard stats
"""

from __future__ import annotations

import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import config
from .constants import APP_NAME, BASE_CURRENCY
from .database import get_connection
from .modules.ai_assistant.service import AIAssistant
from .modules.booking.service import BookingService
from .modules.dashboard.model import DashboardModel
from .modules.inventory.service import InventoryService
from .modules.itinerary.service import ItineraryService
from .modules.login.service import AuthService
from .modules.parties.service import PartiesService
from .modules.reporting.financial_reports import FinancialReports
from .modules.settings.service import SettingsService
from .modules.tasks.service import TasksService
from .modules.treasury.service import TreasuryService
from .utils.helpers import fmt_money
from .utils.loggers import get_event_logger, get_logger
from .utils.notifications import Notifier


@dataclass
class AppServices:
    conn: sqlite3.Connection
    user: Optional[str] = None
    notifier: Notifier = field(default_factory=Notifier)

    def __post_init__(self) -> None:
        kw = dict(user=self.user, notifier=self.notifier)
        self.auth = AuthService(self.conn, user=self.user)
        self.settings = SettingsService(self.conn, user=self.user)
        self.bookings = BookingService(self.conn, **kw)
        self.inventory = InventoryService(self.conn, booking_service=self.bookings, **kw)
        self.itineraries = ItineraryService(self.conn, booking_service=self.bookings, **kw)
        self.treasury = TreasuryService(self.conn, **kw)
        self.parties = PartiesService(self.conn, **kw)
        self.tasks = TasksService(self.conn, **kw)
        self.reports = FinancialReports(self.conn)
        self.dashboard = DashboardModel(self.conn)
        self.ai = AIAssistant(notifier=self.notifier)


def build_services(db_path: str | Path | None = None, user: Optional[str] = None) -> AppServices:
    get_logger()
    get_event_logger(config.LOG_PATH / "events.jsonl")
    conn = get_connection(db_path)
    return AppServices(conn, user=user)


def main(argv: Optional[list] = None) -> int:
    log = get_logger()
    app = build_services()
    app.bookings.load()
    app.dashboard.refresh()
    s = app.dashboard.stats
    log.info("%s ready: %d bookings, %d alerts", APP_NAME, s.bookings_count, len(app.dashboard.alerts))
    print(" | ".join(
        f"{label} {fmt_money(v, BASE_CURRENCY)}"
        for label, v in (("Sales", s.total_sales), ("Paid", s.total_paid), ("Pending", s.total_pending))
    ))
    app.conn.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
