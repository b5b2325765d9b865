# travel_office/modules/dashboard/model.py
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ...database.repositories.bookings_repo import Booking, BookingsRepo
from ...database.repositories.transactions_repo import Transaction, TransactionsRepo
from ...enums import TransactionType, is_inactive
from ..settings.service import Settings, SettingsService
from .alerts import Alert, generate_alerts

_log = logging.getLogger(__name__)


# --------------------------- Headline stats ---------------------------

@dataclass(frozen=True)
class DashboardStats:
    total_sales: float
    total_paid: float
    total_pending: float
    bookings_count: int
    total_expenses: float


def compute_stats(bookings: Iterable[Booking], transactions: Iterable[Transaction]) -> DashboardStats:
    """
    Sales and receivables count active bookings only; bookings_count is every
    booking on file; expenses are all Expense transactions.
    """
    all_bookings = list(bookings)
    active = [b for b in all_bookings if not is_inactive(b.status)]
    return DashboardStats(
        total_sales=sum((b.amount for b in active), 0.0),
        total_paid=sum((b.paid_amount for b in active), 0.0),
        total_pending=sum((b.amount - b.paid_amount for b in active), 0.0),
        bookings_count=len(all_bookings),
        total_expenses=sum((t.amount for t in transactions if t.txn_type == TransactionType.EXPENSE), 0.0),
    )


# --------------------------- Dashboard Model ---------------------------

@dataclass
class DashboardModel:
    """
    Pulls bookings and transactions and exposes stats + alerts for the view.

    Usage:
        model = DashboardModel(conn)
        model.refresh()
        print(model.stats.total_sales, len(model.alerts))
    """

    conn: sqlite3.Connection
    bookings_repo: BookingsRepo = field(init=False)
    transactions_repo: TransactionsRepo = field(init=False)
    settings_service: SettingsService = field(init=False)

    settings: Optional[Settings] = field(init=False, default=None)
    stats: Optional[DashboardStats] = field(init=False, default=None)
    alerts: List[Alert] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self.bookings_repo = BookingsRepo(self.conn)
        self.transactions_repo = TransactionsRepo(self.conn)
        self.settings_service = SettingsService(self.conn)

    def refresh(self, today: Optional[date] = None) -> None:
        self.settings = self.settings_service.load_snapshot()
        bookings = self.bookings_repo.list_all()
        transactions = self.transactions_repo.list_transactions()
        self.stats = compute_stats(bookings, transactions)
        self.alerts = generate_alerts(bookings, today, self.settings.alerts, currency=self.settings.rates.base)
        _log.debug("dashboard refreshed: %d bookings, %d alerts", len(bookings), len(self.alerts))


# --------------------------- Alerts table ---------------------------

class AlertsTableModel(QAbstractTableModel):
    """Read-only table over generate_alerts() output."""

    HEADERS: List[str] = ["Level", "Category", "Title", "Message"]

    def __init__(self, alerts: List[Alert] | None = None):
        super().__init__()
        self._rows: List[Alert] = list(alerts or [])

    def set_alerts(self, alerts: List[Alert]) -> None:
        self.beginResetModel()
        self._rows = list(alerts or [])
        self.endResetModel()

    def alert_at(self, row: int) -> Alert:
        return self._rows[row]

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return len(self.HEADERS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:  # type: ignore[override]
        if not index.isValid():
            return None
        a = self._rows[index.row()]
        if role in (Qt.DisplayRole, Qt.EditRole):
            return [a.level.value.title(), a.category, a.title, a.message][index.column()]
        if role == Qt.UserRole:
            return a.booking_id
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole) -> Any:  # type: ignore[override]
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)
