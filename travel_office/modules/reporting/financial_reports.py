# travel_office/modules/reporting/financial_reports.py
"""
Profit & loss rollups for a year (optionally one month, optionally one booking
type).

- Sales and COGS come from bookings (by travel date), excluding cancelled and
  voided files.
- Operational expenses are Expense transactions in the period, minus supplier
  settlements: the cost of what was sold is already in COGS, paying the
  supplier only settles that liability.
- Expenses are not attributed to booking types, so they only count when the
  type filter is "All".

Totals are kept in the base currency and unrounded; chart rows are converted
to the display currency and rounded to 2 decimals.
"""
from __future__ import annotations

import calendar
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from ...constants import CATEGORY_SUPPLIER_PAYMENTS
from ...database.repositories.bookings_repo import Booking, BookingsRepo
from ...database.repositories.transactions_repo import Transaction, TransactionsRepo
from ...enums import TransactionType, is_inactive, type_label
from ...utils.helpers import parse_date, round2
from ..currency.rates import RateTable, convert_amount
from ..settings.service import SettingsService

ALL = "All"


@dataclass(frozen=True)
class MonthlyRow:
    name: str        # short month name, e.g. "Jan"
    sales: float
    cost: float
    expenses: float
    profit: float


@dataclass(frozen=True)
class BreakdownRow:
    name: str
    value: float


@dataclass
class FinancialReport:
    year: int
    month: Optional[int]
    type_filter: str
    display_currency: str
    total_sales: float = 0.0
    total_cost: float = 0.0
    gross_profit: float = 0.0
    operational_expenses: float = 0.0
    net_profit: float = 0.0
    monthly: List[MonthlyRow] = field(default_factory=list)
    sales_by_type: List[BreakdownRow] = field(default_factory=list)
    expenses_by_category: List[BreakdownRow] = field(default_factory=list)


def _in_period(value: Optional[str], year: int, month: Optional[int]) -> bool:
    d = parse_date(value)
    if d is None or d.year != year:
        return False
    return month is None or d.month == month


def _month_of(value: Optional[str]) -> Optional[int]:
    d = parse_date(value)
    return d.month if d else None


def is_operational_expense(t: Transaction) -> bool:
    return TransactionType(t.txn_type) == TransactionType.EXPENSE and t.category != CATEGORY_SUPPLIER_PAYMENTS


def build_report(
    bookings: Iterable[Booking],
    transactions: Iterable[Transaction],
    year: int,
    month: Optional[int] = None,
    type_filter: str = ALL,
    *,
    rates: RateTable,
    display_currency: Optional[str] = None,
) -> FinancialReport:
    """
    `month` is 1-12 or None for the whole year. `type_filter` is a booking
    type label or "All".
    """
    if month is not None and not 1 <= int(month) <= 12:
        raise ValueError(f"month must be 1-12, got {month!r}")
    currency = display_currency or rates.base
    all_types = type_filter in (None, "", ALL)

    picked = [
        b for b in bookings
        if _in_period(b.travel_date, year, month)
        and (all_types or type_label(b.booking_type) == type_filter)
        and not is_inactive(b.status)
    ]
    expenses = [
        t for t in transactions
        if _in_period(t.date, year, month) and is_operational_expense(t)
    ] if all_types else []

    def show(v: float) -> float:
        return round2(convert_amount(v, currency, rates))

    report = FinancialReport(year=year, month=month, type_filter=type_filter or ALL, display_currency=currency)
    report.total_sales = sum((b.amount for b in picked), 0.0)
    report.total_cost = sum((b.cost for b in picked), 0.0)
    report.gross_profit = report.total_sales - report.total_cost
    report.operational_expenses = sum((t.amount for t in expenses), 0.0)
    report.net_profit = report.gross_profit - report.operational_expenses

    months = [month] if month is not None else range(1, 13)
    for m in months:
        m_bookings = [b for b in picked if _month_of(b.travel_date) == m]
        m_sales = sum((b.amount for b in m_bookings), 0.0)
        m_cost = sum((b.cost for b in m_bookings), 0.0)
        m_exp = sum((t.amount for t in expenses if _month_of(t.date) == m), 0.0)
        report.monthly.append(
            MonthlyRow(
                name=calendar.month_abbr[m],
                sales=show(m_sales),
                cost=show(m_cost),
                expenses=show(m_exp),
                profit=show(m_sales - m_cost - m_exp),
            )
        )

    by_type: Dict[str, float] = {}
    for b in picked:
        label = type_label(b.booking_type)
        by_type[label] = by_type.get(label, 0.0) + b.amount
    report.sales_by_type = [
        BreakdownRow(name, show(v)) for name, v in by_type.items() if show(v) > 0
    ]

    by_cat: Dict[str, float] = {}
    for t in expenses:
        by_cat[t.category] = by_cat.get(t.category, 0.0) + t.amount
    report.expenses_by_category = [BreakdownRow(name, show(v)) for name, v in by_cat.items()]
    return report


def available_years(
    bookings: Iterable[Booking],
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> List[int]:
    """Years that have data, plus the current year, newest first."""
    years = {(today or date.today()).year}
    for b in bookings:
        d = parse_date(b.travel_date)
        if d:
            years.add(d.year)
    for t in transactions:
        d = parse_date(t.date)
        if d:
            years.add(d.year)
    return sorted(years, reverse=True)


def booking_types(bookings: Iterable[Booking]) -> List[str]:
    """Distinct booking type labels in first-seen order, for the type filter."""
    seen: Dict[str, None] = {}
    for b in bookings:
        label = type_label(b.booking_type)
        if label:
            seen.setdefault(label, None)
    return list(seen)


class FinancialReports:
    """
    Report entry point bound to a connection; pulls bookings, transactions
    and the current settings snapshot, then defers to build_report().
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.bookings = BookingsRepo(conn)
        self.transactions = TransactionsRepo(conn)
        self.settings = SettingsService(conn)

    def report(self, year: int, month: Optional[int] = None, type_filter: str = ALL) -> FinancialReport:
        snap = self.settings.load_snapshot()
        return build_report(
            self.bookings.list_all(),
            self.transactions.list_transactions(),
            year,
            month,
            type_filter,
            rates=snap.rates,
            display_currency=snap.system_currency,
        )

    def years(self) -> List[int]:
        return available_years(self.bookings.list_all(), self.transactions.list_transactions())

    def types(self) -> List[str]:
        return booking_types(self.bookings.list_all())


__all__ = [
    "ALL",
    "MonthlyRow",
    "BreakdownRow",
    "FinancialReport",
    "build_report",
    "available_years",
    "booking_types",
    "is_operational_expense",
    "FinancialReports",
]
