# tests/test_models.py
"""Qt table models: headers, display text, roles and proxy filtering."""
from __future__ import annotations

from PySide6.QtCore import QRegularExpression, Qt
from PySide6.QtGui import QColor

from builders import booking, stock_item
from travel_office.enums import PaymentStatus
from travel_office.modules.booking.model import BookingFilterProxy, BookingsTableModel
from travel_office.modules.dashboard.alerts import generate_alerts
from travel_office.modules.dashboard.model import AlertsTableModel
from travel_office.modules.inventory.ledger import InventoryStats
from travel_office.modules.inventory.model import InventoryTableModel
from travel_office.modules.reporting.financial_reports import BreakdownRow, MonthlyRow
from travel_office.modules.reporting.model import BreakdownTableModel, MonthlyReportModel


def _text(model, row, col):
    return model.data(model.index(row, col), Qt.DisplayRole)


def test_bookings_model_display(qapp):
    rows = [
        booking("BK-1", amount=1500, paid=500, file_no="2503-001", destination="Cairo",
                payment_status=PaymentStatus.PARTIAL),
        booking("BK-2", amount=80, client_name="Rami Haddad"),
    ]
    model = BookingsTableModel(rows)
    assert model.rowCount() == 2
    assert model.columnCount() == len(BookingsTableModel.HEADERS)
    assert model.headerData(0, Qt.Horizontal) == "File No"
    assert _text(model, 0, 0) == "2503-001"
    assert _text(model, 1, 0) == "BK-2"           # falls back to id
    assert _text(model, 0, 6) == "Partial"
    assert _text(model, 0, 9) == "1,000.00"
    assert model.data(model.index(0, 0), Qt.UserRole) == "BK-1"
    assert model.at(1).client_name == "Rami Haddad"


def test_bookings_proxy_filters_on_row_text(qapp):
    model = BookingsTableModel([
        booking("BK-1", destination="Cairo"),
        booking("BK-2", client_name="Rami Haddad", destination="Dubai"),
    ])
    proxy = BookingFilterProxy()
    proxy.setSourceModel(model)
    assert proxy.rowCount() == 2
    proxy.setFilterRegularExpression(QRegularExpression("dubai", QRegularExpression.CaseInsensitiveOption))
    assert proxy.rowCount() == 1
    assert proxy.data(proxy.index(0, 1)) == "Rami Haddad"

    model.replace([booking("BK-3", destination="Dubai"), booking("BK-4", destination="Dubai")])
    assert proxy.rowCount() == 2


def test_inventory_model_marks_oversold(qapp):
    items = [stock_item("INV-1", total=2), stock_item("INV-2", total=5, name="Visas")]
    stats = {"INV-1": InventoryStats("INV-1", total=2, sold=3, remaining=-1)}
    model = InventoryTableModel(items, stats)
    assert _text(model, 0, 5) == "3"
    assert _text(model, 0, 6) == "-1"
    color = model.data(model.index(0, 6), Qt.ForegroundRole)
    assert isinstance(color, QColor)
    # no stats yet: everything remaining, nothing tinted
    assert _text(model, 1, 6) == "5"
    assert model.data(model.index(1, 6), Qt.ForegroundRole) is None
    assert model.stats_at(1).sold == 0

    model.set_rows(items[1:])
    assert model.rowCount() == 1
    assert model.item_at(0).name == "Visas"


def test_report_models(qapp):
    monthly = MonthlyReportModel([MonthlyRow("Jan", 1000, 700, 100, 200)])
    assert monthly.headerData(4, Qt.Horizontal) == "Profit"
    assert _text(monthly, 0, 0) == "Jan"
    assert _text(monthly, 0, 1) == "1,000.00"
    assert monthly.headerData(0, Qt.Vertical) == "1"

    breakdown = BreakdownTableModel()
    assert breakdown.rowCount() == 0
    breakdown.set_rows([BreakdownRow("Rent", 250)])
    assert (_text(breakdown, 0, 0), _text(breakdown, 0, 1)) == ("Rent", "250.00")


def test_alerts_model(qapp, today):
    alerts = generate_alerts([booking("BK-1", travel_date="2025-03-11")], today)
    model = AlertsTableModel(alerts)
    assert model.rowCount() == 1
    assert _text(model, 0, 0) == "Critical"
    assert _text(model, 0, 1) == "Finance"
    assert model.data(model.index(0, 0), Qt.UserRole) == "BK-1"
    assert model.alert_at(0).level.value == "critical"
    model.set_alerts([])
    assert model.rowCount() == 0
