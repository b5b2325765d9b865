# travel_office/modules/reporting/model.py
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ...utils.helpers import fmt_money
from .financial_reports import BreakdownRow, MonthlyRow

_LEFT = Qt.AlignLeft | Qt.AlignVCenter
_RIGHT = Qt.AlignRight | Qt.AlignVCenter


class _ReportRowsModel(QAbstractTableModel):
    """
    Read-only table over report row dataclasses. Column 0 is the label,
    the rest are money values taken from the attributes in FIELDS.
    """

    HEADERS: Sequence[str] = ()
    FIELDS: Sequence[str] = ()

    def __init__(self, rows: Optional[List[Any]] = None, parent=None) -> None:
        super().__init__(parent)
        self._rows: List[Any] = list(rows or [])

    def set_rows(self, rows: List[Any]) -> None:
        self.beginResetModel()
        self._rows = list(rows or [])
        self.endResetModel()

    def rowCount(self, parent=QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent=QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self.HEADERS)

    def headerData(self, section, orientation, role=Qt.DisplayRole):  # type: ignore[override]
        if role != Qt.DisplayRole:
            return None
        return self.HEADERS[section] if orientation == Qt.Horizontal else str(section + 1)

    def data(self, index: QModelIndex, role=Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None
        col = index.column()
        if role == Qt.TextAlignmentRole:
            return _LEFT if col == 0 else _RIGHT
        if role != Qt.DisplayRole:
            return None
        row = self._rows[index.row()]
        if col == 0:
            return row.name
        return fmt_money(getattr(row, self.FIELDS[col - 1]))


class MonthlyReportModel(_ReportRowsModel):
    HEADERS = ("Month", "Sales", "Cost", "Expenses", "Profit")
    FIELDS = ("sales", "cost", "expenses", "profit")

    def __init__(self, rows: Optional[List[MonthlyRow]] = None, parent=None) -> None:
        super().__init__(rows, parent)


class BreakdownTableModel(_ReportRowsModel):
    """Name/value pairs: sales by booking type or expenses by category."""

    HEADERS = ("Name", "Value")
    FIELDS = ("value",)

    def __init__(self, rows: Optional[List[BreakdownRow]] = None, parent=None) -> None:
        super().__init__(rows, parent)
