from PySide6.QtCore import QAbstractTableModel, QModelIndex, QSortFilterProxyModel, Qt

from ...database.repositories.bookings_repo import Booking
from ...enums import type_label
from ...utils.helpers import fmt_money


class BookingsTableModel(QAbstractTableModel):
    HEADERS = ["File No", "Client", "Type", "Travel Date", "Destination", "Status", "Payment", "Amount", "Paid", "Remaining"]

    def __init__(self, rows: list[Booking] | None = None):
        super().__init__()
        self._rows = list(rows or [])

    # Qt model basics
    def rowCount(self, parent=QModelIndex()):  # type: ignore[override]
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):  # type: ignore[override]
        return len(self.HEADERS)

    def data(self, index, role=Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None
        b = self._rows[index.row()]
        c = index.column()
        if role in (Qt.DisplayRole, Qt.EditRole):
            return [
                b.file_no or b.booking_id,
                b.client_name,
                type_label(b.booking_type),
                b.travel_date or "",
                b.destination or "",
                b.status.value,
                b.payment_status.value,
                fmt_money(b.amount),
                fmt_money(b.paid_amount),
                fmt_money(b.remaining),
            ][c]
        if role == Qt.TextAlignmentRole and c >= 7:
            return int(Qt.AlignRight | Qt.AlignVCenter)
        if role == Qt.UserRole:
            return b.booking_id
        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):  # type: ignore[override]
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    def at(self, row: int) -> Booking:
        return self._rows[row]

    def replace(self, rows: list[Booking]):
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()

    # helper for proxy filtering
    def row_as_text(self, row: int) -> str:
        b = self._rows[row]
        return f"{b.file_no or ''} {b.client_name} {b.destination or ''} {b.client_phone or ''}"


class BookingFilterProxy(QSortFilterProxyModel):
    def filterAcceptsRow(self, source_row, source_parent):  # type: ignore[override]
        if not self.filterRegularExpression().pattern():
            return True
        model = self.sourceModel()
        try:
            text = model.row_as_text(source_row)
        except AttributeError:
            return True
        return self.filterRegularExpression().match(text).hasMatch()
