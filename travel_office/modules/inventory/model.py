from __future__ import annotations

from typing import Any, Dict, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtGui import QColor

from ...database.repositories.inventory_repo import InventoryItem
from ...enums import type_label
from ...utils.helpers import fmt_money
from .ledger import InventoryStats


class InventoryTableModel(QAbstractTableModel):
    """
    Stock table: one row per inventory item with its derived sold/remaining
    counts. Stats are passed in alongside the items (see InventoryService.stock()).
    Oversold rows are tinted red.
    """
    HEADERS: List[str] = ["ID", "Name", "Type", "Supplier", "Total", "Sold", "Remaining", "Cost", "Selling", "Currency"]

    def __init__(
        self,
        items: Optional[List[InventoryItem]] = None,
        stats: Optional[Dict[str, InventoryStats]] = None,
    ) -> None:
        super().__init__()
        self._rows: List[InventoryItem] = list(items or [])
        self._stats: Dict[str, InventoryStats] = dict(stats or {})

    # ---------- Qt model basics ----------

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return len(self.HEADERS)

    def _stat(self, item: InventoryItem) -> InventoryStats:
        s = self._stats.get(item.item_id or "")
        if s is None:
            total = int(item.total_quantity)
            s = InventoryStats(item_id=item.item_id or "", total=total, sold=0, remaining=total)
        return s

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:  # type: ignore[override]
        if not index.isValid():
            return None
        item = self._rows[index.row()]
        st = self._stat(item)
        col = index.column()

        if role in (Qt.DisplayRole, Qt.EditRole):
            return [
                item.item_id or "",
                item.name,
                type_label(item.item_type),
                item.supplier or "",
                str(st.total),
                str(st.sold),
                str(st.remaining),
                fmt_money(item.cost_price),
                fmt_money(item.selling_price),
                item.currency,
            ][col]

        if role == Qt.TextAlignmentRole and 4 <= col <= 8:
            return int(Qt.AlignRight | Qt.AlignVCenter)

        if role == Qt.ForegroundRole and col == 6 and st.oversold:
            return QColor("#ef4444")

        if role == Qt.UserRole:
            return item.item_id
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole) -> Any:  # type: ignore[override]
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    # ---------- Convenience ----------

    def set_rows(self, items: List[InventoryItem], stats: Optional[Dict[str, InventoryStats]] = None) -> None:
        self.beginResetModel()
        self._rows = list(items or [])
        self._stats = dict(stats or {})
        self.endResetModel()

    def item_at(self, row: int) -> InventoryItem:
        return self._rows[row]

    def stats_at(self, row: int) -> InventoryStats:
        return self._stat(self._rows[row])
