from .ledger import (
    InventoryStats,
    apply_price_change,
    get_stats,
    oversold_items,
    select_inventory_for_service,
    stock_report,
)
from .model import InventoryTableModel
from .service import InventoryService, PropagationResult

__all__ = [
    "InventoryStats",
    "apply_price_change",
    "get_stats",
    "oversold_items",
    "select_inventory_for_service",
    "stock_report",
    "InventoryTableModel",
    "InventoryService",
    "PropagationResult",
]
