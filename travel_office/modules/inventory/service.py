"""
modules/inventory/service.py

Purpose
-------
Pre-purchased stock (hotel allotments, flight seats, visas...) and the
bookings that draw from it.

A unit-price change on an item is pushed into every active booking that
links to it: the linked lines get the new prices and the booking's cost and
profit are recomputed (its sell amount never changes). The fan-out is
best-effort: each booking is saved in its own transaction, failures are
logged and collected, and reconcile_inventory_costs() can be re-run at any
time to bring stragglers in line with the item's current prices.

Public interface
----------------
- PropagationResult(item_id, updated, failed)
- InventoryService(conn, user=None, notifier=None, booking_service=None)
    .list_items(item_type=None) / .get_item(item_id)
    .create_item(item) -> str
    .update_item(item) -> PropagationResult | None
    .delete_item(item_id)
    .get_stats(item_id) -> InventoryStats
    .stock() -> dict[item_id, InventoryStats]
    .oversold_items() -> list[InventoryStats]
    .propagate_price_change(item_id, new_cost=None, new_sell=None) -> PropagationResult
    .reconcile_inventory_costs(item_id) -> PropagationResult
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.bookings_repo import Booking, BookingsRepo
from ...database.repositories.inventory_repo import InventoryItem, InventoryRepo
from ...enums import EntityType
from ...errors import DomainError, NotFoundError, PersistenceError
from ...utils.loggers import get_event_logger, log_event
from ...utils.notifications import Notifier
from ..booking.commands import UpdateBooking
from ..settings.service import SettingsService
from . import ledger
from .ledger import InventoryStats

_log = logging.getLogger(__name__)

_OP = "inventory_propagation"


@dataclass
class PropagationResult:
    item_id: str
    updated: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)   # booking_id -> error

    @property
    def ok(self) -> bool:
        return not self.failed


class InventoryService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        user: str | None = None,
        notifier: Notifier | None = None,
        booking_service=None,
    ):
        self.conn = conn
        self.user = user
        self.notifier = notifier
        self.items = InventoryRepo(conn)
        self.bookings = BookingsRepo(conn)
        self.audit = AuditRepo(conn)
        self.settings = SettingsService(conn, user=user)
        # optional BookingService; its cache is kept in step with propagated edits
        self.booking_service = booking_service
        self.events = get_event_logger()

    def _log_audit(self, action: str, details: str) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, EntityType.INVENTORY, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def _require_item(self, item_id: str) -> InventoryItem:
        item = self.items.get(item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} does not exist.")
        return item

    # ---- reads ----

    def list_items(self, item_type: str | None = None) -> List[InventoryItem]:
        return self.items.list_items(item_type)

    def get_item(self, item_id: str) -> InventoryItem:
        return self._require_item(item_id)

    def get_stats(self, item_id: str) -> InventoryStats:
        item = self._require_item(item_id)
        return ledger.get_stats(item, self.bookings.list_all(include_inactive=False))

    def stock(self) -> Dict[str, InventoryStats]:
        return ledger.stock_report(self.items.list_items(), self.bookings.list_all(include_inactive=False))

    def oversold_items(self) -> List[InventoryStats]:
        return ledger.oversold_items(self.items.list_items(), self.bookings.list_all(include_inactive=False))

    # ---- writes ----

    def create_item(self, item: InventoryItem) -> str:
        try:
            with self.conn:
                iid = self.items.create(item)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not save inventory item: {e}") from e
        self._log_audit("ADD_INVENTORY", f"Inventory item added: {item.name}")
        if self.notifier:
            self.notifier.success("Inventory item saved")
        return iid

    def update_item(self, item: InventoryItem) -> Optional[PropagationResult]:
        """Save the item; a cost or selling price change is pushed into linked bookings."""
        before = self._require_item(item.item_id or "")
        try:
            with self.conn:
                self.items.update(item)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not update inventory item: {e}", entity_id=item.item_id) from e
        self._log_audit("UPDATE_INVENTORY", f"Inventory item updated: {item.item_id}")

        cost_changed = float(item.cost_price) != float(before.cost_price)
        sell_changed = float(item.selling_price) != float(before.selling_price)
        if not (cost_changed or sell_changed):
            return None
        return self.propagate_price_change(
            item.item_id,
            new_cost=item.cost_price if cost_changed else None,
            new_sell=item.selling_price if sell_changed else None,
        )

    def delete_item(self, item_id: str) -> None:
        self._require_item(item_id)
        with self.conn:
            self.items.delete(item_id)
        self._log_audit("DELETE_INVENTORY", f"Inventory item deleted: {item_id}")

    # ---- propagation ----

    def _save_booking(self, before: Booking, after: Booking) -> None:
        if self.booking_service is not None:
            def persist() -> None:
                with self.conn:
                    self.bookings.update(after)

            self.booking_service.runner.run(UpdateBooking(before, after), persist)
            return
        with self.conn:
            self.bookings.update(after)

    def propagate_price_change(
        self,
        item_id: str,
        new_cost: float | None = None,
        new_sell: float | None = None,
    ) -> PropagationResult:
        result = PropagationResult(item_id=item_id)
        if new_cost is None and new_sell is None:
            return result
        rates = self.settings.rate_table()
        booking_ids = self.bookings.ids_using_inventory(item_id)
        log_event(
            self.events, _OP, "start", f"propagating price change for {item_id}",
            {"item_id": item_id, "bookings": len(booking_ids), "new_cost": new_cost, "new_sell": new_sell},
        )

        for booking_id in booking_ids:
            before = self.bookings.get(booking_id)
            if before is None:
                continue
            after = ledger.apply_price_change(before, item_id, rates, new_cost=new_cost, new_sell=new_sell)
            try:
                self._save_booking(before, after)
            except (sqlite3.Error, DomainError) as e:
                result.failed[booking_id] = str(e)
                _log.warning("price change not applied to booking %s: %s", booking_id, e)
                log_event(
                    self.events, _OP, "booking", "booking update failed",
                    {"item_id": item_id, "booking_id": booking_id, "error": str(e)},
                    level=logging.WARNING,
                )
                continue
            result.updated.append(booking_id)
            log_event(
                self.events, _OP, "booking", "booking updated",
                {"item_id": item_id, "booking_id": booking_id, "cost": round(after.cost, 2), "profit": round(after.profit, 2)},
            )

        log_event(
            self.events, _OP, "done", f"price change for {item_id} applied",
            {"item_id": item_id, "updated": len(result.updated), "failed": len(result.failed)},
        )
        if self.notifier and booking_ids:
            if result.failed:
                self.notifier.error(
                    f"Costs updated in {len(result.updated)} bookings, {len(result.failed)} failed"
                )
            else:
                self.notifier.info(f"Costs updated in {len(result.updated)} linked bookings")
        return result

    def reconcile_inventory_costs(self, item_id: str) -> PropagationResult:
        """Re-apply the item's current prices to every active booking that links to it."""
        item = self._require_item(item_id)
        return self.propagate_price_change(item_id, new_cost=item.cost_price, new_sell=item.selling_price)


__all__ = ["InventoryService", "PropagationResult"]
