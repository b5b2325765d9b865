"""
Repository for pre-purchased travel products (inventory_items).

Sold/remaining are never stored; they are derived from bookings on demand
(see modules/inventory/ledger.py). Type-specific fields live in the
`attributes` JSON column.

Conventions:
- Writes join the caller's transaction; wrap calls in `with conn:`.
- Date strings are ISO 'YYYY-MM-DD'.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from ...enums import ServiceKind, parse_service_type, type_label
from ...errors import DomainError
from ...utils.helpers import new_id

_ATTRIBUTE_FIELDS = (
    "room_type", "check_in", "check_out", "airline", "flight_date", "return_date",
    "departure_time", "arrival_time", "route", "country", "visa_type", "vehicle_type",
)


@dataclass
class InventoryItem:
    name: str
    item_type: ServiceKind
    total_quantity: int
    cost_price: float
    selling_price: float
    currency: str = "JOD"
    supplier: str | None = None
    description: str | None = None
    expiry_date: str | None = None
    # type-specific
    room_type: str | None = None     # comma separated list, first one is the default
    check_in: str | None = None
    check_out: str | None = None
    airline: str | None = None
    flight_date: str | None = None
    return_date: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    route: str | None = None
    country: str | None = None
    visa_type: str | None = None
    vehicle_type: str | None = None
    item_id: str | None = None


def _item_from_row(r: sqlite3.Row) -> InventoryItem:
    attrs = json.loads(r["attributes"] or "{}")
    return InventoryItem(
        item_id=r["item_id"],
        name=r["name"],
        item_type=parse_service_type(r["item_type"]),
        supplier=r["supplier"],
        total_quantity=int(r["total_quantity"]),
        cost_price=float(r["cost_price"]),
        selling_price=float(r["selling_price"]),
        currency=r["currency"],
        description=r["description"],
        expiry_date=r["expiry_date"],
        **{k: attrs.get(k) for k in _ATTRIBUTE_FIELDS},
    )


class InventoryRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---- validation -------------------------------------------------------

    @staticmethod
    def _validate(item: InventoryItem) -> None:
        if not item.name or not item.name.strip():
            raise DomainError("Item name cannot be empty.")
        if int(item.total_quantity) < 0:
            raise DomainError("Total quantity cannot be negative.")
        if float(item.cost_price) < 0 or float(item.selling_price) < 0:
            raise DomainError("Prices cannot be negative.")

    @staticmethod
    def _attributes(item: InventoryItem) -> str:
        attrs = {k: getattr(item, k) for k in _ATTRIBUTE_FIELDS if getattr(item, k) not in (None, "")}
        return json.dumps(attrs, ensure_ascii=False)

    # ---- queries ----------------------------------------------------------

    def get(self, item_id: str) -> Optional[InventoryItem]:
        row = self.conn.execute("SELECT * FROM inventory_items WHERE item_id=?", (item_id,)).fetchone()
        return _item_from_row(row) if row else None

    def list_items(self, item_type: str | None = None) -> List[InventoryItem]:
        if item_type and item_type != "All":
            rows = self.conn.execute(
                "SELECT * FROM inventory_items WHERE item_type=? ORDER BY name", (item_type,)
            ).fetchall()
        else:
            rows = self.conn.execute("SELECT * FROM inventory_items ORDER BY name").fetchall()
        return [_item_from_row(r) for r in rows]

    # ---- writes -----------------------------------------------------------

    def create(self, item: InventoryItem) -> str:
        self._validate(item)
        iid = item.item_id or new_id("INV")
        self.conn.execute(
            """
            INSERT INTO inventory_items(
                item_id, name, item_type, supplier, total_quantity, cost_price,
                selling_price, currency, description, expiry_date, attributes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                iid, item.name.strip(), type_label(item.item_type), item.supplier,
                int(item.total_quantity), float(item.cost_price), float(item.selling_price),
                item.currency, item.description, item.expiry_date, self._attributes(item),
            ),
        )
        item.item_id = iid
        return iid

    def update(self, item: InventoryItem) -> None:
        self._validate(item)
        cur = self.conn.execute(
            """
            UPDATE inventory_items
               SET name=?, item_type=?, supplier=?, total_quantity=?, cost_price=?,
                   selling_price=?, currency=?, description=?, expiry_date=?, attributes=?
             WHERE item_id=?
            """,
            (
                item.name.strip(), type_label(item.item_type), item.supplier,
                int(item.total_quantity), float(item.cost_price), float(item.selling_price),
                item.currency, item.description, item.expiry_date, self._attributes(item),
                item.item_id,
            ),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Inventory item {item.item_id} does not exist.")

    def delete(self, item_id: str) -> None:
        # booking_services.inventory_id is set to NULL by the FK
        self.conn.execute("DELETE FROM inventory_items WHERE item_id=?", (item_id,))
