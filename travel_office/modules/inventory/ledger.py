"""
Inventory ledger: sold/remaining per pre-purchased item, derived from the
bookings that reference it. Nothing here touches the database.

Sold units come from non-cancelled, non-voided bookings only. For hotel stock
one room is one unit regardless of the number of nights, so a hotel line
counts its room_count (1 when unset); any other line counts its quantity.
Remaining may go negative: overselling is reported, never blocked.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from ...database.repositories.bookings_repo import Booking, ServiceItem
from ...database.repositories.inventory_repo import InventoryItem
from ...enums import ServiceType, is_inactive
from ..booking.financials import recompute_costs
from ..booking.services import hotel_nights
from ..currency.rates import RateTable

__all__ = [
    "InventoryStats",
    "units_consumed",
    "get_stats",
    "stock_report",
    "oversold_items",
    "select_inventory_for_service",
    "apply_price_change",
]


@dataclass(frozen=True)
class InventoryStats:
    item_id: str
    total: int
    sold: int
    remaining: int

    @property
    def oversold(self) -> bool:
        return self.remaining < 0

    @property
    def sold_ratio(self) -> float:
        return self.sold / self.total if self.total > 0 else 0.0


def units_consumed(item: InventoryItem, s: ServiceItem) -> int:
    if item.item_type == ServiceType.HOTEL or s.service_type == ServiceType.HOTEL:
        return int(s.room_count or 1)
    return int(s.quantity)


def get_stats(item: InventoryItem, bookings: Iterable[Booking]) -> InventoryStats:
    sold = 0
    for b in bookings:
        if is_inactive(b.status):
            continue
        for s in b.services:
            if s.inventory_id == item.item_id:
                sold += units_consumed(item, s)
    total = int(item.total_quantity)
    return InventoryStats(item_id=item.item_id or "", total=total, sold=sold, remaining=total - sold)


def stock_report(items: Iterable[InventoryItem], bookings: Iterable[Booking]) -> Dict[str, InventoryStats]:
    active = [b for b in bookings if not is_inactive(b.status)]
    return {i.item_id: get_stats(i, active) for i in items if i.item_id}


def oversold_items(items: Iterable[InventoryItem], bookings: Iterable[Booking]) -> List[InventoryStats]:
    """Items whose remaining quantity is below zero, worst first."""
    stats = [s for s in stock_report(items, bookings).values() if s.oversold]
    return sorted(stats, key=lambda s: s.remaining)


def select_inventory_for_service(item: InventoryItem, service: Optional[ServiceItem] = None) -> ServiceItem:
    """
    Fill a service line from an inventory item: type, supplier, prices,
    currency and the descriptive fields. Hotel lines start at one room for
    the item's nights and take the first listed room type.
    """
    base = service or ServiceItem(service_type=item.item_type)
    is_hotel = item.item_type == ServiceType.HOTEL
    nights = hotel_nights(item.check_in, item.check_out) if is_hotel else 1
    room_type = ""
    if item.room_type:
        room_type = item.room_type.split(",")[0].strip()
    return replace(
        base,
        inventory_id=item.item_id,
        service_type=item.item_type,
        supplier=item.supplier,
        cost_price=float(item.cost_price),
        selling_price=float(item.selling_price),
        cost_currency=item.currency,
        details=item.name,
        quantity=1 * nights,
        room_count=1 if is_hotel else None,
        check_in=item.check_in,
        check_out=item.check_out,
        room_type=room_type,
        hotel_name=item.name,
        airline=item.airline,
        route=item.route,
        flight_date=item.flight_date,
        return_date=item.return_date,
        departure_time=item.departure_time,
        arrival_time=item.arrival_time,
        country=item.country,
        visa_type=item.visa_type,
        vehicle_type=item.vehicle_type,
    )


def apply_price_change(
    booking: Booking,
    item_id: str,
    rates: RateTable,
    new_cost: Optional[float] = None,
    new_sell: Optional[float] = None,
) -> Booking:
    """
    Rewrite the unit prices of the lines linked to `item_id` and re-derive
    cost and profit. The booking's sell amount is left alone.
    """
    services = []
    for s in booking.services:
        if s.inventory_id == item_id:
            s = replace(
                s,
                cost_price=float(new_cost) if new_cost is not None else s.cost_price,
                selling_price=float(new_sell) if new_sell is not None else s.selling_price,
            )
        services.append(s)
    return recompute_costs(replace(booking, services=services), rates)
