"""
Service-line helpers for bookings: hotel nights, edit rules per service type,
and cost aggregation into the base currency.

All functions are pure; edits return a new ServiceItem and never mutate the
one passed in.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import timedelta
from typing import Iterable, Optional

from ...database.repositories.bookings_repo import ServiceItem
from ...enums import ServiceKind, ServiceType, parse_service_type
from ...utils.helpers import parse_date
from ..currency.rates import RateTable

__all__ = [
    "HOTEL_FIELDS",
    "FLIGHT_FIELDS",
    "TRANSPORT_FIELDS",
    "VISA_FIELDS",
    "hotel_nights",
    "hotel_quantity",
    "normalize_service",
    "edit_service",
    "change_service_type",
    "service_cost_in_base",
    "total_cost_in_base",
    "total_selling",
]

HOTEL_FIELDS = ("hotel_name", "check_in", "check_out", "room_count", "room_type", "board_type")
FLIGHT_FIELDS = (
    "flight_date", "return_date", "airline", "flight_number", "route",
    "departure_time", "arrival_time", "pnr", "ticket_number",
)
TRANSPORT_FIELDS = ("vehicle_type", "routes")
VISA_FIELDS = ("visa_type", "country")

_FIELDS_BY_TYPE = {
    ServiceType.HOTEL: HOTEL_FIELDS,
    ServiceType.FLIGHT: FLIGHT_FIELDS,
    ServiceType.TRANSPORT: TRANSPORT_FIELDS,
    ServiceType.VISA: VISA_FIELDS,
}


def _is_hotel(s: ServiceItem) -> bool:
    return s.service_type == ServiceType.HOTEL


def hotel_nights(check_in: Optional[str], check_out: Optional[str]) -> int:
    """Whole nights between two dates, never less than 1."""
    ci, co = parse_date(check_in), parse_date(check_out)
    if ci is None or co is None:
        return 1
    seconds = (co - ci).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def hotel_quantity(room_count: Optional[int], check_in: Optional[str], check_out: Optional[str]) -> int:
    rooms = max(1, int(float(room_count or 1)))
    return rooms * hotel_nights(check_in, check_out)


def normalize_service(s: ServiceItem) -> ServiceItem:
    """Re-derive computed fields (hotel quantity) without other changes."""
    if _is_hotel(s):
        rooms = max(1, int(float(s.room_count or 1)))
        return replace(s, room_count=rooms, quantity=hotel_quantity(rooms, s.check_in, s.check_out))
    return s


def change_service_type(s: ServiceItem, new_type: ServiceKind | str) -> ServiceItem:
    """
    Switch a service to another type. Fields owned by the old type are
    cleared, and the supplier and inventory link are reset.
    """
    kind = parse_service_type(new_type) if isinstance(new_type, str) else new_type
    if kind == s.service_type:
        return s
    cleared = {}
    for fields in _FIELDS_BY_TYPE.values():
        for name in fields:
            cleared[name] = [] if name == "routes" else None
    out = replace(s, service_type=kind, supplier=None, inventory_id=None, **cleared)
    if kind == ServiceType.HOTEL:
        out = replace(out, room_count=1, quantity=1)
    return out


def edit_service(s: ServiceItem, **changes) -> ServiceItem:
    """
    Apply field edits the way the booking form does:

    - a type change goes through change_service_type() first;
    - hotel: a check-in on/after check-out (or no check-out) pushes check-out
      to the next day; quantity follows rooms * nights;
    - flight: a return date before the new outbound date is moved to it.
    """
    if "service_type" in changes:
        s = change_service_type(s, changes.pop("service_type"))
    if not changes:
        return normalize_service(s)

    out = replace(s, **changes)

    if _is_hotel(out):
        if "check_in" in changes:
            ci = parse_date(out.check_in)
            co = parse_date(out.check_out)
            if ci is not None and (co is None or co <= ci):
                out = replace(out, check_out=(ci + timedelta(days=1)).isoformat())
        out = normalize_service(out)

    if out.service_type == ServiceType.FLIGHT and "flight_date" in changes:
        fd = parse_date(out.flight_date)
        rd = parse_date(out.return_date)
        if fd is not None and rd is not None and rd < fd:
            out = replace(out, return_date=out.flight_date)

    return out


def service_cost_in_base(s: ServiceItem, rates: RateTable) -> float:
    # a currency missing from the table counts as base
    return float(s.cost_price) * float(s.quantity) / rates.rate_or_base(s.cost_currency)


def total_cost_in_base(services: Iterable[ServiceItem], rates: RateTable) -> float:
    return sum((service_cost_in_base(s, rates) for s in services), 0.0)


def total_selling(services: Iterable[ServiceItem]) -> float:
    """Sum of unit selling price * quantity, in each line's own currency."""
    return sum((float(s.selling_price) * float(s.quantity) for s in services), 0.0)
