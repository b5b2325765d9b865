# tests/test_inventory.py
from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace

import pytest

from builders import booking, draft, flight, hotel, stock_item
from travel_office.enums import BookingStatus, ServiceType
from travel_office.errors import NotFoundError
from travel_office.modules.booking.service import BookingService
from travel_office.modules.inventory.ledger import (
    get_stats,
    oversold_items,
    select_inventory_for_service,
    units_consumed,
)
from travel_office.modules.inventory.service import InventoryService


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture()
def events():
    handler = _Collect()
    logger = logging.getLogger("travel_office.events")
    logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)


@pytest.fixture()
def bookings(conn) -> BookingService:
    svc = BookingService(conn, user="admin")
    svc.load()
    return svc


@pytest.fixture()
def inventory(conn, bookings) -> InventoryService:
    return InventoryService(conn, user="admin", booking_service=bookings)


def _linked(item, qty=2):
    return replace(select_inventory_for_service(item), quantity=qty)


# ------------------------------ ledger ------------------------------

def test_sold_counts_active_bookings_only():
    item = stock_item(total=10)
    line = flight(inventory_id="INV-1", qty=3)
    rows = [
        booking("BK-1", services=[line]),
        booking("BK-2", services=[line], status=BookingStatus.PENDING),
        booking("BK-3", services=[line], status=BookingStatus.CANCELLED),
        booking("BK-4", services=[line], status=BookingStatus.VOIDED),
        booking("BK-5", services=[flight(inventory_id="INV-2", qty=9)]),
    ]
    stats = get_stats(item, rows)
    assert (stats.total, stats.sold, stats.remaining) == (10, 6, 4)
    assert stats.sold + stats.remaining == stats.total
    assert stats.sold_ratio == pytest.approx(0.6)


def test_hotel_stock_counts_rooms_not_nights():
    item = stock_item(item_type=ServiceType.HOTEL, check_in="2025-04-01", check_out="2025-04-05")
    line = hotel(inventory_id="INV-1", rooms=2, check_out="2025-04-05")
    assert units_consumed(item, line) == 2
    assert units_consumed(item, hotel(inventory_id="INV-1", rooms=None)) == 1


def test_overselling_is_reported_worst_first():
    a = stock_item("INV-A", total=2)
    b = stock_item("INV-B", total=1)
    c = stock_item("INV-C", total=5)
    rows = [
        booking("BK-1", services=[flight(inventory_id="INV-A", qty=3), flight(inventory_id="INV-B", qty=4)]),
        booking("BK-2", services=[flight(inventory_id="INV-C", qty=1)]),
    ]
    out = oversold_items([a, b, c], rows)
    assert [s.item_id for s in out] == ["INV-B", "INV-A"]
    assert out[0].remaining == -3 and out[0].oversold


def test_selecting_a_hotel_item_fills_the_line():
    item = stock_item(
        item_type=ServiceType.HOTEL,
        name="Hilton Dead Sea",
        supplier="Sun Travel",
        currency="USD",
        check_in="2025-05-01",
        check_out="2025-05-04",
        room_type="Double, Triple",
    )
    s = select_inventory_for_service(item)
    assert s.service_type == ServiceType.HOTEL
    assert s.inventory_id == "INV-1"
    assert (s.cost_price, s.selling_price, s.cost_currency) == (50.0, 70.0, "USD")
    assert s.room_count == 1 and s.quantity == 3
    assert s.room_type == "Double"
    assert s.hotel_name == "Hilton Dead Sea" and s.details == "Hilton Dead Sea"
    assert s.supplier == "Sun Travel"


def test_selecting_a_flight_item_copies_schedule():
    item = stock_item(airline="RJ", route="AMM-IST", flight_date="2025-04-01", departure_time="08:30")
    s = select_inventory_for_service(item, flight(cost=1, qty=4))
    assert s.quantity == 1
    assert s.room_count is None
    assert (s.airline, s.route, s.flight_date, s.departure_time) == ("RJ", "AMM-IST", "2025-04-01", "08:30")


# ------------------------------ service ------------------------------

def test_cost_change_flows_into_active_bookings(conn, bookings, inventory, events):
    item = stock_item(cost=50)
    inventory.create_item(item)
    b1 = bookings.create_booking(draft(sell=300, services=[_linked(item)]))
    b2 = bookings.create_booking(draft(sell=400, services=[_linked(item), flight(cost=10)]))
    b3 = bookings.create_booking(draft(sell=300, services=[_linked(item)], status=BookingStatus.CANCELLED))

    result = inventory.update_item(replace(item, cost_price=60))

    assert result.ok
    assert sorted(result.updated) == sorted([b1.booking_id, b2.booking_id])
    for before in (b1, b2):
        after = bookings.bookings.get(before.booking_id)
        assert after.cost == pytest.approx(before.cost + 20)
        assert after.profit == pytest.approx(before.profit - 20)
        assert after.amount == before.amount
        # cache follows the database
        assert bookings.cache.get(before.booking_id).cost == pytest.approx(after.cost)
    untouched = bookings.bookings.get(b3.booking_id)
    assert untouched.cost == b3.cost

    stats = inventory.get_stats("INV-1")
    assert stats.sold == 4
    assert stats.remaining == 6

    phases = [r.extra_payload["phase"] for r in events]
    assert phases[0] == "start" and phases[-1] == "done"
    assert phases.count("booking") == 2


def test_update_without_price_change_does_not_propagate(bookings, inventory):
    item = stock_item()
    inventory.create_item(item)
    bookings.create_booking(draft(services=[_linked(item)]))
    assert inventory.update_item(replace(item, name="Renamed block", total_quantity=20)) is None
    assert inventory.get_item("INV-1").name == "Renamed block"


def test_selling_price_change_keeps_booking_amount(bookings, inventory):
    item = stock_item(sell=70)
    inventory.create_item(item)
    b = bookings.create_booking(draft(sell=500, services=[_linked(item)]))
    inventory.update_item(replace(item, selling_price=90))
    stored = bookings.bookings.get(b.booking_id)
    assert stored.services[0].selling_price == 90.0
    assert stored.amount == b.amount
    assert stored.cost == b.cost


def test_failed_booking_is_collected_and_others_continue(bookings, inventory, monkeypatch):
    item = stock_item(cost=50)
    inventory.create_item(item)
    b1 = bookings.create_booking(draft(services=[_linked(item)]))
    b2 = bookings.create_booking(draft(services=[_linked(item)]))

    real_update = inventory.bookings.update

    def flaky(b):
        if b.booking_id == b1.booking_id:
            raise sqlite3.OperationalError("database is locked")
        real_update(b)

    monkeypatch.setattr(inventory.bookings, "update", flaky)
    result = inventory.propagate_price_change("INV-1", new_cost=55)

    assert not result.ok
    assert list(result.failed) == [b1.booking_id]
    assert result.updated == [b2.booking_id]
    assert bookings.cache.get(b1.booking_id).cost == b1.cost

    # a later reconcile brings the straggler in line
    with inventory.conn:
        inventory.items.update(replace(item, cost_price=55))
    monkeypatch.setattr(inventory.bookings, "update", real_update)
    again = inventory.reconcile_inventory_costs("INV-1")
    assert again.ok
    assert bookings.bookings.get(b1.booking_id).cost == pytest.approx(110.0)


def test_propagation_without_booking_service(conn):
    plain = InventoryService(conn)
    item = stock_item(cost=50)
    plain.create_item(item)
    b = BookingService(conn).create_booking(draft(services=[_linked(item, qty=1)]))
    result = plain.propagate_price_change("INV-1", new_cost=80)
    assert result.updated == [b.booking_id]
    assert plain.bookings.get(b.booking_id).cost == 80.0


def test_no_prices_means_no_work(inventory):
    result = inventory.propagate_price_change("INV-404")
    assert result.updated == [] and result.ok


def test_delete_item_unlinks_services(bookings, inventory):
    item = stock_item()
    inventory.create_item(item)
    b = bookings.create_booking(draft(services=[_linked(item)]))
    inventory.delete_item("INV-1")
    assert bookings.bookings.get(b.booking_id).services[0].inventory_id is None
    with pytest.raises(NotFoundError):
        inventory.get_item("INV-1")


def test_stock_and_oversold(bookings, inventory):
    inventory.create_item(stock_item("INV-1", total=1))
    inventory.create_item(stock_item("INV-2", total=5, name="Visa block"))
    bookings.create_booking(draft(services=[flight(inventory_id="INV-1", qty=2)]))
    stock = inventory.stock()
    assert stock["INV-1"].remaining == -1
    assert stock["INV-2"].remaining == 5
    assert [s.item_id for s in inventory.oversold_items()] == ["INV-1"]
