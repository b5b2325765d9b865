# tests/test_alerts.py
from __future__ import annotations

import pytest

from builders import booking, draft, flight, hotel, passenger
from travel_office.database.repositories.transactions_repo import Transaction
from travel_office.enums import BookingStatus, TransactionType
from travel_office.modules.booking.service import BookingService, InitialPayment
from travel_office.modules.dashboard.alerts import AlertLevel, generate_alerts
from travel_office.modules.dashboard.model import DashboardModel, compute_stats
from travel_office.modules.settings.service import AlertSettings


def _ids(alerts):
    return [a.alert_id for a in alerts]


def test_confirmed_booking_close_to_travel_is_critical(today):
    alerts = generate_alerts([booking("BK-1", amount=100, travel_date="2025-03-12")], today)
    assert len(alerts) == 1
    a = alerts[0]
    assert a.level == AlertLevel.CRITICAL
    assert a.category == "Finance"
    assert a.booking_id == "BK-1"
    assert "100.00" in a.message


def test_other_upcoming_balances_are_warnings(today):
    rows = [
        booking("BK-1", travel_date="2025-03-12", status=BookingStatus.PENDING),
        booking("BK-2", travel_date="2025-04-20"),
        booking("BK-3", travel_date="2025-03-01"),                         # already travelled
        booking("BK-4", travel_date="2025-03-12", status=BookingStatus.CANCELLED),
        booking("BK-5", travel_date="2025-03-12", amount=100, paid=99.995),  # within a cent
        booking("BK-6", travel_date=None),
    ]
    alerts = generate_alerts(rows, today)
    assert _ids(alerts) == ["fin-BK-1", "fin-BK-2"]
    assert all(a.level == AlertLevel.WARNING for a in alerts)


def test_missing_passports_warning(today):
    rows = [
        booking("BK-1", paid=100, travel_date="2025-03-15", passengers=[passenger("A", True), passenger("B")]),
        booking("BK-2", paid=100, travel_date="2025-03-25", passengers=[passenger("C")]),   # too far
        booking("BK-3", paid=100, travel_date="2025-03-15", passengers=[passenger("D", True)]),
    ]
    alerts = generate_alerts(rows, today)
    assert _ids(alerts) == ["pp-BK-1"]
    assert alerts[0].message.startswith("1 passport(s)")


def test_flight_and_hotel_reminders_fire_on_the_exact_day(today):
    services = [
        flight(flight_date="2025-03-11", airline="RJ", route="AMM-DXB", departure_time="09:15"),
        flight(flight_date="2025-03-12"),
        hotel(check_in="2025-03-11", check_out="2025-03-14", hotel_name="Address Downtown"),
    ]
    alerts = generate_alerts([booking("BK-1", paid=100, travel_date="2025-03-11", services=services)], today)
    assert _ids(alerts) == ["flight-BK-1-0", "hotel-BK-1-2"]
    assert all(a.level == AlertLevel.INFO for a in alerts)
    assert "RJ (AMM-DXB)" in alerts[0].message and "09:15" in alerts[0].message

    pending = booking("BK-2", paid=100, status=BookingStatus.PENDING, travel_date="2025-03-11", services=services)
    assert generate_alerts([pending], today) == []


def test_levels_are_ordered_and_generation_order_kept(today):
    rows = [
        booking("BK-1", paid=100, travel_date="2025-03-11", services=[flight(flight_date="2025-03-11")]),
        booking("BK-2", travel_date="2025-05-01"),
        booking("BK-3", travel_date="2025-03-11"),
        booking("BK-4", travel_date="2025-05-02"),
        booking("BK-5", travel_date="2025-03-13"),
    ]
    alerts = generate_alerts(rows, today)
    assert [a.level for a in alerts] == [
        AlertLevel.CRITICAL, AlertLevel.CRITICAL,
        AlertLevel.WARNING, AlertLevel.WARNING,
        AlertLevel.INFO,
    ]
    assert _ids(alerts)[:4] == ["fin-urgent-BK-3", "fin-urgent-BK-5", "fin-BK-2", "fin-BK-4"]


def test_alerts_are_capped_at_twenty(today):
    rows = [booking(f"BK-{i:02d}", travel_date="2025-06-01") for i in range(30)]
    alerts = generate_alerts(rows, today)
    assert len(alerts) == 20
    assert alerts[0].booking_id == "BK-00"


def test_settings_switch_rules_and_thresholds(today):
    rows = [booking("BK-1", travel_date="2025-03-16")]
    assert generate_alerts(rows, today)[0].level == AlertLevel.WARNING
    wider = AlertSettings(financial_days_before=7)
    assert generate_alerts(rows, today, wider)[0].level == AlertLevel.CRITICAL
    off = AlertSettings(enable_financial_alerts=False)
    assert generate_alerts(rows, today, off) == []


def test_alert_settings_from_stored_dict():
    s = AlertSettings.from_dict({"financial_days_before": 0, "passport_days_before": "10", "enable_flight_alerts": 0, "junk": 1})
    assert s.financial_days_before == 3
    assert s.passport_days_before == 10
    assert s.enable_flight_alerts is False


# ------------------------------ dashboard ------------------------------

def test_compute_stats_ignores_inactive_sales():
    rows = [
        booking("BK-1", amount=300, paid=100),
        booking("BK-2", amount=200, paid=200),
        booking("BK-3", amount=999, paid=0, status=BookingStatus.VOIDED),
    ]
    txns = [
        Transaction("Rent", 150, TransactionType.EXPENSE, "Rent"),
        Transaction("Receipt", 100, TransactionType.INCOME, "Booking Receipts"),
    ]
    stats = compute_stats(rows, txns)
    assert stats.total_sales == 500
    assert stats.total_paid == 300
    assert stats.total_pending == 200
    assert stats.bookings_count == 3
    assert stats.total_expenses == 150


def test_dashboard_model_refresh(conn, treasury_id, today):
    svc = BookingService(conn)
    b = svc.create_booking(
        draft(sell=400, travel_date="2025-03-11", status=BookingStatus.CONFIRMED),
        InitialPayment(100, treasury_id=treasury_id),
    )
    model = DashboardModel(conn)
    model.refresh(today)
    assert model.stats.total_sales == pytest.approx(400)
    assert model.stats.total_pending == pytest.approx(300)
    assert [a.alert_id for a in model.alerts] == [f"fin-urgent-{b.booking_id}"]
    assert "JOD" in model.alerts[0].message
