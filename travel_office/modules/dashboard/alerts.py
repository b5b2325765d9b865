"""
Smart alerts over the booking list.

generate_alerts() is a pure, full recomputation: give it every booking and
"today" and it returns the ordered, capped alert list. Nothing is persisted.

Rules (thresholds come from AlertSettings):
  critical  Finance  confirmed booking travelling within N days with money still due
  warning   Finance  money due on any active upcoming booking not already critical
  warning   Booking  confirmed booking travelling within N days with passports missing
  info      Flight   flight on a confirmed booking exactly N days from today
  info      Booking  hotel check-in on a confirmed booking exactly N days from today
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from ...constants import BASE_CURRENCY, MAX_ALERTS, PAYMENT_EPSILON
from ...database.repositories.bookings_repo import Booking
from ...enums import BookingStatus, ServiceType, is_inactive
from ...utils.helpers import fmt_money, parse_date
from ..settings.service import AlertSettings

__all__ = ["AlertLevel", "AlertSettings", "Alert", "generate_alerts"]


class AlertLevel(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


_LEVEL_ORDER = {AlertLevel.CRITICAL: 0, AlertLevel.WARNING: 1, AlertLevel.INFO: 2}


@dataclass(frozen=True)
class Alert:
    alert_id: str
    title: str
    message: str
    level: AlertLevel
    category: str          # Finance | Booking | Flight
    booking_id: str


def _missing_passports(b: Booking) -> int:
    return sum(1 for p in b.passengers if not p.passport_submitted)


def _booking_alerts(b: Booking, today: date, s: AlertSettings, currency: str) -> List[Alert]:
    out: List[Alert] = []
    travel = parse_date(b.travel_date)
    confirmed = b.status == BookingStatus.CONFIRMED
    upcoming = travel is not None and travel >= today
    remaining = b.amount - b.paid_amount
    label = b.file_no or b.booking_id

    if s.enable_financial_alerts and upcoming and remaining > PAYMENT_EPSILON:
        if confirmed and travel <= today + timedelta(days=s.financial_days_before):
            out.append(Alert(
                alert_id=f"fin-urgent-{b.booking_id}",
                title="Urgent payment due",
                message=(
                    f"{b.client_name} travels within {s.financial_days_before} days "
                    f"({travel.isoformat()}) with {fmt_money(remaining)} {currency} outstanding."
                ),
                level=AlertLevel.CRITICAL,
                category="Finance",
                booking_id=b.booking_id,
            ))
        elif not is_inactive(b.status):
            out.append(Alert(
                alert_id=f"fin-{b.booking_id}",
                title="Outstanding balance",
                message=f"{fmt_money(remaining)} {currency} remaining on {b.client_name} (file {label}).",
                level=AlertLevel.WARNING,
                category="Finance",
                booking_id=b.booking_id,
            ))

    if (
        s.enable_passport_alerts
        and confirmed
        and upcoming
        and travel <= today + timedelta(days=s.passport_days_before)
    ):
        missing = _missing_passports(b)
        if missing > 0:
            out.append(Alert(
                alert_id=f"pp-{b.booking_id}",
                title="Missing passports",
                message=(
                    f"{missing} passport(s) not yet received for {b.client_name}, "
                    f"departing within {s.passport_days_before} days."
                ),
                level=AlertLevel.WARNING,
                category="Booking",
                booking_id=b.booking_id,
            ))

    if not confirmed:
        return out

    flight_day = today + timedelta(days=s.flight_days_before)
    hotel_day = today + timedelta(days=s.hotel_days_before)
    for idx, svc in enumerate(b.services):
        sid = svc.service_id if svc.service_id is not None else f"{b.booking_id}-{idx}"
        if s.enable_flight_alerts and svc.service_type == ServiceType.FLIGHT and parse_date(svc.flight_date) == flight_day:
            out.append(Alert(
                alert_id=f"flight-{sid}",
                title="Flight reminder",
                message=(
                    f"{svc.airline or 'Flight'} ({svc.route or '-'}) for {b.client_name} on "
                    f"{svc.flight_date} at {svc.departure_time or 'unspecified time'}."
                ),
                level=AlertLevel.INFO,
                category="Flight",
                booking_id=b.booking_id,
            ))
        if s.enable_hotel_alerts and svc.service_type == ServiceType.HOTEL and parse_date(svc.check_in) == hotel_day:
            out.append(Alert(
                alert_id=f"hotel-{sid}",
                title="Hotel check-in reminder",
                message=f"Check-in at {svc.hotel_name or 'hotel'} for {b.client_name} on {svc.check_in}.",
                level=AlertLevel.INFO,
                category="Booking",
                booking_id=b.booking_id,
            ))
    return out


def generate_alerts(
    bookings: Iterable[Booking],
    today: Optional[date] = None,
    settings: Optional[AlertSettings] = None,
    *,
    currency: str = BASE_CURRENCY,
    limit: int = MAX_ALERTS,
) -> List[Alert]:
    today = today or date.today()
    settings = settings or AlertSettings()
    alerts: List[Alert] = []
    for b in bookings:
        alerts.extend(_booking_alerts(b, today, settings, currency))
    # sorted() is stable: generation order is kept inside each level
    alerts = sorted(alerts, key=lambda a: _LEVEL_ORDER[a.level])
    return alerts[:limit]
