from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from ...constants import PAYMENT_EPSILON
from ...database.repositories.booking_payments_repo import Payment
from ...database.repositories.bookings_repo import Booking, ServiceItem
from ...enums import PaymentStatus
from ..currency.rates import RateTable
from .services import normalize_service, total_cost_in_base

__all__ = [
    "BookingFinancials",
    "sell_amount_in_base",
    "compute_financials",
    "payment_status",
    "paid_total",
    "payment_in_base",
    "recompute_costs",
    "refresh_payment_state",
]


@dataclass(frozen=True)
class BookingFinancials:
    amount: float   # sell amount, base currency
    cost: float     # aggregated service cost, base currency
    profit: float   # amount - cost; may be negative


def sell_amount_in_base(sell_amount_display: float, system_currency: Optional[str], rates: RateTable) -> float:
    return float(sell_amount_display) / rates.rate(system_currency)


def compute_financials(
    sell_amount_display: float,
    services: Iterable[ServiceItem],
    rates: RateTable,
    system_currency: Optional[str],
) -> BookingFinancials:
    """Sell amount entered in the display currency -> base amount, cost and profit."""
    amount = sell_amount_in_base(sell_amount_display, system_currency, rates)
    cost = total_cost_in_base([normalize_service(s) for s in services], rates)
    return BookingFinancials(amount=amount, cost=cost, profit=amount - cost)


def payment_status(amount: float, paid: float) -> PaymentStatus:
    """
    Unpaid while nothing was paid, Paid once within one cent of the amount,
    Partial in between. Not monotonic: raising the amount can demote Paid.
    """
    if paid <= 0:
        return PaymentStatus.UNPAID
    if paid >= amount - PAYMENT_EPSILON:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def paid_total(payments: Iterable[Payment]) -> float:
    return sum((float(p.final_amount) for p in payments), 0.0)


def payment_in_base(amount: float, currency: Optional[str], rates: RateTable) -> Tuple[float, float]:
    """(exchange rate used, amount in base) for a receipt entered in `currency`."""
    rate = rates.rate(currency)
    return rate, float(amount) / rate


def recompute_costs(booking: Booking, rates: RateTable) -> Booking:
    """Cost and profit re-derived from the services; amount stays as is."""
    services = [normalize_service(s) for s in booking.services]
    cost = total_cost_in_base(services, rates)
    return replace(booking, services=services, cost=cost, profit=booking.amount - cost)


def refresh_payment_state(booking: Booking) -> Booking:
    paid = paid_total(booking.payments)
    return replace(booking, paid_amount=paid, payment_status=payment_status(booking.amount, paid))
