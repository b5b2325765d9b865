"""
modules/itinerary/service.py

Purpose
-------
Quotes (itineraries) prepared for a client before anything is booked: a
title, a day-by-day programme, a price and what the price does or does not
include. An accepted quote becomes a Pending booking with one Tour service.

Public interface
----------------
- ItineraryService(conn, user=None, notifier=None, booking_service=None)
    .list_itineraries() / .add_itinerary(itinerary) / .delete_itinerary(itinerary_id)
    .convert_to_booking(itinerary_id, travel_date=None) -> Booking
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from typing import List

from ...constants import BASE_CURRENCY
from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.bookings_repo import Booking, ServiceItem
from ...database.repositories.itineraries_repo import ItinerariesRepo, Itinerary, ItineraryDay
from ...enums import BookingStatus, BookingType, EntityType, ServiceType
from ...errors import NotFoundError, UnknownCurrencyError, ValidationError
from ...utils.helpers import parse_date, today_str
from ...utils.notifications import Notifier
from ...utils.validators import is_non_negative_number, is_positive_int, non_empty
from ..booking.service import BookingDraft
from ..currency.rates import convert_currency

_log = logging.getLogger(__name__)

CONVERTED_SUPPLIER = "General"


def fit_days(days: List[ItineraryDay], duration: int) -> List[ItineraryDay]:
    """
    Day list resized to `duration`: extra days are dropped, missing ones
    added blank. Days are renumbered 1..duration.
    """
    out = [replace(d, day=i + 1) for i, d in enumerate(days[:duration])]
    out.extend(ItineraryDay(day=n, title="") for n in range(len(out) + 1, duration + 1))
    return out


def validate_itinerary(it: Itinerary) -> None:
    if not non_empty(it.title):
        raise ValidationError("Itinerary title is required.")
    if not is_positive_int(it.duration):
        raise ValidationError("Duration must be a whole number of days (1 or more).")
    if it.price is not None and not is_non_negative_number(it.price):
        raise ValidationError("Price must be a number of zero or more.")
    if it.start_date and parse_date(it.start_date) is None:
        raise ValidationError("Start date must be a valid date (YYYY-MM-DD).")


def conversion_notes(it: Itinerary) -> str:
    return (
        f"Converted from quote: {it.title}\n\n"
        f"[Includes]:\n{it.inclusions}\n\n"
        f"[Excludes]:\n{it.exclusions}"
    )


class ItineraryService:
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
        self.booking_service = booking_service
        self.repo = ItinerariesRepo(conn)
        self.audit = AuditRepo(conn)

    def _log_audit(self, action: str, details: str) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, EntityType.ITINERARY, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def list_itineraries(self) -> List[Itinerary]:
        return self.repo.list_itineraries()

    def add_itinerary(self, itinerary: Itinerary) -> str:
        validate_itinerary(itinerary)
        duration = int(float(itinerary.duration))
        it = replace(
            itinerary,
            title=itinerary.title.strip(),
            duration=duration,
            price=None if itinerary.price is None else float(itinerary.price),
            currency=(itinerary.currency or "").upper() or BASE_CURRENCY,
            days=fit_days(list(itinerary.days), duration),
            created_by=self.user or "System",
        )
        with self.conn:
            iid = self.repo.create(it)
        itinerary.itinerary_id = iid
        self._log_audit("ADD_ITINERARY", f"New quote: {it.title}")
        if self.notifier:
            self.notifier.success("Quote created")
        return iid

    def delete_itinerary(self, itinerary_id: str) -> None:
        with self.conn:
            found = self.repo.delete(itinerary_id)
        if not found:
            raise NotFoundError(f"Itinerary {itinerary_id} does not exist.")
        self._log_audit("DELETE_ITINERARY", f"Quote deleted: {itinerary_id}")

    def convert_to_booking(self, itinerary_id: str, travel_date: str | None = None) -> Booking:
        """
        Book an accepted quote. The booking sells at the quote price (in the
        system currency) with zero cost until the real services are entered.
        """
        if self.booking_service is None:
            raise ValidationError("Bookings are not available here.")
        it = self.repo.get(itinerary_id)
        if it is None:
            raise NotFoundError(f"Itinerary {itinerary_id} does not exist.")

        snapshot = self.booking_service.settings.load_snapshot()
        try:
            amount = convert_currency(it.price or 0.0, it.currency, snapshot.system_currency, snapshot.rates)
        except UnknownCurrencyError as e:
            raise ValidationError(str(e)) from e
        amount = round(amount, 2)
        day = travel_date or it.start_date or today_str()
        draft = BookingDraft(
            client_name=it.client_name or "",
            booking_type=BookingType.TOURISM,
            services=[
                ServiceItem(
                    service_type=ServiceType.TOUR,
                    quantity=1,
                    cost_price=0.0,
                    cost_currency=snapshot.system_currency,
                    selling_price=amount,
                    supplier=CONVERTED_SUPPLIER,
                    details=it.title,
                )
            ],
            sell_amount=amount,
            travel_date=day,
            destination=it.destination,
            status=BookingStatus.PENDING,
            notes=conversion_notes(it),
        )
        booking = self.booking_service.create_booking(draft)
        self._log_audit("CONVERT_ITINERARY", f"Quote {it.title} booked as {booking.file_no}")
        return booking
