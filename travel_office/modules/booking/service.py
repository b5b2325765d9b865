"""
modules/booking/service.py

Purpose
-------
Booking ("file") lifecycle on top of the repositories: create, edit, record
payments, change status and delete. Financial fields are always derived here
(amount/cost/profit from the services, paid amount and payment status from
the payments) and never taken from the caller.

Every mutation goes through the optimistic CommandRunner: the local cache is
updated first, the database second, and a database failure reverts the cache
and raises PersistenceError. Creating a booking with an initial payment and
recording a payment are each one sqlite transaction (booking/payment rows,
treasury balance and the matching income transaction together).

Public interface
----------------
- BookingDraft, InitialPayment          input shapes
- BookingService(conn, user=None, notifier=None)
    .load() -> list[Booking]
    .get_booking(booking_id) -> Booking
    .list_bookings(page=1, search="", date_from=None, date_to=None, booking_type=None, status=None) -> BookingPage
    .create_booking(draft, initial_payment=None) -> Booking
    .update_booking(booking_id, sell_amount=None, services=None, passengers=None, **fields) -> Booking
    .add_payment(booking_id, amount, currency=None, treasury_id=None, date=None, notes=None) -> Payment
    .update_status(booking_id, status) -> Booking
    .delete_booking(booking_id)
"""

from __future__ import annotations

import logging
import math
import sqlite3
from dataclasses import dataclass, field, replace
from typing import List

from ...constants import (
    BASE_CURRENCY,
    BOOKINGS_PAGE_SIZE,
    CATEGORY_BOOKING_RECEIPTS,
    FIRST_PAYMENT_NOTE,
)
from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.booking_payments_repo import BookingPaymentsRepo, Payment
from ...database.repositories.bookings_repo import Booking, BookingsRepo, Passenger, ServiceItem
from ...database.repositories.clients_repo import Client, ClientsRepo
from ...database.repositories.transactions_repo import Transaction, TransactionsRepo
from ...database.repositories.treasury_repo import TreasuryRepo
from ...enums import (
    BookingKind,
    BookingStatus,
    EntityType,
    ServiceType,
    TransactionType,
    parse_booking_type,
    type_label,
)
from ...errors import DomainError, NotFoundError, UnknownCurrencyError, ValidationError
from ...utils.helpers import fmt_money, new_id, today_str
from ...utils.notifications import Notifier
from ...utils.validators import is_non_negative_number, is_positive_int, non_empty
from ..settings.service import Settings, SettingsService
from ..treasury.service import post_transaction
from .commands import BookingCache, CommandRunner, DeleteBooking, InsertBooking, UpdateBooking
from .financials import (
    compute_financials,
    payment_in_base,
    payment_status,
    recompute_costs,
    refresh_payment_state,
    sell_amount_in_base,
)
from .services import normalize_service

_log = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "client_name", "client_phone", "travel_date", "destination",
    "booking_type", "status", "notes", "file_no",
}


@dataclass
class BookingDraft:
    client_name: str
    booking_type: BookingKind | str
    services: List[ServiceItem]
    sell_amount: float                     # in the display (system) currency
    travel_date: str | None = None
    destination: str | None = None
    client_phone: str | None = None
    passengers: List[Passenger] = field(default_factory=list)
    status: BookingStatus = BookingStatus.PENDING
    notes: str | None = None
    file_no: str | None = None


@dataclass
class InitialPayment:
    amount: float                          # in `currency`; the system currency when None
    treasury_id: str | None = None
    currency: str | None = None
    date: str | None = None


@dataclass(frozen=True)
class BookingPage:
    rows: List[dict]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


def parse_status(value: BookingStatus | str | None) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown booking status: {value!r}") from None


def validate_services(services: List[ServiceItem]) -> None:
    """
    Checks that must pass before any cost is computed. Hotel quantity is
    derived from rooms and nights, so only the room count is checked there.
    """
    if not services:
        raise ValidationError("A booking needs at least one service.")
    for i, s in enumerate(services, start=1):
        if s.service_type == ServiceType.HOTEL:
            if s.room_count not in (None, "") and not is_positive_int(s.room_count):
                raise ValidationError(f"Service {i}: room count must be a whole number of at least 1.")
        elif not is_positive_int(s.quantity):
            raise ValidationError(f"Service {i}: quantity must be a whole number of at least 1.")
        if not is_non_negative_number(s.cost_price) or not is_non_negative_number(s.selling_price):
            raise ValidationError(f"Service {i}: prices must be numbers of zero or more.")


def validate_booking(b: Booking) -> None:
    """Raise ValidationError for anything that must block the save."""
    if not non_empty(b.client_name):
        raise ValidationError("Client name is required.")
    if b.booking_type is None or not non_empty(type_label(b.booking_type)):
        raise ValidationError("Booking type is required.")
    validate_services(b.services)
    for i, s in enumerate(b.services, start=1):
        if not is_positive_int(s.quantity):
            raise ValidationError(f"Service {i}: quantity must be a whole number of at least 1.")
    if not is_non_negative_number(b.amount):
        raise ValidationError("Sell amount cannot be negative.")
    for p in b.passengers:
        if not non_empty(p.full_name):
            raise ValidationError("Every passenger needs a name.")


class BookingService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        user: str | None = None,
        notifier: Notifier | None = None,
    ):
        self.conn = conn
        self.user = user
        self.notifier = notifier
        self.bookings = BookingsRepo(conn)
        self.payments = BookingPaymentsRepo(conn)
        self.treasuries = TreasuryRepo(conn)
        self.transactions = TransactionsRepo(conn)
        self.clients = ClientsRepo(conn)
        self.audit = AuditRepo(conn)
        self.settings = SettingsService(conn, user=user)
        self.cache = BookingCache()
        self.runner = CommandRunner(self.cache)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _snapshot(self) -> Settings:
        return self.settings.load_snapshot()

    def _notify_ok(self, message: str) -> None:
        if self.notifier:
            self.notifier.success(message)

    def _notify_error(self, message: str) -> None:
        if self.notifier:
            self.notifier.error(message)

    def _log_audit(self, action: str, details: str) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, EntityType.BOOKING, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def _current(self, booking_id: str) -> Booking:
        b = self.bookings.get(booking_id)
        if b is None:
            raise NotFoundError(f"Booking {booking_id} does not exist.")
        return b

    def _ensure_client(self, name: str, phone: str | None) -> None:
        if self.clients.get_by_name(name) is not None:
            return
        try:
            with self.conn:
                self.clients.create(Client(client_id=None, name=name, phone=phone))
        except (sqlite3.Error, DomainError) as e:
            _log.warning("could not register client %r: %s", name, e)
            return
        try:
            with self.conn:
                self.audit.record("ADD_CLIENT", f"New client added: {name}", EntityType.CLIENT, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry ADD_CLIENT not written: %s", e)

    def _build_payment(
        self,
        amount: float,
        currency: str | None,
        treasury_id: str | None,
        date: str | None,
        notes: str | None,
        snapshot: Settings,
    ) -> Payment:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Payment amount must be a number.") from None
        if value <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        code = (currency or snapshot.system_currency).upper()
        try:
            rate, final = payment_in_base(value, code, snapshot.rates)
        except UnknownCurrencyError as e:
            raise ValidationError(str(e)) from e
        if treasury_id and self.treasuries.get(treasury_id) is None:
            raise ValidationError(f"Treasury {treasury_id} does not exist.")
        return Payment(
            payment_id=new_id("PAY"),
            amount=value,
            currency=code,
            exchange_rate=rate,
            final_amount=final,
            date=date or today_str(),
            treasury_id=treasury_id,
            notes=notes,
        )

    def _post_payment(self, booking: Booking, payment: Payment) -> None:
        """Payment row + treasury credit + income transaction. Does not commit."""
        self.payments.record(booking.booking_id, payment)
        post_transaction(
            self.transactions,
            self.treasuries,
            Transaction(
                description=f"Booking payment from {booking.client_name} - file {booking.file_no or booking.booking_id}",
                amount=payment.final_amount,
                txn_type=TransactionType.INCOME,
                category=CATEGORY_BOOKING_RECEIPTS,
                date=payment.date,
                currency=BASE_CURRENCY,
                exchange_rate=1.0,
                treasury_id=payment.treasury_id,
                booking_id=booking.booking_id,
                reference_no=payment.payment_id,
                created_by=self.user or "System",
            ),
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def load(self) -> List[Booking]:
        bookings = self.bookings.list_all()
        self.cache.replace_all(bookings)
        return bookings

    def get_booking(self, booking_id: str) -> Booking:
        cached = self.cache.get(booking_id)
        return cached if cached is not None else self._current(booking_id)

    def list_bookings(
        self,
        page: int = 1,
        search: str = "",
        *,
        date_from: str | None = None,
        date_to: str | None = None,
        booking_type: str | None = None,
        status: str | None = None,
        page_size: int = BOOKINGS_PAGE_SIZE,
    ) -> BookingPage:
        page = max(1, int(page))
        rows, total = self.bookings.search(
            search,
            date_from=date_from,
            date_to=date_to,
            booking_type=booking_type,
            status=status,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return BookingPage(rows=rows, total=total, page=page, page_size=page_size)

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def create_booking(self, draft: BookingDraft, initial_payment: InitialPayment | None = None) -> Booking:
        snapshot = self._snapshot()
        if not is_non_negative_number(draft.sell_amount):
            raise ValidationError("Sell amount cannot be negative.")
        try:
            kind = parse_booking_type(draft.booking_type) if isinstance(draft.booking_type, str) else draft.booking_type
        except ValueError:
            raise ValidationError("Booking type is required.") from None
        status = parse_status(draft.status)
        validate_services(draft.services)
        services = [normalize_service(s) for s in draft.services]
        try:
            fin = compute_financials(draft.sell_amount, services, snapshot.rates, snapshot.system_currency)
        except UnknownCurrencyError as e:
            raise ValidationError(str(e)) from e

        booking = Booking(
            booking_id=new_id("BK"),
            file_no=draft.file_no or self.bookings.next_file_no(),
            client_name=(draft.client_name or "").strip(),
            client_phone=draft.client_phone,
            travel_date=draft.travel_date,
            destination=draft.destination,
            booking_type=kind,
            status=status,
            amount=fin.amount,
            cost=fin.cost,
            profit=fin.profit,
            notes=draft.notes,
            created_by=self.user or "System",
            services=services,
            passengers=list(draft.passengers),
        )
        validate_booking(booking)

        payment = None
        if initial_payment is not None and float(initial_payment.amount or 0) > 0:
            payment = self._build_payment(
                initial_payment.amount,
                initial_payment.currency,
                initial_payment.treasury_id,
                initial_payment.date,
                FIRST_PAYMENT_NOTE,
                snapshot,
            )
            booking.payments = [payment]
            booking = refresh_payment_state(booking)

        def persist() -> None:
            with self.conn:
                self.bookings.insert(booking)
                if payment is not None:
                    self._post_payment(booking, payment)

        try:
            self.runner.run(InsertBooking(booking), persist)
        except DomainError:
            self._notify_error("Could not save the booking")
            raise

        self._ensure_client(booking.client_name, booking.client_phone)
        self._log_audit(
            "ADD_BOOKING",
            f"New booking file {booking.file_no} for {booking.client_name}",
        )
        self._notify_ok(f"Booking {booking.file_no} saved")
        return booking

    def update_booking(
        self,
        booking_id: str,
        *,
        sell_amount: float | None = None,
        services: List[ServiceItem] | None = None,
        passengers: List[Passenger] | None = None,
        **fields,
    ) -> Booking:
        """
        Edit header fields, services, passengers and/or the sell amount.
        Paid amount and payments cannot be edited here; payment status is
        re-evaluated against the new amount.
        """
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}")
        before = self._current(booking_id)
        snapshot = self._snapshot()

        changes = dict(fields)
        if "booking_type" in changes and isinstance(changes["booking_type"], str):
            try:
                changes["booking_type"] = parse_booking_type(changes["booking_type"])
            except ValueError:
                raise ValidationError("Booking type is required.") from None
        if "status" in changes:
            changes["status"] = parse_status(changes["status"])
        after = replace(before, **changes)
        if services is not None:
            validate_services(services)
            after = replace(after, services=list(services))
        if passengers is not None:
            after = replace(after, passengers=list(passengers))
        if sell_amount is not None:
            if not is_non_negative_number(sell_amount):
                raise ValidationError("Sell amount cannot be negative.")
            try:
                after = replace(after, amount=sell_amount_in_base(sell_amount, snapshot.system_currency, snapshot.rates))
            except UnknownCurrencyError as e:
                raise ValidationError(str(e)) from e
        after = recompute_costs(after, snapshot.rates)
        after = replace(after, payment_status=payment_status(after.amount, after.paid_amount))
        validate_booking(after)

        def persist() -> None:
            with self.conn:
                self.bookings.update(after)

        try:
            self.runner.run(UpdateBooking(before, after), persist)
        except DomainError:
            self._notify_error("Could not update the booking")
            raise

        notes: List[str] = []
        if abs(after.amount - before.amount) > 0.01:
            notes.append(f"Sell total changed from {fmt_money(before.amount)} to {fmt_money(after.amount)}")
        if after.status != before.status:
            notes.append(f"Status changed from {before.status.value} to {after.status.value}")
        self._log_audit("UPDATE_BOOKING", " | ".join(notes) or f"Booking {booking_id} updated")
        self._notify_ok("Booking updated")
        return after

    def add_payment(
        self,
        booking_id: str,
        amount: float,
        currency: str | None = None,
        treasury_id: str | None = None,
        date: str | None = None,
        notes: str | None = None,
    ) -> Payment:
        before = self._current(booking_id)
        snapshot = self._snapshot()
        payment = self._build_payment(amount, currency, treasury_id, date, notes, snapshot)
        after = refresh_payment_state(replace(before, payments=[*before.payments, payment]))

        def persist() -> None:
            with self.conn:
                self._post_payment(after, payment)
                self.bookings.update_payment_state(booking_id, after.paid_amount, after.payment_status)

        try:
            self.runner.run(UpdateBooking(before, after), persist)
        except DomainError:
            self._notify_error("Could not record the payment")
            raise

        self._log_audit("ADD_PAYMENT", f"Payment of {fmt_money(payment.final_amount)} added to booking {booking_id}")
        self._notify_ok("Payment recorded")
        return payment

    def update_status(self, booking_id: str, status: BookingStatus | str) -> Booking:
        before = self._current(booking_id)
        new_status = parse_status(status)
        after = replace(before, status=new_status)

        def persist() -> None:
            with self.conn:
                self.bookings.update_status(booking_id, new_status)

        self.runner.run(UpdateBooking(before, after), persist)
        self._log_audit("UPDATE_STATUS", f"Booking {booking_id} status set to {new_status.value}")
        return after

    def delete_booking(self, booking_id: str) -> None:
        """
        Remove a booking with its services, passengers and payments. Ledger
        transactions already posted stay, unlinked from the booking.
        """
        before = self._current(booking_id)

        def persist() -> None:
            with self.conn:
                self.bookings.delete(booking_id)

        try:
            self.runner.run(DeleteBooking(before), persist)
        except DomainError:
            self._notify_error("Could not delete the booking")
            raise
        self._log_audit("DELETE_BOOKING", f"Booking file {before.file_no or booking_id} deleted")
        self._notify_ok("Booking deleted")


__all__ = [
    "BookingDraft",
    "InitialPayment",
    "BookingPage",
    "BookingService",
    "parse_status",
    "validate_booking",
    "validate_services",
]
