"""
Repository for bookings ("files") with their services and passengers.

A booking is stored as one header row in `bookings`, an ordered list of rows
in `booking_services` and `booking_passengers`. Payments live in
`booking_payments` and are owned by BookingPaymentsRepo; `get()` and
`list_all()` attach them so callers receive the whole aggregate.

Service columns that are filtered or computed on (dates, room count,
inventory link) are real columns; the remaining type-specific fields and
transport route segments travel in the `extra` JSON column.

Writes join the caller's transaction and never commit on their own; the
booking service wraps each operation in `with conn:`.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from ...enums import (
    BookingKind,
    BookingStatus,
    INACTIVE_STATUSES,
    PaxType,
    PaymentStatus,
    ServiceKind,
    parse_booking_type,
    parse_service_type,
    type_label,
)
from ...errors import DomainError
from .booking_payments_repo import BookingPaymentsRepo, Payment


@dataclass
class RouteSegment:
    origin: str = ""
    destination: str = ""
    date: str | None = None
    time: str | None = None


@dataclass
class ServiceItem:
    service_type: ServiceKind
    quantity: int = 1
    cost_price: float = 0.0
    cost_currency: str = "JOD"
    selling_price: float = 0.0
    supplier: str | None = None
    inventory_id: str | None = None
    details: str | None = None
    # hotel
    hotel_name: str | None = None
    check_in: str | None = None
    check_out: str | None = None
    room_count: int | None = None
    room_type: str | None = None
    board_type: str | None = None
    # flight
    flight_date: str | None = None
    return_date: str | None = None
    airline: str | None = None
    flight_number: str | None = None
    route: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    pnr: str | None = None
    ticket_number: str | None = None
    # transport
    vehicle_type: str | None = None
    routes: List[RouteSegment] = field(default_factory=list)
    # visa
    visa_type: str | None = None
    country: str | None = None
    service_id: int | None = None


@dataclass
class Passenger:
    full_name: str
    passport_no: str | None = None
    nationality: str | None = None
    pax_type: PaxType = PaxType.ADULT
    title: str | None = None
    birth_date: str | None = None
    passport_submitted: bool = False
    passenger_id: int | None = None


@dataclass
class Booking:
    booking_id: str
    client_name: str
    booking_type: BookingKind
    travel_date: str | None = None
    destination: str | None = None
    client_phone: str | None = None
    file_no: str | None = None
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    amount: float = 0.0
    cost: float = 0.0
    profit: float = 0.0
    paid_amount: float = 0.0
    notes: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    services: List[ServiceItem] = field(default_factory=list)
    passengers: List[Passenger] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)

    @property
    def remaining(self) -> float:
        return self.amount - self.paid_amount


# columns stored as real columns on booking_services; everything else goes to `extra`
_SERVICE_COLUMNS = (
    "quantity", "cost_price", "cost_currency", "selling_price", "supplier",
    "inventory_id", "details", "hotel_name", "check_in", "check_out",
    "room_count", "room_type", "flight_date", "return_date",
)
_SERVICE_EXTRA = (
    "board_type", "airline", "flight_number", "route", "departure_time",
    "arrival_time", "pnr", "ticket_number", "vehicle_type", "visa_type", "country",
)


def _service_params(booking_id: str, position: int, s: ServiceItem) -> Tuple:
    extra = {k: getattr(s, k) for k in _SERVICE_EXTRA if getattr(s, k) not in (None, "")}
    if s.routes:
        extra["routes"] = [asdict(r) for r in s.routes]
    return (
        booking_id,
        position,
        type_label(s.service_type),
        *[getattr(s, c) for c in _SERVICE_COLUMNS],
        json.dumps(extra, ensure_ascii=False),
    )


def _service_from_row(r: sqlite3.Row) -> ServiceItem:
    d = dict(r)
    extra = json.loads(d.get("extra") or "{}")
    routes = [RouteSegment(**seg) for seg in extra.pop("routes", [])]
    return ServiceItem(
        service_id=d["service_id"],
        service_type=parse_service_type(d["service_type"]),
        quantity=int(d["quantity"]),
        cost_price=float(d["cost_price"]),
        cost_currency=d["cost_currency"],
        selling_price=float(d["selling_price"]),
        supplier=d["supplier"],
        inventory_id=d["inventory_id"],
        details=d["details"],
        hotel_name=d["hotel_name"],
        check_in=d["check_in"],
        check_out=d["check_out"],
        room_count=d["room_count"],
        room_type=d["room_type"],
        flight_date=d["flight_date"],
        return_date=d["return_date"],
        routes=routes,
        **{k: extra.get(k) for k in _SERVICE_EXTRA},
    )


def _passenger_from_row(r: sqlite3.Row) -> Passenger:
    return Passenger(
        passenger_id=r["passenger_id"],
        full_name=r["full_name"],
        passport_no=r["passport_no"],
        nationality=r["nationality"],
        pax_type=PaxType(r["pax_type"]),
        title=r["title"],
        birth_date=r["birth_date"],
        passport_submitted=bool(r["passport_submitted"]),
    )


def _header_from_row(r: sqlite3.Row) -> Booking:
    return Booking(
        booking_id=r["booking_id"],
        file_no=r["file_no"],
        client_name=r["client_name"],
        client_phone=r["client_phone"],
        travel_date=r["travel_date"],
        destination=r["destination"],
        booking_type=parse_booking_type(r["booking_type"]),
        status=BookingStatus(r["status"]),
        payment_status=PaymentStatus(r["payment_status"]),
        amount=float(r["amount"]),
        cost=float(r["cost"]),
        profit=float(r["profit"]),
        paid_amount=float(r["paid_amount"]),
        notes=r["notes"],
        created_at=r["created_at"],
        created_by=r["created_by"],
    )


class BookingsRepo:
    """
    CRUD for the booking aggregate (header + services + passengers).

    Key behavior:
      - insert()/update() write the header and rebuild child rows in list order.
      - payments are never written here; see BookingPaymentsRepo.record().
      - get()/list_all() return fully populated Booking objects.
    """

    def __init__(self, conn: sqlite3.Connection):
        # ensure rows behave like dicts/tuples
        conn.row_factory = sqlite3.Row
        self.conn = conn
        self.payments = BookingPaymentsRepo(conn)

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def get(self, booking_id: str) -> Optional[Booking]:
        row = self.conn.execute("SELECT * FROM bookings WHERE booking_id=?", (booking_id,)).fetchone()
        if row is None:
            return None
        b = _header_from_row(row)
        b.services = self._services_for([b.booking_id]).get(b.booking_id, [])
        b.passengers = self._passengers_for([b.booking_id]).get(b.booking_id, [])
        b.payments = self.payments.list_for_booking(b.booking_id)
        return b

    def list_all(self, *, include_inactive: bool = True) -> List[Booking]:
        """Every booking with children attached, newest first."""
        sql = "SELECT * FROM bookings"
        params: list = []
        if not include_inactive:
            sql += f" WHERE status NOT IN ({','.join('?' * len(INACTIVE_STATUSES))})"
            params = [s.value for s in INACTIVE_STATUSES]
        sql += " ORDER BY created_at DESC, booking_id DESC"
        bookings = [_header_from_row(r) for r in self.conn.execute(sql, params).fetchall()]
        return self._attach_children(bookings)

    def search(
        self,
        query: str = "",
        *,
        date_from: str | None = None,
        date_to: str | None = None,
        booking_type: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Tuple[List[Dict], int]:
        """
        Header rows matching the filters, newest first, plus the total match count.
        `query` matches client name, file number or destination.
        """
        where: List[str] = []
        params: List = []
        if query:
            where.append("(client_name LIKE ? OR file_no LIKE ? OR destination LIKE ?)")
            params += [f"%{query}%"] * 3
        if date_from:
            where.append("DATE(travel_date) >= DATE(?)")
            params.append(date_from)
        if date_to:
            where.append("DATE(travel_date) <= DATE(?)")
            params.append(date_to)
        if booking_type and booking_type != "All":
            where.append("booking_type = ?")
            params.append(booking_type)
        if status and status != "All":
            where.append("status = ?")
            params.append(status)

        clause = (" WHERE " + " AND ".join(where)) if where else ""
        total = self.conn.execute(f"SELECT COUNT(*) AS n FROM bookings{clause}", params).fetchone()["n"]

        sql = f"SELECT * FROM bookings{clause} ORDER BY created_at DESC, booking_id DESC"
        page_params = list(params)
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            page_params += [int(limit), int(offset)]
        rows = self.conn.execute(sql, page_params).fetchall()
        return [dict(r) for r in rows], int(total)

    def ids_using_inventory(self, item_id: str, *, include_inactive: bool = False) -> List[str]:
        sql = """
            SELECT DISTINCT b.booking_id
              FROM bookings b
              JOIN booking_services s ON s.booking_id = b.booking_id
             WHERE s.inventory_id = ?
        """
        params: List = [item_id]
        if not include_inactive:
            sql += f" AND b.status NOT IN ({','.join('?' * len(INACTIVE_STATUSES))})"
            params += [s.value for s in INACTIVE_STATUSES]
        sql += " ORDER BY b.booking_id"
        return [r["booking_id"] for r in self.conn.execute(sql, params).fetchall()]

    def next_file_no(self, on: date | None = None) -> str:
        """Next file number for the month: 'YYMM-NNN'."""
        d = on or date.today()
        prefix = f"{d:%y%m}-"
        # numeric max: text order puts "-999" after "-1000"
        row = self.conn.execute(
            "SELECT MAX(CAST(substr(file_no, ?) AS INTEGER)) AS m FROM bookings WHERE file_no LIKE ?",
            (len(prefix) + 1, prefix + "%"),
        ).fetchone()
        last = int(row["m"] or 0) if row else 0
        return f"{prefix}{last + 1:03d}"

    # ---------------------------------------------------------------------
    # WRITE
    # ---------------------------------------------------------------------
    def insert(self, b: Booking) -> None:
        try:
            self.conn.execute(
                """
                INSERT INTO bookings(
                    booking_id, file_no, client_name, client_phone, travel_date,
                    destination, booking_type, status, payment_status,
                    amount, cost, profit, paid_amount, notes, created_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    b.booking_id, b.file_no, b.client_name, b.client_phone, b.travel_date,
                    b.destination, type_label(b.booking_type), BookingStatus(b.status).value,
                    PaymentStatus(b.payment_status).value, b.amount, b.cost, b.profit,
                    b.paid_amount, b.notes, b.created_by,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DomainError(f"Could not save booking {b.booking_id}: {e}") from e
        self._write_children(b)
        if b.created_at is None:
            row = self.conn.execute(
                "SELECT created_at FROM bookings WHERE booking_id=?", (b.booking_id,)
            ).fetchone()
            b.created_at = row["created_at"]

    def update(self, b: Booking) -> None:
        cur = self.conn.execute(
            """
            UPDATE bookings
               SET file_no=?, client_name=?, client_phone=?, travel_date=?,
                   destination=?, booking_type=?, status=?, payment_status=?,
                   amount=?, cost=?, profit=?, paid_amount=?, notes=?
             WHERE booking_id=?
            """,
            (
                b.file_no, b.client_name, b.client_phone, b.travel_date,
                b.destination, type_label(b.booking_type), BookingStatus(b.status).value,
                PaymentStatus(b.payment_status).value, b.amount, b.cost, b.profit,
                b.paid_amount, b.notes, b.booking_id,
            ),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Booking {b.booking_id} does not exist.")
        self.conn.execute("DELETE FROM booking_services WHERE booking_id=?", (b.booking_id,))
        self.conn.execute("DELETE FROM booking_passengers WHERE booking_id=?", (b.booking_id,))
        self._write_children(b)

    def update_payment_state(self, booking_id: str, paid_amount: float, payment_status: PaymentStatus) -> None:
        self.conn.execute(
            "UPDATE bookings SET paid_amount=?, payment_status=? WHERE booking_id=?",
            (paid_amount, PaymentStatus(payment_status).value, booking_id),
        )

    def update_status(self, booking_id: str, status: BookingStatus) -> None:
        cur = self.conn.execute(
            "UPDATE bookings SET status=? WHERE booking_id=?",
            (BookingStatus(status).value, booking_id),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Booking {booking_id} does not exist.")

    def delete(self, booking_id: str) -> None:
        # children cascade
        self.conn.execute("DELETE FROM bookings WHERE booking_id=?", (booking_id,))

    # ---------------------------------------------------------------------
    # internals
    # ---------------------------------------------------------------------
    def _write_children(self, b: Booking) -> None:
        for pos, s in enumerate(b.services):
            cur = self.conn.execute(
                f"""
                INSERT INTO booking_services(
                    booking_id, position, service_type, {", ".join(_SERVICE_COLUMNS)}, extra
                ) VALUES ({", ".join("?" * (len(_SERVICE_COLUMNS) + 4))})
                """,
                _service_params(b.booking_id, pos, s),
            )
            s.service_id = int(cur.lastrowid)
        for pos, p in enumerate(b.passengers):
            cur = self.conn.execute(
                """
                INSERT INTO booking_passengers(
                    booking_id, position, full_name, passport_no, nationality,
                    pax_type, title, birth_date, passport_submitted
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    b.booking_id, pos, p.full_name, p.passport_no, p.nationality,
                    PaxType(p.pax_type).value, p.title, p.birth_date, 1 if p.passport_submitted else 0,
                ),
            )
            p.passenger_id = int(cur.lastrowid)

    def _services_for(self, booking_ids: List[str]) -> Dict[str, List[ServiceItem]]:
        rows = self.conn.execute(
            f"SELECT * FROM booking_services WHERE booking_id IN ({','.join('?' * len(booking_ids))}) "
            "ORDER BY booking_id, position",
            booking_ids,
        ).fetchall()
        out: Dict[str, List[ServiceItem]] = {}
        for r in rows:
            out.setdefault(r["booking_id"], []).append(_service_from_row(r))
        return out

    def _passengers_for(self, booking_ids: List[str]) -> Dict[str, List[Passenger]]:
        rows = self.conn.execute(
            f"SELECT * FROM booking_passengers WHERE booking_id IN ({','.join('?' * len(booking_ids))}) "
            "ORDER BY booking_id, position",
            booking_ids,
        ).fetchall()
        out: Dict[str, List[Passenger]] = {}
        for r in rows:
            out.setdefault(r["booking_id"], []).append(_passenger_from_row(r))
        return out

    def _attach_children(self, bookings: List[Booking]) -> List[Booking]:
        if not bookings:
            return bookings
        ids = [b.booking_id for b in bookings]
        services = self._services_for(ids)
        passengers = self._passengers_for(ids)
        payments = self.payments.list_for_bookings(ids)
        for b in bookings:
            b.services = services.get(b.booking_id, [])
            b.passengers = passengers.get(b.booking_id, [])
            b.payments = payments.get(b.booking_id, [])
        return bookings


__all__ = [
    "RouteSegment",
    "ServiceItem",
    "Passenger",
    "Booking",
    "BookingsRepo",
]
