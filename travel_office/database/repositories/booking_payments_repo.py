from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ...errors import DomainError
from ...utils.helpers import new_id, today_str


@dataclass
class Payment:
    """One receipt against a booking. `final_amount` is in the base currency."""
    amount: float
    currency: str
    exchange_rate: float
    final_amount: float
    date: str
    treasury_id: str | None = None
    notes: str | None = None
    payment_id: str | None = None
    booking_id: str | None = None


def payment_from_row(r: sqlite3.Row | Dict) -> Payment:
    d = dict(r)
    return Payment(
        payment_id=d["payment_id"],
        booking_id=d["booking_id"],
        amount=float(d["amount"]),
        currency=d["currency"],
        exchange_rate=float(d["exchange_rate"]),
        final_amount=float(d["final_amount"]),
        date=d["date"],
        treasury_id=d.get("treasury_id"),
        notes=d.get("notes"),
    )


class BookingPaymentsRepo:
    """
    Append-only receipts per booking (rows in booking_payments).

    There is no update path: the table carries a trigger that aborts any UPDATE.
    Writes join the caller's transaction; wrap calls in `with conn:`.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    def record(self, booking_id: str, payment: Payment) -> str:
        if payment.amount is None or float(payment.amount) <= 0:
            raise DomainError("Payment amount must be greater than zero.")
        if payment.exchange_rate is None or float(payment.exchange_rate) <= 0:
            raise DomainError("Exchange rate must be greater than zero.")
        pid = payment.payment_id or new_id("PAY")
        self.conn.execute(
            """
            INSERT INTO booking_payments(
                payment_id, booking_id, amount, currency, exchange_rate,
                final_amount, date, treasury_id, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pid,
                booking_id,
                float(payment.amount),
                payment.currency,
                float(payment.exchange_rate),
                float(payment.final_amount),
                payment.date or today_str(),
                payment.treasury_id,
                payment.notes,
            ),
        )
        payment.payment_id = pid
        payment.booking_id = booking_id
        return pid

    def list_for_booking(self, booking_id: str) -> List[Payment]:
        rows = self.conn.execute(
            "SELECT * FROM booking_payments WHERE booking_id=? ORDER BY DATE(date), created_at, rowid",
            (booking_id,),
        ).fetchall()
        return [payment_from_row(r) for r in rows]

    def list_for_bookings(self, booking_ids: Optional[Iterable[str]] = None) -> Dict[str, List[Payment]]:
        """Payments grouped by booking id (all bookings when ids is None)."""
        sql = "SELECT * FROM booking_payments"
        params: list = []
        if booking_ids is not None:
            ids = list(booking_ids)
            if not ids:
                return {}
            sql += f" WHERE booking_id IN ({','.join('?' * len(ids))})"
            params = ids
        sql += " ORDER BY DATE(date), created_at, rowid"
        out: Dict[str, List[Payment]] = {}
        for r in self.conn.execute(sql, params).fetchall():
            out.setdefault(r["booking_id"], []).append(payment_from_row(r))
        return out

    def exists_for_treasury(self, treasury_id: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM booking_payments WHERE treasury_id=? LIMIT 1", (treasury_id,)
        ).fetchone()
        return row is not None

    def total_paid(self, booking_id: str) -> float:
        row = self.conn.execute(
            "SELECT COALESCE(SUM(final_amount), 0) AS paid FROM booking_payments WHERE booking_id=?",
            (booking_id,),
        ).fetchone()
        return float(row["paid"])
