from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass
from typing import List, Optional

from ...enums import CheckStatus, TransactionType
from ...errors import DomainError
from ...utils.helpers import new_id, today_str


@dataclass
class CheckDetails:
    check_number: str
    due_date: str
    bank_name: str
    client_name: str | None = None
    status: CheckStatus = CheckStatus.PENDING


@dataclass
class Transaction:
    description: str
    amount: float            # base currency
    txn_type: TransactionType
    category: str
    date: str = ""
    currency: str = "JOD"
    exchange_rate: float = 1.0
    treasury_id: str | None = None
    booking_id: str | None = None
    reference_no: str | None = None
    check_details: CheckDetails | None = None
    created_by: str | None = None
    transaction_id: str | None = None


def _from_row(r: sqlite3.Row) -> Transaction:
    check = None
    if r["check_details"]:
        raw = json.loads(r["check_details"])
        raw["status"] = CheckStatus(raw.get("status") or CheckStatus.PENDING.value)
        check = CheckDetails(**raw)
    return Transaction(
        transaction_id=r["transaction_id"],
        reference_no=r["reference_no"],
        description=r["description"],
        amount=float(r["amount"]),
        date=r["date"],
        txn_type=TransactionType(r["txn_type"]),
        category=r["category"],
        currency=r["currency"],
        exchange_rate=float(r["exchange_rate"]),
        treasury_id=r["treasury_id"],
        booking_id=r["booking_id"],
        check_details=check,
        created_by=r["created_by"],
    )


def _check_json(check: CheckDetails | None) -> str | None:
    if check is None:
        return None
    d = asdict(check)
    d["status"] = CheckStatus(check.status).value
    return json.dumps(d, ensure_ascii=False)


class TransactionsRepo:
    """
    Income/expense ledger rows. Treasury balances are NOT touched here; the
    treasury service pairs every write with TreasuryRepo.adjust_balance().
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    @staticmethod
    def _validate(t: Transaction) -> None:
        if not t.description or not t.description.strip():
            raise DomainError("Description cannot be empty.")
        if t.amount is None or float(t.amount) < 0:
            raise DomainError("Amount must be a non-negative number.")
        if not t.category or not t.category.strip():
            raise DomainError("Category cannot be empty.")

    def get(self, transaction_id: str) -> Optional[Transaction]:
        row = self.conn.execute(
            "SELECT * FROM transactions WHERE transaction_id=?", (transaction_id,)
        ).fetchone()
        return _from_row(row) if row else None

    def list_transactions(
        self,
        *,
        date_from: str | None = None,
        date_to: str | None = None,
        txn_type: TransactionType | str | None = None,
        treasury_id: str | None = None,
        category: str | None = None,
    ) -> List[Transaction]:
        where: List[str] = []
        params: List = []
        if date_from:
            where.append("DATE(date) >= DATE(?)")
            params.append(date_from)
        if date_to:
            where.append("DATE(date) <= DATE(?)")
            params.append(date_to)
        if txn_type:
            where.append("txn_type = ?")
            params.append(TransactionType(txn_type).value)
        if treasury_id:
            where.append("treasury_id = ?")
            params.append(treasury_id)
        if category:
            where.append("category = ?")
            params.append(category)
        sql = "SELECT * FROM transactions"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY DATE(date) DESC, created_at DESC, rowid DESC"
        return [_from_row(r) for r in self.conn.execute(sql, params).fetchall()]

    def insert(self, t: Transaction) -> str:
        self._validate(t)
        tid = t.transaction_id or new_id("TX")
        self.conn.execute(
            """
            INSERT INTO transactions(
                transaction_id, reference_no, description, amount, date, txn_type,
                category, currency, exchange_rate, treasury_id, booking_id,
                check_details, created_by
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tid, t.reference_no, t.description.strip(), float(t.amount), t.date or today_str(),
                TransactionType(t.txn_type).value, t.category.strip(), t.currency,
                float(t.exchange_rate), t.treasury_id, t.booking_id,
                _check_json(t.check_details), t.created_by,
            ),
        )
        t.transaction_id = tid
        if not t.date:
            t.date = today_str()
        return tid

    def update(self, t: Transaction) -> None:
        self._validate(t)
        cur = self.conn.execute(
            """
            UPDATE transactions
               SET reference_no=?, description=?, amount=?, date=?, txn_type=?,
                   category=?, currency=?, exchange_rate=?, treasury_id=?,
                   booking_id=?, check_details=?
             WHERE transaction_id=?
            """,
            (
                t.reference_no, t.description.strip(), float(t.amount), t.date,
                TransactionType(t.txn_type).value, t.category.strip(), t.currency,
                float(t.exchange_rate), t.treasury_id, t.booking_id,
                _check_json(t.check_details), t.transaction_id,
            ),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Transaction {t.transaction_id} does not exist.")

    def delete(self, transaction_id: str) -> None:
        self.conn.execute("DELETE FROM transactions WHERE transaction_id=?", (transaction_id,))
