from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from ...enums import TransactionType, TreasuryType
from ...errors import DomainError
from ...utils.helpers import new_id


@dataclass
class Treasury:
    name: str
    treasury_type: TreasuryType
    balance: float = 0.0
    currency: str = "JOD"
    account_number: str | None = None
    treasury_id: str | None = None


def _from_row(r: sqlite3.Row) -> Treasury:
    return Treasury(
        treasury_id=r["treasury_id"],
        name=r["name"],
        treasury_type=TreasuryType(r["treasury_type"]),
        balance=float(r["balance"]),
        currency=r["currency"],
        account_number=r["account_number"],
    )


class TreasuryRepo:
    """
    Cash boxes, bank accounts and cheque portfolios.

    Balances only move through adjust_balance(), which callers pair with a
    transaction or payment row inside the same sqlite transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    def list_treasuries(self) -> List[Treasury]:
        rows = self.conn.execute("SELECT * FROM treasuries ORDER BY name").fetchall()
        return [_from_row(r) for r in rows]

    def get(self, treasury_id: str) -> Optional[Treasury]:
        row = self.conn.execute("SELECT * FROM treasuries WHERE treasury_id=?", (treasury_id,)).fetchone()
        return _from_row(row) if row else None

    def balance(self, treasury_id: str) -> float:
        t = self.get(treasury_id)
        if t is None:
            raise DomainError(f"Treasury {treasury_id} does not exist.")
        return t.balance

    def create(self, t: Treasury) -> str:
        if not t.name or not t.name.strip():
            raise DomainError("Treasury name cannot be empty.")
        tid = t.treasury_id or new_id("TR")
        self.conn.execute(
            """
            INSERT INTO treasuries(treasury_id, name, treasury_type, balance, currency, account_number)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (tid, t.name.strip(), TreasuryType(t.treasury_type).value, float(t.balance), t.currency, t.account_number),
        )
        t.treasury_id = tid
        return tid

    def update(self, t: Treasury) -> None:
        """Edits descriptive fields only; the balance is not touched."""
        self.conn.execute(
            "UPDATE treasuries SET name=?, treasury_type=?, currency=?, account_number=? WHERE treasury_id=?",
            (t.name, TreasuryType(t.treasury_type).value, t.currency, t.account_number, t.treasury_id),
        )

    def delete(self, treasury_id: str) -> None:
        self.conn.execute("DELETE FROM treasuries WHERE treasury_id=?", (treasury_id,))

    def adjust_balance(self, treasury_id: str, amount: float, txn_type: TransactionType) -> None:
        """Income credits, Expense debits. Negative resulting balances are allowed."""
        delta = float(amount) if TransactionType(txn_type) == TransactionType.INCOME else -float(amount)
        cur = self.conn.execute(
            "UPDATE treasuries SET balance = balance + ? WHERE treasury_id=?",
            (delta, treasury_id),
        )
        if cur.rowcount == 0:
            raise DomainError(f"Treasury {treasury_id} does not exist.")
