"""
modules/treasury/service.py

Purpose
-------
The money ledger: income/expense transactions and the treasury balances they
move. Every balance change is paired 1:1 with a transaction row inside the
same sqlite transaction.

Public interface
----------------
- post_transaction(transactions_repo, treasury_repo, txn, update_treasury=True)
    non-committing building block shared with the booking service
- TreasuryService(conn, user=None, notifier=None)
    .create_treasury / .update_treasury / .delete_treasury / .list_treasuries
    .add_transaction(txn, update_treasury=True) -> Transaction
    .update_transaction(transaction_id, **changes) -> Transaction
    .delete_transaction(transaction_id)
    .transfer_transaction(transaction_id, new_treasury_id)
    .transfer_funds(from_id, to_id, amount, date=None, description=None) -> TransferResult
    .add_client_payment(client_id, amount, treasury_id, date=None) -> Transaction
    .add_agent_payment(agent_id, amount, treasury_id, date=None) -> Transaction
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, replace
from typing import List, Optional

from ...constants import (
    CATEGORY_CLIENT_RECEIPTS,
    CATEGORY_INTERNAL_TRANSFER,
    CATEGORY_SUPPLIER_PAYMENTS,
)
from ...database.repositories.agents_repo import AgentsRepo
from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.booking_payments_repo import BookingPaymentsRepo
from ...database.repositories.clients_repo import ClientsRepo
from ...database.repositories.transactions_repo import Transaction, TransactionsRepo
from ...database.repositories.treasury_repo import Treasury, TreasuryRepo
from ...enums import EntityType, TransactionType
from ...errors import NotFoundError, PersistenceError, ValidationError
from ...utils.helpers import fmt_money, today_str
from ...utils.notifications import Notifier

_log = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "description", "amount", "date", "txn_type", "category", "currency",
    "exchange_rate", "treasury_id", "reference_no", "check_details",
}


def post_transaction(
    transactions: TransactionsRepo,
    treasuries: TreasuryRepo,
    txn: Transaction,
    update_treasury: bool = True,
) -> str:
    """Insert `txn` and apply its balance effect. Does not commit."""
    tid = transactions.insert(txn)
    if update_treasury and txn.treasury_id:
        treasuries.adjust_balance(txn.treasury_id, txn.amount, txn.txn_type)
    return tid


def _reverse(txn_type: TransactionType) -> TransactionType:
    return TransactionType.EXPENSE if TransactionType(txn_type) == TransactionType.INCOME else TransactionType.INCOME


@dataclass(frozen=True)
class TransferResult:
    outgoing: Transaction
    incoming: Transaction
    source_balance: float    # after the transfer; may be negative


class TreasuryService:
    def __init__(self, conn: sqlite3.Connection, *, user: str | None = None, notifier: Notifier | None = None):
        self.conn = conn
        self.user = user
        self.notifier = notifier
        self.treasuries = TreasuryRepo(conn)
        self.transactions = TransactionsRepo(conn)
        self.clients = ClientsRepo(conn)
        self.agents = AgentsRepo(conn)
        self.payments = BookingPaymentsRepo(conn)
        self.audit = AuditRepo(conn)

    # ---- helpers ----

    def _write(self, action: str, fn):
        try:
            with self.conn:
                return fn()
        except sqlite3.Error as e:
            _log.error("%s failed: %s", action, e)
            if self.notifier:
                self.notifier.error(f"{action} failed")
            raise PersistenceError(f"{action} failed: {e}") from e

    def _log_audit(self, action: str, details: str, entity: EntityType = EntityType.TRANSACTION) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, entity, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    def _require_treasury(self, treasury_id: str) -> Treasury:
        t = self.treasuries.get(treasury_id)
        if t is None:
            raise NotFoundError(f"Treasury {treasury_id} does not exist.")
        return t

    def _require_transaction(self, transaction_id: str) -> Transaction:
        t = self.transactions.get(transaction_id)
        if t is None:
            raise NotFoundError(f"Transaction {transaction_id} does not exist.")
        return t

    @staticmethod
    def _require_positive(amount: float) -> float:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number.") from None
        if value <= 0:
            raise ValidationError("Amount must be greater than zero.")
        return value

    # ---- treasuries ----

    def list_treasuries(self) -> List[Treasury]:
        return self.treasuries.list_treasuries()

    def create_treasury(self, t: Treasury) -> str:
        tid = self._write("Create treasury", lambda: self.treasuries.create(t))
        self._log_audit("ADD_TREASURY", f"Treasury account added: {t.name}", EntityType.SYSTEM)
        return tid

    def update_treasury(self, t: Treasury) -> None:
        self._write("Update treasury", lambda: self.treasuries.update(t))
        self._log_audit("UPDATE_TREASURY", f"Treasury account updated: {t.treasury_id}", EntityType.SYSTEM)

    def delete_treasury(self, treasury_id: str) -> None:
        if self.payments.exists_for_treasury(treasury_id):
            raise ValidationError("This treasury holds booking payments and cannot be deleted.")
        self._write("Delete treasury", lambda: self.treasuries.delete(treasury_id))
        self._log_audit("DELETE_TREASURY", f"Treasury account deleted: {treasury_id}", EntityType.SYSTEM)

    # ---- transactions ----

    def add_transaction(self, txn: Transaction, update_treasury: bool = True) -> Transaction:
        if txn.treasury_id:
            self._require_treasury(txn.treasury_id)
        txn.created_by = txn.created_by or self.user or "System"
        self._write("Add transaction", lambda: post_transaction(self.transactions, self.treasuries, txn, update_treasury))
        self._log_audit(
            "ADD_TRANSACTION",
            f"{TransactionType(txn.txn_type).value}: {txn.description} ({fmt_money(txn.amount)})",
        )
        return txn

    def update_transaction(self, transaction_id: str, /, **changes) -> Transaction:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}")
        old = self._require_transaction(transaction_id)
        new = replace(old, **changes)
        if new.treasury_id and new.treasury_id != old.treasury_id:
            self._require_treasury(new.treasury_id)

        moved = (
            new.treasury_id != old.treasury_id
            or float(new.amount) != float(old.amount)
            or TransactionType(new.txn_type) != TransactionType(old.txn_type)
        )

        def work():
            if moved:
                if old.treasury_id:
                    self.treasuries.adjust_balance(old.treasury_id, old.amount, _reverse(old.txn_type))
                if new.treasury_id:
                    self.treasuries.adjust_balance(new.treasury_id, new.amount, new.txn_type)
            self.transactions.update(new)

        self._write("Update transaction", work)
        self._log_audit("UPDATE_TRANSACTION", f"Transaction {transaction_id} updated")
        return new

    def delete_transaction(self, transaction_id: str) -> None:
        old = self._require_transaction(transaction_id)

        def work():
            if old.treasury_id:
                self.treasuries.adjust_balance(old.treasury_id, old.amount, _reverse(old.txn_type))
            self.transactions.delete(transaction_id)

        self._write("Delete transaction", work)
        self._log_audit("DELETE_TRANSACTION", f"Transaction {transaction_id} deleted ({fmt_money(old.amount)})")

    def transfer_transaction(self, transaction_id: str, new_treasury_id: str) -> Optional[Transaction]:
        """
        Move a transaction to another treasury. No-op (returns None) when it has
        no treasury or already sits in the target one.
        """
        txn = self._require_transaction(transaction_id)
        if not txn.treasury_id or txn.treasury_id == new_treasury_id:
            return None
        self._require_treasury(new_treasury_id)
        old_treasury = txn.treasury_id
        moved = replace(txn, treasury_id=new_treasury_id)

        def work():
            self.treasuries.adjust_balance(old_treasury, txn.amount, _reverse(txn.txn_type))
            self.treasuries.adjust_balance(new_treasury_id, txn.amount, txn.txn_type)
            self.transactions.update(moved)

        self._write("Transfer transaction", work)
        self._log_audit("TRANSFER_TRANSACTION", f"Transaction {transaction_id} moved {old_treasury} -> {new_treasury_id}")
        if self.notifier:
            self.notifier.success("Transaction moved and balances updated")
        return moved

    def transfer_funds(
        self,
        from_id: str,
        to_id: str,
        amount: float,
        date: str | None = None,
        description: str | None = None,
    ) -> TransferResult:
        if from_id == to_id:
            raise ValidationError("Cannot transfer to the same account.")
        value = self._require_positive(amount)
        src = self._require_treasury(from_id)
        dst = self._require_treasury(to_id)
        day = date or today_str()
        note = description or "Internal transfer"
        if src.balance - value < 0:
            _log.warning("transfer leaves %s with a negative balance (%.2f)", src.name, src.balance - value)
            if self.notifier:
                self.notifier.info(f"{src.name} balance will go negative")

        outgoing = Transaction(
            description=f"{note} to {dst.name}",
            amount=value,
            txn_type=TransactionType.EXPENSE,
            category=CATEGORY_INTERNAL_TRANSFER,
            date=day,
            treasury_id=src.treasury_id,
            created_by=self.user or "System",
        )
        incoming = Transaction(
            description=f"{note} from {src.name}",
            amount=value,
            txn_type=TransactionType.INCOME,
            category=CATEGORY_INTERNAL_TRANSFER,
            date=day,
            treasury_id=dst.treasury_id,
            created_by=self.user or "System",
        )

        def work():
            post_transaction(self.transactions, self.treasuries, outgoing)
            post_transaction(self.transactions, self.treasuries, incoming)

        self._write("Transfer funds", work)
        self._log_audit("TRANSFER_FUNDS", f"{fmt_money(value)} from {src.name} to {dst.name}")
        if self.notifier:
            self.notifier.success("Transfer completed")
        return TransferResult(outgoing, incoming, self.treasuries.balance(from_id))

    # ---- party ledgers ----

    def add_client_payment(self, client_id: str, amount: float, treasury_id: str, date: str | None = None) -> Transaction:
        value = self._require_positive(amount)
        client = self.clients.get(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} does not exist.")
        self._require_treasury(treasury_id)
        txn = Transaction(
            description=f"Receipt from client: {client.name}",
            amount=value,
            txn_type=TransactionType.INCOME,
            category=CATEGORY_CLIENT_RECEIPTS,
            date=date or today_str(),
            treasury_id=treasury_id,
            created_by=self.user or "System",
        )

        def work():
            post_transaction(self.transactions, self.treasuries, txn)
            # client balance is what the client still owes
            self.clients.adjust_balance(client_id, -value)

        self._write("Client payment", work)
        self._log_audit("CLIENT_PAYMENT", f"Receipt of {fmt_money(value)} from {client.name}", EntityType.CLIENT)
        return txn

    def add_agent_payment(self, agent_id: str, amount: float, treasury_id: str, date: str | None = None) -> Transaction:
        value = self._require_positive(amount)
        agent = self.agents.get(agent_id)
        if agent is None:
            raise NotFoundError(f"Agent {agent_id} does not exist.")
        self._require_treasury(treasury_id)
        txn = Transaction(
            description=f"Payment to supplier: {agent.name}",
            amount=value,
            txn_type=TransactionType.EXPENSE,
            category=CATEGORY_SUPPLIER_PAYMENTS,
            date=date or today_str(),
            treasury_id=treasury_id,
            created_by=self.user or "System",
        )

        def work():
            post_transaction(self.transactions, self.treasuries, txn)
            # agent balance is what the office still owes the supplier
            self.agents.adjust_balance(agent_id, -value)

        self._write("Supplier payment", work)
        self._log_audit("AGENT_PAYMENT", f"Payment of {fmt_money(value)} to {agent.name}", EntityType.AGENT)
        return txn
