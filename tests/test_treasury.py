# tests/test_treasury.py
from __future__ import annotations

import sqlite3

import pytest

from builders import draft
from travel_office.constants import (
    CATEGORY_CLIENT_RECEIPTS,
    CATEGORY_INTERNAL_TRANSFER,
    CATEGORY_SUPPLIER_PAYMENTS,
)
from travel_office.database.repositories.agents_repo import Agent, AgentsRepo
from travel_office.database.repositories.clients_repo import Client, ClientsRepo
from travel_office.database.repositories.transactions_repo import CheckDetails, Transaction
from travel_office.database.repositories.treasury_repo import Treasury
from travel_office.enums import CheckStatus, TransactionType, TreasuryType
from travel_office.errors import NotFoundError, PersistenceError, ValidationError
from travel_office.modules.booking.service import BookingService, InitialPayment
from travel_office.modules.treasury.service import TreasuryService


@pytest.fixture()
def svc(conn) -> TreasuryService:
    return TreasuryService(conn, user="admin")


@pytest.fixture()
def bank(svc) -> str:
    return svc.create_treasury(Treasury("Arab Bank", TreasuryType.BANK, account_number="0011"))


def _balance(svc, tid):
    return svc.treasuries.balance(tid)


def _income(amount, treasury_id, **kw):
    return Transaction("Visa fees", amount, TransactionType.INCOME, kw.pop("category", "Services"), treasury_id=treasury_id, **kw)


def _expense(amount, treasury_id, **kw):
    return Transaction("Office rent", amount, TransactionType.EXPENSE, kw.pop("category", "Rent"), treasury_id=treasury_id, **kw)


def test_transactions_move_balances(svc, treasury_id):
    svc.add_transaction(_income(250, treasury_id))
    svc.add_transaction(_expense(100, treasury_id))
    assert _balance(svc, treasury_id) == 150
    svc.add_transaction(_expense(500, treasury_id), update_treasury=False)
    assert _balance(svc, treasury_id) == 150
    assert len(svc.transactions.list_transactions(treasury_id=treasury_id)) == 3


def test_transaction_without_treasury_touches_no_balance(svc, treasury_id):
    t = svc.add_transaction(_income(80, None))
    assert t.transaction_id and t.created_by == "admin"
    assert _balance(svc, treasury_id) == 0


def test_transaction_for_missing_treasury(svc):
    with pytest.raises(NotFoundError):
        svc.add_transaction(_income(10, "TR-NOPE"))


def test_cheque_details_round_trip(svc, treasury_id):
    cheque = CheckDetails("000123", "2025-05-01", "Housing Bank", client_name="Omar")
    t = svc.add_transaction(_income(400, treasury_id, check_details=cheque))
    stored = svc.transactions.get(t.transaction_id)
    assert stored.check_details.check_number == "000123"
    assert stored.check_details.status == CheckStatus.PENDING


def test_update_amount_reverses_old_effect(svc, treasury_id):
    t = svc.add_transaction(_income(200, treasury_id))
    svc.update_transaction(t.transaction_id, amount=120)
    assert _balance(svc, treasury_id) == 120
    svc.update_transaction(t.transaction_id, txn_type=TransactionType.EXPENSE)
    assert _balance(svc, treasury_id) == -120


def test_update_treasury_moves_the_money(svc, treasury_id, bank):
    t = svc.add_transaction(_income(300, treasury_id))
    svc.update_transaction(t.transaction_id, treasury_id=bank, description="Moved")
    assert _balance(svc, treasury_id) == 0
    assert _balance(svc, bank) == 300
    assert svc.transactions.get(t.transaction_id).description == "Moved"


def test_update_rejects_unknown_fields(svc, treasury_id):
    t = svc.add_transaction(_income(10, treasury_id))
    with pytest.raises(ValidationError):
        svc.update_transaction(t.transaction_id, transaction_id="TX-other")
    with pytest.raises(ValidationError):
        svc.update_transaction(t.transaction_id, transaction_id="TX-other", amount=99)
    with pytest.raises(ValidationError):
        svc.update_transaction(t.transaction_id, booking_id="BK-1")
    stored = svc.transactions.get(t.transaction_id)
    assert stored.transaction_id == t.transaction_id and stored.amount == 10
    assert _balance(svc, treasury_id) == 10


def test_delete_reverses_balance(svc, treasury_id):
    t = svc.add_transaction(_expense(75, treasury_id))
    assert _balance(svc, treasury_id) == -75
    svc.delete_transaction(t.transaction_id)
    assert _balance(svc, treasury_id) == 0
    assert svc.transactions.get(t.transaction_id) is None
    with pytest.raises(NotFoundError):
        svc.delete_transaction(t.transaction_id)


def test_transfer_transaction(svc, treasury_id, bank):
    t = svc.add_transaction(_expense(60, treasury_id))
    assert svc.transfer_transaction(t.transaction_id, treasury_id) is None
    moved = svc.transfer_transaction(t.transaction_id, bank)
    assert moved.treasury_id == bank
    assert _balance(svc, treasury_id) == 0
    assert _balance(svc, bank) == -60

    loose = svc.add_transaction(_income(5, None))
    assert svc.transfer_transaction(loose.transaction_id, bank) is None


def test_transfer_funds_posts_two_legs(svc, treasury_id, bank):
    svc.add_transaction(_income(100, treasury_id))
    result = svc.transfer_funds(treasury_id, bank, 250, date="2025-03-01")
    # overdraft is allowed
    assert result.source_balance == -150
    assert _balance(svc, bank) == 250
    assert result.outgoing.txn_type == TransactionType.EXPENSE
    assert result.incoming.txn_type == TransactionType.INCOME
    legs = svc.transactions.list_transactions(category=CATEGORY_INTERNAL_TRANSFER)
    assert len(legs) == 2
    assert {t.date for t in legs} == {"2025-03-01"}


@pytest.mark.parametrize("amount", [0, -5, "x"])
def test_transfer_funds_validation(svc, treasury_id, bank, amount):
    with pytest.raises(ValidationError):
        svc.transfer_funds(treasury_id, bank, amount)


def test_transfer_to_same_account(svc, treasury_id):
    with pytest.raises(ValidationError):
        svc.transfer_funds(treasury_id, treasury_id, 10)


def test_failed_transfer_leaves_no_half_posting(svc, treasury_id, bank, monkeypatch):
    real = svc.treasuries.adjust_balance
    calls = []

    def flaky(tid, amount, txn_type):
        calls.append(tid)
        if tid == bank:
            raise sqlite3.OperationalError("database is locked")
        real(tid, amount, txn_type)

    monkeypatch.setattr(svc.treasuries, "adjust_balance", flaky)
    with pytest.raises(PersistenceError):
        svc.transfer_funds(treasury_id, bank, 40)
    assert calls == [treasury_id, bank]
    assert _balance(svc, treasury_id) == 0
    assert svc.transactions.list_transactions() == []


def test_client_payment(conn, svc, treasury_id):
    with conn:
        cid = ClientsRepo(conn).create(Client(None, "Nour Co", client_type="Company", balance=500))
    t = svc.add_client_payment(cid, 200, treasury_id)
    assert t.category == CATEGORY_CLIENT_RECEIPTS
    assert ClientsRepo(conn).get(cid).balance == 300
    assert _balance(svc, treasury_id) == 200
    with pytest.raises(NotFoundError):
        svc.add_client_payment("CL-missing", 10, treasury_id)


def test_agent_payment(conn, svc, treasury_id):
    with conn:
        aid = AgentsRepo(conn).create(Agent(None, "Royal Wings", agent_type="Airline", balance=1000))
    t = svc.add_agent_payment(aid, 400, treasury_id, date="2025-02-02")
    assert t.category == CATEGORY_SUPPLIER_PAYMENTS
    assert t.txn_type == TransactionType.EXPENSE
    assert AgentsRepo(conn).get(aid).balance == 600
    assert _balance(svc, treasury_id) == -400


def test_treasury_lifecycle(svc, bank):
    names = [t.name for t in svc.list_treasuries()]
    assert "Arab Bank" in names and "Main Cash" in names
    t = svc.treasuries.get(bank)
    t.name = "Arab Bank - USD"
    t.balance = 9999  # ignored by update
    svc.update_treasury(t)
    assert svc.treasuries.get(bank).name == "Arab Bank - USD"
    assert _balance(svc, bank) == 0
    svc.delete_treasury(bank)
    assert svc.treasuries.get(bank) is None


def test_treasury_with_booking_receipts_cannot_be_deleted(conn, svc, treasury_id):
    BookingService(conn).create_booking(draft(), InitialPayment(50, treasury_id=treasury_id))
    with pytest.raises(ValidationError):
        svc.delete_treasury(treasury_id)
    assert svc.treasuries.get(treasury_id) is not None
