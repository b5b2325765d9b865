# tests/test_ai_assistant.py
"""The Gemini client is replaced by a fake exposing models.generate_content()."""
from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from builders import booking
from travel_office.database.repositories.transactions_repo import Transaction
from travel_office.enums import TransactionType
from travel_office.errors import EnrichmentUnavailable
from travel_office.modules.ai_assistant.service import (
    FINANCIAL_SYSTEM_INSTRUCTION,
    UNAVAILABLE_ANSWER,
    AIAssistant,
    build_context,
    parse_json_response,
)
from travel_office.modules.dashboard.model import DashboardStats
from travel_office.utils.notifications import Notifier


class FakeModels:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate_content(self, *, model, contents, config):
        self.calls.append(dict(model=model, contents=contents, config=config))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


def _client(reply=None, error=None):
    return SimpleNamespace(models=FakeModels(reply, error))


@pytest.mark.parametrize(
    "text, expected",
    [
        ('{"airline": "RJ"}', {"airline": "RJ"}),
        ('```json\n{"city": "Amman"}\n```', {"city": "Amman"}),
        ('Here you go: {"route": "AMM-DXB"} hope it helps', {"route": "AMM-DXB"}),
        ("no json at all", None),
        ("[1, 2]", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_json_response(text, expected):
    assert parse_json_response(text) == expected


def test_financial_question_sends_context_and_instruction():
    client = _client("Your margin is 20%.")
    ai = AIAssistant(api_key="k", model="test-model", client=client)
    answer = ai.ask_financial_question("What is my margin?", '{"x": 1}')
    assert answer == "Your margin is 20%."
    call = client.models.calls[0]
    assert call["model"] == "test-model"
    assert '{"x": 1}' in call["contents"] and "What is my margin?" in call["contents"]
    assert call["config"].system_instruction == FINANCIAL_SYSTEM_INSTRUCTION


def test_financial_question_degrades_gracefully():
    assert AIAssistant(api_key="", client=None).ask_financial_question("q", "{}") == UNAVAILABLE_ANSWER
    broken = AIAssistant(client=_client(error=RuntimeError("quota exceeded")))
    assert broken.ask_financial_question("q", "{}") == UNAVAILABLE_ANSWER
    empty = AIAssistant(client=_client(reply=""))
    assert empty.ask_financial_question("q", "{}") == UNAVAILABLE_ANSWER


def test_missing_key_raises_on_client_creation():
    with pytest.raises(EnrichmentUnavailable):
        AIAssistant(api_key="")._get_client()


def test_flight_lookup_uses_search_tool():
    reply = '```json\n{"airline": "Royal Jordanian", "departureTime": "08:30", "arrivalTime": "11:45", "route": "AMM-DXB"}\n```'
    client = _client(reply)
    data = AIAssistant(client=client).lookup_flight(" RJ610 ", "2025-04-01")
    assert data["route"] == "AMM-DXB"
    call = client.models.calls[0]
    assert '"RJ610"' in call["contents"] and "2025-04-01" in call["contents"]
    assert call["config"].tools[0].google_search is not None


def test_hotel_lookup_includes_city():
    client = _client('{"address": "Corniche St", "city": "Aqaba", "country": "Jordan"}')
    data = AIAssistant(client=client).lookup_hotel("Kempinski", "Aqaba")
    assert data == {"address": "Corniche St", "city": "Aqaba", "country": "Jordan"}
    assert '"Kempinski" in Aqaba' in client.models.calls[0]["contents"]


def test_lookups_skip_empty_input():
    client = _client("{}")
    ai = AIAssistant(client=client)
    assert ai.lookup_flight("  ", "2025-04-01") is None
    assert ai.lookup_hotel("") is None
    assert client.models.calls == []


def test_failed_lookup_notifies(qapp):
    seen = []
    notifier = Notifier()
    notifier.notified.connect(lambda msg, level: seen.append((level, msg)))
    ai = AIAssistant(client=_client("sorry, no idea"), notifier=notifier)
    assert ai.lookup_hotel("Unknown Inn") is None
    assert seen == [("info", "No hotel details found")]

    ai = AIAssistant(client=_client(error=ConnectionError("offline")), notifier=notifier)
    assert ai.lookup_flight("XX1", "2025-01-01") is None
    assert seen[-1] == ("info", "No flight details found")


def test_build_context_snapshot():
    stats = DashboardStats(total_sales=1000, total_paid=400, total_pending=600, bookings_count=12, total_expenses=50)
    rows = [booking(f"BK-{i}") for i in range(15)]
    txns = [Transaction("Rent", 50, TransactionType.EXPENSE, "Rent", date="2025-03-01")]
    data = json.loads(build_context(stats, rows, txns, limit=5))
    assert data["currentStats"]["bookings_count"] == 12
    assert len(data["recentBookings"]) == 5
    assert data["recentBookings"][0]["status"] == "Confirmed"
    assert data["recentTransactions"][0]["txn_type"] == "Expense"
