"""
modules/ai_assistant/service.py

Purpose
-------
Optional enrichment through Google's Gemini models (google-genai SDK):
a financial Q&A assistant fed with a JSON snapshot of the office's numbers,
and best-effort lookups that pre-fill flight and hotel fields on a booking.

Nothing in the booking flow depends on this module: when the API key is
missing or the model call fails the assistant answers with an apology and
the lookups return None.

Public interface
----------------
- parse_json_response(text) -> dict | None
- build_context(stats, bookings, transactions, limit=10) -> str
- AIAssistant(api_key=None, model=None, client=None, notifier=None)
    .ask_financial_question(query, context_json) -> str
    .lookup_flight(flight_no, date) -> dict | None
    .lookup_hotel(name, city=None) -> dict | None
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from google import genai
from google.genai import types

from ... import config
from ...errors import EnrichmentUnavailable
from ...utils.notifications import Notifier

_log = logging.getLogger(__name__)

FINANCIAL_SYSTEM_INSTRUCTION = (
    "You are a financial assistant specialised in accounting for travel agencies. "
    "Help the user understand the financial data, suggest ways to improve profitability "
    "and answer accounting questions. Use the JSON context provided to answer precisely "
    "about the company's current position. If the question is unrelated to finance or "
    "travel, politely decline and point the user to relevant questions. Keep answers short "
    "and useful. Answer in the language of the question."
)

FLIGHT_PROMPT = """
Find the flight schedule/status for flight number "{flight_no}" on date "{date}".

I need the standard scheduled departure and arrival times, the airline name, and the
route (Origin Airport Code - Destination Airport Code).

Return ONLY a raw JSON object (no markdown, no explanation) with this exact structure:
{{
    "airline": "String (e.g. Royal Jordanian)",
    "departureTime": "HH:MM (24-hour format)",
    "arrivalTime": "HH:MM (24-hour format)",
    "route": "XXX-YYY (e.g. AMM-DXB)",
    "aircraft": "String (optional, e.g. Airbus A320)"
}}

If you cannot find specific details, infer the standard schedule for this flight number.
"""

HOTEL_PROMPT = """
Find the full address and location for the hotel named "{name}"{where}.

Return ONLY a raw JSON object (no markdown, no explanation) with this exact structure:
{{
    "address": "Full Address String",
    "city": "City Name",
    "country": "Country Name"
}}
"""

UNAVAILABLE_ANSWER = "Sorry, the AI assistant is not available right now. Please check the API key in the settings."


def parse_json_response(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull a JSON object out of a model reply: drop ``` fences, keep the span
    from the first '{' to the last '}'. None when nothing parses to a dict.
    """
    if not text:
        return None
    clean = text.replace("```json", "").replace("```", "").strip()
    first, last = clean.find("{"), clean.rfind("}")
    if first != -1 and last != -1 and last > first:
        clean = clean[first:last + 1]
    try:
        data = json.loads(clean)
    except json.JSONDecodeError:
        _log.warning("could not parse model reply as JSON: %r", text[:200])
        return None
    return data if isinstance(data, dict) else None


def _plain(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: _plain(v) for k, v in asdict(obj).items()}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


def build_context(stats: Any, bookings: Iterable[Any], transactions: Iterable[Any], limit: int = 10) -> str:
    """JSON snapshot handed to the assistant: headline stats plus the latest bookings and transactions."""
    return json.dumps(
        {
            "summary": "Travel office accounting system.",
            "currentStats": _plain(stats),
            "recentBookings": [_plain(b) for b in list(bookings)[:limit]],
            "recentTransactions": [_plain(t) for t in list(transactions)[:limit]],
        },
        ensure_ascii=False,
        default=str,
    )


class AIAssistant:
    """
    `client` may be any object exposing `models.generate_content(...)`; tests
    pass a fake. Without one, a genai.Client is created on first use from
    the configured API key.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        *,
        client: Any = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.model = model or config.GEMINI_MODEL
        self.notifier = notifier
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise EnrichmentUnavailable("Gemini API key is not configured (GEMINI_API_KEY / API_KEY).")
        self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _generate(self, contents: str, config_: types.GenerateContentConfig) -> str:
        client = self._get_client()
        try:
            response = client.models.generate_content(model=self.model, contents=contents, config=config_)
        except Exception as e:  # SDK raises transport and API errors of several kinds
            raise EnrichmentUnavailable(f"Gemini request failed: {e}") from e
        text = getattr(response, "text", None)
        if not text:
            raise EnrichmentUnavailable("Gemini returned an empty answer.")
        return text

    @staticmethod
    def _search_config() -> types.GenerateContentConfig:
        return types.GenerateContentConfig(tools=[types.Tool(google_search=types.GoogleSearch())])

    def ask_financial_question(self, query: str, context_json: str) -> str:
        prompt = f"Current financial data (JSON):\n{context_json}\n\nUser question:\n{query}"
        try:
            return self._generate(
                prompt,
                types.GenerateContentConfig(system_instruction=FINANCIAL_SYSTEM_INSTRUCTION),
            )
        except EnrichmentUnavailable as e:
            _log.warning("financial assistant unavailable: %s", e)
            return UNAVAILABLE_ANSWER

    def _lookup(self, what: str, prompt: str) -> Optional[Dict[str, Any]]:
        try:
            data = parse_json_response(self._generate(prompt, self._search_config()))
        except EnrichmentUnavailable as e:
            _log.warning("%s lookup unavailable: %s", what, e)
            data = None
        if data is None and self.notifier:
            self.notifier.info(f"No {what} details found")
        return data

    def lookup_flight(self, flight_no: str, date: str) -> Optional[Dict[str, Any]]:
        if not (flight_no or "").strip():
            return None
        return self._lookup("flight", FLIGHT_PROMPT.format(flight_no=flight_no.strip(), date=date))

    def lookup_hotel(self, name: str, city: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if not (name or "").strip():
            return None
        where = f" in {city}" if city else ""
        return self._lookup("hotel", HOTEL_PROMPT.format(name=name.strip(), where=where))
