# utils/helpers.py
import logging
import uuid
from datetime import date, datetime
from typing import Optional, Union

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def new_id(prefix: str = "") -> str:
    """Opaque text id, e.g. new_id('BK') -> 'BK-3f2a9c0d1e4b'."""
    token = uuid.uuid4().hex[:12]
    return f"{prefix}-{token}" if prefix else token


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse an ISO date (or the date part of an ISO datetime).
    Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        _log.debug("parse_date: could not parse %r", value)
        return None


def round2(x: float) -> float:
    return round(float(x), 2)


def fmt_money(v: NumberLike, currency: Optional[str] = None) -> str:
    """'1,234.50', or '1,234.50 JOD' with a currency code. Junk is shown as-is."""
    try:
        text = f"{float(v):,.2f}"
    except (TypeError, ValueError):
        _log.debug("fmt_money: not a number: %r", v)
        return str(v)
    return f"{text} {currency}" if currency else text
