# utils/validators.py
"""Field checks for booking drafts. Booleans only; callers raise."""

from typing import Optional


def non_empty(text) -> bool:
    return bool(text and str(text).strip())


def as_number(x) -> Optional[float]:
    """float(x), or None for blanks, junk and NaN."""
    if x is None or isinstance(x, bool):
        return None
    try:
        val = float(x)
    except (TypeError, ValueError):
        return None
    return None if val != val else val


def is_non_negative_number(x) -> bool:
    val = as_number(x)
    return val is not None and val >= 0


def is_positive_int(x) -> bool:
    # quantities and room counts: 1, 2.0 pass; 0, 1.5, "x" do not
    val = as_number(x)
    return val is not None and val >= 1 and val.is_integer()
