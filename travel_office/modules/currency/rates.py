"""
Exchange-rate snapshot and conversions.

Rates are expressed as units of a currency per 1 unit of the base currency
(JOD). A RateTable is immutable; every change produces a new table with a
higher version, so a calculation always runs against one consistent snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ...constants import BASE_CURRENCY, DEFAULT_RATES
from ...errors import UnknownCurrencyError, ValidationError

_log = logging.getLogger(__name__)

__all__ = ["RateTable", "convert_amount", "convert_currency", "to_base"]


def _norm(code: Optional[str]) -> str:
    return (code or "").strip().upper()


@dataclass(frozen=True)
class RateTable:
    rates: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_RATES))
    version: int = 1
    base: str = BASE_CURRENCY

    def __post_init__(self) -> None:
        cleaned: Dict[str, float] = {}
        for code, value in dict(self.rates).items():
            c = _norm(code)
            v = float(value)
            if v <= 0:
                raise ValidationError(f"Exchange rate for {c} must be greater than zero.")
            cleaned[c] = v
        base = _norm(self.base)
        if cleaned.get(base, 1.0) != 1.0:
            raise ValidationError(f"The base currency {base} must have a rate of 1.")
        cleaned[base] = 1.0
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "rates", MappingProxyType(cleaned))

    @classmethod
    def defaults(cls) -> "RateTable":
        return cls(dict(DEFAULT_RATES))

    # ---- lookups ----

    def currencies(self) -> list[str]:
        return sorted(self.rates)

    def has(self, currency: Optional[str]) -> bool:
        return _norm(currency) in self.rates

    def rate(self, currency: Optional[str]) -> float:
        """Strict lookup. An empty code means the base currency."""
        c = _norm(currency) or self.base
        try:
            return self.rates[c]
        except KeyError:
            raise UnknownCurrencyError(c) from None

    def rate_or_base(self, currency: Optional[str]) -> float:
        """Lenient lookup: unknown currencies are treated as base (rate 1) and logged."""
        c = _norm(currency) or self.base
        value = self.rates.get(c)
        if value is None:
            _log.warning("No exchange rate for %s (rates v%s); treating as %s", c, self.version, self.base)
            return 1.0
        return value

    # ---- updates (new snapshot) ----

    def with_rate(self, currency: str, rate: float) -> "RateTable":
        c = _norm(currency)
        if not c:
            raise ValidationError("Currency code cannot be empty.")
        if c == self.base and float(rate) != 1.0:
            raise ValidationError(f"The base currency {self.base} must have a rate of 1.")
        merged = dict(self.rates)
        merged[c] = float(rate)
        return RateTable(merged, version=self.version + 1, base=self.base)

    def with_rates(self, updates: Mapping[str, float]) -> "RateTable":
        merged = dict(self.rates)
        merged.update({_norm(k): float(v) for k, v in updates.items()})
        return RateTable(merged, version=self.version + 1, base=self.base)


def _lookup(rates: RateTable, currency: Optional[str], strict: bool) -> float:
    return rates.rate(currency) if strict else rates.rate_or_base(currency)


def convert_amount(amount_in_base: float, display_currency: Optional[str], rates: RateTable, *, strict: bool = True) -> float:
    """Base -> display currency. Identity when display is the base currency."""
    if _norm(display_currency) in ("", rates.base):
        return float(amount_in_base)
    return float(amount_in_base) * _lookup(rates, display_currency, strict)


def convert_currency(amount: float, from_currency: Optional[str], to_currency: Optional[str], rates: RateTable, *, strict: bool = True) -> float:
    """Any -> any, via the base currency."""
    src = _norm(from_currency) or rates.base
    dst = _norm(to_currency) or rates.base
    if src == dst:
        return float(amount)
    return float(amount) / _lookup(rates, src, strict) * _lookup(rates, dst, strict)


def to_base(amount: float, currency: Optional[str], rates: RateTable, *, strict: bool = True) -> float:
    return convert_currency(amount, currency, rates.base, rates, strict=strict)
