# tests/test_currency.py
from __future__ import annotations

import itertools
import logging

import pytest

from travel_office.errors import UnknownCurrencyError, ValidationError
from travel_office.modules.currency.rates import RateTable, convert_amount, convert_currency, to_base


@pytest.fixture()
def rates() -> RateTable:
    return RateTable.defaults()


def test_default_table_is_jod_based(rates):
    assert rates.base == "JOD"
    assert rates.rate("JOD") == 1.0
    assert rates.rate("usd") == pytest.approx(1.41)
    # empty code means base
    assert rates.rate("") == 1.0


def test_strict_lookup_rejects_unknown_currency(rates):
    with pytest.raises(UnknownCurrencyError) as exc:
        rates.rate("GBP")
    assert exc.value.currency == "GBP"


def test_lenient_lookup_falls_back_to_base_and_logs(rates, caplog):
    with caplog.at_level(logging.WARNING):
        assert rates.rate_or_base("GBP") == 1.0
    assert any("GBP" in r.getMessage() for r in caplog.records)


def test_base_currency_must_stay_at_one():
    with pytest.raises(ValidationError):
        RateTable({"JOD": 2.0, "USD": 1.41})
    with pytest.raises(ValidationError):
        RateTable.defaults().with_rate("JOD", 0.9)


def test_non_positive_rates_are_rejected():
    with pytest.raises(ValidationError):
        RateTable({"JOD": 1.0, "USD": 0})


def test_with_rate_returns_new_snapshot(rates):
    newer = rates.with_rate("usd", 1.5)
    assert newer.version == rates.version + 1
    assert newer.rate("USD") == 1.5
    assert rates.rate("USD") == pytest.approx(1.41)  # original untouched
    assert "GBP" in rates.with_rate("GBP", 1.1).currencies()


def test_convert_amount_from_base(rates):
    assert convert_amount(100, "USD", rates) == pytest.approx(141.0)
    assert convert_amount(100, "JOD", rates) == 100.0
    assert convert_amount(100, None, rates) == 100.0


def test_convert_currency_goes_through_base(rates):
    assert convert_currency(141, "USD", "EUR", rates) == pytest.approx(132.0)
    assert convert_currency(55, "EUR", "EUR", rates) == 55.0
    assert to_base(300, "USD", rates) == pytest.approx(212.7659, abs=1e-4)


def test_conversion_back_to_base_is_stable(rates):
    for code in ("USD", "EUR", "ILS", "SAR"):
        shown = convert_amount(250.0, code, rates)
        assert to_base(shown, code, rates) == pytest.approx(250.0)


def test_unknown_currency_in_lenient_conversion(rates):
    assert convert_amount(10, "XYZ", rates, strict=False) == 10.0
    with pytest.raises(UnknownCurrencyError):
        convert_amount(10, "XYZ", rates)


@pytest.mark.parametrize("src, dst", list(itertools.permutations(RateTable.defaults().currencies(), 2)))
def test_round_trip_between_every_pair(rates, src, dst):
    there = convert_currency(250.0, src, dst, rates)
    assert there == pytest.approx(250.0 / rates.rate(src) * rates.rate(dst))
    assert convert_currency(there, dst, src, rates) == pytest.approx(250.0)
