# tests/test_settings.py
from __future__ import annotations

import pytest

from travel_office.database.repositories.audit_repo import AuditRepo
from travel_office.errors import ValidationError
from travel_office.modules.settings.service import AlertSettings, SettingsService


@pytest.fixture()
def settings(conn) -> SettingsService:
    return SettingsService(conn, user="admin")


def test_seeded_snapshot(settings):
    snap = settings.load_snapshot()
    assert snap.system_currency == "JOD"
    assert snap.rates.rate("USD") == pytest.approx(1.41)
    assert snap.company.name_en == "Travel Office"
    assert snap.alerts == AlertSettings()


def test_rate_update_bumps_version_and_persists(conn, settings):
    before = settings.rate_table().version
    table = settings.update_rate("gbp", 0.98)
    assert table.version == before + 1
    fresh = SettingsService(conn).rate_table()
    assert fresh.rate("GBP") == pytest.approx(0.98)
    assert fresh.version == before + 1
    assert AuditRepo(conn).list_recent()[0]["action"] == "UPDATE_RATE"


@pytest.mark.parametrize("code, rate", [("JOD", 2.0), ("USD", 0), ("USD", -1), ("", 1.2)])
def test_bad_rates_are_rejected(settings, code, rate):
    with pytest.raises(ValidationError):
        settings.update_rate(code, rate)


def test_remove_rate(settings):
    settings.update_rate("GBP", 0.98)
    assert not settings.remove_rate("GBP").has("GBP")
    with pytest.raises(ValidationError):
        settings.remove_rate("JOD")
    settings.set_system_currency("EUR")
    with pytest.raises(ValidationError):
        settings.remove_rate("EUR")


def test_system_currency_must_have_a_rate(settings):
    settings.set_system_currency("usd")
    assert settings.load_snapshot().system_currency == "USD"
    with pytest.raises(ValidationError):
        settings.set_system_currency("XYZ")


def test_preferences(settings):
    settings.set_theme("light")
    settings.set_language("en")
    snap = settings.load_snapshot()
    assert (snap.theme, snap.language) == ("light", "en")
    with pytest.raises(ValidationError):
        settings.set_theme("neon")
    with pytest.raises(ValidationError):
        settings.set_language("fr")


def test_company_and_alerts(settings):
    company = settings.update_company(name_en="Petra Tours", phone="06 555 0000")
    assert company.name_en == "Petra Tours"
    with pytest.raises(ValidationError):
        settings.update_company(fax="1")
    settings.update_alert_settings(AlertSettings(financial_days_before=5, enable_hotel_alerts=False))
    snap = settings.load_snapshot()
    assert snap.company.phone == "06 555 0000"
    assert snap.alerts.financial_days_before == 5
    assert snap.alerts.enable_hotel_alerts is False
