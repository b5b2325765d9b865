"""
modules/settings/service.py

Purpose
-------
Persisted application settings exposed as immutable snapshots.

Calculations never read settings from a global: callers take a `Settings`
snapshot via load_snapshot() and pass it (or its RateTable) in explicitly.
Every rate change bumps the stored rates version so two snapshots can be
compared cheaply.

Public interface
----------------
- SettingsService(conn).load_snapshot() -> Settings
- update_rate(currency, rate) / remove_rate(currency) -> RateTable
- set_system_currency(code), set_theme(theme), set_language(lang)
- update_company(**fields), update_alert_settings(AlertSettings)
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Optional

from ...constants import BASE_CURRENCY
from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.settings_repo import SettingsRepo
from ...enums import EntityType
from ...errors import ValidationError
from ..currency.rates import RateTable

_log = logging.getLogger(__name__)

THEMES = ("light", "dark")
LANGUAGES = ("ar", "en")


@dataclass(frozen=True)
class AlertSettings:
    enable_financial_alerts: bool = True
    enable_passport_alerts: bool = True
    enable_flight_alerts: bool = True
    enable_hotel_alerts: bool = True
    financial_days_before: int = 3
    passport_days_before: int = 7
    flight_days_before: int = 1
    hotel_days_before: int = 1

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AlertSettings":
        """Unknown keys are ignored; a missing or zero threshold falls back to the default."""
        base = cls()
        if not data:
            return base
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            if f.name.startswith("enable_"):
                kwargs[f.name] = bool(raw)
            else:
                kwargs[f.name] = int(raw or 0) or getattr(base, f.name)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CompanySettings:
    name_ar: str = ""
    name_en: str = "Travel Office"
    address: str = ""
    phone: str = ""
    email: str = ""
    logo_text: str = "TO"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CompanySettings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in (data or {}).items() if k in known and v is not None})


@dataclass(frozen=True)
class Settings:
    theme: str = "dark"
    language: str = "ar"
    system_currency: str = BASE_CURRENCY
    rates: RateTable = field(default_factory=RateTable.defaults)
    company: CompanySettings = field(default_factory=CompanySettings)
    alerts: AlertSettings = field(default_factory=AlertSettings)


class SettingsService:
    def __init__(self, conn: sqlite3.Connection, *, user: str | None = None):
        self.conn = conn
        self.repo = SettingsRepo(conn)
        self.audit = AuditRepo(conn)
        self.user = user

    # ---- read ----

    def rate_table(self) -> RateTable:
        rates = self.repo.get_rates()
        version = int(self.repo.get("rates_version", 1) or 1)
        return RateTable(rates, version=version) if rates else RateTable.defaults()

    def load_snapshot(self) -> Settings:
        rates = self.rate_table()
        currency = str(self.repo.get("system_currency", BASE_CURRENCY) or BASE_CURRENCY).upper()
        if not rates.has(currency):
            _log.warning("System currency %s has no rate; falling back to %s", currency, rates.base)
            currency = rates.base
        return Settings(
            theme=self.repo.get("theme", "dark"),
            language=self.repo.get("language", "ar"),
            system_currency=currency,
            rates=rates,
            company=CompanySettings.from_dict(self.repo.get("company")),
            alerts=AlertSettings.from_dict(self.repo.get("alerts")),
        )

    # ---- exchange rates ----

    def update_rate(self, currency: str, rate: float) -> RateTable:
        table = self.rate_table().with_rate(currency, rate)  # validates
        code = currency.strip().upper()
        with self.conn:
            self.repo.set_rate(code, table.rates[code])
            self.repo.set("rates_version", table.version)
            self.audit.record("UPDATE_RATE", f"Exchange rate {code} set to {rate}", EntityType.SYSTEM, self.user)
        return table

    def remove_rate(self, currency: str) -> RateTable:
        code = currency.strip().upper()
        current = self.rate_table()
        if code == current.base:
            raise ValidationError(f"The base currency {current.base} cannot be removed.")
        if code == self.load_snapshot().system_currency:
            raise ValidationError("The display currency cannot be removed.")
        remaining = {k: v for k, v in current.rates.items() if k != code}
        table = RateTable(remaining, version=current.version + 1, base=current.base)
        with self.conn:
            self.repo.delete_rate(code)
            self.repo.set("rates_version", table.version)
            self.audit.record("DELETE_RATE", f"Exchange rate {code} removed", EntityType.SYSTEM, self.user)
        return table

    # ---- preferences ----

    def set_system_currency(self, code: str) -> None:
        c = (code or "").strip().upper()
        if not self.rate_table().has(c):
            raise ValidationError(f"No exchange rate configured for {c}.")
        with self.conn:
            self.repo.set("system_currency", c)

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValidationError(f"Theme must be one of: {', '.join(THEMES)}")
        with self.conn:
            self.repo.set("theme", theme)

    def set_language(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValidationError(f"Language must be one of: {', '.join(LANGUAGES)}")
        with self.conn:
            self.repo.set("language", language)

    def update_company(self, **changes: Any) -> CompanySettings:
        current = CompanySettings.from_dict(self.repo.get("company"))
        known = {f.name for f in fields(CompanySettings)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown company settings: {', '.join(sorted(unknown))}")
        updated = replace(current, **changes)
        with self.conn:
            self.repo.set("company", asdict(updated))
            self.audit.record("UPDATE_SETTINGS", "Company settings updated", EntityType.SYSTEM, self.user)
        return updated

    def update_alert_settings(self, alerts: AlertSettings) -> None:
        with self.conn:
            self.repo.set("alerts", alerts.to_dict())
