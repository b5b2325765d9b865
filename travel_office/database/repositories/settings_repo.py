from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict

from ...errors import DomainError


class SettingsRepo:
    """
    Key/value application settings (JSON values) and the exchange-rate table.
    Last write wins; there is no versioning of the settings schema.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---- key/value --------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        row = self.conn.execute("SELECT value FROM app_settings WHERE key=?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row["value"])

    def set(self, key: str, value: Any) -> None:
        self.conn.execute(
            "INSERT INTO app_settings(key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, json.dumps(value, ensure_ascii=False)),
        )

    def all(self) -> Dict[str, Any]:
        rows = self.conn.execute("SELECT key, value FROM app_settings").fetchall()
        return {r["key"]: json.loads(r["value"]) for r in rows}

    # ---- exchange rates ---------------------------------------------------

    def get_rates(self) -> Dict[str, float]:
        rows = self.conn.execute("SELECT currency, rate FROM exchange_rates ORDER BY currency").fetchall()
        return {r["currency"]: float(r["rate"]) for r in rows}

    def set_rate(self, currency: str, rate: float) -> None:
        try:
            self.conn.execute(
                "INSERT INTO exchange_rates(currency, rate, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(currency) DO UPDATE SET rate=excluded.rate, updated_at=CURRENT_TIMESTAMP",
                (currency.strip().upper(), float(rate)),
            )
        except sqlite3.IntegrityError as e:
            raise DomainError(f"Invalid exchange rate for {currency}: {rate}") from e

    def delete_rate(self, currency: str) -> None:
        self.conn.execute("DELETE FROM exchange_rates WHERE currency=?", (currency.strip().upper(),))
