import json

from ...constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME, DEFAULT_RATES
from ...utils.auth import hash_password

DEFAULT_TREASURY_ID = "TR-MAIN-CASH"

DEFAULT_SETTINGS = {
    "theme": "dark",
    "language": "ar",
    "system_currency": "JOD",
    "rates_version": 1,
    "company": {
        "name_ar": "",
        "name_en": "Travel Office",
        "address": "",
        "phone": "",
        "email": "",
        "logo_text": "TO",
    },
    "alerts": {
        "enable_financial_alerts": True,
        "enable_passport_alerts": True,
        "enable_flight_alerts": True,
        "enable_hotel_alerts": True,
        "financial_days_before": 3,
        "passport_days_before": 7,
        "flight_days_before": 1,
        "hotel_days_before": 1,
    },
}


def seed(conn):
    # first run: create the admin login and a cash box
    row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
    if row and row[0] == 0:
        conn.execute("""
            INSERT INTO users(username, password_hash, full_name, role, permissions, is_active)
            VALUES (?, ?, ?, 'Admin', ?, 1)
        """, (DEFAULT_ADMIN_USERNAME, hash_password(DEFAULT_ADMIN_PASSWORD), "Administrator", json.dumps([])))

    row = conn.execute("SELECT COUNT(*) AS n FROM treasuries").fetchone()
    if row and row[0] == 0:
        conn.execute("""
            INSERT INTO treasuries(treasury_id, name, treasury_type, balance, currency)
            VALUES (?, 'Main Cash', 'Cash', 0, 'JOD')
        """, (DEFAULT_TREASURY_ID,))

    conn.executemany(
        "INSERT OR IGNORE INTO exchange_rates(currency, rate) VALUES (?, ?)",
        list(DEFAULT_RATES.items()),
    )
    conn.executemany(
        "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
        [(k, json.dumps(v)) for k, v in DEFAULT_SETTINGS.items()],
    )
    conn.commit()
