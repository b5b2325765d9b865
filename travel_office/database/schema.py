import logging
import sqlite3
import sys
from pathlib import Path

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CORE TABLES ======================== */

/* -------- users -------- */
CREATE TABLE IF NOT EXISTS users (
    user_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    username      TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    full_name     TEXT NOT NULL,
    role          TEXT NOT NULL DEFAULT 'Employee' CHECK (role IN ('Admin','Employee')),
    permissions   TEXT NOT NULL DEFAULT '[]',   /* JSON list of page keys */
    is_active     INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
    created_at    TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

/* -------- parties -------- */
CREATE TABLE IF NOT EXISTS clients (
    client_id    TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    client_type  TEXT NOT NULL DEFAULT 'Individual' CHECK (client_type IN ('Individual','Company')),
    phone        TEXT,
    email        TEXT,
    balance      REAL NOT NULL DEFAULT 0,
    credit_limit REAL NOT NULL DEFAULT 0,
    notes        TEXT,
    created_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_clients_name ON clients(name COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS agents (
    agent_id   TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    agent_type TEXT NOT NULL DEFAULT 'General' CHECK (agent_type IN ('Airline','Hotel','Visa','General')),
    phone      TEXT,
    email      TEXT,
    balance    REAL NOT NULL DEFAULT 0,
    currency   TEXT NOT NULL DEFAULT 'JOD',
    notes      TEXT
);

/* -------- treasury -------- */
CREATE TABLE IF NOT EXISTS treasuries (
    treasury_id    TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    treasury_type  TEXT NOT NULL CHECK (treasury_type IN ('Cash','Bank','Checks')),
    balance        REAL NOT NULL DEFAULT 0,
    currency       TEXT NOT NULL DEFAULT 'JOD',
    account_number TEXT
);

/* -------- inventory -------- */
CREATE TABLE IF NOT EXISTS inventory_items (
    item_id        TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    item_type      TEXT NOT NULL,
    supplier       TEXT,
    total_quantity INTEGER NOT NULL DEFAULT 0 CHECK (total_quantity >= 0),
    cost_price     REAL NOT NULL DEFAULT 0 CHECK (cost_price >= 0),
    selling_price  REAL NOT NULL DEFAULT 0 CHECK (selling_price >= 0),
    currency       TEXT NOT NULL DEFAULT 'JOD',
    description    TEXT,
    expiry_date    DATE,
    attributes     TEXT NOT NULL DEFAULT '{}',  /* type-specific fields as JSON */
    created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

/* ======================== BOOKINGS ======================== */

CREATE TABLE IF NOT EXISTS bookings (
    booking_id     TEXT PRIMARY KEY,
    file_no        TEXT UNIQUE,
    client_name    TEXT NOT NULL,
    client_phone   TEXT,
    travel_date    DATE,
    destination    TEXT,
    booking_type   TEXT NOT NULL,
    status         TEXT NOT NULL DEFAULT 'Pending'
                   CHECK (status IN ('Pending','Confirmed','On Request','Completed','Cancelled','Voided')),
    payment_status TEXT NOT NULL DEFAULT 'Unpaid' CHECK (payment_status IN ('Unpaid','Partial','Paid')),
    amount         REAL NOT NULL DEFAULT 0 CHECK (amount >= 0),
    cost           REAL NOT NULL DEFAULT 0,
    profit         REAL NOT NULL DEFAULT 0,
    paid_amount    REAL NOT NULL DEFAULT 0,
    notes          TEXT,
    created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    created_by     TEXT,
    CHECK (ABS(profit - (amount - cost)) < 1e-6)
);
CREATE INDEX IF NOT EXISTS idx_bookings_travel_date ON bookings(travel_date);
CREATE INDEX IF NOT EXISTS idx_bookings_client ON bookings(client_name);

CREATE TABLE IF NOT EXISTS booking_services (
    service_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    booking_id    TEXT NOT NULL,
    position      INTEGER NOT NULL DEFAULT 0,
    service_type  TEXT NOT NULL,
    quantity      INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
    cost_price    REAL NOT NULL DEFAULT 0 CHECK (cost_price >= 0),
    cost_currency TEXT NOT NULL DEFAULT 'JOD',
    selling_price REAL NOT NULL DEFAULT 0 CHECK (selling_price >= 0),
    supplier      TEXT,
    inventory_id  TEXT,
    details       TEXT,
    hotel_name    TEXT,
    check_in      DATE,
    check_out     DATE,
    room_count    INTEGER CHECK (room_count IS NULL OR room_count >= 1),
    room_type     TEXT,
    flight_date   DATE,
    return_date   DATE,
    extra         TEXT NOT NULL DEFAULT '{}',  /* remaining type-specific fields + routes as JSON */
    FOREIGN KEY (booking_id)   REFERENCES bookings(booking_id) ON DELETE CASCADE,
    FOREIGN KEY (inventory_id) REFERENCES inventory_items(item_id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_booking_services_booking ON booking_services(booking_id);
CREATE INDEX IF NOT EXISTS idx_booking_services_inventory ON booking_services(inventory_id);

CREATE TABLE IF NOT EXISTS booking_passengers (
    passenger_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    booking_id         TEXT NOT NULL,
    position           INTEGER NOT NULL DEFAULT 0,
    full_name          TEXT NOT NULL,
    passport_no        TEXT,
    nationality        TEXT,
    pax_type           TEXT NOT NULL DEFAULT 'Adult' CHECK (pax_type IN ('Adult','Child','Infant')),
    title              TEXT,
    birth_date         DATE,
    passport_submitted INTEGER NOT NULL DEFAULT 0 CHECK (passport_submitted IN (0,1)),
    FOREIGN KEY (booking_id) REFERENCES bookings(booking_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_booking_passengers_booking ON booking_passengers(booking_id);

CREATE TABLE IF NOT EXISTS booking_payments (
    payment_id    TEXT PRIMARY KEY,
    booking_id    TEXT NOT NULL,
    amount        REAL NOT NULL CHECK (amount > 0),
    currency      TEXT NOT NULL,
    exchange_rate REAL NOT NULL CHECK (exchange_rate > 0),
    final_amount  REAL NOT NULL CHECK (final_amount > 0),
    date          DATE NOT NULL DEFAULT CURRENT_DATE,
    treasury_id   TEXT,
    notes         TEXT,
    created_at    TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (booking_id)  REFERENCES bookings(booking_id) ON DELETE CASCADE,
    FOREIGN KEY (treasury_id) REFERENCES treasuries(treasury_id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_booking_payments_booking ON booking_payments(booking_id);

/* payments are append-only */
DROP TRIGGER IF EXISTS trg_booking_payments_no_update;
CREATE TRIGGER trg_booking_payments_no_update
BEFORE UPDATE ON booking_payments
BEGIN
  SELECT RAISE(ABORT, 'Booking payments are append-only');
END;

/* ======================== LEDGER ======================== */

CREATE TABLE IF NOT EXISTS transactions (
    transaction_id TEXT PRIMARY KEY,
    reference_no   TEXT,
    description    TEXT NOT NULL,
    amount         REAL NOT NULL CHECK (amount >= 0),
    date           DATE NOT NULL DEFAULT CURRENT_DATE,
    txn_type       TEXT NOT NULL CHECK (txn_type IN ('Income','Expense')),
    category       TEXT NOT NULL,
    currency       TEXT NOT NULL DEFAULT 'JOD',
    exchange_rate  REAL NOT NULL DEFAULT 1 CHECK (exchange_rate > 0),
    treasury_id    TEXT,
    booking_id     TEXT,
    check_details  TEXT,   /* JSON or NULL */
    created_by     TEXT,
    created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (treasury_id) REFERENCES treasuries(treasury_id) ON DELETE SET NULL,
    FOREIGN KEY (booking_id)  REFERENCES bookings(booking_id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
CREATE INDEX IF NOT EXISTS idx_transactions_treasury ON transactions(treasury_id);

/* ======================== WORKFLOW ======================== */

CREATE TABLE IF NOT EXISTS tasks (
    task_id        TEXT PRIMARY KEY,
    title          TEXT NOT NULL,
    description    TEXT,
    due_date       DATE NOT NULL,
    priority       TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('High','Medium','Low')),
    status         TEXT NOT NULL DEFAULT 'Pending' CHECK (status IN ('Pending','Completed')),
    assigned_to    TEXT,
    related_client TEXT,
    created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

/* quotes offered to clients; days is a JSON list of {day, title, description, image_url} */
CREATE TABLE IF NOT EXISTS itineraries (
    itinerary_id TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    client_name  TEXT,
    destination  TEXT,
    duration     INTEGER NOT NULL DEFAULT 1 CHECK (duration >= 1),
    start_date   DATE,
    price        REAL CHECK (price IS NULL OR price >= 0),
    currency     TEXT NOT NULL DEFAULT 'JOD',
    days         TEXT NOT NULL DEFAULT '[]',
    inclusions   TEXT,
    exclusions   TEXT,
    created_by   TEXT,
    created_at   TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_itineraries_created ON itineraries(created_at);

CREATE TABLE IF NOT EXISTS audit_logs (
    log_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    action       TEXT NOT NULL,
    details      TEXT,
    entity_type  TEXT NOT NULL DEFAULT 'System',
    performed_by TEXT,
    timestamp    TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

DROP TRIGGER IF EXISTS trg_audit_logs_no_update;
CREATE TRIGGER trg_audit_logs_no_update
BEFORE UPDATE ON audit_logs
BEGIN
  SELECT RAISE(ABORT, 'Audit log is append-only');
END;

/* ======================== SETTINGS ======================== */

CREATE TABLE IF NOT EXISTS app_settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL     /* JSON */
);

CREATE TABLE IF NOT EXISTS exchange_rates (
    currency   TEXT PRIMARY KEY,
    rate       REAL NOT NULL CHECK (rate > 0),
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    CHECK (currency <> 'JOD' OR rate = 1)
);
"""


def init_schema(db_path: Path | str) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        # Apply (idempotent) schema
        conn.executescript(SQL)
        conn.commit()
    finally:
        conn.close()
    _log.debug("schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH

    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
    print(f"✓ DB applied to {target}")
