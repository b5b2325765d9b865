from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ...errors import DomainError
from ...utils.helpers import new_id

CLIENT_TYPES = ("Individual", "Company")


@dataclass
class Client:
    client_id: str | None
    name: str
    client_type: str = "Individual"
    phone: str | None = None
    email: str | None = None
    balance: float = 0.0
    credit_limit: float = 0.0
    notes: str | None = None


class ClientsRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        return s.strip()

    @staticmethod
    def _ensure_non_empty(value: str | None, field_label: str) -> None:
        if value is None or value.strip() == "":
            raise DomainError(f"{field_label} cannot be empty.")

    @staticmethod
    def _row_to_client(r: sqlite3.Row) -> Client:
        return Client(
            client_id=r["client_id"],
            name=r["name"],
            client_type=r["client_type"],
            phone=r["phone"],
            email=r["email"],
            balance=float(r["balance"]),
            credit_limit=float(r["credit_limit"]),
            notes=r["notes"],
        )

    # ---- Queries ----------------------------------------------------------

    def list_clients(self) -> list[Client]:
        rows = self.conn.execute("SELECT * FROM clients ORDER BY name COLLATE NOCASE").fetchall()
        return [self._row_to_client(r) for r in rows]

    def search(self, term: str) -> list[Client]:
        like = f"%{(term or '').strip()}%"
        rows = self.conn.execute(
            "SELECT * FROM clients WHERE name LIKE ? OR phone LIKE ? OR email LIKE ? ORDER BY name COLLATE NOCASE",
            (like, like, like),
        ).fetchall()
        return [self._row_to_client(r) for r in rows]

    def get(self, client_id: str) -> Client | None:
        row = self.conn.execute("SELECT * FROM clients WHERE client_id=?", (client_id,)).fetchone()
        return self._row_to_client(row) if row else None

    def get_by_name(self, name: str) -> Client | None:
        """Case-insensitive exact match on the trimmed name."""
        row = self.conn.execute(
            "SELECT * FROM clients WHERE name = ? COLLATE NOCASE", ((name or "").strip(),)
        ).fetchone()
        return self._row_to_client(row) if row else None

    # ---- Commands ---------------------------------------------------------

    def create(self, c: Client) -> str:
        self._ensure_non_empty(c.name, "Name")
        if c.client_type not in CLIENT_TYPES:
            raise DomainError(f"Client type must be one of: {', '.join(CLIENT_TYPES)}")
        cid = c.client_id or new_id("CL")
        try:
            self.conn.execute(
                """
                INSERT INTO clients(client_id, name, client_type, phone, email, balance, credit_limit, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    cid, self._normalize_text(c.name), c.client_type, self._normalize_text(c.phone),
                    self._normalize_text(c.email), float(c.balance), float(c.credit_limit), c.notes,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DomainError(f"A client named '{c.name.strip()}' already exists.") from e
        c.client_id = cid
        return cid

    def update(self, c: Client) -> None:
        self._ensure_non_empty(c.name, "Name")
        self.conn.execute(
            """
            UPDATE clients
               SET name=?, client_type=?, phone=?, email=?, credit_limit=?, notes=?
             WHERE client_id=?
            """,
            (
                self._normalize_text(c.name), c.client_type, self._normalize_text(c.phone),
                self._normalize_text(c.email), float(c.credit_limit), c.notes, c.client_id,
            ),
        )

    def delete(self, client_id: str) -> None:
        self.conn.execute("DELETE FROM clients WHERE client_id=?", (client_id,))

    def adjust_balance(self, client_id: str, delta: float) -> None:
        cur = self.conn.execute(
            "UPDATE clients SET balance = balance + ? WHERE client_id=?", (float(delta), client_id)
        )
        if cur.rowcount == 0:
            raise DomainError(f"Client {client_id} does not exist.")
