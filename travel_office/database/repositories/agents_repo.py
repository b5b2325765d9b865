from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ...errors import DomainError
from ...utils.helpers import new_id

AGENT_TYPES = ("Airline", "Hotel", "Visa", "General")


@dataclass
class Agent:
    """A supplier: airline, hotel provider, visa office or general agent."""
    agent_id: str | None
    name: str
    agent_type: str = "General"
    phone: str | None = None
    email: str | None = None
    balance: float = 0.0     # what the office owes the supplier, base currency
    currency: str = "JOD"
    notes: str | None = None


class AgentsRepo:
    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    @staticmethod
    def _row_to_agent(r: sqlite3.Row) -> Agent:
        return Agent(
            agent_id=r["agent_id"],
            name=r["name"],
            agent_type=r["agent_type"],
            phone=r["phone"],
            email=r["email"],
            balance=float(r["balance"]),
            currency=r["currency"],
            notes=r["notes"],
        )

    def list_agents(self, agent_type: str | None = None) -> list[Agent]:
        if agent_type:
            rows = self.conn.execute(
                "SELECT * FROM agents WHERE agent_type=? ORDER BY name", (agent_type,)
            ).fetchall()
        else:
            rows = self.conn.execute("SELECT * FROM agents ORDER BY name").fetchall()
        return [self._row_to_agent(r) for r in rows]

    def get(self, agent_id: str) -> Agent | None:
        row = self.conn.execute("SELECT * FROM agents WHERE agent_id=?", (agent_id,)).fetchone()
        return self._row_to_agent(row) if row else None

    def create(self, a: Agent) -> str:
        if not a.name or not a.name.strip():
            raise DomainError("Name cannot be empty.")
        if a.agent_type not in AGENT_TYPES:
            raise DomainError(f"Agent type must be one of: {', '.join(AGENT_TYPES)}")
        aid = a.agent_id or new_id("AG")
        self.conn.execute(
            """
            INSERT INTO agents(agent_id, name, agent_type, phone, email, balance, currency, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (aid, a.name.strip(), a.agent_type, a.phone, a.email, float(a.balance), a.currency, a.notes),
        )
        a.agent_id = aid
        return aid

    def update(self, a: Agent) -> None:
        if not a.name or not a.name.strip():
            raise DomainError("Name cannot be empty.")
        self.conn.execute(
            "UPDATE agents SET name=?, agent_type=?, phone=?, email=?, currency=?, notes=? WHERE agent_id=?",
            (a.name.strip(), a.agent_type, a.phone, a.email, a.currency, a.notes, a.agent_id),
        )

    def delete(self, agent_id: str) -> None:
        self.conn.execute("DELETE FROM agents WHERE agent_id=?", (agent_id,))

    def adjust_balance(self, agent_id: str, delta: float) -> None:
        cur = self.conn.execute(
            "UPDATE agents SET balance = balance + ? WHERE agent_id=?", (float(delta), agent_id)
        )
        if cur.rowcount == 0:
            raise DomainError(f"Agent {agent_id} does not exist.")
