"""
modules/parties/service.py

Purpose
-------
Clients and suppliers ("agents") on file. Balances are what each party
owes (client) or is owed (agent); they only move through the treasury
service's client/agent payments, never through the edit calls here.

Public interface
----------------
- agents_for_service(agents, service_type, current_supplier=None) -> list[Agent]
- PartiesService(conn, user=None, notifier=None)
    clients: .list_clients / .search_clients / .add_client / .update_client / .delete_client
    agents:  .list_agents / .add_agent / .update_agent / .delete_agent
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, List

from ...database.repositories.agents_repo import Agent, AgentsRepo
from ...database.repositories.audit_repo import AuditRepo
from ...database.repositories.clients_repo import Client, ClientsRepo
from ...enums import EntityType, ServiceKind, ServiceType
from ...errors import NotFoundError, PersistenceError
from ...utils.notifications import Notifier

_log = logging.getLogger(__name__)

# supplier type that serves each service line; "General" serves everything
_AGENT_TYPE_FOR_SERVICE = {
    ServiceType.FLIGHT: "Airline",
    ServiceType.HOTEL: "Hotel",
    ServiceType.VISA: "Visa",
}


def agents_for_service(
    agents: Iterable[Agent],
    service_type: ServiceKind,
    current_supplier: str | None = None,
) -> List[Agent]:
    """Suppliers offered for a service line; the one already chosen always stays in the list."""
    wanted = _AGENT_TYPE_FOR_SERVICE.get(service_type)
    out = []
    for a in agents:
        if current_supplier and a.name == current_supplier:
            out.append(a)
        elif a.agent_type == "General" or (wanted is not None and a.agent_type == wanted):
            out.append(a)
    return out


class PartiesService:
    def __init__(self, conn: sqlite3.Connection, *, user: str | None = None, notifier: Notifier | None = None):
        self.conn = conn
        self.user = user
        self.notifier = notifier
        self.clients = ClientsRepo(conn)
        self.agents = AgentsRepo(conn)
        self.audit = AuditRepo(conn)

    def _write(self, action: str, fn):
        try:
            with self.conn:
                return fn()
        except sqlite3.Error as e:
            _log.error("%s failed: %s", action, e)
            raise PersistenceError(f"{action} failed: {e}") from e

    def _log_audit(self, action: str, details: str, entity: EntityType) -> None:
        try:
            with self.conn:
                self.audit.record(action, details, entity, self.user)
        except sqlite3.Error as e:
            _log.warning("audit entry %s not written: %s", action, e)

    # ---- clients ----

    def list_clients(self) -> List[Client]:
        return self.clients.list_clients()

    def search_clients(self, term: str) -> List[Client]:
        return self.clients.search(term)

    def add_client(self, c: Client) -> str:
        cid = self._write("Add client", lambda: self.clients.create(c))
        self._log_audit("ADD_CLIENT", f"New client added: {c.name}", EntityType.CLIENT)
        if self.notifier:
            self.notifier.success("Client saved")
        return cid

    def update_client(self, c: Client) -> None:
        """Profile fields only; the balance is not editable here."""
        current = self.clients.get(c.client_id or "")
        if current is None:
            raise NotFoundError(f"Client {c.client_id} does not exist.")
        self._write("Update client", lambda: self.clients.update(c))
        self._log_audit("UPDATE_CLIENT", f"Client updated: {c.name}", EntityType.CLIENT)

    def delete_client(self, client_id: str) -> None:
        self._write("Delete client", lambda: self.clients.delete(client_id))
        self._log_audit("DELETE_CLIENT", f"Client deleted: {client_id}", EntityType.CLIENT)

    # ---- agents ----

    def list_agents(self, agent_type: str | None = None) -> List[Agent]:
        return self.agents.list_agents(agent_type)

    def add_agent(self, a: Agent) -> str:
        aid = self._write("Add agent", lambda: self.agents.create(a))
        self._log_audit("ADD_AGENT", f"New supplier added: {a.name}", EntityType.AGENT)
        if self.notifier:
            self.notifier.success("Supplier saved")
        return aid

    def update_agent(self, a: Agent) -> None:
        current = self.agents.get(a.agent_id or "")
        if current is None:
            raise NotFoundError(f"Agent {a.agent_id} does not exist.")
        self._write("Update agent", lambda: self.agents.update(a))
        self._log_audit("UPDATE_AGENT", f"Supplier updated: {a.name}", EntityType.AGENT)

    def delete_agent(self, agent_id: str) -> None:
        self._write("Delete agent", lambda: self.agents.delete(agent_id))
        self._log_audit("DELETE_AGENT", f"Supplier deleted: {agent_id}", EntityType.AGENT)
