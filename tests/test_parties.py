# tests/test_parties.py
from __future__ import annotations

import pytest

from travel_office.database.repositories.agents_repo import Agent
from travel_office.database.repositories.clients_repo import Client
from travel_office.enums import CustomType, ServiceType
from travel_office.errors import DomainError, NotFoundError
from travel_office.modules.parties.service import PartiesService, agents_for_service


@pytest.fixture()
def svc(conn) -> PartiesService:
    return PartiesService(conn, user="admin")


def _agents():
    return [
        Agent("AG-1", "Royal Wings", "Airline"),
        Agent("AG-2", "Sun Hotels", "Hotel"),
        Agent("AG-3", "Embassy Desk", "Visa"),
        Agent("AG-4", "All Round", "General"),
    ]


@pytest.mark.parametrize(
    "service_type, expected",
    [
        (ServiceType.FLIGHT, ["Royal Wings", "All Round"]),
        (ServiceType.HOTEL, ["Sun Hotels", "All Round"]),
        (ServiceType.VISA, ["Embassy Desk", "All Round"]),
        (ServiceType.TRANSPORT, ["All Round"]),
        (CustomType("Cruise"), ["All Round"]),
    ],
)
def test_suppliers_offered_per_service(service_type, expected):
    assert [a.name for a in agents_for_service(_agents(), service_type)] == expected


def test_current_supplier_is_kept():
    names = [a.name for a in agents_for_service(_agents(), ServiceType.TRANSPORT, current_supplier="Sun Hotels")]
    assert names == ["Sun Hotels", "All Round"]


def test_client_crud(svc):
    cid = svc.add_client(Client(None, "Yousef Nasser", phone="0791111111"))
    assert [c.name for c in svc.search_clients("yousef")] == ["Yousef Nasser"]
    c = svc.clients.get(cid)
    c.email = "yousef@example.com"
    svc.update_client(c)
    assert svc.clients.get(cid).email == "yousef@example.com"
    with pytest.raises(DomainError):
        svc.add_client(Client(None, "yousef nasser"))
    svc.delete_client(cid)
    assert svc.list_clients() == []


def test_update_missing_client(svc):
    with pytest.raises(NotFoundError):
        svc.update_client(Client("CL-missing", "Nobody"))


def test_agent_crud(svc):
    aid = svc.add_agent(Agent(None, "Royal Wings", "Airline", phone="065000000"))
    svc.add_agent(Agent(None, "Sun Hotels", "Hotel"))
    assert [a.name for a in svc.list_agents("Airline")] == ["Royal Wings"]
    a = svc.agents.get(aid)
    a.notes = "net 30"
    svc.update_agent(a)
    assert svc.agents.get(aid).notes == "net 30"
    with pytest.raises(DomainError):
        svc.add_agent(Agent(None, "Odd", "Cruise"))
    svc.delete_agent(aid)
    assert svc.agents.get(aid) is None
    with pytest.raises(NotFoundError):
        svc.update_agent(a)
