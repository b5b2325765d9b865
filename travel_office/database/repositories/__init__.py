# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from travel_office.database.repositories import (
        # Bookings
        BookingsRepo, Booking, ServiceItem, Passenger, RouteSegment,
        BookingPaymentsRepo, Payment,
        # Inventory
        InventoryRepo, InventoryItem,
        # Ledger
        TreasuryRepo, Treasury, TransactionsRepo, Transaction, CheckDetails,
        # Parties
        ClientsRepo, Client, AgentsRepo, Agent,
        # Workflow / system
        TasksRepo, Task, ItinerariesRepo, Itinerary, ItineraryDay,
        AuditRepo, SettingsRepo, UsersRepo, User,
    )

Every repository raises `travel_office.errors.DomainError` for validation
failures and never commits; callers own the transaction.
"""

from ...errors import DomainError

# ---------------- Bookings -----------------
from .booking_payments_repo import BookingPaymentsRepo, Payment
from .bookings_repo import BookingsRepo, Booking, ServiceItem, Passenger, RouteSegment

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo, InventoryItem

# ----------------- Ledger ------------------
from .treasury_repo import TreasuryRepo, Treasury
from .transactions_repo import TransactionsRepo, Transaction, CheckDetails

# ----------------- Parties -----------------
from .clients_repo import ClientsRepo, Client
from .agents_repo import AgentsRepo, Agent

# ------------- Workflow / system -----------
from .tasks_repo import TasksRepo, Task
from .itineraries_repo import ItinerariesRepo, Itinerary, ItineraryDay
from .audit_repo import AuditRepo
from .settings_repo import SettingsRepo
from .users_repo import UsersRepo, User

__all__ = [
    "DomainError",
    # bookings
    "BookingPaymentsRepo",
    "Payment",
    "BookingsRepo",
    "Booking",
    "ServiceItem",
    "Passenger",
    "RouteSegment",
    # inventory
    "InventoryRepo",
    "InventoryItem",
    # ledger
    "TreasuryRepo",
    "Treasury",
    "TransactionsRepo",
    "Transaction",
    "CheckDetails",
    # parties
    "ClientsRepo",
    "Client",
    "AgentsRepo",
    "Agent",
    # workflow / system
    "TasksRepo",
    "Task",
    "ItinerariesRepo",
    "Itinerary",
    "ItineraryDay",
    "AuditRepo",
    "SettingsRepo",
    "UsersRepo",
    "User",
]
