from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    ON_REQUEST = "On Request"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    VOIDED = "Voided"


# bookings in these states carry no sales, no inventory consumption and no alerts
INACTIVE_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.VOIDED})


class PaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


class ServiceType(str, Enum):
    FLIGHT = "Flight"
    HOTEL = "Hotel"
    VISA = "Visa"
    TRANSPORT = "Transport"
    TOUR = "Tour"
    UMRAH = "Umrah"
    INSURANCE = "Insurance"
    OTHER = "Other"


class BookingType(str, Enum):
    TOURISM = "Tourism"
    UMRAH = "Umrah"
    FLIGHT = "Flight"
    GENERAL = "General"


class TreasuryType(str, Enum):
    CASH = "Cash"
    BANK = "Bank"
    CHECKS = "Checks"


class CheckStatus(str, Enum):
    PENDING = "Pending"
    CLEARED = "Cleared"
    RETURNED = "Returned"


class PaxType(str, Enum):
    ADULT = "Adult"
    CHILD = "Child"
    INFANT = "Infant"


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class UserRole(str, Enum):
    ADMIN = "Admin"
    EMPLOYEE = "Employee"


class EntityType(str, Enum):
    BOOKING = "Booking"
    TRANSACTION = "Transaction"
    AGENT = "Agent"
    CLIENT = "Client"
    TASK = "Task"
    ITINERARY = "Itinerary"
    INVENTORY = "Inventory"
    SYSTEM = "System"


@dataclass(frozen=True)
class CustomType:
    """A user-entered booking or service type outside the closed set."""
    name: str

    @property
    def value(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


BookingKind = Union[BookingType, CustomType]
ServiceKind = Union[ServiceType, CustomType]


def _parse(enum_cls, text: Optional[str]):
    s = (text or "").strip()
    if not s:
        raise ValueError("Type cannot be empty.")
    for member in enum_cls:
        if member.value.lower() == s.lower():
            return member
    return CustomType(s)


def parse_booking_type(text: Optional[str]) -> BookingKind:
    """'umrah' -> BookingType.UMRAH; anything unknown becomes CustomType(text)."""
    return _parse(BookingType, text)


def parse_service_type(text: Optional[str]) -> ServiceKind:
    return _parse(ServiceType, text)


def type_label(kind: Union[Enum, CustomType, str, None]) -> str:
    if kind is None:
        return ""
    if isinstance(kind, (Enum, CustomType)):
        return str(kind.value)
    return str(kind)


def is_inactive(status: Union[BookingStatus, str, None]) -> bool:
    try:
        return BookingStatus(status) in INACTIVE_STATUSES
    except ValueError:
        return False


__all__ = [
    "BookingStatus", "INACTIVE_STATUSES", "PaymentStatus", "TransactionType",
    "ServiceType", "BookingType", "TreasuryType", "CheckStatus", "PaxType",
    "TaskPriority", "TaskStatus", "UserRole", "EntityType", "CustomType",
    "BookingKind", "ServiceKind", "parse_booking_type", "parse_service_type",
    "type_label", "is_inactive",
]
