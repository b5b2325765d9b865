from .commands import BookingCache, CommandRunner, DeleteBooking, InsertBooking, UpdateBooking
from .financials import (
    BookingFinancials,
    compute_financials,
    payment_in_base,
    payment_status,
    recompute_costs,
    refresh_payment_state,
)
from .model import BookingFilterProxy, BookingsTableModel
from .service import BookingDraft, BookingPage, BookingService, InitialPayment, validate_booking
from .services import change_service_type, edit_service, hotel_nights, normalize_service

__all__ = [
    "BookingCache",
    "CommandRunner",
    "DeleteBooking",
    "InsertBooking",
    "UpdateBooking",
    "BookingFinancials",
    "compute_financials",
    "payment_in_base",
    "payment_status",
    "recompute_costs",
    "refresh_payment_state",
    "BookingFilterProxy",
    "BookingsTableModel",
    "BookingDraft",
    "BookingPage",
    "BookingService",
    "InitialPayment",
    "validate_booking",
    "change_service_type",
    "edit_service",
    "hotel_nights",
    "normalize_service",
]
