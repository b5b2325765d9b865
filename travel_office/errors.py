"""
Error taxonomy shared by repositories, calculators and services.

- DomainError: base class; anything the user can be told about.
- ValidationError: input rejected before any state changed.
- NotFoundError: referenced record does not exist.
- PersistenceError: the database refused a write; local state was compensated.
- UnknownCurrencyError: strict rate lookup for a currency missing from the table.
- EnrichmentUnavailable: the AI collaborator could not answer.
"""

from __future__ import annotations


class DomainError(Exception):
    """Domain-level error raised for validation and business-rule issues."""
    pass


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class PersistenceError(DomainError):
    """Raised when a write to the database fails after local state was touched."""

    def __init__(self, message: str, *, entity_id: str | None = None):
        super().__init__(message)
        self.entity_id = entity_id


class UnknownCurrencyError(DomainError):
    def __init__(self, currency: str):
        super().__init__(f"No exchange rate configured for currency '{currency}'.")
        self.currency = currency


class EnrichmentUnavailable(Exception):
    """The AI collaborator is not configured or failed to produce an answer."""
    pass


__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "UnknownCurrencyError",
    "EnrichmentUnavailable",
]
