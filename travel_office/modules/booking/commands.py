"""
Optimistic booking mutations.

The booking list shown to the user is kept in a local cache. A mutation is a
command that knows how to apply itself to the cached state and how to undo
that change. CommandRunner applies the command, runs the persistence call and,
if the database refuses it, compensates and raises PersistenceError, so the
cache never keeps a change the database does not have.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from ...database.repositories.bookings_repo import Booking
from ...errors import DomainError, PersistenceError, ValidationError

_log = logging.getLogger(__name__)

T = TypeVar("T")
State = Dict[str, Booking]

__all__ = [
    "BookingCache",
    "BookingCommand",
    "InsertBooking",
    "UpdateBooking",
    "DeleteBooking",
    "CommandRunner",
]


class BookingCache:
    """Bookings by id, newest first."""

    def __init__(self, bookings: Iterable[Booking] = ()):
        self.state: State = {b.booking_id: b for b in bookings}

    def replace_all(self, bookings: Iterable[Booking]) -> None:
        self.state = {b.booking_id: b for b in bookings}

    def get(self, booking_id: str) -> Optional[Booking]:
        return self.state.get(booking_id)

    def all(self) -> List[Booking]:
        return list(self.state.values())

    def __contains__(self, booking_id: object) -> bool:
        return booking_id in self.state

    def __len__(self) -> int:
        return len(self.state)


class BookingCommand:
    """apply() and compensate() return new state mappings; they never mutate the input."""

    label = "booking"

    def apply(self, state: State) -> State:
        raise NotImplementedError

    def compensate(self, state: State) -> State:
        raise NotImplementedError


@dataclass
class InsertBooking(BookingCommand):
    booking: Booking
    label = "create booking"

    def apply(self, state: State) -> State:
        return {self.booking.booking_id: self.booking, **state}

    def compensate(self, state: State) -> State:
        return {k: v for k, v in state.items() if k != self.booking.booking_id}


@dataclass
class UpdateBooking(BookingCommand):
    before: Booking
    after: Booking
    label = "update booking"

    def _put(self, state: State, value: Booking) -> State:
        out = dict(state)
        out[value.booking_id] = value
        return out

    def apply(self, state: State) -> State:
        return self._put(state, self.after)

    def compensate(self, state: State) -> State:
        return self._put(state, self.before)


@dataclass
class DeleteBooking(BookingCommand):
    booking: Booking
    _position: int = field(default=0, init=False, repr=False)
    label = "delete booking"

    def apply(self, state: State) -> State:
        keys = list(state)
        if self.booking.booking_id in keys:
            self._position = keys.index(self.booking.booking_id)
        return {k: v for k, v in state.items() if k != self.booking.booking_id}

    def compensate(self, state: State) -> State:
        items = list(state.items())
        items.insert(min(self._position, len(items)), (self.booking.booking_id, self.booking))
        return dict(items)


class CommandRunner:
    def __init__(self, cache: BookingCache):
        self.cache = cache

    def run(self, command: BookingCommand, persist: Callable[[], T]) -> T:
        self.cache.state = command.apply(self.cache.state)
        try:
            return persist()
        except ValidationError:
            self.cache.state = command.compensate(self.cache.state)
            raise
        except (sqlite3.Error, DomainError) as e:
            self.cache.state = command.compensate(self.cache.state)
            _log.error("%s failed, local change reverted: %s", command.label, e)
            booking = getattr(command, "booking", None) or getattr(command, "after", None)
            raise PersistenceError(
                f"Could not {command.label}: {e}",
                entity_id=getattr(booking, "booking_id", None),
            ) from e
