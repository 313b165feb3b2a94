from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Collection

from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.slots import TimeSlot


class SchedulingStore(ABC):
    """
    Persistence interface of the scheduling service.

    Every method that changes a slot or a booking conditionally is a single atomic update and reports whether its
    condition held. Records handed out are copies: mutating them never changes the store.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """All store calls inside the block commit together or not at all. Blocks may be nested."""

    # availability rules

    @abstractmethod
    async def list_rules(self, consultant_id: str, *, active_only: bool = False) -> list[AvailabilityRule]:
        ...

    @abstractmethod
    async def get_rule(self, rule_id: str) -> AvailabilityRule | None:
        ...

    @abstractmethod
    async def save_rule(self, rule: AvailabilityRule) -> None:
        """Insert the rule or replace the stored rule with the same id."""

    @abstractmethod
    async def delete_rule(self, rule_id: str) -> bool:
        ...

    @abstractmethod
    async def list_scheduled_consultants(self) -> set[str]:
        """Return the ids of all consultants having at least one active rule."""

    # slots

    @abstractmethod
    async def lock_consultant(self, consultant_id: str) -> None:
        """
        Serialize slot inserts of the consultant until the enclosing transaction ends.

        Must be called inside `transaction()` before the overlap check of an insert. A second transaction locking the
        same consultant waits until the first one committed or rolled back.
        """

    @abstractmethod
    async def get_slot(self, slot_id: str) -> TimeSlot | None:
        ...

    @abstractmethod
    async def list_slots(
        self, consultant_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[TimeSlot]:
        """Return all slots of the consultant intersecting [start, end), ascending by start."""

    @abstractmethod
    async def list_available_slots(self, consultant_id: str, from_time: datetime) -> list[TimeSlot]:
        """Return the unbooked slots of the consultant starting at or after from_time, ascending by start."""

    @abstractmethod
    async def add_slots(self, slots: Collection[TimeSlot]) -> None:
        ...

    @abstractmethod
    async def delete_slot(self, slot_id: str) -> bool:
        """Delete the slot if it has never been booked."""

    @abstractmethod
    async def claim_slot(self, slot_id: str, booking_id: str) -> bool:
        """Set booked and booking_id where the slot exists and is not booked yet."""

    @abstractmethod
    async def release_slot(self, slot_id: str, booking_id: str, released_at: datetime) -> bool:
        """Clear booking_id and set released_at where the slot is held by booking_id. booked stays set."""

    # bookings

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking | None:
        ...

    @abstractmethod
    async def add_booking(self, booking: Booking) -> None:
        ...

    @abstractmethod
    async def update_booking(
        self,
        booking_id: str,
        expected_status: Collection[BookingStatus],
        expected_slot_id: str | None = None,
        **changes: Any,
    ) -> Booking | None:
        """
        Apply changes where the booking is in one of the expected states (and holds expected_slot_id, if given).

        Return the updated booking, or None if the condition did not hold.
        """

    @abstractmethod
    async def list_bookings(self, user_id: str, status: BookingStatus | None = None) -> list[Booking]:
        """Return bookings where the user is client or consultant, newest first."""
