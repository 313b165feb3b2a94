"""
Booking state machine.

    create()             confirm()              complete()
    ────────► pending ──────────────► confirmed ──────────────► completed
                 │                        │
                 │ cancel()               │ cancel()
                 ▼                        ▼
             cancelled                cancelled

Every transition is a conditional update on the status the decision was based on, so two concurrent transitions
of the same booking can never both apply.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Collection
from uuid import uuid4

from consultbook.exceptions.bookings import (
    BookingNotFoundError,
    CancellationWindowExpiredError,
    ForbiddenError,
    InvalidTransitionError,
    TooEarlyError,
)
from consultbook.exceptions.slots import SlotInPastError, SlotNotFoundError
from consultbook.logger import get_logger
from consultbook.scheduling.ledger import SlotLedger
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.slots import TimeSlot
from consultbook.store import SchedulingStore
from consultbook.utils.utc import Clock, utcnow


logger = get_logger(__name__)

ACTIVE = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class BookingLifecycle:
    """Applies booking transitions. The only writer of bookings; slot changes go through the ledger."""

    def __init__(
        self,
        store: SchedulingStore,
        ledger: SlotLedger,
        clock: Clock = utcnow,
        cancellation_buffer: timedelta = timedelta(hours=24),
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.cancellation_buffer = cancellation_buffer

    @property
    def buffer_hours(self) -> int:
        return int(self.cancellation_buffer.total_seconds() // 3600)

    async def get(self, booking_id: str) -> Booking:
        booking = await self.store.get_booking(booking_id)
        if not booking:
            raise BookingNotFoundError
        return booking

    async def _transition(
        self,
        booking: Booking,
        expected: Collection[BookingStatus],
        expected_slot_id: str | None = None,
        **changes: Any,
    ) -> Booking:
        updated = await self.store.update_booking(
            booking.id, expected, expected_slot_id, updated_at=self.clock(), **changes
        )
        if not updated:
            # changed concurrently since it was read
            raise InvalidTransitionError
        return updated

    def _check_party(self, booking: Booking, actor_id: str) -> None:
        if actor_id not in (booking.client_id, booking.consultant_id):
            raise ForbiddenError

    def _check_buffer(self, slot: TimeSlot) -> None:
        if slot.start - self.clock() <= self.cancellation_buffer:
            raise CancellationWindowExpiredError(self.buffer_hours)

    async def create(self, client_id: str, consultant_id: str, slot_id: str, notes: str | None = None) -> Booking:
        if client_id == consultant_id:
            raise ForbiddenError

        slot = await self.ledger.get(slot_id)
        if slot.consultant_id != consultant_id:
            raise SlotNotFoundError

        now = self.clock()
        if slot.start <= now:
            raise SlotInPastError

        booking = Booking(
            id=str(uuid4()),
            client_id=client_id,
            consultant_id=consultant_id,
            slot_id=slot_id,
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
            notes=notes,
        )
        await self.ledger.claim(slot_id, booking.id)
        await self.store.add_booking(booking)

        logger.info(f"Client {client_id} booked slot {slot_id} of consultant {consultant_id} ({booking.id})")
        return booking

    async def confirm(self, booking_id: str, actor_id: str) -> Booking:
        booking = await self.get(booking_id)
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransitionError
        if actor_id != booking.consultant_id:
            raise ForbiddenError

        return await self._transition(booking, [BookingStatus.PENDING], status=BookingStatus.CONFIRMED)

    async def cancel(self, booking_id: str, actor_id: str) -> Booking:
        booking = await self.get(booking_id)
        if booking.status not in ACTIVE:
            raise InvalidTransitionError
        self._check_party(booking, actor_id)

        slot = await self.ledger.get(booking.slot_id)
        if actor_id == booking.client_id:
            self._check_buffer(slot)
        elif self.clock() >= slot.end:
            raise CancellationWindowExpiredError

        booking = await self._transition(
            booking, ACTIVE, booking.slot_id, status=BookingStatus.CANCELLED, cancelled_by=actor_id
        )
        await self.ledger.release(slot.id, booking.id)

        logger.info(f"Booking {booking.id} cancelled by {actor_id}")
        return booking

    async def complete(self, booking_id: str, actor_id: str | None = None) -> Booking:
        booking = await self.get(booking_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError
        if actor_id is not None and actor_id != booking.consultant_id:
            raise ForbiddenError

        slot = await self.ledger.get(booking.slot_id)
        if self.clock() < slot.end:
            raise TooEarlyError

        return await self._transition(booking, [BookingStatus.CONFIRMED], status=BookingStatus.COMPLETED)

    async def reschedule(self, booking_id: str, new_slot_id: str, actor_id: str) -> Booking:
        booking = await self.get(booking_id)
        if booking.status not in ACTIVE:
            raise InvalidTransitionError
        self._check_party(booking, actor_id)
        self._check_buffer(await self.ledger.get(booking.slot_id))

        new_slot = await self.ledger.get(new_slot_id)
        if new_slot.consultant_id != booking.consultant_id:
            raise SlotNotFoundError
        if new_slot.start <= self.clock():
            raise SlotInPastError

        old_slot_id = booking.slot_id
        await self.ledger.claim(new_slot_id, booking.id)
        booking = await self._transition(booking, ACTIVE, old_slot_id, slot_id=new_slot_id)
        await self.ledger.release(old_slot_id, booking.id)

        logger.info(f"Booking {booking.id} moved from slot {old_slot_id} to {new_slot_id} by {actor_id}")
        return booking
