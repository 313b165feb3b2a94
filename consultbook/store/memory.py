from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Collection

from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.slots import TimeSlot
from consultbook.store.base import SchedulingStore


class MemoryStore(SchedulingStore):
    """
    Process local store.

    Conditional updates run under one lock. Inside a transaction every mutation records its inverse in a per task
    undo log which is replayed in reverse if the block raises. Consultant locks are held until the outermost
    transaction ends.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._rules: dict[str, AvailabilityRule] = {}
        self._slots: dict[str, TimeSlot] = {}
        self._bookings: dict[str, Booking] = {}
        self._undo: ContextVar[list[Callable[[], None]] | None] = ContextVar("undo", default=None)
        self._consultant_locks: dict[str, asyncio.Lock] = {}
        self._held: ContextVar[dict[str, asyncio.Lock] | None] = ContextVar("held", default=None)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._undo.get() is not None:
            yield
            return

        undo: list[Callable[[], None]] = []
        held: dict[str, asyncio.Lock] = {}
        token = self._undo.set(undo)
        held_token = self._held.set(held)
        try:
            yield
        except BaseException:
            with self._lock:
                for action in reversed(undo):
                    action()
            raise
        finally:
            self._undo.reset(token)
            self._held.reset(held_token)
            for consultant_lock in held.values():
                consultant_lock.release()

    def _record(self, action: Callable[[], None]) -> None:
        if (undo := self._undo.get()) is not None:
            undo.append(action)

    def _put(self, table: dict[str, Any], key: str, value: Any) -> None:
        previous = table.get(key)
        table[key] = value

        def revert() -> None:
            if previous is None:
                table.pop(key, None)
            else:
                table[key] = previous

        self._record(revert)

    def _pop(self, table: dict[str, Any], key: str) -> Any | None:
        previous = table.pop(key, None)
        if previous is not None:
            self._record(lambda: table.__setitem__(key, previous))
        return previous

    async def list_rules(self, consultant_id: str, *, active_only: bool = False) -> list[AvailabilityRule]:
        with self._lock:
            return [
                rule.model_copy()
                for rule in self._rules.values()
                if rule.consultant_id == consultant_id and (rule.active or not active_only)
            ]

    async def get_rule(self, rule_id: str) -> AvailabilityRule | None:
        with self._lock:
            rule = self._rules.get(rule_id)
            return rule.model_copy() if rule else None

    async def save_rule(self, rule: AvailabilityRule) -> None:
        with self._lock:
            self._put(self._rules, rule.id, rule.model_copy())

    async def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            return self._pop(self._rules, rule_id) is not None

    async def list_scheduled_consultants(self) -> set[str]:
        with self._lock:
            return {rule.consultant_id for rule in self._rules.values() if rule.active}

    async def lock_consultant(self, consultant_id: str) -> None:
        held = self._held.get()
        if held is None:
            raise RuntimeError("Consultant locks can only be taken inside a transaction")
        if consultant_id in held:
            return

        consultant_lock = self._consultant_locks.setdefault(consultant_id, asyncio.Lock())
        await consultant_lock.acquire()
        held[consultant_id] = consultant_lock

    async def get_slot(self, slot_id: str) -> TimeSlot | None:
        with self._lock:
            slot = self._slots.get(slot_id)
            return slot.model_copy() if slot else None

    async def list_slots(
        self, consultant_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[TimeSlot]:
        with self._lock:
            slots = [
                slot.model_copy()
                for slot in self._slots.values()
                if slot.consultant_id == consultant_id
                and (start is None or slot.end > start)
                and (end is None or slot.start < end)
            ]
        return sorted(slots, key=lambda s: s.start)

    async def list_available_slots(self, consultant_id: str, from_time: datetime) -> list[TimeSlot]:
        with self._lock:
            slots = [
                slot.model_copy()
                for slot in self._slots.values()
                if slot.consultant_id == consultant_id and not slot.booked and slot.start >= from_time
            ]
        return sorted(slots, key=lambda s: s.start)

    async def add_slots(self, slots: Collection[TimeSlot]) -> None:
        with self._lock:
            for slot in slots:
                self._put(self._slots, slot.id, slot.model_copy())

    async def delete_slot(self, slot_id: str) -> bool:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.booked:
                return False
            self._pop(self._slots, slot_id)
            return True

    async def claim_slot(self, slot_id: str, booking_id: str) -> bool:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.booked:
                return False
            self._put(self._slots, slot_id, slot.model_copy(update={"booked": True, "booking_id": booking_id}))
            return True

    async def release_slot(self, slot_id: str, booking_id: str, released_at: datetime) -> bool:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or not slot.booked or slot.booking_id != booking_id:
                return False
            self._put(self._slots, slot_id, slot.model_copy(update={"booking_id": None, "released_at": released_at}))
            return True

    async def get_booking(self, booking_id: str) -> Booking | None:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return booking.model_copy() if booking else None

    async def add_booking(self, booking: Booking) -> None:
        with self._lock:
            self._put(self._bookings, booking.id, booking.model_copy())

    async def update_booking(
        self,
        booking_id: str,
        expected_status: Collection[BookingStatus],
        expected_slot_id: str | None = None,
        **changes: Any,
    ) -> Booking | None:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.status not in expected_status:
                return None
            if expected_slot_id is not None and booking.slot_id != expected_slot_id:
                return None
            updated = booking.model_copy(update=changes)
            self._put(self._bookings, booking_id, updated)
            return updated.model_copy()

    async def list_bookings(self, user_id: str, status: BookingStatus | None = None) -> list[Booking]:
        with self._lock:
            bookings = [
                booking.model_copy()
                for booking in self._bookings.values()
                if user_id in (booking.client_id, booking.consultant_id)
                and (status is None or booking.status == status)
            ]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)
