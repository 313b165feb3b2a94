from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from uuid import uuid4

from consultbook.exceptions.slots import (
    InvalidRangeError,
    SlotAlreadyBookedError,
    SlotInPastError,
    SlotNotFoundError,
    SlotOverlapError,
)
from consultbook.logger import get_logger
from consultbook.scheduling.generator import generate_slots
from consultbook.schemas.slots import TimeSlot
from consultbook.store import SchedulingStore
from consultbook.utils.utc import Clock, as_utc, utcnow


logger = get_logger(__name__)


class SlotLedger:
    """Authoritative record of slot state. The only writer of slots."""

    def __init__(
        self,
        store: SchedulingStore,
        clock: Clock = utcnow,
        duration: timedelta = timedelta(hours=1),
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.store = store
        self.clock = clock
        self.duration = duration
        self.tz = tz

    async def get(self, slot_id: str) -> TimeSlot:
        slot = await self.store.get_slot(slot_id)
        if not slot:
            raise SlotNotFoundError
        return slot

    async def list_available(self, consultant_id: str, from_time: datetime | None = None) -> list[TimeSlot]:
        return await self.store.list_available_slots(consultant_id, as_utc(from_time or self.clock()))

    async def list_slots(
        self, consultant_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[TimeSlot]:
        if start and end and end < start:
            raise InvalidRangeError
        return await self.store.list_slots(consultant_id, start and as_utc(start), end and as_utc(end))

    async def claim(self, slot_id: str, booking_id: str) -> None:
        await self.get(slot_id)

        if not await self.store.claim_slot(slot_id, booking_id):
            logger.info(f"Booking {booking_id} lost the claim on slot {slot_id}")
            raise SlotAlreadyBookedError

    async def release(self, slot_id: str, booking_id: str | None = None) -> None:
        """Detach the slot from its booking. The slot stays consumed and is never offered again."""

        if booking_id is None:
            booking_id = (await self.get(slot_id)).booking_id
        if booking_id is None or not await self.store.release_slot(slot_id, booking_id, self.clock()):
            logger.warning(f"Slot {slot_id} was not held by booking {booking_id}")

    async def materialize(self, consultant_id: str, start: date, end: date) -> list[TimeSlot]:
        if end < start:
            raise InvalidRangeError

        window_start = datetime.combine(start, time(), tzinfo=self.tz)
        window_end = datetime.combine(end + timedelta(days=1), time(), tzinfo=self.tz)
        async with self.store.transaction():
            await self.store.lock_consultant(consultant_id)
            slots = generate_slots(
                consultant_id,
                await self.store.list_rules(consultant_id, active_only=True),
                await self.store.list_slots(consultant_id, as_utc(window_start), as_utc(window_end)),
                start,
                end,
                self.duration,
                self.tz,
                not_before=self.clock(),
            )
            if slots:
                await self.store.add_slots(slots)
        if slots:
            logger.info(f"Materialized {len(slots)} slots for consultant {consultant_id} ({start} - {end})")
        return slots

    async def add_slot(self, consultant_id: str, start: datetime, end: datetime) -> TimeSlot:
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise InvalidRangeError
        if start <= self.clock():
            raise SlotInPastError

        slot = TimeSlot(id=str(uuid4()), consultant_id=consultant_id, start=start, end=end)
        async with self.store.transaction():
            await self.store.lock_consultant(consultant_id)
            if await self.store.list_slots(consultant_id, start, end):
                raise SlotOverlapError
            await self.store.add_slots([slot])
        return slot

    async def remove_slot(self, consultant_id: str, slot_id: str) -> None:
        slot = await self.get(slot_id)
        if slot.consultant_id != consultant_id:
            raise SlotNotFoundError
        if not await self.store.delete_slot(slot_id):
            raise SlotAlreadyBookedError
