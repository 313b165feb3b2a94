from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from uuid import uuid4
from zoneinfo import ZoneInfo

from consultbook.exceptions.bookings import BookingNotFoundError
from consultbook.exceptions.slots import InvalidRangeError, RuleNotFoundError
from consultbook.exceptions.store import StoreUnavailableError
from consultbook.logger import get_logger
from consultbook.scheduling.ledger import SlotLedger
from consultbook.scheduling.lifecycle import BookingLifecycle
from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.events import BookingEvent, BookingEventType
from consultbook.schemas.slots import TimeSlot
from consultbook.services.notifications import LogDispatcher, NotificationDispatcher
from consultbook.settings import settings
from consultbook.store import SchedulingStore
from consultbook.utils.utc import Clock, utcnow


logger = get_logger(__name__)


class BookingService:
    """
    Entry point of the scheduling core.

    Each operation runs in one store transaction. Lifecycle events are dispatched after the transaction committed;
    a failing dispatcher is logged and never undoes the transition.
    """

    def __init__(
        self,
        store: SchedulingStore,
        dispatcher: NotificationDispatcher | None = None,
        clock: Clock = utcnow,
        slot_duration: timedelta = timedelta(minutes=settings.slot_duration),
        horizon: timedelta = timedelta(days=settings.slot_horizon),
        cancellation_buffer: timedelta = timedelta(hours=settings.cancellation_buffer),
        tz: tzinfo | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher or LogDispatcher()
        self.clock = clock
        self.horizon = horizon
        self.tz = tz or (timezone.utc if settings.schedule_timezone == "UTC" else ZoneInfo(settings.schedule_timezone))
        self.ledger = SlotLedger(store, clock, slot_duration, self.tz)
        self.lifecycle = BookingLifecycle(store, self.ledger, clock, cancellation_buffer)

    async def _notify(self, event_type: BookingEventType, booking: Booking) -> None:
        event = BookingEvent(
            type=event_type,
            booking_id=booking.id,
            consultant_id=booking.consultant_id,
            client_id=booking.client_id,
            status=booking.status,
            slot_id=booking.slot_id,
            timestamp=booking.updated_at,
        )
        try:
            await self.dispatcher.dispatch(event)
        except Exception:
            logger.exception(f"Could not dispatch {event_type.value} for booking {booking.id}")

    # availability rules

    async def list_rules(self, consultant_id: str) -> list[AvailabilityRule]:
        return await self.store.list_rules(consultant_id)

    async def add_rule(
        self, consultant_id: str, weekday: int, start: time, end: time, active: bool = True
    ) -> AvailabilityRule:
        if end <= start:
            raise InvalidRangeError

        rule = AvailabilityRule(
            id=str(uuid4()), consultant_id=consultant_id, weekday=weekday, start=start, end=end, active=active
        )
        async with self.store.transaction():
            await self.store.save_rule(rule)
        return rule

    async def update_rule(
        self,
        consultant_id: str,
        rule_id: str,
        weekday: int | None = None,
        start: time | None = None,
        end: time | None = None,
        active: bool | None = None,
    ) -> AvailabilityRule:
        async with self.store.transaction():
            rule = await self.store.get_rule(rule_id)
            if not rule or rule.consultant_id != consultant_id:
                raise RuleNotFoundError

            if weekday is not None:
                rule.weekday = weekday
            if start is not None:
                rule.start = start
            if end is not None:
                rule.end = end
            if active is not None:
                rule.active = active
            if rule.end <= rule.start:
                raise InvalidRangeError

            await self.store.save_rule(rule)
        return rule

    async def delete_rule(self, consultant_id: str, rule_id: str) -> None:
        async with self.store.transaction():
            rule = await self.store.get_rule(rule_id)
            if not rule or rule.consultant_id != consultant_id:
                raise RuleNotFoundError
            await self.store.delete_rule(rule_id)

    # slots

    async def generate_slots(self, consultant_id: str, range_start: date, range_end: date) -> list[TimeSlot]:
        async with self.store.transaction():
            return await self.ledger.materialize(consultant_id, range_start, range_end)

    async def materialize_all(self) -> int:
        """
        Generate the slots of every scheduled consultant for the rolling horizon. Return the number of new slots.

        A consultant whose generation fails is logged and skipped; an unavailable store aborts the run.
        """

        today = self.clock().astimezone(self.tz).date()
        until = (self.clock() + self.horizon).astimezone(self.tz).date()
        count = 0
        for consultant_id in sorted(await self.store.list_scheduled_consultants()):
            try:
                count += len(await self.generate_slots(consultant_id, today, until))
            except StoreUnavailableError:
                raise
            except Exception:
                logger.exception(f"Could not materialize slots for consultant {consultant_id}")
        return count

    async def list_available_slots(self, consultant_id: str, from_time: datetime | None = None) -> list[TimeSlot]:
        return await self.ledger.list_available(consultant_id, from_time)

    async def list_slots(
        self, consultant_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[TimeSlot]:
        return await self.ledger.list_slots(consultant_id, start, end)

    async def add_slot(self, consultant_id: str, start: datetime, end: datetime) -> TimeSlot:
        async with self.store.transaction():
            return await self.ledger.add_slot(consultant_id, start, end)

    async def delete_slot(self, consultant_id: str, slot_id: str) -> None:
        async with self.store.transaction():
            await self.ledger.remove_slot(consultant_id, slot_id)

    # bookings

    async def get_booking(self, booking_id: str, user_id: str | None = None) -> Booking:
        booking = await self.lifecycle.get(booking_id)
        if user_id is not None and user_id not in (booking.client_id, booking.consultant_id):
            raise BookingNotFoundError
        return booking

    async def get_booking_slot(self, booking: Booking) -> TimeSlot:
        return await self.ledger.get(booking.slot_id)

    async def list_bookings(self, user_id: str, status: BookingStatus | None = None) -> list[Booking]:
        return await self.store.list_bookings(user_id, status)

    async def create_booking(
        self, client_id: str, consultant_id: str, slot_id: str, notes: str | None = None
    ) -> Booking:
        async with self.store.transaction():
            booking = await self.lifecycle.create(client_id, consultant_id, slot_id, notes)
        await self._notify(BookingEventType.CREATED, booking)
        return booking

    async def confirm_booking(self, booking_id: str, actor_id: str) -> Booking:
        async with self.store.transaction():
            booking = await self.lifecycle.confirm(booking_id, actor_id)
        await self._notify(BookingEventType.CONFIRMED, booking)
        return booking

    async def cancel_booking(self, booking_id: str, actor_id: str) -> Booking:
        async with self.store.transaction():
            booking = await self.lifecycle.cancel(booking_id, actor_id)
        await self._notify(BookingEventType.CANCELLED, booking)
        return booking

    async def complete_booking(self, booking_id: str, actor_id: str | None = None) -> Booking:
        async with self.store.transaction():
            booking = await self.lifecycle.complete(booking_id, actor_id)
        await self._notify(BookingEventType.COMPLETED, booking)
        return booking

    async def reschedule_booking(self, booking_id: str, new_slot_id: str, actor_id: str) -> Booking:
        async with self.store.transaction():
            booking = await self.lifecycle.reschedule(booking_id, new_slot_id, actor_id)
        await self._notify(BookingEventType.RESCHEDULED, booking)
        return booking
