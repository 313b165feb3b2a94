import asyncio
from datetime import date, datetime, time, timedelta, timezone

import pytest

from consultbook.exceptions.bookings import ForbiddenError
from consultbook.exceptions.slots import InvalidRangeError, RuleNotFoundError, SlotOverlapError
from consultbook.scheduling import BookingService
from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.bookings import BookingStatus
from consultbook.schemas.events import BookingEvent, BookingEventType
from consultbook.schemas.slots import TimeSlot
from consultbook.store import SchedulingStore
from tests.conftest import NOW, FakeClock, RecordingDispatcher


class FailingDispatcher:
    async def dispatch(self, event: BookingEvent) -> None:
        raise ConnectionError("notification service down")


async def test__events(service: BookingService, dispatcher: RecordingDispatcher, clock: FakeClock) -> None:
    first = await service.add_slot("c", NOW + timedelta(days=2), NOW + timedelta(days=2, hours=1))
    second = await service.add_slot("c", NOW + timedelta(days=3), NOW + timedelta(days=3, hours=1))

    booking = await service.create_booking("a", "c", first.id)
    await service.confirm_booking(booking.id, "c")
    await service.reschedule_booking(booking.id, second.id, "c")
    clock.now = second.end
    await service.complete_booking(booking.id, "c")

    assert [event.type for event in dispatcher.events] == [
        BookingEventType.CREATED,
        BookingEventType.CONFIRMED,
        BookingEventType.RESCHEDULED,
        BookingEventType.COMPLETED,
    ]
    assert all(
        (event.booking_id, event.client_id, event.consultant_id) == (booking.id, "a", "c")
        for event in dispatcher.events
    )
    assert dispatcher.events[2].slot_id == second.id
    assert dispatcher.events[-1].status == BookingStatus.COMPLETED
    assert dispatcher.events[-1].timestamp == second.end


async def test__no_event_on_failure(service: BookingService, dispatcher: RecordingDispatcher) -> None:
    slot = await service.add_slot("c", NOW + timedelta(days=2), NOW + timedelta(days=2, hours=1))
    booking = await service.create_booking("a", "c", slot.id)

    with pytest.raises(ForbiddenError):
        await service.confirm_booking(booking.id, "a")

    assert [event.type for event in dispatcher.events] == [BookingEventType.CREATED]


async def test__failing_dispatcher_keeps_transition(store: SchedulingStore, clock: FakeClock) -> None:
    service = BookingService(store, FailingDispatcher(), clock, tz=timezone.utc)
    slot = await service.add_slot("c", NOW + timedelta(days=2), NOW + timedelta(days=2, hours=1))

    booking = await service.create_booking("a", "c", slot.id)
    cancelled = await service.cancel_booking(booking.id, "a")

    assert cancelled.status == BookingStatus.CANCELLED
    assert (await service.get_booking(booking.id)).status == BookingStatus.CANCELLED


async def test__list_bookings(service: BookingService, clock: FakeClock) -> None:
    slots = [
        await service.add_slot("c", NOW + timedelta(days=2, hours=i), NOW + timedelta(days=2, hours=i + 1))
        for i in range(3)
    ]
    bookings = []
    for i, slot in enumerate(slots):
        clock.advance(minutes=1)
        bookings.append(await service.create_booking("a" if i < 2 else "b", "c", slot.id))
    await service.confirm_booking(bookings[0].id, "c")

    assert [b.id for b in await service.list_bookings("c")] == [b.id for b in reversed(bookings)]
    assert [b.id for b in await service.list_bookings("a")] == [bookings[1].id, bookings[0].id]
    assert [b.id for b in await service.list_bookings("a", BookingStatus.CONFIRMED)] == [bookings[0].id]
    assert await service.list_bookings("nobody") == []


async def test__rules(service: BookingService) -> None:
    rule = await service.add_rule("c", 0, time(9, 0), time(11, 0))

    assert await service.list_rules("c") == [rule]
    assert await service.list_rules("x") == []

    updated = await service.update_rule("c", rule.id, end=time(12, 0), active=False)
    assert (updated.start, updated.end, updated.active) == (time(9, 0), time(12, 0), False)

    with pytest.raises(InvalidRangeError):
        await service.update_rule("c", rule.id, start=time(13, 0))
    with pytest.raises(InvalidRangeError):
        await service.add_rule("c", 1, time(10, 0), time(10, 0))
    with pytest.raises(RuleNotFoundError):
        await service.update_rule("x", rule.id, active=True)
    with pytest.raises(RuleNotFoundError):
        await service.delete_rule("x", rule.id)

    await service.delete_rule("c", rule.id)
    assert await service.list_rules("c") == []


async def test__materialize_all(service: BookingService) -> None:
    await service.add_rule("c", 0, time(9, 0), time(11, 0))
    await service.add_rule("d", 2, time(14, 0), time(15, 0))
    await service.add_rule("e", 3, time(14, 0), time(15, 0), active=False)

    # Mondays 2024-01-01, 08 and 15; Wednesdays 2024-01-03 and 10
    assert await service.materialize_all() == 8
    assert await service.materialize_all() == 0
    assert len(await service.list_available_slots("c")) == 6
    assert await service.list_slots("e") == []


async def test__generate_slots(service: BookingService) -> None:
    await service.add_rule("c", 0, time(9, 0), time(11, 0))

    slots = await service.generate_slots("c", NOW.date(), NOW.date() + timedelta(days=7))

    assert len(slots) == 4
    assert await service.list_slots("c", NOW, NOW + timedelta(days=1)) == slots[:2]


async def test__materialize_all__skips_failing_consultant(
    service: BookingService, store: SchedulingStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    await service.add_rule("broken", 0, time(9, 0), time(11, 0))
    await service.add_rule("c", 0, time(9, 0), time(11, 0))
    list_rules = store.list_rules

    async def failing_list_rules(consultant_id: str, *, active_only: bool = False) -> list[AvailabilityRule]:
        if consultant_id == "broken":
            raise RuntimeError("corrupt rule")
        return await list_rules(consultant_id, active_only=active_only)

    monkeypatch.setattr(store, "list_rules", failing_list_rules)

    assert await service.materialize_all() == 6
    assert await service.list_slots("broken") == []


async def test__add_slot__concurrent_overlap(service: BookingService) -> None:
    start = NOW + timedelta(days=1)

    results = await asyncio.gather(
        service.add_slot("c", start, start + timedelta(hours=1)),
        service.add_slot("c", start + timedelta(minutes=30), start + timedelta(minutes=90)),
        return_exceptions=True,
    )

    assert sum(isinstance(result, TimeSlot) for result in results) == 1
    assert sum(isinstance(result, SlotOverlapError) for result in results) == 1
    assert len(await service.list_slots("c")) == 1


async def test__add_slot__concurrent_with_generation(service: BookingService) -> None:
    await service.add_rule("c", 0, time(9, 0), time(11, 0))
    monday = date(2024, 1, 8)
    start = datetime(2024, 1, 8, 9, 30, tzinfo=timezone.utc)

    results = await asyncio.gather(
        service.generate_slots("c", monday, monday),
        service.add_slot("c", start, start + timedelta(hours=1)),
        return_exceptions=True,
    )

    assert all(not isinstance(result, BaseException) or isinstance(result, SlotOverlapError) for result in results)
    slots = await service.list_slots("c")
    assert slots
    assert all(a.end <= b.start for a, b in zip(slots, slots[1:]))
