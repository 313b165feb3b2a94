import asyncio
from datetime import date, time, timedelta, timezone

import pytest

from consultbook.exceptions.slots import (
    InvalidRangeError,
    SlotAlreadyBookedError,
    SlotInPastError,
    SlotNotFoundError,
    SlotOverlapError,
)
from consultbook.scheduling import SlotLedger
from consultbook.schemas.availability import AvailabilityRule
from consultbook.store import SchedulingStore
from tests.conftest import NOW, FakeClock


@pytest.fixture
def ledger(store: SchedulingStore, clock: FakeClock) -> SlotLedger:
    return SlotLedger(store, clock, timedelta(hours=1), timezone.utc)


async def test__claim__exactly_one_wins(store: SchedulingStore, ledger: SlotLedger) -> None:
    slot = await ledger.add_slot("c", NOW + timedelta(days=1), NOW + timedelta(days=1, hours=1))

    async def claim(i: int) -> None:
        async with store.transaction():
            await ledger.claim(slot.id, f"booking-{i}")

    results = await asyncio.gather(*[claim(i) for i in range(20)], return_exceptions=True)

    assert results.count(None) == 1
    assert all(isinstance(r, SlotAlreadyBookedError) for r in results if r is not None)
    claimed = await ledger.get(slot.id)
    assert claimed.booked
    assert claimed.booking_id == f"booking-{results.index(None)}"


async def test__claim__not_found(ledger: SlotLedger) -> None:
    with pytest.raises(SlotNotFoundError):
        await ledger.claim("missing", "b")


async def test__release__slot_stays_consumed(ledger: SlotLedger, clock: FakeClock) -> None:
    slot = await ledger.add_slot("c", NOW + timedelta(days=1), NOW + timedelta(days=1, hours=1))
    await ledger.claim(slot.id, "b")

    await ledger.release(slot.id, "b")

    released = await ledger.get(slot.id)
    assert released.booked
    assert released.booking_id is None
    assert released.released_at == clock()
    assert await ledger.list_available("c") == []


async def test__release__other_booking_is_noop(ledger: SlotLedger) -> None:
    slot = await ledger.add_slot("c", NOW + timedelta(days=1), NOW + timedelta(days=1, hours=1))
    await ledger.claim(slot.id, "b")

    await ledger.release(slot.id, "other")

    assert (await ledger.get(slot.id)).booking_id == "b"


async def test__list_available(ledger: SlotLedger, clock: FakeClock) -> None:
    late = await ledger.add_slot("c", NOW + timedelta(hours=5), NOW + timedelta(hours=6))
    early = await ledger.add_slot("c", NOW + timedelta(hours=1), NOW + timedelta(hours=2))
    booked = await ledger.add_slot("c", NOW + timedelta(hours=3), NOW + timedelta(hours=4))
    await ledger.add_slot("x", NOW + timedelta(hours=1), NOW + timedelta(hours=2))
    await ledger.claim(booked.id, "b")

    assert [slot.id for slot in await ledger.list_available("c")] == [early.id, late.id]

    clock.advance(hours=2)
    assert [slot.id for slot in await ledger.list_available("c")] == [late.id]
    assert [slot.id for slot in await ledger.list_available("c", NOW)] == [early.id, late.id]


async def test__list_slots__invalid_range(ledger: SlotLedger) -> None:
    with pytest.raises(InvalidRangeError):
        await ledger.list_slots("c", NOW, NOW - timedelta(hours=1))


async def test__add_slot__validation(ledger: SlotLedger) -> None:
    with pytest.raises(InvalidRangeError):
        await ledger.add_slot("c", NOW + timedelta(hours=2), NOW + timedelta(hours=1))
    with pytest.raises(SlotInPastError):
        await ledger.add_slot("c", NOW - timedelta(hours=1), NOW)

    await ledger.add_slot("c", NOW + timedelta(hours=1), NOW + timedelta(hours=2))
    with pytest.raises(SlotOverlapError):
        await ledger.add_slot("c", NOW + timedelta(hours=1, minutes=30), NOW + timedelta(hours=2, minutes=30))


async def test__remove_slot(ledger: SlotLedger) -> None:
    free = await ledger.add_slot("c", NOW + timedelta(hours=1), NOW + timedelta(hours=2))
    held = await ledger.add_slot("c", NOW + timedelta(hours=2), NOW + timedelta(hours=3))
    await ledger.claim(held.id, "b")

    with pytest.raises(SlotNotFoundError):
        await ledger.remove_slot("x", free.id)
    with pytest.raises(SlotAlreadyBookedError):
        await ledger.remove_slot("c", held.id)

    await ledger.remove_slot("c", free.id)
    with pytest.raises(SlotNotFoundError):
        await ledger.get(free.id)


async def test__materialize(store: SchedulingStore, ledger: SlotLedger) -> None:
    await store.save_rule(
        AvailabilityRule(id="r", consultant_id="c", weekday=0, start=time(7, 0), end=time(10, 0), active=True)
    )

    slots = await ledger.materialize("c", date(2024, 1, 1), date(2024, 1, 8))

    # 07:00 on the first day has already started
    assert [slot.start for slot in slots] == [
        NOW,
        NOW + timedelta(hours=1),
        NOW + timedelta(days=7, hours=-1),
        NOW + timedelta(days=7),
        NOW + timedelta(days=7, hours=1),
    ]
    assert await ledger.materialize("c", date(2024, 1, 1), date(2024, 1, 8)) == []
