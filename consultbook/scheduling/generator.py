"""Expansion of weekly availability rules into concrete time slots."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Iterator
from uuid import uuid4

from consultbook.exceptions.slots import InvalidRangeError
from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.slots import TimeSlot


def iter_days(start: date, end: date) -> Iterator[date]:
    if end < start:
        raise InvalidRangeError

    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def split_window(
    day: date, start: time, end: time, duration: timedelta, tz: tzinfo
) -> Iterator[tuple[datetime, datetime]]:
    """
    Cut the window [start, end) of the given day into consecutive intervals of the given duration.

    The window is measured in wall clock time of `tz`, the intervals are returned in UTC. A trailing remainder
    shorter than `duration` is dropped.
    """

    window_start = datetime.combine(day, start, tzinfo=tz)
    window_end = datetime.combine(day, end, tzinfo=tz)
    slot_start = window_start
    while slot_start + duration <= window_end:
        yield slot_start.astimezone(timezone.utc), (slot_start + duration).astimezone(timezone.utc)
        slot_start += duration


def generate_slots(
    consultant_id: str,
    rules: Iterable[AvailabilityRule],
    existing: Iterable[TimeSlot],
    start: date,
    end: date,
    duration: timedelta,
    tz: tzinfo = timezone.utc,
    not_before: datetime | None = None,
) -> list[TimeSlot]:
    """
    Return the slots the consultant's active rules produce between `start` and `end` (both inclusive) that are not
    materialized yet.

    Candidates intersecting an existing slot or an earlier candidate are skipped, as are candidates starting before
    `not_before`. The result is ordered by start time.
    """

    if end < start:
        raise InvalidRangeError

    rules_by_weekday: dict[int, list[AvailabilityRule]] = {}
    for rule in rules:
        if rule.active and rule.consultant_id == consultant_id:
            rules_by_weekday.setdefault(rule.weekday, []).append(rule)

    taken = [(slot.start, slot.end) for slot in existing if slot.consultant_id == consultant_id]
    slots: list[TimeSlot] = []
    for day in iter_days(start, end):
        for rule in sorted(rules_by_weekday.get(day.weekday(), []), key=lambda r: r.start):
            for slot_start, slot_end in split_window(day, rule.start, rule.end, duration, tz):
                if not_before is not None and slot_start < not_before:
                    continue
                if any(slot_start < t_end and t_start < slot_end for t_start, t_end in taken):
                    continue

                taken.append((slot_start, slot_end))
                slots.append(TimeSlot(id=str(uuid4()), consultant_id=consultant_id, start=slot_start, end=slot_end))

    slots.sort(key=lambda s: s.start)
    return slots
