from typing import cast

import icalendar

from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.slots import TimeSlot


def create_ics(user_id: str, bookings: list[tuple[Booking, TimeSlot]]) -> bytes:
    cal = icalendar.Calendar()
    cal.add("prodid", "-//consultbook//scheduling//EN")
    cal.add("version", "2.0")

    for booking, slot in bookings:
        if booking.status == BookingStatus.CANCELLED:
            continue

        event = icalendar.Event()
        role = "Client" if booking.consultant_id == user_id else "Consultant"
        other = booking.client_id if booking.consultant_id == user_id else booking.consultant_id
        summary = f"Consultation ({booking.status.value})"
        description = f"{role}: {other}"
        if booking.notes:
            description += f"\nNotes: {booking.notes}"

        event.add("uid", f"{booking.id}@consultbook")
        event.add("summary", summary)
        event.add("description", description)
        event.add("dtstart", slot.start)
        event.add("dtend", slot.end)
        event.add("dtstamp", booking.updated_at)
        cal.add_component(event)

    return cast(bytes, cal.to_ical())
