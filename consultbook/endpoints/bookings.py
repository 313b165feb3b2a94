"""Endpoints related to bookings of consultation slots."""

from typing import Any

from fastapi import APIRouter, Depends, Query
from starlette.responses import Response

from consultbook.auth import require_verified_email, user_auth
from consultbook.exceptions.auth import verified_responses
from consultbook.exceptions.bookings import (
    BookingNotFoundError,
    CancellationWindowExpiredError,
    ForbiddenError,
    InvalidTransitionError,
    TooEarlyError,
)
from consultbook.exceptions.slots import SlotAlreadyBookedError, SlotInPastError, SlotNotFoundError
from consultbook.exceptions.store import StoreUnavailableError
from consultbook.scheduling import BookingService
from consultbook.schemas.bookings import Booking, BookingStatus, CreateBooking, RescheduleBooking
from consultbook.schemas.user import User
from consultbook.service import get_service
from consultbook.services.ics import create_ics


router = APIRouter()


@router.post(
    "/bookings",
    dependencies=[require_verified_email],
    responses=verified_responses(
        Booking, SlotNotFoundError, SlotAlreadyBookedError, SlotInPastError, ForbiddenError, StoreUnavailableError
    ),
)
async def create_booking(
    data: CreateBooking, user: User = user_auth, service: BookingService = Depends(get_service)
) -> Any:
    """
    Book a slot of a consultant.

    The booking starts as `pending` until the consultant confirms it. If the slot has been booked by someone else in
    the meantime, the request fails and nothing is booked.

    *Requirements:* **VERIFIED**
    """

    return await service.create_booking(user.id, data.consultant_id, data.slot_id, data.notes)


@router.get("/bookings", dependencies=[require_verified_email], responses=verified_responses(list[Booking]))
async def get_bookings(
    status: BookingStatus | None = Query(None, description="Return only bookings with this status"),
    user: User = user_auth,
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Return the bookings of the user as client or as consultant, newest first.

    *Requirements:* **VERIFIED**
    """

    return await service.list_bookings(user.id, status)


@router.get("/bookings/calendar.ics", dependencies=[require_verified_email], responses=verified_responses(str))
async def get_bookings_ics(user: User = user_auth, service: BookingService = Depends(get_service)) -> Any:
    """
    Return the active and past bookings of the user as an iCalendar file.

    *Requirements:* **VERIFIED**
    """

    bookings = [
        (booking, await service.get_booking_slot(booking)) for booking in await service.list_bookings(user.id)
    ]
    return Response(create_ics(user.id, bookings), media_type="text/calendar")


@router.get(
    "/bookings/{booking_id}",
    dependencies=[require_verified_email],
    responses=verified_responses(Booking, BookingNotFoundError),
)
async def get_booking(booking_id: str, user: User = user_auth, service: BookingService = Depends(get_service)) -> Any:
    """
    Return a booking of the user.

    *Requirements:* **VERIFIED** and (**CLIENT** or **CONSULTANT** of the booking)
    """

    return await service.get_booking(booking_id, user.id)


@router.put(
    "/bookings/{booking_id}/confirm",
    dependencies=[require_verified_email],
    responses=verified_responses(Booking, BookingNotFoundError, InvalidTransitionError, ForbiddenError),
)
async def confirm_booking(
    booking_id: str, user: User = user_auth, service: BookingService = Depends(get_service)
) -> Any:
    """
    Accept a pending booking.

    *Requirements:* **VERIFIED** and **CONSULTANT** of the booking
    """

    return await service.confirm_booking(booking_id, user.id)


@router.put(
    "/bookings/{booking_id}/cancel",
    dependencies=[require_verified_email],
    responses=verified_responses(
        Booking, BookingNotFoundError, InvalidTransitionError, ForbiddenError, CancellationWindowExpiredError
    ),
)
async def cancel_booking(
    booking_id: str, user: User = user_auth, service: BookingService = Depends(get_service)
) -> Any:
    """
    Cancel a pending or confirmed booking.

    Clients can cancel only until the cancellation buffer before the session starts, consultants until the session
    ends. The slot is not offered again.

    *Requirements:* **VERIFIED** and (**CLIENT** or **CONSULTANT** of the booking)
    """

    return await service.cancel_booking(booking_id, user.id)


@router.put(
    "/bookings/{booking_id}/complete",
    dependencies=[require_verified_email],
    responses=verified_responses(Booking, BookingNotFoundError, InvalidTransitionError, ForbiddenError, TooEarlyError),
)
async def complete_booking(
    booking_id: str, user: User = user_auth, service: BookingService = Depends(get_service)
) -> Any:
    """
    Mark a confirmed booking as completed after the session has ended.

    *Requirements:* **VERIFIED** and **CONSULTANT** of the booking
    """

    return await service.complete_booking(booking_id, user.id)


@router.put(
    "/bookings/{booking_id}/reschedule",
    dependencies=[require_verified_email],
    responses=verified_responses(
        Booking,
        BookingNotFoundError,
        SlotNotFoundError,
        SlotAlreadyBookedError,
        SlotInPastError,
        InvalidTransitionError,
        ForbiddenError,
        CancellationWindowExpiredError,
    ),
)
async def reschedule_booking(
    booking_id: str, data: RescheduleBooking, user: User = user_auth, service: BookingService = Depends(get_service)
) -> Any:
    """
    Move a booking to another slot of the same consultant.

    The status of the booking is kept. If the new slot cannot be claimed, the booking is left unchanged.

    *Requirements:* **VERIFIED** and (**CLIENT** or **CONSULTANT** of the booking)
    """

    return await service.reschedule_booking(booking_id, data.slot_id, user.id)
