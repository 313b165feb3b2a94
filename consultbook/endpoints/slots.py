"""Endpoints related to time slots."""

from datetime import datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, Query

from consultbook.auth import get_user, require_consultant, require_verified_email
from consultbook.exceptions.auth import admin_responses, verified_responses
from consultbook.exceptions.slots import (
    InvalidRangeError,
    SlotAlreadyBookedError,
    SlotInPastError,
    SlotNotFoundError,
    SlotOverlapError,
)
from consultbook.scheduling import BookingService
from consultbook.schemas.slots import CreateSlot, TimeSlot
from consultbook.service import get_service


router = APIRouter()


@router.get(
    "/slots/{consultant_id}", dependencies=[require_verified_email], responses=verified_responses(list[TimeSlot])
)
async def get_available_slots(
    consultant_id: str,
    from_: datetime | None = Query(None, alias="from", description="Return only slots starting at or after this time"),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Return the bookable slots of a consultant, ordered by start time.

    *Requirements:* **VERIFIED**
    """

    return await service.list_available_slots(consultant_id, from_)


@router.get(
    "/slots/{user_id}/all",
    dependencies=[require_verified_email],
    responses=admin_responses(list[TimeSlot], InvalidRangeError),
)
async def get_all_slots(
    start: datetime | None = Query(None, description="Return only slots ending after this time"),
    end: datetime | None = Query(None, description="Return only slots starting before this time"),
    user_id: str = get_user(require_self_or_admin=True),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Return all slots of the user including booked and released ones.

    *Requirements:* **VERIFIED** and (**SELF** or **ADMIN**)
    """

    return await service.list_slots(user_id, start, end)


@router.post(
    "/slots/{user_id}",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(TimeSlot, InvalidRangeError, SlotInPastError, SlotOverlapError),
)
async def add_slot(
    data: CreateSlot,
    user_id: str = get_user(require_self_or_admin=True),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Add a single slot for the user.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    return await service.add_slot(user_id, data.start, data.start + timedelta(minutes=data.duration))


@router.delete(
    "/slots/{user_id}/{slot_id}",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(bool, SlotNotFoundError, SlotAlreadyBookedError),
)
async def delete_slot(
    slot_id: str, user_id: str = get_user(require_self_or_admin=True), service: BookingService = Depends(get_service)
) -> Any:
    """
    Delete a slot of the user. Slots that have been booked cannot be deleted.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    await service.delete_slot(user_id, slot_id)
    return True
