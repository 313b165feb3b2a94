"""Endpoints related to weekly availability rules of consultants."""

from typing import Any

from fastapi import APIRouter, Depends

from consultbook.auth import get_user, require_consultant, require_verified_email
from consultbook.exceptions.auth import admin_responses
from consultbook.exceptions.slots import InvalidRangeError, RuleNotFoundError
from consultbook.scheduling import BookingService
from consultbook.schemas.availability import (
    AvailabilityRule,
    CreateAvailabilityRule,
    GenerateSlots,
    UpdateAvailabilityRule,
)
from consultbook.schemas.slots import TimeSlot
from consultbook.service import get_service


router = APIRouter()


@router.get(
    "/availability/{user_id}",
    dependencies=[require_verified_email],
    responses=admin_responses(list[AvailabilityRule]),
)
async def get_availability_rules(
    user_id: str = get_user(require_self_or_admin=True), service: BookingService = Depends(get_service)
) -> Any:
    """
    Return the rules for creating slots on a weekly basis for the user.

    *Requirements:* **VERIFIED** and (**SELF** or **ADMIN**)
    """

    return await service.list_rules(user_id)


@router.post(
    "/availability/{user_id}",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(AvailabilityRule, InvalidRangeError),
)
async def add_availability_rule(
    data: CreateAvailabilityRule,
    user_id: str = get_user(require_self_or_admin=True),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Add a rule for creating slots on a weekly basis for the user.

    Slots already materialized are not affected.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    return await service.add_rule(user_id, data.weekday, data.start, data.end, data.active)


@router.patch(
    "/availability/{user_id}/{rule_id}",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(AvailabilityRule, RuleNotFoundError, InvalidRangeError),
)
async def update_availability_rule(
    rule_id: str,
    data: UpdateAvailabilityRule,
    user_id: str = get_user(require_self_or_admin=True),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Update a rule for creating slots on a weekly basis for the user.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    return await service.update_rule(user_id, rule_id, data.weekday, data.start, data.end, data.active)


@router.delete(
    "/availability/{user_id}/{rule_id}",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(bool, RuleNotFoundError),
)
async def delete_availability_rule(
    rule_id: str, user_id: str = get_user(require_self_or_admin=True), service: BookingService = Depends(get_service)
) -> Any:
    """
    Delete a rule for creating slots on a weekly basis for the user.

    Slots generated from the rule are kept.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    await service.delete_rule(user_id, rule_id)
    return True


@router.post(
    "/availability/{user_id}/generate",
    dependencies=[require_verified_email, require_consultant],
    responses=admin_responses(list[TimeSlot], InvalidRangeError),
)
async def generate_slots(
    data: GenerateSlots,
    user_id: str = get_user(require_self_or_admin=True),
    service: BookingService = Depends(get_service),
) -> Any:
    """
    Materialize the slots of the user's active rules for the given range of days.

    Only slots that do not exist yet are created and returned.

    *Requirements:* **VERIFIED** and **CONSULTANT** and (**SELF** or **ADMIN**)
    """

    return await service.generate_slots(user_id, data.start, data.end)
