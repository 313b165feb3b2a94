from __future__ import annotations

from typing import Protocol

from consultbook.logger import get_logger
from consultbook.schemas.events import BookingEvent
from consultbook.services.internal import InternalService
from consultbook.settings import settings


logger = get_logger(__name__)


class NotificationDispatcher(Protocol):
    async def dispatch(self, event: BookingEvent) -> None:
        ...


class LogDispatcher:
    """Dispatcher used when no notification service is configured."""

    async def dispatch(self, event: BookingEvent) -> None:
        logger.info(f"{event.type.value}: booking {event.booking_id} is now {event.status.value}")


class HTTPDispatcher:
    """Forwards lifecycle events to the notification service."""

    async def dispatch(self, event: BookingEvent) -> None:
        async with InternalService.NOTIFICATIONS.client as client:
            response = await client.post("/events", json=event.model_dump(mode="json"))
            response.raise_for_status()


def get_dispatcher() -> NotificationDispatcher:
    if settings.notification_url:
        return HTTPDispatcher()
    return LogDispatcher()
