import json
from datetime import timedelta
from typing import Any

import httpx
import jwt
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from consultbook import auth
from consultbook.exceptions.auth import InvalidTokenError
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.events import BookingEvent, BookingEventType
from consultbook.schemas.slots import TimeSlot
from consultbook.schemas.user import Role
from consultbook.services.ics import create_ics
from consultbook.services.internal import InternalService
from consultbook.services.notifications import HTTPDispatcher
from consultbook.settings import settings
from tests.conftest import NOW


def booking(booking_id: str, status: BookingStatus) -> tuple[Booking, TimeSlot]:
    slot = TimeSlot(id=f"slot-{booking_id}", consultant_id="c", start=NOW, end=NOW + timedelta(hours=1), booked=True)
    return (
        Booking(
            id=booking_id,
            client_id="a",
            consultant_id="c",
            slot_id=slot.id,
            status=status,
            created_at=NOW,
            updated_at=NOW,
            notes="bring the contract",
        ),
        slot,
    )


def test__create_ics() -> None:
    ics = create_ics("a", [booking("b1", BookingStatus.CONFIRMED), booking("b2", BookingStatus.CANCELLED)]).decode()

    assert ics.startswith("BEGIN:VCALENDAR")
    assert "UID:b1@consultbook" in ics
    assert "b2@consultbook" not in ics
    assert "SUMMARY:Consultation (confirmed)" in ics
    assert "DTSTART:20240101T080000Z" in ics


async def test__http_dispatcher(monkeypatch: pytest.MonkeyPatch) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200)

    monkeypatch.setattr(
        InternalService,
        "client",
        property(lambda _: httpx.AsyncClient(base_url="http://notifications", transport=httpx.MockTransport(handler))),
    )
    event = BookingEvent(
        type=BookingEventType.CONFIRMED,
        booking_id="b",
        consultant_id="c",
        client_id="a",
        status=BookingStatus.CONFIRMED,
        slot_id="s",
        timestamp=NOW,
    )

    await HTTPDispatcher().dispatch(event)

    assert [str(request.url) for request in requests] == ["http://notifications/events"]
    body = json.loads(requests[0].content)
    assert body["type"] == "booking.confirmed"
    assert body["status"] == "confirmed"


async def test__http_dispatcher__error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        InternalService,
        "client",
        property(
            lambda _: httpx.AsyncClient(
                base_url="http://notifications", transport=httpx.MockTransport(lambda _: httpx.Response(500))
            )
        ),
    )
    event = BookingEvent(
        type=BookingEventType.CREATED,
        booking_id="b",
        consultant_id="c",
        client_id="a",
        status=BookingStatus.PENDING,
        slot_id="s",
        timestamp=NOW,
    )

    with pytest.raises(httpx.HTTPStatusError):
        await HTTPDispatcher().dispatch(event)


def token(**data: Any) -> HTTPAuthorizationCredentials:
    payload = {
        "uid": "u",
        "rt": "refresh",
        "data": {"email_verified": True, "admin": False, "role": "consultant", **data},
        "exp": NOW + timedelta(days=10000),
    }
    return HTTPAuthorizationCredentials(
        scheme="Bearer", credentials=jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
    )


@pytest.fixture
def revoked(monkeypatch: pytest.MonkeyPatch) -> set[str]:
    keys: set[str] = set()

    async def exists(key: str) -> int:
        return int(key in keys)

    monkeypatch.setattr("consultbook.schemas.user.auth_redis.exists", exists)
    return keys


async def test__get_current_user(revoked: set[str]) -> None:
    user = await auth.get_current_user(token())

    assert user.id == "u"
    assert user.role == Role.CONSULTANT
    assert user.email_verified and not user.admin


async def test__get_current_user__invalid(revoked: set[str]) -> None:
    with pytest.raises(InvalidTokenError):
        await auth.get_current_user(None)
    with pytest.raises(InvalidTokenError):
        await auth.get_current_user(HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage"))

    revoked.add("session_logout:refresh")
    with pytest.raises(InvalidTokenError):
        await auth.get_current_user(token())
