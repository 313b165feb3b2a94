from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from consultbook.app import app
from consultbook.auth import get_current_user
from consultbook.scheduling import BookingService
from consultbook.schemas.user import Role, User
from consultbook.service import get_service
from consultbook.store import MemoryStore


USERS = {
    "consultant": User(id="consultant", email_verified=True, admin=False, role=Role.CONSULTANT),
    "client": User(id="client", email_verified=True, admin=False, role=Role.CLIENT),
    "other": User(id="other", email_verified=True, admin=False, role=Role.CLIENT),
    "unverified": User(id="unverified", email_verified=False, admin=False, role=Role.CLIENT),
}


class AuthAs:
    def __init__(self) -> None:
        self.user: User | None = None

    def __call__(self, name: str) -> None:
        self.user = USERS[name]


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def auth_as() -> AuthAs:
    return AuthAs()


@pytest.fixture
def client(service: BookingService, auth_as: AuthAs) -> Iterator[TestClient]:
    async def current_user() -> User:
        if auth_as.user is None:
            raise AssertionError("no user selected")
        return auth_as.user

    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_current_user] = current_user
    yield TestClient(app)
    app.dependency_overrides.clear()
