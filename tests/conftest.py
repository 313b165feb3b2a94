from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncIterator

import pytest

from consultbook.database import DB
from consultbook.scheduling import BookingService
from consultbook.schemas.events import BookingEvent
from consultbook.store import MemoryStore, SchedulingStore, SQLStore


# Monday
NOW = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list[BookingEvent] = []

    async def dispatch(self, event: BookingEvent) -> None:
        self.events.append(event)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
async def database(tmp_path: Path) -> AsyncIterator[DB]:
    database = DB(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.create_tables()
    yield database
    await database.drop_tables()
    await database.close()


@pytest.fixture
def sql_store(database: DB) -> SQLStore:
    return SQLStore(database)


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest) -> SchedulingStore:
    if request.param == "memory":
        return MemoryStore()
    return request.getfixturevalue("sql_store")  # type: ignore[no-any-return]


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def service(store: SchedulingStore, dispatcher: RecordingDispatcher, clock: FakeClock) -> BookingService:
    return BookingService(
        store,
        dispatcher,
        clock,
        slot_duration=timedelta(hours=1),
        horizon=timedelta(days=14),
        cancellation_buffer=timedelta(hours=24),
        tz=timezone.utc,
    )
