from functools import lru_cache

from consultbook.database import db
from consultbook.scheduling import BookingService
from consultbook.services.notifications import get_dispatcher
from consultbook.settings import settings
from consultbook.store import MemoryStore, SchedulingStore, SQLStore


def create_store() -> SchedulingStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    return SQLStore(db)


@lru_cache
def get_service() -> BookingService:
    return BookingService(create_store(), get_dispatcher())
