from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Collection

from sqlalchemy import delete, or_, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from consultbook import models
from consultbook.database import DB, filter_by, select
from consultbook.exceptions.slots import SlotOverlapError
from consultbook.exceptions.store import StoreUnavailableError
from consultbook.logger import get_logger
from consultbook.schemas.availability import AvailabilityRule
from consultbook.schemas.bookings import Booking, BookingStatus
from consultbook.schemas.slots import TimeSlot
from consultbook.store.base import SchedulingStore


logger = get_logger(__name__)

UNAVAILABLE = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError, TimeoutError, ConnectionError)


class SQLStore(SchedulingStore):
    """Store backed by an SQL database. Conditional updates are single `UPDATE ... WHERE` statements."""

    def __init__(self, database: DB) -> None:
        self.db = database

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            async with self.db.context():
                yield
        except UNAVAILABLE as e:
            logger.warning(f"Database operation failed: {e}")
            raise StoreUnavailableError from e

    async def _rows(self, statement: Any) -> list[Any]:
        return await self.db.all(statement.execution_options(populate_existing=True))

    async def _row(self, statement: Any) -> Any | None:
        return await self.db.first(statement.execution_options(populate_existing=True))

    async def _update(self, statement: Any) -> int:
        result = await self.db.exec(statement.execution_options(synchronize_session=False))
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def list_rules(self, consultant_id: str, *, active_only: bool = False) -> list[AvailabilityRule]:
        query = filter_by(models.AvailabilityRule, consultant_id=consultant_id)
        if active_only:
            query = query.filter_by(active=True)
        async with self.transaction():
            return [
                rule.serialize
                for rule in await self._rows(
                    query.order_by(models.AvailabilityRule.weekday, models.AvailabilityRule.start)
                )
            ]

    async def get_rule(self, rule_id: str) -> AvailabilityRule | None:
        async with self.transaction():
            rule = await self._row(filter_by(models.AvailabilityRule, id=rule_id))
            return rule.serialize if rule else None

    async def save_rule(self, rule: AvailabilityRule) -> None:
        async with self.transaction():
            await self.db.session.merge(models.AvailabilityRule.from_schema(rule))

    async def delete_rule(self, rule_id: str) -> bool:
        async with self.transaction():
            result = await self.db.exec(
                delete(models.AvailabilityRule)
                .where(models.AvailabilityRule.id == rule_id)
                .execution_options(synchronize_session=False)
            )
            return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list_scheduled_consultants(self) -> set[str]:
        async with self.transaction():
            result = await self.db.exec(
                select(models.AvailabilityRule.consultant_id).where(models.AvailabilityRule.active).distinct()
            )
            return set(result.scalars())

    async def lock_consultant(self, consultant_id: str) -> None:
        # an upsert takes the row lock (the database write lock on sqlite) even when the row already exists
        lock = models.ConsultantLock
        if self.db.engine.dialect.name == "mysql":
            statement: Any = mysql.insert(lock).values(consultant_id=consultant_id, version=0)
            statement = statement.on_duplicate_key_update(version=lock.version + 1)
        else:
            dialect_insert = postgresql.insert if self.db.engine.dialect.name == "postgresql" else sqlite.insert
            statement = dialect_insert(lock).values(consultant_id=consultant_id, version=0)
            statement = statement.on_conflict_do_update(
                index_elements=[lock.consultant_id], set_={"version": lock.version + 1}
            )

        async with self.transaction():
            await self.db.exec(statement)

    async def get_slot(self, slot_id: str) -> TimeSlot | None:
        async with self.transaction():
            slot = await self._row(filter_by(models.TimeSlot, id=slot_id))
            return slot.serialize if slot else None

    async def list_slots(
        self, consultant_id: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[TimeSlot]:
        query = filter_by(models.TimeSlot, consultant_id=consultant_id)
        if start is not None:
            query = query.where(models.TimeSlot.end > start)
        if end is not None:
            query = query.where(models.TimeSlot.start < end)
        async with self.transaction():
            return [slot.serialize for slot in await self._rows(query.order_by(models.TimeSlot.start))]

    async def list_available_slots(self, consultant_id: str, from_time: datetime) -> list[TimeSlot]:
        query = filter_by(models.TimeSlot, consultant_id=consultant_id, booked=False).where(
            models.TimeSlot.start >= from_time
        )
        async with self.transaction():
            return [slot.serialize for slot in await self._rows(query.order_by(models.TimeSlot.start))]

    async def add_slots(self, slots: Collection[TimeSlot]) -> None:
        async with self.transaction():
            self.db.session.add_all([models.TimeSlot.from_schema(slot) for slot in slots])
            try:
                await self.db.session.flush()
            except IntegrityError as e:
                raise SlotOverlapError from e

    async def delete_slot(self, slot_id: str) -> bool:
        async with self.transaction():
            result = await self.db.exec(
                delete(models.TimeSlot)
                .where(models.TimeSlot.id == slot_id, models.TimeSlot.booked.is_(False))
                .execution_options(synchronize_session=False)
            )
            return bool(result.rowcount)  # type: ignore[attr-defined]

    async def claim_slot(self, slot_id: str, booking_id: str) -> bool:
        async with self.transaction():
            return (
                await self._update(
                    update(models.TimeSlot)
                    .where(models.TimeSlot.id == slot_id, models.TimeSlot.booked.is_(False))
                    .values(booked=True, booking_id=booking_id)
                )
                == 1
            )

    async def release_slot(self, slot_id: str, booking_id: str, released_at: datetime) -> bool:
        async with self.transaction():
            return (
                await self._update(
                    update(models.TimeSlot)
                    .where(
                        models.TimeSlot.id == slot_id,
                        models.TimeSlot.booked.is_(True),
                        models.TimeSlot.booking_id == booking_id,
                    )
                    .values(booking_id=None, released_at=released_at)
                )
                == 1
            )

    async def get_booking(self, booking_id: str) -> Booking | None:
        async with self.transaction():
            booking = await self._row(filter_by(models.Booking, id=booking_id))
            return booking.serialize if booking else None

    async def add_booking(self, booking: Booking) -> None:
        async with self.transaction():
            await self.db.add(models.Booking.from_schema(booking))
            await self.db.session.flush()

    async def update_booking(
        self,
        booking_id: str,
        expected_status: Collection[BookingStatus],
        expected_slot_id: str | None = None,
        **changes: Any,
    ) -> Booking | None:
        statement = update(models.Booking).where(
            models.Booking.id == booking_id, models.Booking.status.in_(list(expected_status))
        )
        if expected_slot_id is not None:
            statement = statement.where(models.Booking.slot_id == expected_slot_id)

        async with self.transaction():
            if await self._update(statement.values(**changes)) != 1:
                return None
            return await self.get_booking(booking_id)

    async def list_bookings(self, user_id: str, status: BookingStatus | None = None) -> list[Booking]:
        query = select(models.Booking).where(
            or_(models.Booking.client_id == user_id, models.Booking.consultant_id == user_id)
        )
        if status is not None:
            query = query.where(models.Booking.status == status)
        async with self.transaction():
            return [
                booking.serialize for booking in await self._rows(query.order_by(models.Booking.created_at.desc()))
            ]
