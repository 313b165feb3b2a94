from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from consultbook.database import Base
from consultbook.database.database import UTCDateTime
from consultbook.schemas.slots import TimeSlot as TimeSlotSchema


class TimeSlot(Base):
    __tablename__ = "scheduling_time_slots"
    __table_args__ = (UniqueConstraint("consultant_id", "start", name="uq_consultant_slot_start"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, unique=True)
    consultant_id: Mapped[str] = mapped_column(String(36), index=True)
    start: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    end: Mapped[datetime] = mapped_column(UTCDateTime)
    booked: Mapped[bool] = mapped_column(Boolean, default=False)
    booking_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    @property
    def serialize(self) -> TimeSlotSchema:
        return TimeSlotSchema(
            id=self.id,
            consultant_id=self.consultant_id,
            start=self.start,
            end=self.end,
            booked=self.booked,
            booking_id=self.booking_id,
            released_at=self.released_at,
        )

    @classmethod
    def from_schema(cls, slot: TimeSlotSchema) -> TimeSlot:
        return cls(**slot.model_dump())
