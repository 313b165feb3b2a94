from __future__ import annotations

from datetime import datetime

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from consultbook.database import Base
from consultbook.database.database import UTCDateTime
from consultbook.schemas.bookings import Booking as BookingSchema
from consultbook.schemas.bookings import BookingStatus


class Booking(Base):
    __tablename__ = "scheduling_bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, unique=True)
    client_id: Mapped[str] = mapped_column(String(36), index=True)
    consultant_id: Mapped[str] = mapped_column(String(36), index=True)
    slot_id: Mapped[str] = mapped_column(String(36), ForeignKey("scheduling_time_slots.id"))
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    @property
    def serialize(self) -> BookingSchema:
        return BookingSchema(
            id=self.id,
            client_id=self.client_id,
            consultant_id=self.consultant_id,
            slot_id=self.slot_id,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
            notes=self.notes,
            cancelled_by=self.cancelled_by,
        )

    @classmethod
    def from_schema(cls, booking: BookingSchema) -> Booking:
        return cls(**booking.model_dump())
