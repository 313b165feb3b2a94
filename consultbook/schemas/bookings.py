import enum
from datetime import datetime

from pydantic import BaseModel, Field


class BookingStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    id: str = Field(description="Booking ID")
    client_id: str = Field(description="ID of the client who booked")
    consultant_id: str = Field(description="ID of the consultant")
    slot_id: str = Field(description="ID of the time slot held by the booking")
    status: BookingStatus = Field(description="Current status of the booking")
    created_at: datetime = Field(description="Creation time of the booking")
    updated_at: datetime = Field(description="Time of the last status or slot change")
    notes: str | None = Field(None, description="Notes of the client for the consultant")
    cancelled_by: str | None = Field(None, description="ID of the user who cancelled the booking")


class CreateBooking(BaseModel):
    consultant_id: str = Field(description="ID of the consultant")
    slot_id: str = Field(description="ID of the slot to book")
    notes: str | None = Field(None, max_length=4096, description="Notes for the consultant")


class RescheduleBooking(BaseModel):
    slot_id: str = Field(description="ID of the new slot")
