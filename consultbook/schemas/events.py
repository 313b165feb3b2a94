import enum
from datetime import datetime

from pydantic import BaseModel, Field

from .bookings import BookingStatus


class BookingEventType(enum.Enum):
    CREATED = "booking.created"
    CONFIRMED = "booking.confirmed"
    CANCELLED = "booking.cancelled"
    COMPLETED = "booking.completed"
    RESCHEDULED = "booking.rescheduled"


class BookingEvent(BaseModel):
    type: BookingEventType = Field(description="Kind of lifecycle transition")
    booking_id: str = Field(description="Booking ID")
    consultant_id: str = Field(description="ID of the consultant")
    client_id: str = Field(description="ID of the client")
    status: BookingStatus = Field(description="Status of the booking after the transition")
    slot_id: str = Field(description="ID of the slot held by the booking after the transition")
    timestamp: datetime = Field(description="Time of the transition")
