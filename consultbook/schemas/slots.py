from datetime import datetime

from pydantic import BaseModel, Field


class TimeSlot(BaseModel):
    id: str = Field(description="Slot ID")
    consultant_id: str = Field(description="ID of the consultant offering the slot")
    start: datetime = Field(description="Start time of the slot")
    end: datetime = Field(description="End time of the slot")
    booked: bool = Field(False, description="Whether the slot has been claimed by a booking")
    booking_id: str | None = Field(None, description="ID of the booking currently holding the slot")
    released_at: datetime | None = Field(None, description="When the holding booking was cancelled")


class CreateSlot(BaseModel):
    start: datetime = Field(description="Start time of the slot")
    duration: int = Field(gt=0, lt=24 * 60, description="Duration of the slot in minutes")
