from datetime import date, time

from pydantic import BaseModel, Field, model_validator


class AvailabilityRule(BaseModel):
    id: str = Field(description="Availability rule ID")
    consultant_id: str = Field(description="ID of the consultant owning the rule")
    weekday: int = Field(ge=0, le=6, description="Weekday of the rule (0=Monday, 1=Tuesday, ...)")
    start: time = Field(description="Start time of day of the availability window")
    end: time = Field(description="End time of day of the availability window")
    active: bool = Field(description="Whether slots are generated from this rule")


class CreateAvailabilityRule(BaseModel):
    weekday: int = Field(ge=0, le=6, description="Weekday of the rule (0=Monday, 1=Tuesday, ...)")
    start: time = Field(description="Start time of day of the availability window")
    end: time = Field(description="End time of day of the availability window")
    active: bool = Field(True, description="Whether slots are generated from this rule")


class UpdateAvailabilityRule(BaseModel):
    weekday: int | None = Field(None, ge=0, le=6, description="Weekday of the rule (0=Monday, 1=Tuesday, ...)")
    start: time | None = Field(None, description="Start time of day of the availability window")
    end: time | None = Field(None, description="End time of day of the availability window")
    active: bool | None = Field(None, description="Whether slots are generated from this rule")


class GenerateSlots(BaseModel):
    start: date = Field(description="First day of the range (inclusive)")
    end: date = Field(description="Last day of the range (inclusive)")

    @model_validator(mode="after")
    def check_order(self) -> "GenerateSlots":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self
