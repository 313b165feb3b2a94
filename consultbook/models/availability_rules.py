from __future__ import annotations

from datetime import time

from sqlalchemy import Boolean, SmallInteger, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from consultbook.database import Base
from consultbook.schemas.availability import AvailabilityRule as AvailabilityRuleSchema


class AvailabilityRule(Base):
    __tablename__ = "scheduling_availability_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, unique=True)
    consultant_id: Mapped[str] = mapped_column(String(36), index=True)
    weekday: Mapped[int] = mapped_column(SmallInteger)
    start: Mapped[time] = mapped_column(Time)
    end: Mapped[time] = mapped_column(Time)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    @property
    def serialize(self) -> AvailabilityRuleSchema:
        return AvailabilityRuleSchema(
            id=self.id,
            consultant_id=self.consultant_id,
            weekday=self.weekday,
            start=self.start,
            end=self.end,
            active=self.active,
        )

    @classmethod
    def from_schema(cls, rule: AvailabilityRuleSchema) -> AvailabilityRule:
        return cls(**rule.model_dump())
