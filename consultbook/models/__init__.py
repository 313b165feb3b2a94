from .availability_rules import AvailabilityRule
from .bookings import Booking
from .consultant_locks import ConsultantLock
from .slots import TimeSlot


__all__ = ["AvailabilityRule", "Booking", "ConsultantLock", "TimeSlot"]
