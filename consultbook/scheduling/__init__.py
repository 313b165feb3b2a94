from .generator import generate_slots
from .ledger import SlotLedger
from .lifecycle import BookingLifecycle
from .service import BookingService


__all__ = ["BookingLifecycle", "BookingService", "SlotLedger", "generate_slots"]
