from .base import SchedulingStore
from .memory import MemoryStore
from .sql import SQLStore


__all__ = ["MemoryStore", "SQLStore", "SchedulingStore"]
