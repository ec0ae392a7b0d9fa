"""Storage contract, records and the in-memory backend."""

from loco_assistant.storage.base import Storage
from loco_assistant.storage.memory import MemoryStorage

__all__ = ["MemoryStorage", "Storage"]
