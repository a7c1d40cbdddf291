"""Log storage adapters implementing LogStoragePort."""

from rules_exporter.adapters.storage.ring_buffer import RingBufferLogStorage

__all__ = ["RingBufferLogStorage"]
