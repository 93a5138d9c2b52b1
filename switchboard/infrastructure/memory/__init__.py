"""In-memory storage backend."""

from switchboard.infrastructure.memory.repositories import MemoryRepositoryProvider, MemoryState

__all__ = ["MemoryRepositoryProvider", "MemoryState"]
