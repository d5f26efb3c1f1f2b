"""Rate-limit counter stores."""

from .memory import InMemoryCounterStore

__all__ = ["InMemoryCounterStore"]
