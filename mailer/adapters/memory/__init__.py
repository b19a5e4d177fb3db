"""In-memory adapters - Process-local stand-ins for the remote contact store."""

from .contacts import InMemoryContactStore

__all__ = ["InMemoryContactStore"]
