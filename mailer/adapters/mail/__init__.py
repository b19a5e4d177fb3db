"""Mail adapters - Confirmation email delivery."""

from .console import ConsoleMailDispatcher

__all__ = ["ConsoleMailDispatcher"]
