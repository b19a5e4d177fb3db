"""Loops.so adapters - Remote contact store and transactional email."""

from .client import LoopsClient, LoopsContactStore, LoopsMailDispatcher

__all__ = ["LoopsClient", "LoopsContactStore", "LoopsMailDispatcher"]
