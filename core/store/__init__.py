"""Durable key-value store contract and implementations."""

from .base import DurableStore
from .memory import InMemoryStore

__all__ = ["DurableStore", "InMemoryStore"]
