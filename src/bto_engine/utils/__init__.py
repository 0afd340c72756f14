"""Utility helpers for the allocation engine."""

from bto_engine.utils.locks import KeyedLocks, LockKey

__all__ = ["KeyedLocks", "LockKey"]
