"""Persistence adapters for the allocation registry."""

from .json_store import JsonRegistryStore
from .sql_store import SqlRegistryStore

__all__ = ["JsonRegistryStore", "SqlRegistryStore"]
