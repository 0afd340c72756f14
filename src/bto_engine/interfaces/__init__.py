"""Protocol-based interfaces for the engine's external collaborators.

This module exports the store and authentication protocols, providing a
clear contract for adapters and enabling dependency injection and testing.
"""

from bto_engine.interfaces.auth import IAuthenticator
from bto_engine.interfaces.store import Entity, IRegistryStore

__all__ = [
    "Entity",
    "IAuthenticator",
    "IRegistryStore",
]
