"""Service factory for the allocation engine.

Picks the store backend from :class:`~bto_engine.config.Settings` and wires
the services on top of it.  Tests construct services around an in-memory
or temporary store directly instead.
"""

from __future__ import annotations

from bto_engine.config import Settings, get_settings
from bto_engine.database import create_db_engine, get_session_factory, init_db
from bto_engine.domain.rules_config import DEFAULT_RULES, RulesConfig
from bto_engine.interfaces.store import IRegistryStore
from bto_engine.repository import JsonRegistryStore, SqlRegistryStore
from bto_engine.services import AllocationService, AuthService


def create_store(settings: Settings | None = None) -> IRegistryStore:
    """Create the configured registry store.

    Args:
        settings: Settings to use (defaults to the cached settings)

    Returns:
        A JSON snapshot store or an initialized SQL store
    """
    settings = settings or get_settings()
    if settings.store_backend == "sql":
        engine = create_db_engine(settings.database_url, echo=settings.database_echo)
        init_db(engine)
        return SqlRegistryStore(get_session_factory(engine))
    return JsonRegistryStore(settings.data_dir)


def create_allocation_service(
    settings: Settings | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> AllocationService:
    return AllocationService(create_store(settings), rules=rules)


def create_services(
    settings: Settings | None = None, *, rules: RulesConfig = DEFAULT_RULES
) -> tuple[AllocationService, AuthService]:
    """Create the allocation and auth services sharing one registry."""
    settings = settings or get_settings()
    allocation = create_allocation_service(settings, rules=rules)
    auth = AuthService(allocation, default_password=settings.default_password)
    return allocation, auth
