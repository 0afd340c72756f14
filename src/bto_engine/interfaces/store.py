"""Registry Store Protocol Interface.

This module defines the protocol (interface) for the persistence
collaborator consumed by the allocation service.
"""

from typing import Protocol

from bto_engine.domain.models import (
    Application,
    Enquiry,
    Project,
    Registry,
    StaffAssignment,
    User,
)

Entity = User | Project | Application | StaffAssignment | Enquiry


class IRegistryStore(Protocol):
    """Protocol defining the persistence contract of the engine.

    The engine does not depend on the storage format; any adapter that can
    load a full :class:`Registry` and upsert or remove single entities
    satisfies it.
    """

    def load_all(self) -> Registry:
        """Load every persisted entity.

        Returns:
            A registry populated with users, projects, applications,
            staff assignments and enquiries
        """
        ...

    def save(self, entity: Entity) -> None:
        """Insert or replace a single entity.

        Args:
            entity: The entity to persist

        Raises:
            OSError or SQLAlchemyError when the underlying storage fails
        """
        ...

    def delete(self, entity: Entity) -> None:
        """Remove a single entity if it is persisted.

        Args:
            entity: The entity to remove
        """
        ...
