"""Unit stock and officer slot bookkeeping.

:class:`InventoryLedger` is the only writer of ``Project.units`` and
``Project.staff_slots.assigned``.  Every counter mutation happens inside
the project's exclusive section, which keeps unit counts non-negative and
slot usage within ``max_slots`` even if callers race.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from bto_engine.domain.enums import FlatType
from bto_engine.domain.errors import InvalidRequest
from bto_engine.domain.models import Project, UserID
from bto_engine.utils.locks import KeyedLocks, project_key


class InventoryLedger:
    """Counters for flat units and officer slots, one section per project."""

    def __init__(self, locks: KeyedLocks | None = None) -> None:
        self._locks = locks or KeyedLocks()

    @property
    def locks(self) -> KeyedLocks:
        return self._locks

    # --- Flat units -------------------------------------------------------------

    def units_remaining(self, project: Project, flat_type: FlatType) -> int:
        return project.units.get(flat_type, 0)

    def has_units(self, project: Project, flat_type: FlatType) -> bool:
        return self.units_remaining(project, flat_type) > 0

    def snapshot(self, project: Project) -> Mapping[FlatType, int]:
        """Read-only view of the project's unit counts."""

        return MappingProxyType(dict(project.units))

    def decrement(self, project: Project, flat_type: FlatType) -> bool:
        """Take one unit; return ``False`` and leave the count alone at zero."""

        with self._locks.hold(project_key(project.name)):
            current = project.units.get(flat_type, 0)
            if current <= 0:
                return False
            project.units[flat_type] = current - 1
            return True

    def increment(self, project: Project, flat_type: FlatType) -> int:
        """Return one unit to the pool.

        There is no upper clamp: a returned unit always goes back even if the
        manager lowered the stock after the booking was made.
        """

        with self._locks.hold(project_key(project.name)):
            project.units[flat_type] = project.units.get(flat_type, 0) + 1
            return project.units[flat_type]

    def restock(self, project: Project, flat_type: FlatType, units: int) -> None:
        """Set the absolute unit count for a flat type (manager edits)."""

        if units < 0:
            raise InvalidRequest(
                "unit count cannot be negative", project=project.name, flat_type=flat_type
            )
        with self._locks.hold(project_key(project.name)):
            project.units[flat_type] = units

    # --- Officer slots ------------------------------------------------------------

    def remaining_officer_slots(self, project: Project) -> int:
        slots = project.staff_slots
        return slots.max_slots - len(slots.assigned)

    def assign_officer(self, project: Project, officer_id: UserID) -> bool:
        """Consume a slot for ``officer_id``; ``False`` when the project is full."""

        with self._locks.hold(project_key(project.name)):
            slots = project.staff_slots
            if officer_id in slots.assigned:
                return True
            if len(slots.assigned) >= slots.max_slots:
                return False
            slots.assigned.append(officer_id)
            return True

    def release_officer(self, project: Project, officer_id: UserID) -> bool:
        with self._locks.hold(project_key(project.name)):
            slots = project.staff_slots
            if officer_id not in slots.assigned:
                return False
            slots.assigned.remove(officer_id)
            return True

    def resize_officer_slots(self, project: Project, max_slots: int) -> None:
        """Change the slot ceiling; never below the number already assigned."""

        with self._locks.hold(project_key(project.name)):
            slots = project.staff_slots
            if max_slots < len(slots.assigned):
                raise InvalidRequest(
                    f"cannot set officer slots below the {len(slots.assigned)} already assigned",
                    project=project.name,
                )
            slots.max_slots = max_slots
