"""JSON-based store for the allocation registry."""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from pydantic import TypeAdapter

from bto_engine.domain import models as dm
from bto_engine.interfaces.store import Entity

logger = logging.getLogger(__name__)

_COLLECTIONS: dict[type, tuple[str, Callable[[Entity], object]]] = {
    dm.User: ("users", lambda entity: entity.nric),
    dm.Project: ("projects", lambda entity: entity.name),
    dm.Application: ("applications", lambda entity: entity.id),
    dm.StaffAssignment: ("assignments", lambda entity: entity.id),
    dm.Enquiry: ("enquiries", lambda entity: entity.id),
}


def collection_for(entity: Entity) -> tuple[str, object]:
    """Return the registry attribute and key under which ``entity`` lives."""

    try:
        attribute, key_of = _COLLECTIONS[type(entity)]
    except KeyError as exc:
        raise TypeError(f"unsupported entity type: {type(entity).__name__}") from exc
    return attribute, key_of(entity)


class JsonRegistryStore:
    """Persist the registry as a single JSON snapshot on disk."""

    FILENAME = "registry.json"

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[dm.Registry] = TypeAdapter(dm.Registry)
        self._snapshot: dm.Registry | None = None
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.base_path / self.FILENAME

    def load_all(self) -> dm.Registry:
        """Load a fresh registry from disk (empty when nothing was saved yet)."""

        self._snapshot = self._read()
        return copy.deepcopy(self._snapshot)

    def save(self, entity: Entity) -> None:
        """Upsert one entity and rewrite the snapshot."""

        attribute, key = collection_for(entity)
        with self._write_lock:
            snapshot, collection = self._staged(attribute)
            collection[key] = copy.deepcopy(entity)
            self._commit(snapshot)

    def delete(self, entity: Entity) -> None:
        """Remove one entity if present and rewrite the snapshot."""

        attribute, key = collection_for(entity)
        with self._write_lock:
            snapshot, collection = self._staged(attribute)
            if collection.pop(key, None) is not None:
                self._commit(snapshot)

    def _staged(self, attribute: str) -> tuple[dm.Registry, dict]:
        """Copy of the cached snapshot with ``attribute`` detached for editing."""

        current = self._current()
        collection = dict(getattr(current, attribute))
        return replace(current, **{attribute: collection}), collection

    def _commit(self, snapshot: dm.Registry) -> None:
        # the cache only moves once the file is in place
        self._write(snapshot)
        self._snapshot = snapshot

    def _current(self) -> dm.Registry:
        if self._snapshot is None:
            self._snapshot = self._read()
        return self._snapshot

    def _read(self) -> dm.Registry:
        if not self.path.exists():
            return dm.Registry()
        return self._adapter.validate_json(self.path.read_bytes())

    def _write(self, snapshot: dm.Registry) -> None:
        payload = self._adapter.dump_json(snapshot, indent=2)
        tmp_path = self.path.with_suffix(".json.tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(self.path)
        logger.debug("wrote registry snapshot to %s", self.path)
