"""Allocation domain for the BTO housing workflow.

This package hosts every rule of the engine and operates purely in-memory:

* Dataclasses describing each entity (see :mod:`models`).
* Enumerations and typed errors shared across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* The workflows: eligibility, inventory, application lifecycle,
  withdrawal, staff assignment, project catalog, enquiries and reporting.

Persistence and authentication are reached through the protocols in
:mod:`bto_engine.interfaces`; nothing here performs I/O.
"""

from . import (
    eligibility,
    enquiries,
    enums,
    errors,
    inventory,
    lifecycle,
    models,
    projects,
    reporting,
    rules_config,
    staffing,
    withdrawal,
)

__all__ = [
    "eligibility",
    "enquiries",
    "enums",
    "errors",
    "inventory",
    "lifecycle",
    "models",
    "projects",
    "reporting",
    "rules_config",
    "staffing",
    "withdrawal",
]
