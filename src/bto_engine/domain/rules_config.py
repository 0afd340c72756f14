"""Declarative rule configuration for the allocation domain."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import FlatType


@dataclass(frozen=True, slots=True)
class EligibilityRules:
    """Age thresholds and flat categories per marital status."""

    married_min_age: int = 21
    single_min_age: int = 35
    single_flat_types: frozenset[FlatType] = frozenset({FlatType.TWO_ROOM})
    married_flat_types: frozenset[FlatType] = frozenset({FlatType.TWO_ROOM, FlatType.THREE_ROOM})


@dataclass(frozen=True, slots=True)
class ProjectRules:
    """Limits applied when projects are created or edited."""

    max_officer_slots: int = 10


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    eligibility: EligibilityRules = EligibilityRules()
    projects: ProjectRules = ProjectRules()


DEFAULT_RULES = RulesConfig()
