"""Eligibility rules deciding which flat types an applicant may request."""

from __future__ import annotations

from bto_engine.domain.enums import FlatType, MaritalStatus
from bto_engine.domain.errors import NotEligible
from bto_engine.domain.models import User
from bto_engine.domain.rules_config import DEFAULT_RULES, RulesConfig


def eligible_flat_types(
    age: int,
    marital_status: MaritalStatus,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> frozenset[FlatType]:
    """Return the flat types open to an applicant of the given profile.

    Singles must be at least ``single_min_age`` and only get the smallest
    category; married applicants must be at least ``married_min_age`` and
    get every standard category.  Anyone under age gets the empty set.
    """

    policy = rules.eligibility
    if marital_status == MaritalStatus.MARRIED:
        if age < policy.married_min_age:
            return frozenset()
        return policy.married_flat_types
    if age < policy.single_min_age:
        return frozenset()
    return policy.single_flat_types


def is_eligible(user: User, flat_type: FlatType, *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    return flat_type in eligible_flat_types(user.age, user.marital_status, rules=rules)


def ensure_eligible(
    user: User,
    flat_type: FlatType,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Raise :class:`NotEligible` unless ``user`` may request ``flat_type``."""

    allowed = eligible_flat_types(user.age, user.marital_status, rules=rules)
    if flat_type in allowed:
        return
    if not allowed:
        minimum = (
            rules.eligibility.married_min_age
            if user.is_married
            else rules.eligibility.single_min_age
        )
        detail = f"{user.marital_status} applicants must be at least {minimum} years old"
    else:
        offered = ", ".join(sorted(str(ft) for ft in allowed))
        detail = f"{user.marital_status} applicants may only apply for {offered}"
    raise NotEligible(detail, user=user.nric, flat_type=flat_type)
