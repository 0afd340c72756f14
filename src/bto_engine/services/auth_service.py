"""Credential checks and account creation.

Passwords are stored as salted werkzeug hashes, never in plain text.
"""

from __future__ import annotations

import logging
import re

from werkzeug.security import check_password_hash, generate_password_hash

from bto_engine.domain import models as dm
from bto_engine.domain.enums import APPLICANT_ROLES
from bto_engine.domain.errors import AuthError, InvalidRequest
from bto_engine.schemas.user import NRIC_PATTERN, UserCreate
from bto_engine.services.allocation_service import AllocationService

logger = logging.getLogger(__name__)

_NRIC_RE = re.compile(NRIC_PATTERN)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, stored: str) -> bool:
    return check_password_hash(stored, password)


def is_valid_nric(nric: str) -> bool:
    return bool(_NRIC_RE.fullmatch(nric))


class AuthService:
    """Authenticate users and manage their credentials."""

    def __init__(self, allocation: AllocationService, *, default_password: str) -> None:
        self._allocation = allocation
        self._default_password = default_password

    def authenticate(self, nric: str, credential: str) -> dm.User:
        """Return the user owning ``nric`` when ``credential`` matches.

        Raises:
            AuthError: malformed NRIC, unknown user or wrong password
        """

        if not is_valid_nric(nric):
            logger.debug("login rejected: malformed nric %r", nric)
            raise AuthError("invalid NRIC format", user=nric)
        user = self._allocation.registry.users.get(dm.UserID(nric))
        if user is None:
            logger.debug("login rejected: unknown user %s", nric)
            raise AuthError("user not found", user=nric)
        if not verify_password(credential, user.password_hash):
            logger.debug("login rejected: wrong password for %s", nric)
            raise AuthError("incorrect password", user=nric)
        logger.info("user %s logged in", nric)
        return user

    def change_credential(self, user: dm.User, old: str, new: str) -> bool:
        """Replace the password; returns False when ``old`` is wrong."""

        if not verify_password(old, user.password_hash):
            logger.debug("password change rejected for %s", user.nric)
            return False
        if not new:
            raise InvalidRequest("new password must not be empty", user=user.nric)
        user.password_hash = hash_password(new)
        self._allocation.persist(user)
        logger.info("password changed for %s", user.nric)
        return True

    def create_user(self, data: UserCreate) -> dm.User:
        """Register a new account; applicants and officers get applicant state."""

        nric = dm.UserID(data.nric)
        if nric in self._allocation.registry.users:
            raise InvalidRequest("a user with this NRIC already exists", user=nric)
        user = dm.User(
            nric=nric,
            name=data.name,
            age=data.age,
            marital_status=data.marital_status,
            role=data.role,
            password_hash=hash_password(data.password or self._default_password),
            applicant_state=dm.ApplicantState() if data.role in APPLICANT_ROLES else None,
        )
        self._allocation.registry.users[nric] = user
        self._allocation.persist(user)
        logger.info("user %s created with role %s", nric, data.role)
        return user
