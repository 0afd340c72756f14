"""Authentication Protocol Interface.

This module defines the protocol for the credential collaborator used
by front ends before they call into the engine.
"""

from typing import Protocol

from bto_engine.domain.models import User


class IAuthenticator(Protocol):
    """Protocol defining login and credential changes."""

    def authenticate(self, nric: str, credential: str) -> User:
        """Resolve a user from an identifier and credential.

        Args:
            nric: National-ID-style identifier (letter, seven digits, letter)
            credential: Plain-text credential supplied by the user

        Returns:
            The authenticated user

        Raises:
            AuthError: If the identifier is malformed, unknown, or the
                credential does not match
        """
        ...

    def change_credential(self, user: User, old: str, new: str) -> bool:
        """Replace a user's credential after verifying the old one.

        Args:
            user: The user changing their credential
            old: Current credential
            new: Replacement credential

        Returns:
            True if the credential was changed, False otherwise
        """
        ...
