"""Resolve a verified identity to a local user (find-or-create by email)."""

import logging
import secrets
from typing import Any, Protocol

from oidc.exceptions import DuplicateUserError, MissingEmailError, StoreError
from oidc.types import IdentityClaims, LocalUser

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    """Persistence collaborator for local users."""

    def find_by_email(self, collection: str, email: str) -> LocalUser | None:
        """Exact match on email within collection."""
        ...

    def create(self, collection: str, fields: dict[str, Any]) -> LocalUser:
        """Create user. Raises DuplicateUserError if the email already exists."""
        ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserResolver:
    """Find-or-create local users from identity claims.

    Existing users are returned unchanged; profile fields are not synced
    from the provider on login.
    """

    def __init__(self, store: UserStore, collection: str):
        self._store = store
        self._collection = collection

    def resolve(self, claims: IdentityClaims) -> LocalUser:
        """Return the local user for claims, creating it if absent."""
        user, _ = self.find_or_create(claims)
        return user

    def find_or_create(self, claims: IdentityClaims) -> tuple[LocalUser, bool]:
        """Return (user, was_created).

        Raises:
            MissingEmailError: If claims carry no email.
            StoreError: If the store fails or a lost create race cannot be resolved.
        """
        if not claims.email or not claims.email.strip():
            raise MissingEmailError("Identity claims have no email")

        email = normalize_email(claims.email)

        existing = self._store.find_by_email(self._collection, email)
        if existing is not None:
            return existing, False

        fields = {
            "email": email,
            "subject": claims.subject,
            "issuer": claims.issuer,
            "display_name": claims.display_name,
            "given_name": claims.given_name,
            "family_name": claims.family_name,
            "picture": claims.picture,
            # Required by local-credential auth, never usable for login
            "password": secrets.token_urlsafe(32),
        }

        try:
            return self._store.create(self._collection, fields), True
        except DuplicateUserError:
            logger.info(f"Concurrent create for {email} in {self._collection}, re-reading")

        winner = self._store.find_by_email(self._collection, email)
        if winner is None:
            raise StoreError("User vanished after duplicate create")
        return winner, False
