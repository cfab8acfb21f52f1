"""PostgreSQL user store.

Table (unique per collection and email, which makes find-or-create safe
under concurrent logins):

    CREATE TABLE cms_users (
        id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        collection text NOT NULL,
        email text NOT NULL,
        subject text,
        issuer text,
        display_name text,
        given_name text,
        family_name text,
        picture text,
        password_hash text NOT NULL,
        created_at timestamptz NOT NULL DEFAULT now(),
        UNIQUE (collection, email)
    );
"""

import hashlib
import logging
from typing import Any

import psycopg2
import psycopg2.errors

from clients.postgres_client import PostgresClient
from oidc.exceptions import DuplicateUserError, StoreError, StoreTimeoutError
from oidc.types import LocalUser

logger = logging.getLogger(__name__)

_USER_COLUMNS = """id, collection, email, subject, issuer, display_name,
                   given_name, family_name, picture, created_at"""


def _hash_credential(credential: str) -> str:
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()


class PostgresUserStore:
    """User store over the cms_users table."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def _row_to_user(self, row: dict[str, Any]) -> LocalUser:
        return LocalUser(
            id=str(row["id"]),
            collection=row["collection"],
            email=row["email"],
            subject=row["subject"],
            issuer=row["issuer"],
            display_name=row["display_name"],
            given_name=row["given_name"],
            family_name=row["family_name"],
            picture=row["picture"],
            created_at=row["created_at"],
        )

    def find_by_email(self, collection: str, email: str) -> LocalUser | None:
        """Find user by email (case-insensitive) within collection."""
        try:
            row = self._db.execute_single(
                f"""SELECT {_USER_COLUMNS}
                    FROM cms_users
                    WHERE collection = %s AND email = lower(%s)""",
                (collection, email),
            )
        except psycopg2.errors.QueryCanceled as e:
            logger.error(f"User lookup timed out in {collection}")
            raise StoreTimeoutError("User lookup timed out") from e
        except psycopg2.Error as e:
            logger.error(f"User lookup failed in {collection}: {type(e).__name__}")
            raise StoreError("User lookup failed") from e

        if row is None:
            return None
        return self._row_to_user(row)

    def create(self, collection: str, fields: dict[str, Any]) -> LocalUser:
        """Insert user. Only the credential's digest is stored.

        Raises:
            DuplicateUserError: If the email already exists in collection.
        """
        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO cms_users
                    (collection, email, subject, issuer, display_name,
                     given_name, family_name, picture, password_hash)
                    VALUES (%s, lower(%s), %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (collection, email) DO NOTHING
                    RETURNING {_USER_COLUMNS}""",
                (
                    collection,
                    fields["email"],
                    fields.get("subject"),
                    fields.get("issuer"),
                    fields.get("display_name"),
                    fields.get("given_name"),
                    fields.get("family_name"),
                    fields.get("picture"),
                    _hash_credential(fields["password"]),
                ),
            )
        except psycopg2.errors.QueryCanceled as e:
            logger.error(f"User create timed out in {collection}")
            raise StoreTimeoutError("User create timed out") from e
        except psycopg2.Error as e:
            logger.error(f"User create failed in {collection}: {type(e).__name__}")
            raise StoreError("User create failed") from e

        if not rows:
            raise DuplicateUserError(f"User already exists in {collection}")

        logger.info(f"Created user in {collection}")
        return self._row_to_user(rows[0])
