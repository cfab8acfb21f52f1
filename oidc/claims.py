"""Session claim projection.

Builds the exact claim set signed into the session token from the
user-collection schema and a resolved user record.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from oidc.schema import GroupField, LeafField


def _copy_if_persisted(
    field: LeafField | GroupField,
    user: Mapping[str, Any],
    claims: dict[str, Any],
) -> None:
    if field.persisted and field.affects_data and field.name in user:
        claims[field.name] = user[field.name]


def project_claims(
    fields: Sequence[LeafField | GroupField],
    user: Mapping[str, Any],
    collection: str,
) -> dict[str, Any]:
    """Project a user record onto its session claims.

    Seeds ``email``, ``id`` and ``collection``, then copies every
    session-persisted field. Subfields are visited one level deep only;
    flagged fields may overwrite the seeds. Flagged fields missing from
    the user record are left out.
    """
    claims: dict[str, Any] = {
        "email": user.get("email"),
        "id": user.get("id"),
        "collection": collection,
    }

    for field in fields:
        if isinstance(field, GroupField):
            for child in field.children:
                _copy_if_persisted(child, user, claims)
        _copy_if_persisted(field, user, claims)

    return claims
