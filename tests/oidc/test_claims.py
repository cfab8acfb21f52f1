"""Tests for oidc/claims.py and oidc/schema.py - session claim projection."""

import json

import pytest

from oidc.claims import project_claims
from oidc.schema import GroupField, LeafField, parse_field, parse_field_schema


class TestParseFieldSchema:
    """Host field dicts become leaf/group descriptors."""

    def test_plain_field_is_leaf(self):
        field = parse_field({"name": "role", "type": "select", "saveToJWT": True})

        assert isinstance(field, LeafField)
        assert field.name == "role"
        assert field.persisted is True

    def test_field_with_subfields_is_group(self):
        field = parse_field({"name": "profile", "fields": [{"name": "bio"}]})

        assert isinstance(field, GroupField)
        assert [child.name for child in field.children] == ["bio"]

    def test_persisted_defaults_to_false(self):
        assert parse_field({"name": "nickname"}).persisted is False

    def test_empty_entries_skipped(self):
        fields = parse_field_schema([{"name": "a"}, {}, None, {"name": "b"}])

        assert [f.name for f in fields] == ["a", "b"]


class TestAffectsData:
    """Only named, non-presentational fields store data."""

    def test_named_text_field_affects_data(self):
        assert LeafField(name="bio").affects_data is True

    def test_unnamed_field_does_not(self):
        assert LeafField(name=None).affects_data is False

    @pytest.mark.parametrize("field_type", ["ui", "row", "tabs"])
    def test_presentational_types_do_not(self, field_type):
        assert LeafField(name="x", type=field_type).affects_data is False


class TestProjectClaims:
    """Claim projection from schema and user record."""

    def test_seeds_email_id_collection(self):
        claims = project_claims([], {"email": "a@b.com", "id": "1"}, "users")

        assert claims == {"email": "a@b.com", "id": "1", "collection": "users"}

    def test_nested_persisted_field_scenario(self):
        """Group subfield flagged saveToJWT is copied from the user record."""
        schema = parse_field_schema([
            {"name": "email"},
            {"name": "profile", "fields": [{"name": "bio", "saveToJWT": True}]},
        ])
        user = {"email": "a@b.com", "id": "1", "bio": "hi"}

        claims = project_claims(schema, user, "members")

        assert claims == {
            "email": "a@b.com",
            "id": "1",
            "collection": "members",
            "bio": "hi",
        }

    def test_unflagged_fields_never_appear(self, field_schema):
        user = {
            "email": "a@b.com",
            "id": "1",
            "nickname": "al",
            "website": "https://a.example",
            "profile": {"bio": "x"},
        }

        claims = project_claims(parse_field_schema(field_schema), user, "users")

        assert set(claims) == {"email", "id", "collection"}

    def test_flagged_top_level_field_copied(self, field_schema):
        user = {"email": "a@b.com", "id": "1", "role": "editor", "bio": "hi"}

        claims = project_claims(parse_field_schema(field_schema), user, "users")

        assert claims["role"] == "editor"
        assert claims["bio"] == "hi"

    def test_flagged_field_missing_from_user_omitted(self, field_schema):
        claims = project_claims(parse_field_schema(field_schema), {"email": "a@b.com", "id": "1"}, "users")

        assert "role" not in claims
        assert "bio" not in claims

    def test_flagged_field_may_overwrite_seed(self):
        schema = parse_field_schema([{"name": "email", "type": "email", "saveToJWT": True}])

        claims = project_claims(schema, {"email": "a@b.com", "id": "1"}, "users")

        assert claims["email"] == "a@b.com"

    def test_only_one_level_of_nesting(self):
        """Grandchildren are not visited even when flagged."""
        schema = parse_field_schema([
            {
                "name": "outer",
                "fields": [
                    {"name": "inner", "fields": [{"name": "deep", "saveToJWT": True}]},
                ],
            },
        ])

        claims = project_claims(schema, {"email": "a@b.com", "id": "1", "deep": "x"}, "users")

        assert "deep" not in claims

    def test_presentational_flagged_field_skipped(self):
        schema = parse_field_schema([{"name": "divider", "type": "ui", "saveToJWT": True}])

        claims = project_claims(schema, {"email": "a@b.com", "id": "1", "divider": "x"}, "users")

        assert "divider" not in claims

    def test_unnamed_row_children_visited(self):
        """Rows carry no data themselves but their children do."""
        schema = parse_field_schema([
            {"type": "row", "fields": [{"name": "team", "saveToJWT": True}]},
        ])

        claims = project_claims(schema, {"email": "a@b.com", "id": "1", "team": "blue"}, "users")

        assert claims["team"] == "blue"

    def test_deterministic(self, field_schema):
        """Same schema and user yield byte-identical claims."""
        schema = parse_field_schema(field_schema)
        user = {"email": "a@b.com", "id": "1", "role": "admin", "bio": "hi"}

        first = project_claims(schema, user, "users")
        second = project_claims(schema, user, "users")

        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)
