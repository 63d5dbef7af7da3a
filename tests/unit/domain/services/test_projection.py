"""Tests for projection resolution."""

import re
from unittest.mock import MagicMock

import pytest

from crudbase.core.exceptions import ProjectionError
from crudbase.domain.services.projection import (
    check_allowed_operators,
    remove_acl_columns,
    resolve_projection,
    split_fields,
)

FIELD_NAMES = ["_id", "name", "price", "author", "tags"]


class TestSplitFields:
    """Comma separated lists."""

    def test_drops_blank_entries(self):
        assert split_fields("name,, ,price") == ["name", "price"]

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert split_fields(value) == []


class TestRemoveAclColumns:
    """Readable field filtering."""

    def test_no_acl_keeps_everything(self):
        assert remove_acl_columns(["name", "price"], []) == ["name", "price"]

    def test_keeps_only_acl_columns(self):
        assert remove_acl_columns(["name", "price", "author"], ["price", "author"]) == ["price", "author"]


class TestResolveProjection:
    """Projection from ``_p``, ``_rawp`` and ACL columns."""

    def test_client_projection(self):
        assert resolve_projection("name,price", None, FIELD_NAMES) == {"name": 1, "price": 1}

    def test_client_projection_restricted_by_acl(self):
        assert resolve_projection("name,price", "price,author", FIELD_NAMES) == {"price": 1}

    def test_no_projection_returns_every_field(self):
        assert resolve_projection(None, None, FIELD_NAMES) == {name: 1 for name in FIELD_NAMES}

    def test_no_projection_returns_acl_columns(self):
        assert resolve_projection(None, "name,author", FIELD_NAMES) == {"name": 1, "author": 1}

    def test_nothing_readable_falls_back_to_id(self):
        assert resolve_projection("price", "name", FIELD_NAMES) == {"_id": 1}

    def test_both_parameters_are_rejected(self):
        log = MagicMock()

        with pytest.raises(ProjectionError, match="Use of both _rawp and _p parameter is not allowed"):
            resolve_projection("name", None, FIELD_NAMES, '{"price": 1}', log=log)

        log.error.assert_called_once_with(
            "Use of both _p and _rawp is not permitted",
            _p="name",
            _rawp='{"price": 1}',
        )

    def test_raw_projection(self):
        raw = '{"name": 1, "cheap": {"$lt": ["$price", 10]}}'

        assert resolve_projection(None, None, FIELD_NAMES, raw) == {
            "name": 1,
            "cheap": {"$lt": ["$price", 10]},
        }

    def test_raw_projection_drops_null_values(self):
        assert resolve_projection(None, None, FIELD_NAMES, '{"name": 1, "price": null}') == {"name": 1}

    def test_raw_projection_restricted_by_acl(self):
        raw = '{"name": 1, "price": 1}'

        assert resolve_projection(None, "price", FIELD_NAMES, raw) == {"price": 1}

    def test_empty_raw_projection_falls_back_to_id(self):
        assert resolve_projection(None, None, FIELD_NAMES, "{}") == {"_id": 1}

    def test_raw_projection_cannot_exclude_acl_column(self):
        with pytest.raises(ProjectionError, match="overriding at least one acl_read_column value"):
            resolve_projection(None, "price", FIELD_NAMES, '{"price": 0}')

    def test_raw_projection_false_is_not_an_exclusion(self):
        assert resolve_projection(None, "price", FIELD_NAMES, '{"price": false}') == {"price": False}

    def test_invalid_raw_projection(self):
        log = MagicMock()

        with pytest.raises(ProjectionError, match="Invalid _rawp parameter"):
            resolve_projection(None, None, FIELD_NAMES, "{not json", log=log)

        log.error.assert_called_once()

    def test_raw_projection_must_be_an_object(self):
        with pytest.raises(ProjectionError, match="expected a JSON object"):
            resolve_projection(None, None, FIELD_NAMES, '["name"]')

    def test_raw_projection_field_references_follow_acl(self):
        raw = '{"total": {"$cond": ["$author", 1, 0]}}'

        with pytest.raises(ProjectionError, match="Operator \\$author is not allowed in raw projection"):
            resolve_projection(None, "price", FIELD_NAMES, raw)


class TestCheckAllowedOperators:
    """Operators and variables referenced by a raw projection."""

    def test_allowed_operators_and_fields(self):
        check_allowed_operators('{"a": {"$filter": {"input": "$tags", "cond": {"$eq": ["$$this", 1]}}}}', FIELD_NAMES)

    def test_no_operators(self):
        check_allowed_operators('{"name": 1}', FIELD_NAMES)

    @pytest.mark.parametrize("operator", ["$where", "$function", "$publisher"])
    def test_rejected_operator(self, operator):
        with pytest.raises(ProjectionError, match=f"Operator {re.escape(operator)} is not allowed in raw projection"):
            check_allowed_operators(f'{{"a": {{"{operator}": 1}}}}', FIELD_NAMES)

    @pytest.mark.parametrize("variable", ["$$ROOT", "$$NOW", "$$REMOVE"])
    def test_forbidden_system_variable(self, variable):
        with pytest.raises(ProjectionError, match=f"Operator {re.escape(variable)} is not allowed"):
            check_allowed_operators(f'{{"a": "{variable}"}}', FIELD_NAMES)
