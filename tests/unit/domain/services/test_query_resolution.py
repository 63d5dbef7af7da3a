"""Tests for the composition of wire-level filters."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from crudbase.core.exceptions import MalformedQueryError, TextSearchError, UnknownFieldError
from crudbase.domain.services.query_resolution import resolve_query

HEX_ID = "5f61f2c8e8a1b2c3d4e5f601"
DATE = datetime(2020, 9, 16, 12, 0, tzinfo=timezone.utc)


class TestResolveQuery:
    """``_q``, querystring field filters and ACL rows."""

    def test_nothing_to_filter(self, books_translator):
        assert resolve_query(books_translator) == {}
        assert resolve_query(books_translator, "", {}, None) == {}

    def test_client_query_is_cast(self, books_translator):
        query = resolve_query(books_translator, json.dumps({"_id": HEX_ID}))

        assert query == {"$and": [{"_id": ObjectId(HEX_ID)}]}

    def test_field_filters_become_clauses(self, books_translator):
        query = resolve_query(
            books_translator,
            json.dumps({"price": {"$gt": 3}}),
            {"publishDate": "2020-09-16T12:00:00.000Z", "name": "Dune"},
        )

        assert query == {"$and": [{"price": {"$gt": 3}}, {"publishDate": DATE}, {"name": "Dune"}]}

    def test_acl_rows_object(self, books_translator):
        query = resolve_query(books_translator, acl_rows=json.dumps({"author": "Herbert"}))

        assert query == {"$and": [{"author": "Herbert"}]}

    def test_acl_rows_array(self, books_translator):
        rows = json.dumps([{"author": "Herbert"}, {"authorAddressId": HEX_ID}])

        query = resolve_query(books_translator, field_filters={"name": "Dune"}, acl_rows=rows)

        assert query == {
            "$and": [
                {"name": "Dune"},
                {"$and": [{"author": "Herbert"}, {"authorAddressId": ObjectId(HEX_ID)}]},
            ],
        }

    def test_invalid_client_query(self, books_translator):
        with pytest.raises(MalformedQueryError, match="^Invalid _q parameter") as exc_info:
            resolve_query(books_translator, "{not json")

        assert exc_info.value.parameter == "_q"

    def test_client_query_must_be_an_object(self, books_translator):
        with pytest.raises(MalformedQueryError, match="expected a JSON object"):
            resolve_query(books_translator, "[1, 2]")

    def test_translator_errors_propagate(self, books_translator):
        with pytest.raises(UnknownFieldError, match="Unknown field: publisher"):
            resolve_query(books_translator, field_filters={"publisher": "x"})

    def test_text_query_is_detected(self, books_translator):
        client_query = json.dumps({"$text": {"$search": "dune"}, "$and": [{"$text": {"$search": "x"}}]})

        with pytest.raises(TextSearchError, match="more than one \\$text expression"):
            resolve_query(books_translator, client_query)

    def test_explicit_routing(self):
        translator = MagicMock()

        resolve_query(translator, json.dumps({"name": "Dune"}), text_query=True)
        resolve_query(translator, json.dumps({"name": "Dune"}), text_query=False)

        translator.parse_and_cast_text_search_query.assert_called_once_with({"$and": [{"name": "Dune"}]})
        translator.parse_and_cast.assert_called_once_with({"$and": [{"name": "Dune"}]})
        translator.is_text_search_query.assert_not_called()
