"""Pytest configuration for all tests."""

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from crudbase.core.logging import get_logger
from crudbase.domain.services.definition_adapters import from_raw_definition
from crudbase.domain.services.path_walker import generate_raw_schema_path_maps
from crudbase.domain.services.query_translator import QueryCommandTranslator

logger = get_logger(__name__)

FIXED_OBJECT_ID = "5f61f2c8e8a1b2c3d4e5f601"


def fixed_example_id(id_type) -> str:
    """Deterministic example identifier, so generated schemas compare equal."""
    return FIXED_OBJECT_ID


RESERVED_PROPERTIES: dict[str, Any] = {
    "_id": {
        "type": "string",
        "pattern": "^[a-fA-F0-9]{24}$",
        "__mia_configuration": {"type": "ObjectId"},
        "description": "Hexadecimal identifier of the document in the collection",
    },
    "__STATE__": {"type": "string", "description": "The state of the document"},
    "creatorId": {"type": "string", "description": "User id that has created this object"},
    "createdAt": {"type": "string", "format": "date-time", "description": "Creation date"},
    "updaterId": {"type": "string", "description": "User id that has requested the last change"},
    "updatedAt": {"type": "string", "format": "date-time", "description": "Last change date"},
}

BOOKS_DEFINITION: dict[str, Any] = {
    "name": "books",
    "endpointBasePath": "/books-endpoint",
    "defaultState": "DRAFT",
    "schema": {
        "type": "object",
        "required": ["_id", "creatorId", "createdAt", "updaterId", "updatedAt", "__STATE__", "name", "isbn"],
        "properties": {
            **RESERVED_PROPERTIES,
            "name": {"type": "string", "description": "The name of the book", "nullable": True},
            "isbn": {"type": "string", "description": "The isbn code"},
            "price": {"type": "number", "description": "The price of the book"},
            "author": {"type": "string", "description": "The author of the book"},
            "authorAddressId": {
                "type": "string",
                "__mia_configuration": {"type": "ObjectId"},
                "description": "The address of the author",
            },
            "isPromoted": {"type": "boolean", "description": "If it's in promotion"},
            "publishDate": {
                "type": "string",
                "format": "date-time",
                "description": "The date it was published",
                "nullable": True,
            },
            "position": {
                "type": "object",
                "__mia_configuration": {"type": "GeoPoint"},
                "description": "The position of the book",
            },
            "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags"},
            "tagIds": {"type": "array", "items": {"type": "number"}, "description": "Tag identification numbers"},
            "additionalInfo": {"type": "object", "nullable": True},
            "signature": {
                "type": "object",
                "nullable": True,
                "properties": {"name": {"type": "string"}},
                "required": ["name"],
            },
            "metadata": {
                "type": "object",
                "properties": {
                    "somethingString": {"type": "string"},
                    "somethingNumber": {"type": "number"},
                    "somethingArrayObject": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "arrayItemObjectChildNumber": {"type": "number"},
                                "anotherNumber": {"type": "number"},
                            },
                            "additionalProperties": True,
                            "required": ["arrayItemObjectChildNumber"],
                        },
                    },
                    "somethingObject": {
                        "type": "object",
                        "properties": {"childNumber": {"type": "number"}},
                        "additionalProperties": True,
                    },
                    "somethingArrayOfNumbers": {"type": "array", "items": {"type": "number"}},
                },
                "required": ["somethingNumber"],
                "additionalProperties": False,
            },
            "attachments": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "detail": {"type": "object", "properties": {"size": {"type": "number"}}},
                        "neastedArr": {"type": "array", "items": {"type": "number"}},
                        "size": {"type": "number"},
                    },
                    "required": ["name"],
                    "additionalProperties": False,
                },
            },
            "editionsDates": {
                "type": "array",
                "items": {"type": "object", "additionalProperties": True},
                "nullable": True,
            },
        },
    },
    "indexes": [
        {"name": "uniqueISBN", "type": "normal", "unique": True, "fields": [{"name": "isbn", "order": 1}]},
        {"name": "positionIndex", "type": "geo", "unique": False, "field": "position"},
        {
            "name": "textIndex",
            "type": "text",
            "unique": False,
            "fields": [{"name": "name"}, {"name": "author"}],
            "weights": {"name": 1, "author": 1},
            "defaultLanguage": "en",
            "languageOverride": "idioma",
        },
        {
            "name": "isPromotedPartialIndex",
            "type": "normal",
            "unique": False,
            "fields": [{"name": "isPromoted", "order": 1}],
            "usePartialFilter": True,
            "partialFilterExpression": '{"isPromoted": { "$eq": true } }',
        },
    ],
}


def _legacy(name: str, type_: str, required: bool = False, **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": type_, "required": required, **extra}


LEGACY_RESERVED_FIELDS = [
    _legacy("_id", "ObjectId", True, description="_id"),
    _legacy("creatorId", "string", True),
    _legacy("createdAt", "Date", True),
    _legacy("updaterId", "string", True),
    _legacy("updatedAt", "Date", True),
    _legacy("__STATE__", "string", True),
]

LEGACY_BOOKS_DEFINITION: dict[str, Any] = {
    "name": "books",
    "endpointBasePath": "/books-endpoint",
    "defaultState": "DRAFT",
    "fields": [
        *LEGACY_RESERVED_FIELDS,
        _legacy("name", "string", True, nullable=True, description="The name of the book"),
        _legacy("isbn", "string", True, description="The isbn code"),
        _legacy("price", "number", description="The price of the book"),
        _legacy("author", "string", description="The author of the book"),
        _legacy("authorAddressId", "ObjectId", description="The address of the author"),
        _legacy("isPromoted", "boolean", description="If it's in promotion"),
        _legacy("publishDate", "Date", nullable=True, description="The date it was published"),
        _legacy("position", "GeoPoint", description="The position of the book"),
        {"name": "tags", "type": "Array", "items": {"type": "string"}, "description": "Tags"},
        {"name": "tagIds", "type": "Array", "items": {"type": "number"}},
        _legacy("additionalInfo", "RawObject", nullable=True),
        _legacy(
            "signature",
            "RawObject",
            nullable=True,
            schema={"properties": {"name": {"type": "string"}}, "required": ["name"]},
        ),
        {
            "name": "attachments",
            "type": "Array",
            "items": {
                "type": "RawObject",
                "schema": {
                    "properties": {
                        "name": {"type": "string"},
                        "detail": {"type": "object", "properties": {"size": {"type": "number"}}},
                    },
                    "required": ["name"],
                },
            },
        },
    ],
    "indexes": [
        {"name": "uniqueISBN", "type": "normal", "unique": True, "fields": [{"name": "isbn", "order": 1}]},
        {"name": "textIndex", "type": "text", "unique": False, "fields": [{"name": "name"}, {"name": "author"}]},
    ],
}

PROJECTS_DEFINITION: dict[str, Any] = {
    "id": "projects",
    "description": "Collection of projects",
    "name": "projects",
    "endpointBasePath": "/projects",
    "defaultState": "PUBLIC",
    "fields": [
        *LEGACY_RESERVED_FIELDS,
        _legacy("name", "string", True, description="The name of the project"),
        {
            "name": "environments",
            "type": "Array",
            "required": False,
            "nullable": False,
            "items": {
                "type": "RawObject",
                "schema": {
                    "properties": {
                        "label": {"type": "string"},
                        "envId": {"type": "string"},
                        "dashboards": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {"url": {"type": "string"}, "id": {"type": "string"}},
                                "additionalProperties": True,
                            },
                        },
                    },
                    "additionalProperties": True,
                },
            },
        },
    ],
    "indexes": [
        {"name": "createdAt", "type": "normal", "unique": False, "fields": [{"name": "createdAt", "order": -1}]},
    ],
}


@pytest.fixture
def books_raw() -> dict[str, Any]:
    """Modern (JSON-Schema) books definition, safe to mutate."""
    return copy.deepcopy(BOOKS_DEFINITION)


@pytest.fixture
def legacy_books_raw() -> dict[str, Any]:
    """Legacy (fields list) books definition, safe to mutate."""
    return copy.deepcopy(LEGACY_BOOKS_DEFINITION)


@pytest.fixture
def projects_raw() -> dict[str, Any]:
    return copy.deepcopy(PROJECTS_DEFINITION)


@pytest.fixture
def example_id_factory():
    return fixed_example_id


@pytest.fixture
def books_definition(books_raw):
    return from_raw_definition(books_raw)


@pytest.fixture
def legacy_books_definition(legacy_books_raw):
    return from_raw_definition(legacy_books_raw)


@pytest.fixture
def books_raw_path_maps(books_definition):
    return generate_raw_schema_path_maps(books_definition, logger)


@pytest.fixture
def books_translator(books_definition, books_raw_path_maps):
    return QueryCommandTranslator(books_definition, books_raw_path_maps)


@pytest.fixture
def collections_folder(tmp_path: Path, books_raw, projects_raw) -> Path:
    """A definitions folder holding books and projects."""
    folder = tmp_path / "collections"
    folder.mkdir()
    (folder / "books.json").write_text(json.dumps(books_raw), encoding="utf-8")
    (folder / "projects.json").write_text(json.dumps(projects_raw), encoding="utf-8")
    return folder
