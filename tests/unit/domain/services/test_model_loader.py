"""Tests for collection model loading."""

import json
from unittest.mock import patch

import pytest

from crudbase.core.exceptions import (
    CollectionNotFoundError,
    DefinitionError,
    DefinitionValidationError,
    UnsupportedSchemaOperationError,
)
from crudbase.domain.entities.collection_definition import SemanticType
from crudbase.domain.services.model_loader import ModelLoader, ModelRegistry
from crudbase.domain.services.query_translator import QueryCommandTranslator


class TestBuildModel:
    """One definition."""

    def test_modern_definition(self, books_raw, example_id_factory):
        model = ModelLoader(example_id_factory=example_id_factory).build_model(books_raw)

        assert model.name == "books"
        assert model.field_types["publishDate"] == SemanticType.DATE
        assert model.nullable_fields["publishDate"] is True
        assert model.text_index_fields == ["name", "author"]
        assert model.normal_index_fields == ["isbn", "isPromoted"]
        assert "signature.name" in model.raw_path_maps.paths
        assert isinstance(model.translator, QueryCommandTranslator)
        assert model.all_field_names[0] == "_id"

    def test_legacy_definition(self, legacy_books_raw):
        model = ModelLoader().build_model(legacy_books_raw)

        assert model.name == "books"
        assert model.field_types["authorAddressId"] == SemanticType.OBJECT_ID

    def test_path_type(self, books_raw):
        model = ModelLoader().build_model(books_raw)

        assert model.path_type("price") == SemanticType.NUMBER
        assert model.path_type("attachments.0.name") == SemanticType.STRING
        assert model.path_type("attachments.name") == SemanticType.STRING
        assert model.path_type("unknown") is None

    def test_json_schema(self, legacy_books_raw):
        model = ModelLoader().build_model(legacy_books_raw)

        assert model.json_schema["type"] == "object"
        assert "isbn" in model.json_schema["required"]
        assert model.json_schema["properties"]["authorAddressId"]["__mia_configuration"] == {"type": "ObjectId"}

    def test_nested_generator_sees_raw_paths(self, books_raw):
        model = ModelLoader().build_model(books_raw)

        plain = model.schema_generator.generate_get_list_json_schema()["querystring"]["properties"]
        nested = model.nested_schema_generator.generate_get_list_json_schema()["querystring"]["properties"]

        assert "signature.name" not in plain
        assert "signature.name" in nested

    def test_limit_settings_reach_the_generators(self, books_raw):
        model = ModelLoader(enable_limit_constraint=True, max_limit=10).build_model(books_raw)

        limit = model.schema_generator.generate_get_list_json_schema()["querystring"]["properties"]["_l"]
        assert limit["maximum"] == 10

    def test_invalid_definition(self, books_raw):
        del books_raw["endpointBasePath"]

        with pytest.raises(DefinitionValidationError):
            ModelLoader().build_model(books_raw)

    def test_unsupported_nested_schema(self, books_raw):
        books_raw["schema"]["properties"]["signature"]["properties"]["name"] = {
            "anyOf": [{"type": "string"}, {"type": "number"}],
        }

        with pytest.raises(UnsupportedSchemaOperationError):
            ModelLoader().build_model(books_raw)


class TestLoadFolder:
    """A folder of definitions."""

    def test_loads_every_definition(self, collections_folder):
        registry = ModelLoader().load_folder(collections_folder)

        assert registry.names == ["books", "projects"]
        assert len(registry) == 2
        assert "books" in registry
        assert registry.get("projects").definition.endpoint_base_path == "/projects"

    def test_ignores_other_files(self, collections_folder):
        (collections_folder / "README.md").write_text("not a definition", encoding="utf-8")

        registry = ModelLoader().load_folder(collections_folder)

        assert len(registry) == 2

    def test_missing_folder(self, tmp_path):
        with pytest.raises(DefinitionError, match="Collection definition folder not found"):
            ModelLoader().load_folder(tmp_path / "missing")

    def test_invalid_json(self, collections_folder):
        (collections_folder / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(DefinitionError, match="Invalid JSON in broken.json"):
            ModelLoader().load_folder(collections_folder)

    def test_duplicate_collection_name(self, collections_folder, books_raw):
        books_raw["endpointBasePath"] = "/other-books"
        (collections_folder / "books-copy.json").write_text(json.dumps(books_raw), encoding="utf-8")

        with pytest.raises(DefinitionError, match="Duplicate collection name: books"):
            ModelLoader().load_folder(collections_folder)

    def test_failure_is_logged(self, collections_folder, books_raw):
        del books_raw["endpointBasePath"]
        (collections_folder / "books.json").write_text(json.dumps(books_raw), encoding="utf-8")

        with patch("crudbase.domain.services.model_loader.logger") as mock_logger:
            with pytest.raises(DefinitionValidationError):
                ModelLoader().load_folder(collections_folder)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args == ("failed to load models",)


class TestModelRegistry:
    """Lookup by collection name."""

    def test_unknown_collection(self):
        with pytest.raises(CollectionNotFoundError):
            ModelRegistry().get("books")

    def test_iteration(self, books_raw):
        model = ModelLoader().build_model(books_raw)
        registry = ModelRegistry({"books": model})

        assert list(registry) == [model]
