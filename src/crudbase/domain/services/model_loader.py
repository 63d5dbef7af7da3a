"""Load collection definitions and build their per-collection models.

Everything derived from a definition is computed here, once, at startup.
The resulting models are read-only and shared by every request.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from crudbase.core.exceptions import CollectionNotFoundError, DefinitionError
from crudbase.core.logging import LoggingContext, get_logger
from crudbase.domain.entities.collection_definition import CollectionDefinition, SemanticType
from crudbase.domain.services.definition_adapters import fields_to_json_schema, from_raw_definition
from crudbase.domain.services.definition_validator import DefinitionValidator
from crudbase.domain.services.field_resolver import (
    normalize_query_field_name,
    resolve_field_types,
    resolve_nested_field_types,
    resolve_normal_index_fields,
    resolve_nullable,
    resolve_raw_object_prefixes,
    resolve_text_indexed_fields,
)
from crudbase.domain.services.path_walker import PathMaps, generate_raw_schema_path_maps
from crudbase.domain.services.query_translator import QueryCommandTranslator
from crudbase.domain.services.result_caster import ResultCaster
from crudbase.domain.services.schema_fragments import ExampleIdFactory, default_example_id
from crudbase.domain.services.schema_generator import SchemaGenerator

logger = get_logger(__name__)

DEFINITION_FILE_PATTERN = "*.json"


@dataclass
class CollectionModel:
    """Everything derived from one collection definition."""

    definition: CollectionDefinition
    field_types: dict[str, SemanticType]
    nested_field_types: dict[str, SemanticType]
    nullable_fields: dict[str, bool]
    raw_object_prefixes: list[Any]
    normal_index_fields: list[str]
    text_index_fields: list[str]
    raw_path_maps: PathMaps
    translator: QueryCommandTranslator
    schema_generator: SchemaGenerator
    nested_schema_generator: SchemaGenerator
    result_caster: ResultCaster
    all_field_names: list[str] = field(default_factory=list)
    json_schema: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.definition.name

    def path_type(self, field_name: str) -> SemanticType | None:
        """Semantic type of a dotted query path, ignoring array indices."""
        return self.nested_field_types.get(normalize_query_field_name(field_name))


class ModelRegistry:
    """Collection name -> model."""

    def __init__(self, models: dict[str, CollectionModel] | None = None):
        self._models: dict[str, CollectionModel] = dict(models or {})

    def __contains__(self, name: str) -> bool:
        return name in self._models

    def __iter__(self):
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    @property
    def names(self) -> list[str]:
        return list(self._models)

    def register(self, model: CollectionModel) -> None:
        """Add a model.

        Raises:
            DefinitionError: If a model with the same name is registered.
        """
        if model.name in self._models:
            raise DefinitionError(f"Duplicate collection name: {model.name}")
        self._models[model.name] = model

    def get(self, name: str) -> CollectionModel:
        """Look up a model by collection name.

        Raises:
            CollectionNotFoundError: If no collection has that name.
        """
        model = self._models.get(name)
        if model is None:
            raise CollectionNotFoundError(name)
        return model


class ModelLoader:
    """Build collection models from raw definitions.

    Args:
        enable_limit_constraint: Passed to the schema generators.
        max_limit: Passed to the schema generators.
        example_id_factory: Passed to the schema generators.
    """

    def __init__(
        self,
        enable_limit_constraint: bool = True,
        max_limit: int = 200,
        example_id_factory: ExampleIdFactory = default_example_id,
    ):
        self.enable_limit_constraint = enable_limit_constraint
        self.max_limit = max_limit
        self.example_id_factory = example_id_factory

    def build_model(self, raw: dict[str, Any]) -> CollectionModel:
        """Validate, adapt and derive everything for one raw definition.

        Raises:
            DefinitionValidationError: If the definition is malformed.
            DefinitionError: If the definition cannot be adapted.
            UnsupportedSchemaOperationError: If a nested schema uses a combinator.
        """
        DefinitionValidator.validate(raw)
        definition = from_raw_definition(raw)

        with LoggingContext(collection_name=definition.name):
            logger.debug("Building collection model", endpoint=definition.endpoint_base_path)
            raw_path_maps = generate_raw_schema_path_maps(definition, logger)

            return CollectionModel(
                definition=definition,
                field_types=resolve_field_types(definition),
                nested_field_types=resolve_nested_field_types(definition),
                nullable_fields=resolve_nullable(definition),
                raw_object_prefixes=resolve_raw_object_prefixes(definition),
                normal_index_fields=resolve_normal_index_fields(definition),
                text_index_fields=resolve_text_indexed_fields(definition),
                raw_path_maps=raw_path_maps,
                translator=QueryCommandTranslator(definition, raw_path_maps),
                schema_generator=self._schema_generator(definition, PathMaps()),
                nested_schema_generator=self._schema_generator(definition, raw_path_maps),
                result_caster=ResultCaster(definition),
                all_field_names=definition.field_names,
                json_schema=fields_to_json_schema(definition.fields),
            )

    def load_definitions(self, raws: list[dict[str, Any]]) -> ModelRegistry:
        """Build a registry from raw definitions.

        Raises:
            DefinitionError: For the first invalid or duplicate definition,
                after logging ``failed to load models``.
        """
        registry = ModelRegistry()
        try:
            for raw in raws:
                registry.register(self.build_model(raw))
        except DefinitionError as exc:
            logger.error("failed to load models", cause=str(exc))
            raise
        logger.info("Collection models loaded", collections=registry.names)
        return registry

    def load_folder(self, folder: str | Path) -> ModelRegistry:
        """Build a registry from every ``*.json`` definition in a folder, in name order.

        Raises:
            DefinitionError: If the folder is missing, a file is not valid
                JSON, or a definition is invalid.
        """
        path = Path(folder)
        if not path.is_dir():
            logger.error("failed to load models", path=str(path), cause="not a directory")
            raise DefinitionError(f"Collection definition folder not found: {path}")

        raws: list[dict[str, Any]] = []
        for file_path in sorted(path.glob(DEFINITION_FILE_PATTERN)):
            try:
                raws.append(json.loads(file_path.read_text(encoding="utf-8")))
            except json.JSONDecodeError as exc:
                logger.error("failed to load models", path=str(file_path), cause=str(exc))
                raise DefinitionError(f"Invalid JSON in {file_path.name}: {exc.msg}") from exc
        return self.load_definitions(raws)

    def _schema_generator(self, definition: CollectionDefinition, raw_path_maps: PathMaps) -> SchemaGenerator:
        return SchemaGenerator(
            definition,
            raw_path_maps,
            enable_limit_constraint=self.enable_limit_constraint,
            max_limit=self.max_limit,
            example_id_factory=self.example_id_factory,
        )
