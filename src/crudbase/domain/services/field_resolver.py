"""Flatten a collection definition into lookup maps keyed by field path.

The maps computed here are built once per collection at load time and
shared read-only by the query translator and the schema generator.
"""

import re
from typing import Any

from crudbase.core.constants import JSON_SCHEMA_ARRAY_TYPE, JSON_SCHEMA_OBJECT_TYPE
from crudbase.domain.entities.collection_definition import (
    CollectionDefinition,
    IndexType,
    SemanticType,
)
from crudbase.domain.services.definition_adapters import classify_json_schema

ARRAY_ITEMS_SUFFIX = "__items"
_ARRAY_INDEX = re.compile(r"^\d+$")


def resolve_field_types(definition: CollectionDefinition) -> dict[str, SemanticType]:
    """Map every top-level field name to its semantic type."""
    return {spec.name: spec.type for spec in definition.fields}


def resolve_nullable(definition: CollectionDefinition) -> dict[str, bool]:
    """Map nullable top-level field names to True."""
    return {spec.name: True for spec in definition.fields if spec.nullable}


def resolve_raw_object_prefixes(definition: CollectionDefinition) -> list[re.Pattern[str]]:
    """Regexes matching dotted accesses below RawObject fields.

    Paths matching one of these are schemaless and exempt from the
    unknown-field check on update commands.
    """
    return [
        re.compile(rf"^{re.escape(spec.name)}\.")
        for spec in definition.fields
        if spec.type == SemanticType.RAW_OBJECT
    ]


def resolve_index_fields(definition: CollectionDefinition, index_type: IndexType) -> list[str]:
    """Names of the fields covered by indexes of the given type, in declaration order."""
    names: list[str] = []
    for index in definition.indexes:
        if index.type == index_type:
            names.extend(index.fields)
    return names


def resolve_normal_index_fields(definition: CollectionDefinition) -> list[str]:
    return resolve_index_fields(definition, IndexType.NORMAL)


def resolve_text_indexed_fields(definition: CollectionDefinition) -> list[str]:
    return resolve_index_fields(definition, IndexType.TEXT)


def _process_properties(properties: dict[str, Any] | None, parent_path: str) -> dict[str, SemanticType]:
    result: dict[str, SemanticType] = {}
    for key, value in (properties or {}).items():
        path = f"{parent_path}.{key}" if parent_path else key
        field_type = classify_json_schema(value)
        result[path] = field_type

        if field_type == SemanticType.RAW_OBJECT:
            result.update(_process_properties(value.get("properties"), path))
        elif field_type == SemanticType.ARRAY:
            items = value.get("items") or {}
            if items.get("type") == JSON_SCHEMA_OBJECT_TYPE:
                result.update(_process_properties(items.get("properties"), path))
            elif items.get("type") and items.get("type") != JSON_SCHEMA_ARRAY_TYPE:
                result[f"{path}.{ARRAY_ITEMS_SUFFIX}"] = classify_json_schema(items)
    return result


def resolve_nested_field_types(definition: CollectionDefinition) -> dict[str, SemanticType]:
    """Map every reachable dotted path to its semantic type.

    Nested RawObject properties and array-of-object properties are flattened
    under their parent path (array indices omitted). Arrays of primitives get
    an extra ``<path>.__items`` entry holding the item type.
    """
    result: dict[str, SemanticType] = {}
    for spec in definition.fields:
        result[spec.name] = spec.type
        if spec.type == SemanticType.RAW_OBJECT:
            result.update(_process_properties(spec.properties, spec.name))
        elif spec.type == SemanticType.ARRAY and spec.items is not None:
            if spec.items.type == SemanticType.RAW_OBJECT:
                result.update(_process_properties(spec.items.properties, spec.name))
            elif spec.items.type != SemanticType.ARRAY:
                result[f"{spec.name}.{ARRAY_ITEMS_SUFFIX}"] = spec.items.type
    return result


def normalize_query_field_name(field_name: str) -> str:
    """Strip purely numeric segments (array indices) from a dotted field name.

    ``orders.1.productId`` becomes ``orders.productId``; segments that merely
    contain digits, like ``up2you``, are kept.
    """
    return ".".join(chunk for chunk in field_name.split(".") if not _ARRAY_INDEX.match(chunk))
