"""Adapters from raw collection definitions to the canonical field tree.

Two raw shapes are accepted:

* legacy: ``{"fields": [{"name": ..., "type": "ObjectId", ...}, ...]}``
* modern: ``{"schema": {"type": "object", "properties": {...}, "required": [...]}}``

Only this module knows about either shape.
"""

from collections.abc import Iterable
from typing import Any

from crudbase.core.constants import (
    DATE_FORMATS,
    JSON_SCHEMA_ARRAY_TYPE,
    JSON_SCHEMA_OBJECT_TYPE,
    MIA_CONFIGURATION,
)
from crudbase.core.exceptions import DefinitionError
from crudbase.domain.entities.collection_definition import (
    CollectionDefinition,
    FieldSpec,
    IndexSpec,
    IndexType,
    LifecycleState,
    SemanticType,
)
from crudbase.domain.services.path_walker import assert_supported_schema

RAW_OBJECT_SCHEMA_KEYS = ("properties", "required", "additionalProperties")


def from_raw_definition(raw: dict[str, Any]) -> CollectionDefinition:
    """Adapt a raw definition of either shape."""
    if "schema" in raw and raw["schema"] is not None:
        return from_json_schema(raw)
    return from_legacy_fields(raw)


def from_legacy_fields(raw: dict[str, Any]) -> CollectionDefinition:
    """Adapt a definition declaring a legacy ``fields`` list.

    Args:
        raw: Raw definition with a ``fields`` list.

    Returns:
        CollectionDefinition: Canonical definition.

    Raises:
        DefinitionError: If a field declares an unknown type.
    """
    if "fields" not in raw:
        raise DefinitionError("Collection definition must declare fields or schema")
    if "schema" in raw:
        raise DefinitionError("Collection definition cannot declare both fields and schema")

    fields = tuple(_legacy_field(field) for field in raw["fields"])
    return _build_definition(raw, fields)


def from_json_schema(raw: dict[str, Any]) -> CollectionDefinition:
    """Adapt a definition declaring a JSON-Schema ``schema``.

    Args:
        raw: Raw definition with a ``schema`` object.

    Returns:
        CollectionDefinition: Canonical definition.

    Raises:
        DefinitionError: If a property cannot be classified.
        UnsupportedSchemaOperationError: If a property uses a combinator.
    """
    if "fields" in raw:
        raise DefinitionError("Collection definition cannot declare both fields and schema")

    schema = raw["schema"]
    required = set(schema.get("required", []))
    fields = tuple(
        _json_schema_node(name, prop, name in required)
        for name, prop in schema.get("properties", {}).items()
    )
    return _build_definition(raw, fields)


def _build_definition(raw: dict[str, Any], fields: tuple[FieldSpec, ...]) -> CollectionDefinition:
    pipeline = raw.get("pipeline")
    return CollectionDefinition(
        name=raw["name"],
        endpoint_base_path=raw.get("endpointBasePath", f"/{raw['name']}"),
        fields=fields,
        default_state=LifecycleState(raw.get("defaultState", LifecycleState.DRAFT.value)),
        indexes=tuple(_index(index) for index in raw.get("indexes", [])),
        description=raw.get("description"),
        type=raw.get("type", "collection"),
        source=raw.get("source"),
        pipeline=tuple(pipeline) if pipeline is not None else None,
    )


def _semantic_type(value: Any) -> SemanticType:
    if value == "integer":
        return SemanticType.NUMBER
    try:
        return SemanticType(value)
    except ValueError:
        raise DefinitionError(f"Unsupported field type: {value}") from None


def _legacy_field(field: dict[str, Any]) -> FieldSpec:
    if isinstance(field.get("schema"), dict):
        assert_supported_schema(field["schema"])
    field_type = _semantic_type(field["type"])
    items = None
    if field_type == SemanticType.ARRAY:
        if "items" not in field:
            raise DefinitionError(f"Array field {field['name']} must declare items")
        items = _legacy_item(field["items"])
    return FieldSpec(
        name=field["name"],
        type=field_type,
        required=bool(field.get("required", False)),
        nullable=field.get("nullable") is True,
        description=field.get("description"),
        schema=field.get("schema") if field_type == SemanticType.RAW_OBJECT else None,
        items=items,
        encryption=field.get("encryption"),
    )


def _legacy_item(items: dict[str, Any]) -> FieldSpec:
    if isinstance(items.get("schema"), dict):
        assert_supported_schema(items["schema"])
    item_type = _semantic_type(items.get("type"))
    return FieldSpec(
        name="",
        type=item_type,
        schema=items.get("schema") if item_type == SemanticType.RAW_OBJECT else None,
    )


def classify_json_schema(prop: dict[str, Any]) -> SemanticType:
    """Resolve the semantic type of a JSON-Schema property.

    An explicit ``__mia_configuration.type`` wins; strings with a date format
    are Dates; objects are RawObjects; arrays are Arrays; anything else is the
    literal JSON-Schema primitive type.
    """
    override = prop.get(MIA_CONFIGURATION, {}).get("type")
    if override:
        return _semantic_type(override)

    json_type = prop.get("type")
    if json_type == "string" and prop.get("format", "") in DATE_FORMATS:
        return SemanticType.DATE
    if json_type == JSON_SCHEMA_OBJECT_TYPE:
        return SemanticType.RAW_OBJECT
    if json_type == JSON_SCHEMA_ARRAY_TYPE:
        return SemanticType.ARRAY
    return _semantic_type(json_type)


def _raw_object_schema(prop: dict[str, Any]) -> dict[str, Any] | None:
    schema = {key: prop[key] for key in RAW_OBJECT_SCHEMA_KEYS if key in prop}
    return schema or None


def _json_schema_node(name: str, prop: dict[str, Any], required: bool) -> FieldSpec:
    assert_supported_schema(prop)
    field_type = classify_json_schema(prop)
    items = None
    if field_type == SemanticType.ARRAY:
        if "items" not in prop:
            raise DefinitionError(f"Array field {name or '<items>'} must declare items")
        items = _json_schema_node("", prop["items"], False)

    encryption = prop.get("encryption") or prop.get(MIA_CONFIGURATION, {}).get("encryption")
    return FieldSpec(
        name=name,
        type=field_type,
        required=required,
        nullable=prop.get("nullable") is True,
        description=prop.get("description"),
        schema=_raw_object_schema(prop) if field_type == SemanticType.RAW_OBJECT else None,
        items=items,
        encryption=encryption,
    )


def _index(index: dict[str, Any]) -> IndexSpec:
    return IndexSpec(
        name=index["name"],
        type=IndexType(index["type"]),
        unique=bool(index.get("unique", False)),
        fields=tuple(entry["name"] for entry in index.get("fields", [])),
        field=index.get("field"),
    )


def field_to_json_schema(spec: FieldSpec) -> dict[str, Any]:
    """Render one canonical field as a modern JSON-Schema property."""
    if spec.type == SemanticType.RAW_OBJECT:
        prop: dict[str, Any] = {"type": JSON_SCHEMA_OBJECT_TYPE, **(spec.schema or {})}
    elif spec.type == SemanticType.ARRAY:
        prop = {"type": JSON_SCHEMA_ARRAY_TYPE, "items": field_to_json_schema(spec.items)}
    elif spec.type == SemanticType.GEO_POINT:
        prop = {"type": JSON_SCHEMA_OBJECT_TYPE, MIA_CONFIGURATION: {"type": spec.type.value}}
    elif spec.type == SemanticType.OBJECT_ID:
        prop = {"type": "string", MIA_CONFIGURATION: {"type": spec.type.value}}
    elif spec.type == SemanticType.DATE:
        prop = {"type": "string", "format": "date-time"}
    elif spec.type in (SemanticType.STRING, SemanticType.NUMBER, SemanticType.BOOLEAN):
        prop = {"type": spec.type.value}
    else:
        raise ValueError(f"Unhandled semantic type: {spec.type}")

    if spec.nullable:
        prop["nullable"] = True
    if spec.description:
        prop["description"] = spec.description
    return prop


def fields_to_json_schema(fields: Iterable[FieldSpec]) -> dict[str, Any]:
    """Render canonical fields as a modern ``schema`` object."""
    fields = list(fields)
    return {
        "type": JSON_SCHEMA_OBJECT_TYPE,
        "required": [spec.name for spec in fields if spec.required],
        "properties": {spec.name: field_to_json_schema(spec) for spec in fields},
    }
