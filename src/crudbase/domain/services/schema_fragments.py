"""Wire-format JSON-Schema fragments per semantic type.

Two contexts exist: validation (request input, strict patterns) and
serialization (responses, plain formats).
"""

import uuid
from collections.abc import Callable
from typing import Any

from bson import ObjectId

from crudbase.core.constants import JSON_SCHEMA_ARRAY_TYPE, JSON_SCHEMA_OBJECT_TYPE
from crudbase.domain.entities.collection_definition import FieldSpec, LifecycleState, SemanticType

ExampleIdFactory = Callable[[SemanticType], str]

EXAMPLE_DATE = "2020-09-16T12:00:00.000Z"
OBJECT_ID_PATTERN = "^[a-fA-F\\d]{24}$"
NON_BLANK_PATTERN = "^(?!\\s*$).+"
DATE_TIME_PATTERN = (
    "^\\d{4}-\\d{2}-\\d{2}(T\\d{2}:\\d{2}:\\d{2}(\\.\\d{1,3})?(Z|[+-]\\d{2}:\\d{2}))?$"
)
STATES = [state.value for state in LifecycleState]


def default_example_id(id_type: SemanticType) -> str:
    """Fresh example identifier: an ObjectId hex, or a UUID4 for string ids."""
    if id_type == SemanticType.OBJECT_ID:
        return str(ObjectId())
    return str(uuid.uuid4())


def object_id_schema(example: str) -> dict[str, Any]:
    return {
        "type": "string",
        "pattern": OBJECT_ID_PATTERN,
        "description": "Hexadecimal identifier of the document in the collection",
        "examples": [example],
    }


def string_id_schema(example: str) -> dict[str, Any]:
    return {
        "type": "string",
        "pattern": NON_BLANK_PATTERN,
        "description": "String identifier of the document in the collection",
        "examples": [example],
    }


def document_id_schema(id_type: SemanticType, example_id_factory: ExampleIdFactory) -> dict[str, Any]:
    """Wire schema of the ``_id`` field for the collection identifier type."""
    if id_type == SemanticType.OBJECT_ID:
        return object_id_schema(example_id_factory(id_type))
    return string_id_schema(example_id_factory(id_type))


def geo_point_validation_schema() -> dict[str, Any]:
    return {
        "type": JSON_SCHEMA_ARRAY_TYPE,
        "items": {"type": "number"},
        "minItems": 2,
        "maxItems": 3,
    }


def geo_point_serialization_schema() -> dict[str, Any]:
    return {"type": JSON_SCHEMA_ARRAY_TYPE, "items": {"type": "number"}}


def date_validation_schema() -> dict[str, Any]:
    return {
        "type": "string",
        "pattern": DATE_TIME_PATTERN,
        "description": '"date-time" according with https://tools.ietf.org/html/rfc3339#section-5.6',
        "examples": [EXAMPLE_DATE],
    }


def date_serialization_schema() -> dict[str, Any]:
    return {"type": "string", "format": "date-time", "examples": [EXAMPLE_DATE]}


def raw_object_schema(schema: dict[str, Any] | None = None) -> dict[str, Any]:
    """Schemaless object, honoring any declared nested structure."""
    schema = schema or {}
    fragment: dict[str, Any] = {
        "type": JSON_SCHEMA_OBJECT_TYPE,
        "additionalProperties": schema.get("additionalProperties", True),
    }
    if schema.get("properties") is not None:
        fragment["properties"] = schema["properties"]
    if "required" in schema:
        fragment["required"] = schema["required"]
    return fragment


def state_create_schema(default_state: LifecycleState) -> dict[str, Any]:
    return {
        "type": "string",
        "enum": list(STATES),
        "description": "The state of the document",
        "default": default_state.value,
    }


def wire_schema(
    spec: FieldSpec,
    validation: bool,
    example_id_factory: ExampleIdFactory = default_example_id,
) -> dict[str, Any]:
    """Wire schema of one canonical field node, without nullable or description.

    Args:
        spec: Field or array item node.
        validation: Request-validation context when True, serialization otherwise.
        example_id_factory: Source of example identifiers.
    """
    if spec.type == SemanticType.OBJECT_ID:
        return object_id_schema(example_id_factory(SemanticType.OBJECT_ID))
    elif spec.type == SemanticType.DATE:
        return date_validation_schema() if validation else date_serialization_schema()
    elif spec.type == SemanticType.GEO_POINT:
        return geo_point_validation_schema() if validation else geo_point_serialization_schema()
    elif spec.type == SemanticType.RAW_OBJECT:
        return raw_object_schema(spec.schema)
    elif spec.type == SemanticType.ARRAY:
        return {
            "type": JSON_SCHEMA_ARRAY_TYPE,
            "items": wire_schema(spec.items, validation, example_id_factory),
        }
    elif spec.type in (SemanticType.STRING, SemanticType.NUMBER, SemanticType.BOOLEAN):
        return {"type": spec.type.value}
    raise ValueError(f"Unhandled semantic type: {spec.type}")
