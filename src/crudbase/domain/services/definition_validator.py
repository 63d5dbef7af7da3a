"""Structural validation of raw collection definitions.

Definitions are checked against a meta-schema with jsonschema before they
are adapted to the canonical tree. There is one meta-schema per raw shape.
"""

from typing import Any

from jsonschema import Draft7Validator

from crudbase.core.constants import (
    CREATEDAT,
    CREATORID,
    GEO_INDEX,
    HASHED_INDEX,
    MANDATORY_FIELDS,
    MONGOID,
    NORMAL_INDEX,
    STATE_FIELD,
    TEXT_INDEX,
    UPDATEDAT,
    UPDATERID,
)
from crudbase.core.exceptions import DefinitionValidationError
from crudbase.core.logging import get_logger
from crudbase.domain.entities.collection_definition import LifecycleState, SemanticType

logger = get_logger(__name__)

STATES = [state.value for state in LifecycleState]

ENCRYPTION_SCHEMA = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "searchable": {"type": "boolean"},
    },
}

PARTIAL_FILTER_PROPERTIES = {
    "usePartialFilter": {"type": "boolean"},
    "partialFilterExpression": {"type": "string"},
}

NORMAL_INDEX_FIELD = {
    "type": "object",
    "required": ["name", "order"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string"},
        "order": {"type": "number", "enum": [-1, 1]},
    },
}

INDEXES_SCHEMA = {
    "type": "array",
    "items": {
        "oneOf": [
            {
                "type": "object",
                "required": ["name", "type", "unique", "fields"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string", "enum": [TEXT_INDEX]},
                    "fields": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["name"],
                            "additionalProperties": False,
                            "properties": {"name": {"type": "string"}},
                        },
                    },
                    "weights": {"type": "object", "additionalProperties": True},
                    "defaultLanguage": {"type": "string"},
                    "languageOverride": {"type": "string"},
                    "background": {"type": "boolean"},
                    "unique": {"type": "boolean"},
                    **PARTIAL_FILTER_PROPERTIES,
                },
            },
            {
                "type": "object",
                "required": ["name", "type", "unique", "fields"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string", "enum": [NORMAL_INDEX]},
                    "unique": {"type": "boolean"},
                    "expireAfterSeconds": {"type": "number"},
                    "fields": {"type": "array", "items": NORMAL_INDEX_FIELD},
                    **PARTIAL_FILTER_PROPERTIES,
                },
                "if": {"required": ["expireAfterSeconds"]},
                "then": {"properties": {"fields": {"minItems": 1, "maxItems": 1}}},
            },
            {
                "type": "object",
                "required": ["name", "type", "unique", "field"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string", "enum": [GEO_INDEX]},
                    "unique": {"type": "boolean"},
                    "field": {"type": "string"},
                    **PARTIAL_FILTER_PROPERTIES,
                },
            },
            {
                "type": "object",
                "required": ["name", "type", "unique", "field"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string", "enum": [HASHED_INDEX]},
                    "unique": {"type": "boolean", "enum": [False]},
                    "field": {"type": "string"},
                    **PARTIAL_FILTER_PROPERTIES,
                },
            },
        ],
    },
}

COMMON_PROPERTIES = {
    "id": {"type": "string"},
    "name": {"type": "string", "minLength": 1},
    "endpointBasePath": {"type": "string", "pattern": "^/"},
    "description": {"type": "string"},
    "defaultState": {"type": "string", "enum": STATES},
    "indexes": INDEXES_SCHEMA,
    "type": {"type": "string"},
    "source": {"type": "string"},
    "pipeline": {"type": "array", "items": {"type": "object"}},
}


def _reserved_field(name: str, types: list[str]) -> dict[str, Any]:
    return {
        "contains": {
            "type": "object",
            "required": ["name", "type", "required"],
            "properties": {
                "name": {"enum": [name]},
                "type": {"enum": types},
                "required": {"type": "boolean", "enum": [True]},
            },
        },
    }


LEGACY_DEFINITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name", "fields", "endpointBasePath"],
    "additionalProperties": False,
    "properties": {
        **COMMON_PROPERTIES,
        "fields": {
            "type": "array",
            "items": {
                "oneOf": [
                    {
                        "type": "object",
                        "required": ["name", "type", "required"],
                        "properties": {
                            "name": {"type": "string"},
                            "type": {
                                "enum": [
                                    SemanticType.OBJECT_ID.value,
                                    SemanticType.STRING.value,
                                    SemanticType.NUMBER.value,
                                    SemanticType.BOOLEAN.value,
                                    SemanticType.DATE.value,
                                    SemanticType.GEO_POINT.value,
                                    SemanticType.RAW_OBJECT.value,
                                ],
                            },
                            "description": {"type": "string"},
                            "required": {"type": "boolean"},
                            "nullable": {"type": "boolean"},
                            "schema": {"type": "object"},
                            "encryption": ENCRYPTION_SCHEMA,
                        },
                    },
                    {
                        "type": "object",
                        "required": ["name", "type", "items"],
                        "properties": {
                            "name": {"type": "string"},
                            "type": {"enum": [SemanticType.ARRAY.value]},
                            "items": {
                                "type": "object",
                                "required": ["type"],
                                "properties": {
                                    "type": {
                                        "enum": [
                                            SemanticType.STRING.value,
                                            SemanticType.NUMBER.value,
                                            SemanticType.RAW_OBJECT.value,
                                            SemanticType.OBJECT_ID.value,
                                        ],
                                    },
                                    "schema": {"type": "object"},
                                },
                            },
                            "description": {"type": "string"},
                            "required": {"type": "boolean"},
                            "nullable": {"type": "boolean"},
                            "encryption": ENCRYPTION_SCHEMA,
                        },
                    },
                ],
            },
            "allOf": [
                _reserved_field(UPDATERID, [SemanticType.STRING.value]),
                _reserved_field(UPDATEDAT, [SemanticType.DATE.value]),
                _reserved_field(CREATORID, [SemanticType.STRING.value]),
                _reserved_field(CREATEDAT, [SemanticType.DATE.value]),
                _reserved_field(MONGOID, [SemanticType.OBJECT_ID.value, SemanticType.STRING.value]),
                _reserved_field(STATE_FIELD, [SemanticType.STRING.value]),
            ],
        },
    },
}

MODERN_DEFINITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name", "schema", "endpointBasePath"],
    "additionalProperties": False,
    "properties": {
        **COMMON_PROPERTIES,
        "enableLookup": {"type": "boolean"},
        "schema": {
            "type": "object",
            "required": ["type", "properties"],
            "properties": {
                "type": {"const": "object"},
                "required": {"type": "array", "items": {"type": "string"}},
                "properties": {
                    "type": "object",
                    "required": sorted(MANDATORY_FIELDS),
                    "additionalProperties": {"type": "object"},
                },
            },
        },
    },
}


def _format_error(error: Any) -> str:
    path = "/".join(str(part) for part in error.absolute_path)
    return f"{path or '<root>'}: {error.message}"


class DefinitionValidator:
    """Validator for raw collection definitions and generated schemas."""

    _legacy = Draft7Validator(LEGACY_DEFINITION_SCHEMA)
    _modern = Draft7Validator(MODERN_DEFINITION_SCHEMA)

    @classmethod
    def errors(cls, raw: dict[str, Any]) -> list[str]:
        """Collect every structural error of a raw definition.

        Args:
            raw: Raw definition in either shape.

        Returns:
            List of error messages (empty if valid).
        """
        validator = cls._modern if isinstance(raw, dict) and "schema" in raw else cls._legacy
        found = sorted(validator.iter_errors(raw), key=lambda error: list(error.absolute_path))
        return [_format_error(error) for error in found]

    @classmethod
    def validate(cls, raw: dict[str, Any]) -> None:
        """Validate a raw definition.

        Raises:
            DefinitionValidationError: If the definition is malformed.
        """
        errors = cls.errors(raw)
        if errors:
            collection_name = raw.get("name") if isinstance(raw, dict) else None
            logger.error(
                "Invalid collection definition",
                collection_name=collection_name,
                errors=errors,
            )
            raise DefinitionValidationError(errors, collection_name)

    @staticmethod
    def check_generated_schema(schema: dict[str, Any]) -> None:
        """Check that a generated schema section is itself valid JSON Schema.

        Raises:
            jsonschema.SchemaError: If the schema is not valid Draft 7.
        """
        Draft7Validator.check_schema(schema)


__all__ = [
    "DefinitionValidator",
    "LEGACY_DEFINITION_SCHEMA",
    "MODERN_DEFINITION_SCHEMA",
]
