"""Decompose JSON-Schema field descriptions into path maps.

A schema is flattened into two maps:

* ``paths``: literal dotted path -> schema, for fields reachable without
  crossing an array;
* ``pattern_properties``: end-anchored regex -> schema, for fields reached
  through array elements (``attachments\\.\\d+\\.name$``) or below objects
  accepting additional properties.

For every array-typed entry a ``<path>.$.replace`` operator path is derived,
plus ``<path>.$.merge`` when the array holds objects.
"""

import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import structlog

from crudbase.core.constants import (
    ARRAY_MERGE_ELEMENT_OPERATOR,
    ARRAY_REPLACE_ELEMENT_OPERATOR,
    JSON_SCHEMA_ARRAY_TYPE,
    JSON_SCHEMA_OBJECT_TYPE,
)
from crudbase.core.exceptions import UnsupportedSchemaOperationError
from crudbase.core.logging import get_logger
from crudbase.domain.entities.collection_definition import (
    CollectionDefinition,
    FieldSpec,
    SemanticType,
)

logger = get_logger(__name__)

UNSUPPORTED_JSONSCHEMA_OPERATIONS = ("oneOf", "allOf", "anyOf", "if")
MERGE_FIELDS_TO_OMIT = ("required",)
ARRAY_INDEX_REGEX = r"\d+"


@dataclass(frozen=True)
class PathMaps:
    """Result of a schema walk. Never mutated; use ``merge`` to combine."""

    paths: dict[str, Any] = field(default_factory=dict)
    pattern_properties: dict[str, Any] = field(default_factory=dict)
    paths_operators: dict[str, Any] = field(default_factory=dict)
    pattern_properties_operators: dict[str, Any] = field(default_factory=dict)

    def merge(self, other: "PathMaps") -> "PathMaps":
        """Return a new instance holding both maps, ``other`` winning on conflicts."""
        return PathMaps(
            paths={**self.paths, **other.paths},
            pattern_properties={**self.pattern_properties, **other.pattern_properties},
            paths_operators={**self.paths_operators, **other.paths_operators},
            pattern_properties_operators={
                **self.pattern_properties_operators,
                **other.pattern_properties_operators,
            },
        )

    def lookup(self, field_path: str) -> Any | None:
        """Find the schema describing a field path.

        Literal paths are checked first, then the pattern properties in
        declaration order. Patterns are not start-anchored.
        """
        if field_path in self.paths:
            return self.paths[field_path]
        for pattern, schema in self.pattern_properties.items():
            if re.search(pattern, field_path):
                return schema
        return None

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {
            "paths": self.paths,
            "patternProperties": self.pattern_properties,
            "pathsOperators": self.paths_operators,
            "patternPropertiesOperators": self.pattern_properties_operators,
        }


class _Generated(NamedTuple):
    paths: dict[str, Any]
    pattern_properties: dict[str, Any]


def _join(escape: bool, *parts: str | None) -> str:
    return ("\\." if escape else ".").join(part for part in parts if part)


def _rebase(escape: bool, mapping: dict[str, Any], *prefixes: str | None) -> dict[str, Any]:
    return {_join(escape, *prefixes, path): schema for path, schema in mapping.items()}


def _is_leaf(json_type: Any) -> bool:
    return json_type not in (JSON_SCHEMA_OBJECT_TYPE, JSON_SCHEMA_ARRAY_TYPE)


def assert_supported_schema(schema: dict[str, Any]) -> None:
    """Reject a schema node using a JSON-Schema combinator."""
    for operation in UNSUPPORTED_JSONSCHEMA_OPERATIONS:
        if operation in schema:
            raise UnsupportedSchemaOperationError(operation)


def _generate_array(
    schema: dict[str, Any],
    use_regex: bool,
    base_path: str | None,
    add_raw_schema_for_nested: bool,
) -> _Generated:
    # Array elements are addressed by index, so everything below is a pattern.
    items = _generate(schema["items"], use_regex=True, base_path=None, add_raw_schema_for_nested=True)

    paths: dict[str, Any] = {}
    pattern_properties: dict[str, Any] = {}
    if add_raw_schema_for_nested and not use_regex:
        paths[_join(False, base_path)] = schema
    if add_raw_schema_for_nested and use_regex:
        pattern_properties[_join(True, base_path)] = schema

    pattern_properties[_join(True, base_path, ARRAY_INDEX_REGEX)] = schema["items"]
    pattern_properties.update(_rebase(True, items.paths, base_path, ARRAY_INDEX_REGEX))
    pattern_properties.update(_rebase(True, items.pattern_properties, base_path, ARRAY_INDEX_REGEX))
    return _Generated(paths, pattern_properties)


def _join_child(
    json_type: str,
    use_regex: bool,
    child: _Generated,
    base_path: str | None,
    field_name: str,
) -> _Generated:
    # Array children already carry their base path.
    if json_type != JSON_SCHEMA_OBJECT_TYPE:
        return child

    paths = {} if use_regex else _rebase(False, child.paths, base_path, field_name)
    pattern_properties = _rebase(True, child.pattern_properties, base_path, field_name)
    if use_regex:
        pattern_properties.update(_rebase(True, child.paths, base_path, field_name))
    return _Generated(paths, pattern_properties)


def _generate(
    schema: dict[str, Any],
    use_regex: bool,
    base_path: str | None,
    add_raw_schema_for_nested: bool,
) -> _Generated:
    assert_supported_schema(schema)

    json_type = schema.get("type")
    if _is_leaf(json_type):
        # The key is supplied by the parent when joining.
        if use_regex:
            return _Generated({}, {"": {"type": json_type}})
        return _Generated({"": {"type": json_type}}, {})

    if json_type == JSON_SCHEMA_ARRAY_TYPE:
        return _generate_array(schema, use_regex, base_path, add_raw_schema_for_nested)

    paths: dict[str, Any] = {}
    pattern_properties: dict[str, Any] = {}
    if schema.get("additionalProperties"):
        pattern_properties[_join(True, base_path, ".+")] = True

    properties = schema.get("properties")
    if properties is None:
        return _Generated(paths, pattern_properties)

    for field_name, field_schema in properties.items():
        assert_supported_schema(field_schema)

        field_type = field_schema.get("type")
        if _is_leaf(field_type):
            if use_regex:
                pattern_properties[_join(True, base_path, field_name)] = field_schema
            else:
                paths[_join(False, base_path, field_name)] = field_schema
            continue

        if field_type == JSON_SCHEMA_ARRAY_TYPE:
            child = _generate(
                field_schema,
                use_regex=use_regex,
                base_path=_join(True, base_path, field_name),
                add_raw_schema_for_nested=add_raw_schema_for_nested,
            )
        else:
            child = _generate(field_schema, use_regex=False, base_path=None, add_raw_schema_for_nested=True)

        if add_raw_schema_for_nested and not use_regex:
            paths[_join(False, base_path, field_name)] = field_schema
        if add_raw_schema_for_nested and use_regex:
            pattern_properties[_join(True, base_path, field_name)] = field_schema

        joined = _join_child(field_type, use_regex, child, base_path, field_name)
        paths.update(joined.paths)
        pattern_properties.update(joined.pattern_properties)

    return _Generated(paths, pattern_properties)


def generate_operators(mapping: dict[str, Any], escape: bool = False) -> dict[str, Any]:
    """Derive ``$.replace`` / ``$.merge`` element operator paths for array entries.

    Args:
        mapping: Literal paths or unanchored patterns produced by a walk.
        escape: Whether keys are regex patterns.

    Returns:
        dict: Operator path -> item schema. Merge schemas drop ``required``.
    """
    dollar = "\\$" if escape else "$"
    end_pattern = "$" if escape else ""

    operators: dict[str, Any] = {}
    for path, schema in mapping.items():
        if not isinstance(schema, dict) or schema.get("type") != JSON_SCHEMA_ARRAY_TYPE:
            continue
        items = schema["items"]
        operators[_join(escape, path, dollar, ARRAY_REPLACE_ELEMENT_OPERATOR) + end_pattern] = items
        if items.get("type") == JSON_SCHEMA_OBJECT_TYPE:
            merge_path = _join(escape, path, dollar, ARRAY_MERGE_ELEMENT_OPERATOR) + end_pattern
            operators[merge_path] = {
                key: value for key, value in items.items() if key not in MERGE_FIELDS_TO_OMIT
            }
    return operators


def generate_paths(
    schema: dict[str, Any],
    use_regex: bool = False,
    base_path: str | None = None,
    add_raw_schema_for_nested: bool = False,
) -> PathMaps:
    """Walk a JSON-Schema node and build its path maps.

    Args:
        schema: JSON-Schema node (object, array or leaf).
        use_regex: Emit pattern properties instead of literal paths.
        base_path: Prefix for every generated key.
        add_raw_schema_for_nested: Also map nested objects and arrays to their
            own raw schema.

    Returns:
        PathMaps: Paths, end-anchored pattern properties and operator maps.

    Raises:
        UnsupportedSchemaOperationError: If any node uses ``oneOf``,
            ``allOf``, ``anyOf`` or ``if``.
    """
    generated = _generate(schema, use_regex, base_path, add_raw_schema_for_nested)
    return PathMaps(
        paths=generated.paths,
        pattern_properties={f"{pattern}$": value for pattern, value in generated.pattern_properties.items()},
        paths_operators=generate_operators(generated.paths, escape=False),
        pattern_properties_operators=generate_operators(generated.pattern_properties, escape=True),
    )


def _raw_field_schema(spec: FieldSpec) -> dict[str, Any]:
    if spec.type == SemanticType.ARRAY:
        return {
            "type": JSON_SCHEMA_ARRAY_TYPE,
            "items": {"type": JSON_SCHEMA_OBJECT_TYPE, "properties": spec.items.properties},
        }
    return {"type": JSON_SCHEMA_OBJECT_TYPE, "properties": spec.properties}


def generate_raw_schema_path_maps(
    definition: CollectionDefinition,
    log: structlog.stdlib.BoundLogger | None = None,
) -> PathMaps:
    """Build the merged path maps of every field carrying a nested schema.

    Only RawObjects declaring properties, and Arrays of such RawObjects,
    contribute. Each one is walked as ``{"type": "object", "properties":
    {<name>: <schema>}}`` so keys are rooted at the field name.

    Raises:
        UnsupportedSchemaOperationError: Logged with the collection and field
            name, then re-raised.
    """
    log = log or logger
    maps = PathMaps()
    for spec in definition.fields:
        if not spec.has_raw_schema:
            continue
        schema = {
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {spec.name: _raw_field_schema(spec)},
        }
        try:
            generated = generate_paths(schema)
        except UnsupportedSchemaOperationError as exc:
            log.error(str(exc), collection_name=definition.name, field=spec.name)
            raise
        maps = maps.merge(generated)
    return maps
