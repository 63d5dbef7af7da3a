"""Per-operation request and response schemas of a collection.

The generated schemas are plain dictionaries, installed by the HTTP layer as
route validation and documentation. Every section carries an ``operationId``
of the form ``<collection>__MIA__<operation>__MIA__<section>`` so compiled
validators can be cached per section.
"""

import re
from collections.abc import Callable
from enum import Enum
from typing import Any

from crudbase.core.constants import (
    ADDTOSETCMD,
    ARRAY_MERGE_ELEMENT_OPERATOR,
    ARRAY_REPLACE_ELEMENT_OPERATOR,
    CURDATECMD,
    INCCMD,
    JSON_SCHEMA_ARRAY_TYPE,
    JSON_SCHEMA_OBJECT_TYPE,
    LIMIT,
    MANDATORY_FIELDS,
    MONGOID,
    MULCMD,
    PROJECTION,
    PULLCMD,
    PUSHCMD,
    QUERY,
    RAW_PROJECTION,
    SETCMD,
    SETONINSERTCMD,
    SKIP,
    SORT,
    STATE,
    STATE_FIELD,
    UNIQUE_OPERATION_ID,
    UNSETCMD,
)
from crudbase.domain.entities.collection_definition import (
    CollectionDefinition,
    FieldSpec,
    LifecycleState,
    SemanticType,
)
from crudbase.domain.services.path_walker import PathMaps
from crudbase.domain.services.schema_fragments import (
    ExampleIdFactory,
    STATES,
    default_example_id,
    document_id_schema,
    state_create_schema,
    wire_schema,
)

DEFAULT_LIMIT = 25
DEFAULT_MAX_LIMIT = 200

TYPES_TO_IGNORE_IN_QUERYSTRING = (SemanticType.ARRAY, SemanticType.GEO_POINT, SemanticType.RAW_OBJECT)
UNSORTABLE_TYPES = (SemanticType.GEO_POINT,)
ATTRIBUTES_TO_OMIT_IN_FILTERS = ("in", "name")

CHANGE_STATE_TARGETS = ["PUBLIC", "TRASH", "DRAFT", "DELETED"]
CHANGE_STATE_MANY_TARGETS = ["PUBLIC", "DRAFT", "TRASH", "DELETED"]

SET_TRUE_SCHEMA = {"type": "boolean", "enum": [True]}


class OperationId(str, Enum):
    """Operation identifiers used in ``operationId`` and as ``generate_all`` keys."""

    GET_LIST = "getList"
    EXPORT = "export"
    GET_ITEM = "getItem"
    POST_ITEM = "postItem"
    VALIDATE = "validate"
    DELETE_ITEM = "deleteItem"
    DELETE_LIST = "deleteList"
    COUNT = "count"
    POST_BULK = "postBulk"
    PATCH_ITEM = "patchItem"
    UPSERT_ONE = "upsertOne"
    PATCH_BULK = "patchBulk"
    PATCH_MANY = "patchMany"
    CHANGE_STATE = "changeState"
    CHANGE_STATE_MANY = "changeStateMany"


def format_endpoint_tag(endpoint_base_path: str) -> str:
    """Turn an endpoint base path into a title, e.g. ``/books-endpoint`` -> ``Books Endpoint``."""
    tag = endpoint_base_path.replace("/", "")
    tag = re.sub(r"\W|_", " ", tag)
    tag = re.sub(r" (\w)", lambda found: f" {found.group(1).upper()}", tag)
    return re.sub(r"^(\w)", lambda found: found.group(1).upper(), tag)


def sort_regex(definition: CollectionDefinition) -> str:
    """Pattern of the sort parameter: comma separated, optionally ``-`` prefixed, field paths."""
    or_fields = "|".join(spec.name for spec in definition.fields if spec.type not in UNSORTABLE_TYPES)
    sub_field_suffix = "(\\.([^\\.,])+)*"
    single_field_matcher = f"-?({or_fields}){sub_field_suffix}"
    return f"^{single_field_matcher}(,{single_field_matcher})*$"


def _schema_type(schema: Any) -> Any:
    return schema.get("type") if isinstance(schema, dict) else None


def query_string_from_raw_schema(paths_map: dict[str, Any]) -> dict[str, Any]:
    """Querystring entries for nested raw paths.

    Objects and arrays of objects or arrays cannot be expressed in a
    querystring and are skipped. Arrays are queried by item.
    """
    result: dict[str, Any] = {}
    for path, schema in paths_map.items():
        schema_type = _schema_type(schema)
        if schema_type == JSON_SCHEMA_OBJECT_TYPE:
            continue
        if schema_type == JSON_SCHEMA_ARRAY_TYPE:
            if _schema_type(schema["items"]) in (JSON_SCHEMA_OBJECT_TYPE, JSON_SCHEMA_ARRAY_TYPE):
                continue
            result[path] = schema["items"]
            continue
        result[path] = schema
    return result


def filter_from_raw_schema(paths_map: dict[str, Any]) -> dict[str, Any]:
    """Body filter entries for nested raw paths; arrays match the array or one item."""
    result: dict[str, Any] = {}
    for path, schema in paths_map.items():
        if _schema_type(schema) != JSON_SCHEMA_ARRAY_TYPE:
            result[path] = schema
            continue
        result[path] = {"oneOf": [schema, schema["items"]]}
    return result


def copy_properties_filtering_attributes(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        key: {attribute: value for attribute, value in item.items() if attribute not in ATTRIBUTES_TO_OMIT_IN_FILTERS}
        for key, item in properties.items()
    }


def _with_pattern_properties(schema: dict[str, Any], pattern_properties: dict[str, Any]) -> dict[str, Any]:
    if pattern_properties:
        schema["patternProperties"] = pattern_properties
    return schema


class SchemaGenerator:
    """Build the fifteen operation schemas of a collection.

    Args:
        definition: Canonical collection definition.
        raw_path_maps: Path maps of nested raw schemas. Without them, nested
            paths are not exposed.
        enable_limit_constraint: Bound the list limit to ``max_limit``.
        max_limit: Largest accepted list limit.
        example_id_factory: Source of example identifiers in the schemas.
    """

    def __init__(
        self,
        definition: CollectionDefinition,
        raw_path_maps: PathMaps | None = None,
        enable_limit_constraint: bool = True,
        max_limit: int = DEFAULT_MAX_LIMIT,
        example_id_factory: ExampleIdFactory = default_example_id,
    ):
        self.definition = definition
        self.collection_name = definition.name
        self.tag = format_endpoint_tag(definition.endpoint_base_path)
        self.raw_path_maps = raw_path_maps or PathMaps()
        self.example_id_factory = example_id_factory
        self.id_type = definition.id_type
        self.required_fields = [
            spec.name for spec in definition.fields if spec.required and spec.name not in MANDATORY_FIELDS
        ]

        self._serialization_properties = self._fields_properties(validation=False)
        self._get_validation = self._properties_get_validation()
        self._delete_validation = {key: value for key, value in self._get_validation.items() if key != PROJECTION}
        self._get_list_validation = self._properties_get_list_validation(enable_limit_constraint, max_limit)
        self._export_validation = self._properties_export_validation()
        self._count_validation = {MONGOID: self._id_schema(), **self._delete_validation}
        self._patch_query_validation = self._delete_validation
        self._patch_many_query_validation = self._count_validation
        self._filter_change_state_many = self._properties_filter_change_state_many()
        self._post_validation = {
            **self._fields_properties(validation=True),
            STATE_FIELD: state_create_schema(definition.default_state),
        }
        self._patch_commands_validation = self._properties_patch_commands_validation()
        self._upsert_commands_validation = {
            **self._patch_commands_validation,
            SETONINSERTCMD: {
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._fields_properties(validation=True),
                "additionalProperties": False,
            },
        }

    def get_schema_detail(self, operation: OperationId) -> dict[str, dict[str, str]]:
        """``operationId`` entries of each section of an operation."""

        def detail(section: str) -> dict[str, str]:
            return {UNIQUE_OPERATION_ID: f"{self.collection_name}__MIA__{operation.value}__MIA__{section}"}

        return {
            "params": detail("params"),
            "querystring": detail("querystring"),
            "response.200": detail("response.200"),
            "body": detail("body"),
        }

    def generate_get_list_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.GET_LIST)
        return {
            "summary": f"Returns a list of documents in {self.collection_name}",
            "description": "Results can be filtered specifying the following parameters:",
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._get_list_validation),
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_ARRAY_TYPE,
                    "items": {"type": JSON_SCHEMA_OBJECT_TYPE, "properties": self._serialization_properties},
                },
            },
        }

    def generate_export_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.EXPORT)
        return {
            "summary": f"Export the {self.collection_name} collection",
            "description": (
                "The exported documents are sent as newline separated JSON objects "
                "to facilitate large dataset streaming and parsing"
            ),
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._export_validation),
        }

    def generate_get_item_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.GET_ITEM)
        pattern_properties = {
            **self._schemaless_raw_object_patterns(),
            **query_string_from_raw_schema(self.raw_path_maps.pattern_properties),
        }
        querystring = {
            **detail["querystring"],
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {
                **self._get_validation,
                **query_string_from_raw_schema(self.raw_path_maps.paths),
            },
        }
        _with_pattern_properties(querystring, pattern_properties)
        querystring["additionalProperties"] = False
        return {
            "summary": f"Returns the item with specific ID from the {self.collection_name} collection.",
            "tags": [self.tag],
            "params": self._id_params(detail, "The ID of the item to retrieve information for"),
            "querystring": querystring,
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": self._serialization_properties,
                },
            },
        }

    def generate_post_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.POST_ITEM)
        return {
            "summary": f"Add a new item to the {self.collection_name} collection.",
            "tags": [self.tag],
            "body": {**detail["body"], **self._insert_body()},
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": {MONGOID: self._id_schema()},
                },
            },
        }

    def generate_validate_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.VALIDATE)
        return {
            "summary": f"Verify if the body is valid for an insertion in the {self.collection_name} collection.",
            "tags": [self.tag],
            "body": {**detail["body"], **self._insert_body()},
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": {"result": {"type": "string", "enum": ["ok"]}},
                },
            },
        }

    def generate_delete_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.DELETE_ITEM)
        return {
            "summary": f"Delete an item with specific ID from the {self.collection_name} collection.",
            "tags": [self.tag],
            "params": self._id_params(detail, "The ID of the item to delete"),
            "querystring": self._querystring(detail, self._delete_validation),
        }

    def generate_delete_list_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.DELETE_LIST)
        return {
            "summary": f"Delete multiple items from the {self.collection_name} collection.",
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._delete_validation),
        }

    def generate_count_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.COUNT)
        return {
            "summary": f"Returns the number of items in the {self.collection_name} collection.",
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._count_validation),
            "response": {"200": {**detail["response.200"], "type": "integer", "minimum": 0}},
        }

    def generate_bulk_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.POST_BULK)
        return {
            "summary": f"Insert new items in the {self.collection_name} collection.",
            "tags": [self.tag],
            "body": {**detail["body"], "type": JSON_SCHEMA_ARRAY_TYPE, "items": self._insert_body()},
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_ARRAY_TYPE,
                    "items": {
                        "type": JSON_SCHEMA_OBJECT_TYPE,
                        "properties": {MONGOID: self._id_schema()},
                    },
                },
            },
        }

    def generate_patch_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.PATCH_ITEM)
        return {
            "summary": f"Update the item with specific ID in the {self.collection_name} collection.",
            "tags": [self.tag],
            "params": self._id_params(detail, "The ID of the item to update information for"),
            "querystring": self._querystring(detail, self._patch_query_validation),
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._patch_commands_validation,
                "additionalProperties": False,
            },
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": self._serialization_properties,
                },
            },
        }

    def generate_upsert_one_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.UPSERT_ONE)
        return {
            "summary": (
                f"Update an item in the {self.collection_name} collection. "
                "If the item is not in the collection, it will be inserted."
            ),
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._patch_query_validation),
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._upsert_commands_validation,
                "additionalProperties": False,
            },
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": self._serialization_properties,
                },
            },
        }

    def generate_patch_bulk_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.PATCH_BULK)
        filter_schema = {
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {
                MONGOID: self._id_schema(),
                **copy_properties_filtering_attributes(self._patch_query_validation),
                **filter_from_raw_schema(self.raw_path_maps.paths),
            },
        }
        _with_pattern_properties(filter_schema, filter_from_raw_schema(self.raw_path_maps.pattern_properties))
        filter_schema["additionalProperties"] = False
        return {
            "summary": f"Update multiple items of {self.collection_name}, each one with its own modifications",
            "tags": [self.tag],
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_ARRAY_TYPE,
                "items": {
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": {
                        "filter": filter_schema,
                        "update": {
                            "type": JSON_SCHEMA_OBJECT_TYPE,
                            "properties": self._patch_commands_validation,
                            "additionalProperties": False,
                        },
                    },
                    "required": ["filter", "update"],
                },
                "minItems": 1,
            },
            "response": {"200": {**detail["response.200"], "type": "integer", "minimum": 0}},
        }

    def generate_patch_many_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.PATCH_MANY)
        return {
            "summary": f"Update the items of the {self.collection_name} collection that match the query.",
            "tags": [self.tag],
            "querystring": self._querystring(detail, self._patch_many_query_validation),
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._patch_commands_validation,
                "additionalProperties": False,
            },
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": "number",
                    "description": "the number of documents that were modified",
                },
            },
        }

    def generate_change_state_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.CHANGE_STATE)
        properties = copy_properties_filtering_attributes(self._patch_query_validation)
        properties.pop(STATE, None)
        return {
            "summary": f"Change state of an item of {self.collection_name} collection.",
            "tags": [self.tag],
            "params": self._id_params(detail, "the ID of the item to have the property __STATE__ updated"),
            "querystring": self._querystring(detail, properties),
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "required": ["stateTo"],
                "properties": {"stateTo": {"type": "string", "enum": list(CHANGE_STATE_TARGETS)}},
            },
        }

    def generate_change_state_many_json_schema(self) -> dict[str, Any]:
        detail = self.get_schema_detail(OperationId.CHANGE_STATE_MANY)
        filter_schema = {
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {
                MONGOID: self._id_schema(),
                **copy_properties_filtering_attributes(self._filter_change_state_many),
                **filter_from_raw_schema(self.raw_path_maps.paths),
            },
        }
        _with_pattern_properties(filter_schema, filter_from_raw_schema(self.raw_path_maps.pattern_properties))
        return {
            "summary": f"Change state of multiple items of {self.collection_name}.",
            "tags": [self.tag],
            "body": {
                **detail["body"],
                "type": JSON_SCHEMA_ARRAY_TYPE,
                "items": {
                    "type": JSON_SCHEMA_OBJECT_TYPE,
                    "properties": {
                        "filter": filter_schema,
                        "stateTo": {"type": "string", "enum": list(CHANGE_STATE_MANY_TARGETS)},
                    },
                    "required": ["filter", "stateTo"],
                    "additionalProperties": False,
                },
                "minItems": 1,
            },
            "response": {
                "200": {
                    **detail["response.200"],
                    "type": "integer",
                    "minimum": 0,
                    "description": f"Number of updated {self.collection_name}",
                },
            },
        }

    def generate_all(self) -> dict[str, dict[str, Any]]:
        """Every operation schema, keyed by operation id."""
        generators: dict[OperationId, Callable[[], dict[str, Any]]] = {
            OperationId.GET_LIST: self.generate_get_list_json_schema,
            OperationId.EXPORT: self.generate_export_json_schema,
            OperationId.GET_ITEM: self.generate_get_item_json_schema,
            OperationId.POST_ITEM: self.generate_post_json_schema,
            OperationId.VALIDATE: self.generate_validate_json_schema,
            OperationId.DELETE_ITEM: self.generate_delete_json_schema,
            OperationId.DELETE_LIST: self.generate_delete_list_json_schema,
            OperationId.COUNT: self.generate_count_json_schema,
            OperationId.POST_BULK: self.generate_bulk_json_schema,
            OperationId.PATCH_ITEM: self.generate_patch_json_schema,
            OperationId.UPSERT_ONE: self.generate_upsert_one_json_schema,
            OperationId.PATCH_BULK: self.generate_patch_bulk_json_schema,
            OperationId.PATCH_MANY: self.generate_patch_many_json_schema,
            OperationId.CHANGE_STATE: self.generate_change_state_json_schema,
            OperationId.CHANGE_STATE_MANY: self.generate_change_state_many_json_schema,
        }
        return {operation.value: generate() for operation, generate in generators.items()}

    # Sections

    def _querystring(self, detail: dict[str, dict[str, str]], properties: dict[str, Any]) -> dict[str, Any]:
        querystring = {
            **detail["querystring"],
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {
                **properties,
                **query_string_from_raw_schema(self.raw_path_maps.paths),
            },
        }
        _with_pattern_properties(querystring, query_string_from_raw_schema(self.raw_path_maps.pattern_properties))
        querystring["additionalProperties"] = False
        return querystring

    @staticmethod
    def _id_params(detail: dict[str, dict[str, str]], description: str) -> dict[str, Any]:
        return {
            **detail["params"],
            "type": JSON_SCHEMA_OBJECT_TYPE,
            "properties": {"id": {"type": "string", "description": description}},
        }

    def _insert_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": JSON_SCHEMA_OBJECT_TYPE}
        if self.required_fields:
            body["required"] = list(self.required_fields)
        body["properties"] = self._post_validation
        body["additionalProperties"] = False
        return body

    def _id_schema(self) -> dict[str, Any]:
        return document_id_schema(self.id_type, self.example_id_factory)

    # Field properties

    def _wire_schema(self, spec: FieldSpec, validation: bool) -> dict[str, Any]:
        return wire_schema(spec, validation, self.example_id_factory)

    def _fields_properties(self, validation: bool) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for spec in self.definition.fields:
            if validation and spec.name in MANDATORY_FIELDS:
                continue
            prop = self._wire_schema(spec, validation)
            if spec.nullable:
                prop["nullable"] = True
            if spec.description:
                prop["description"] = spec.description
            properties[spec.name] = prop
        return properties

    def _properties_get_validation(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for spec in self.definition.fields:
            if spec.type in TYPES_TO_IGNORE_IN_QUERYSTRING or spec.name == MONGOID:
                continue
            prop = self._wire_schema(spec, validation=True)
            if spec.description:
                prop["description"] = spec.description
            properties[spec.name] = prop

        properties.update({
            QUERY: {
                "type": "string",
                "description": "Additional query part to forward to MongoDB",
            },
            PROJECTION: {
                "type": "string",
                "description": "Return only the properties specified in a comma separated list",
                "examples": ["field1,field2,field3.nestedField"],
            },
            STATE: {
                "type": "string",
                "pattern": "({0})(,({0}))*".format("|".join(STATES)),
                "default": LifecycleState.PUBLIC.value,
                "description": (
                    "Filter by \\_\\_STATE__, multiple states can be specified "
                    "in OR by providing a comma separated list"
                ),
            },
            RAW_PROJECTION: {
                "type": "string",
                "description": "Additional raw stringified projection for MongoDB",
            },
        })
        properties.pop(STATE_FIELD, None)
        return properties

    @staticmethod
    def _list_query_params(enable_limit_constraint: bool, max_limit: int) -> dict[str, Any]:
        limit: dict[str, Any] = {
            "type": "integer",
            "minimum": 1,
            "description": "Limits the number of documents",
        }
        if enable_limit_constraint:
            limit.update({
                "default": DEFAULT_LIMIT,
                "maximum": max_limit,
                "minimum": 1,
                "description": f"Limits the number of documents, max {max_limit} elements, minimum 1",
            })
        return {
            LIMIT: limit,
            SKIP: {
                "type": "integer",
                "minimum": 0,
                "description": "Skip the specified number of documents",
            },
            QUERY: {
                "type": "string",
                "description": "Additional query part to forward to MongoDB",
            },
        }

    def _sort_param(self) -> dict[str, Any]:
        pattern = sort_regex(self.definition)
        return {
            "anyOf": [
                {"type": "string", "pattern": pattern},
                {"type": JSON_SCHEMA_ARRAY_TYPE, "items": {"type": "string", "pattern": pattern}},
            ],
            "description": 'Sort by the specified property/properties (Start with a "-" to invert the sort order)',
        }

    def _properties_get_list_validation(self, enable_limit_constraint: bool, max_limit: int) -> dict[str, Any]:
        properties = dict(self._get_validation)
        properties.update(self._list_query_params(enable_limit_constraint, max_limit))
        properties[SORT] = self._sort_param()
        return {MONGOID: self._id_schema(), **properties}

    def _properties_export_validation(self) -> dict[str, Any]:
        return {
            MONGOID: self._id_schema(),
            **self._get_validation,
            **self._list_query_params(False, DEFAULT_MAX_LIMIT),
            SORT: self._sort_param(),
        }

    def _properties_filter_change_state_many(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for spec in self.definition.fields:
            if spec.type == SemanticType.GEO_POINT or spec.name == MONGOID:
                continue
            if spec.type == SemanticType.ARRAY:
                # only arrays of objects can be matched by a body filter
                if spec.items.type == SemanticType.RAW_OBJECT:
                    properties[spec.name] = self._wire_schema(spec, validation=False)
                continue
            prop = self._wire_schema(spec, validation=True)
            if spec.description:
                prop["description"] = spec.description
            properties[spec.name] = prop
        properties.pop(STATE_FIELD, None)
        return properties

    # Update commands

    def _schemaless_raw_object_patterns(self) -> dict[str, Any]:
        # Unescaped dot kept for compatibility with existing clients.
        return {
            f"{spec.name}.": True
            for spec in self.definition.fields
            if spec.type == SemanticType.RAW_OBJECT and spec.schema is None
        }

    def _unset_pattern_properties(self) -> dict[str, Any]:
        patterns: dict[str, Any] = {}
        for spec in self.definition.fields:
            with_schema = spec.type == SemanticType.RAW_OBJECT and spec.schema is not None
            array_with_schema = (
                spec.type == SemanticType.ARRAY
                and spec.items.type == SemanticType.RAW_OBJECT
                and spec.items.schema is not None
            )
            if with_schema or array_with_schema:
                patterns[f"^{spec.name}\\..+"] = dict(SET_TRUE_SCHEMA)
        return patterns

    def _unset_properties(self) -> dict[str, Any]:
        return {spec.name: dict(SET_TRUE_SCHEMA) for spec in self.definition.fields if not spec.required}

    def _current_date_properties(self) -> dict[str, Any]:
        return {
            spec.name: dict(SET_TRUE_SCHEMA)
            for spec in self.definition.fields
            if spec.name not in MANDATORY_FIELDS and spec.type == SemanticType.DATE
        }

    def _number_properties(self) -> dict[str, Any]:
        properties = {
            spec.name: {"type": SemanticType.NUMBER.value}
            for spec in self.definition.fields
            if spec.name not in MANDATORY_FIELDS and spec.type == SemanticType.NUMBER
        }
        properties.update(_raw_paths_of_type(self.raw_path_maps.paths, SemanticType.NUMBER.value))
        return properties

    def _array_properties(self) -> dict[str, Any]:
        properties = {
            spec.name: self._wire_schema(spec.items, validation=True)
            for spec in self.definition.fields
            if spec.type == SemanticType.ARRAY
        }
        properties.update(_raw_array_items(self.raw_path_maps.paths))
        return properties

    def _array_element_operation_properties(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for spec in self.definition.fields:
            if spec.type != SemanticType.ARRAY:
                continue
            properties[f"{spec.name}.$.{ARRAY_REPLACE_ELEMENT_OPERATOR}"] = self._wire_schema(
                spec.items, validation=True
            )
            if spec.items.type == SemanticType.RAW_OBJECT:
                merge: dict[str, Any] = {"type": JSON_SCHEMA_OBJECT_TYPE}
                if spec.items.properties is not None:
                    merge["properties"] = spec.items.properties
                # dot notation keys are merged too
                merge["additionalProperties"] = True
                properties[f"{spec.name}.$.{ARRAY_MERGE_ELEMENT_OPERATOR}"] = merge
        return properties

    def _properties_patch_commands_validation(self) -> dict[str, Any]:
        raw = self.raw_path_maps
        raw_object_patterns = self._schemaless_raw_object_patterns()
        number_properties = self._number_properties()
        number_pattern_properties = _raw_paths_of_type(raw.pattern_properties, SemanticType.NUMBER.value)
        array_properties = self._array_properties()
        array_pattern_properties = _raw_array_items(raw.pattern_properties)

        def array_command() -> dict[str, Any]:
            command = {"type": JSON_SCHEMA_OBJECT_TYPE, "properties": dict(array_properties)}
            _with_pattern_properties(command, dict(array_pattern_properties))
            command["additionalProperties"] = False
            return command

        def number_command() -> dict[str, Any]:
            return {
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": dict(number_properties),
                "additionalProperties": False,
                "patternProperties": {**raw_object_patterns, **number_pattern_properties},
            }

        return {
            SETCMD: {
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": {
                    **self._fields_properties(validation=True),
                    **self._array_element_operation_properties(),
                    **raw.paths,
                    **raw.paths_operators,
                },
                "additionalProperties": False,
                "patternProperties": {
                    **raw_object_patterns,
                    **raw.pattern_properties,
                    **raw.pattern_properties_operators,
                },
            },
            UNSETCMD: {
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._unset_properties(),
                "additionalProperties": False,
                "patternProperties": {**raw_object_patterns, **self._unset_pattern_properties()},
            },
            INCCMD: number_command(),
            MULCMD: number_command(),
            CURDATECMD: {
                "type": JSON_SCHEMA_OBJECT_TYPE,
                "properties": self._current_date_properties(),
                "additionalProperties": False,
            },
            PUSHCMD: array_command(),
            PULLCMD: array_command(),
            ADDTOSETCMD: array_command(),
        }


def _raw_paths_of_type(paths_map: dict[str, Any], json_type: str) -> dict[str, Any]:
    return {path: schema for path, schema in paths_map.items() if _schema_type(schema) == json_type}


def _raw_array_items(paths_map: dict[str, Any]) -> dict[str, Any]:
    return {
        path: schema["items"]
        for path, schema in paths_map.items()
        if _schema_type(schema) == JSON_SCHEMA_ARRAY_TYPE
    }
