"""Validate and type-cast filters, document bodies and update commands.

Every entry point works in place on the object supplied by the caller and
raises on the first unknown field, illegal operator or uncastable value.
Structural validation is expected to have happened before, in the HTTP layer.
"""

import re
from collections.abc import Collection
from typing import Any

from crudbase.core.constants import (
    ARRAY_MERGE_ELEMENT_OPERATOR,
    ARRAY_REPLACE_ELEMENT_OPERATOR,
    CURDATECMD,
    JSON_SCHEMA_ARRAY_TYPE,
    UNSETCMD,
)
from crudbase.core.exceptions import (
    PolicyError,
    UnknownFieldError,
    UnknownOperatorError,
    UnsupportedOperatorError,
)
from crudbase.domain.entities.collection_definition import CollectionDefinition, SemanticType
from crudbase.domain.services.casters import cast_function_for, identity
from crudbase.domain.services.field_resolver import (
    resolve_field_types,
    resolve_normal_index_fields,
    resolve_nullable,
    resolve_raw_object_prefixes,
    resolve_text_indexed_fields,
)
from crudbase.domain.services.path_walker import PathMaps
from crudbase.domain.services.query_operators import get_filter_operator, is_operator_supported
from crudbase.domain.services.text_search import (
    TEXT_OPERATOR,
    is_text_search_query,
    validate_single_text_expression,
    validate_text_search_query,
)

LOGICAL_OPERATORS = ("$and", "$or")
# Command blocks carrying flags instead of typed values.
UNCAST_COMMANDS = (UNSETCMD, CURDATECMD)
ARRAY_ELEMENT_MARKER = ".$"


class QueryCommandTranslator:
    """Per-collection translator of wire-level requests.

    Built once per collection at load time. Holds only read-only lookup maps,
    so a single instance is shared by all requests.

    Attributes:
        definition: Canonical collection definition.
        field_types: Top-level field name -> semantic type.
        nullable_fields: Names of nullable fields.
        raw_object_prefixes: Regexes of dotted accesses below RawObjects.
        raw_path_maps: Path maps of the nested raw schemas.
        normal_indexes: Fields covered by a normal index.
        text_indexes: Fields covered by the text index.
    """

    def __init__(self, definition: CollectionDefinition, raw_path_maps: PathMaps | None = None):
        self.definition = definition
        self.field_types = resolve_field_types(definition)
        self.nullable_fields = resolve_nullable(definition)
        self.raw_object_prefixes: list[re.Pattern[str]] = resolve_raw_object_prefixes(definition)
        self.raw_path_maps = raw_path_maps or PathMaps()
        self.normal_indexes = resolve_normal_index_fields(definition)
        self.text_indexes = resolve_text_indexed_fields(definition)

    def parse_and_cast(self, query: dict[str, Any]) -> None:
        """Cast a read/delete filter in place.

        Raises:
            UnknownOperatorError: For an unrecognized top-level ``$`` key.
            UnknownFieldError: For an undeclared field.
            UnsupportedOperatorError: For an operator unknown or illegal on the field type.
            CastError: For a value that cannot be cast.
        """
        for key in list(query):
            field_type = self.field_types.get(key.split(".")[0])
            # Below RawObjects and Arrays nothing is type checked.
            if field_type in (SemanticType.RAW_OBJECT, SemanticType.ARRAY):
                continue

            if key in LOGICAL_OPERATORS:
                for clause in query[key]:
                    self.parse_and_cast(clause)
                continue
            if key == TEXT_OPERATOR:
                continue

            if key.startswith("$"):
                raise UnknownOperatorError(key)
            if key not in self.field_types:
                raise UnknownFieldError(key)

            field_type = self.field_types[key]
            cast = cast_function_for(field_type) or identity
            value = query[key]
            if not isinstance(value, dict):
                query[key] = cast(value)
                continue

            for operator_name in list(value):
                operator = get_filter_operator(operator_name)
                if operator is None:
                    raise UnsupportedOperatorError(operator_name)
                if not is_operator_supported(operator_name, field_type):
                    raise UnsupportedOperatorError(operator_name, field_type.value)
                value[operator_name] = operator.apply(value[operator_name], cast)

    def parse_and_cast_body(self, doc: dict[str, Any]) -> None:
        """Cast an insert or replace document in place.

        Raises:
            UnknownFieldError: For an undeclared field.
            CastError: For a value that cannot be cast.
        """
        for key in list(doc):
            if key not in self.field_types:
                raise UnknownFieldError(key)

            cast = cast_function_for(self.field_types[key])
            if cast is None:
                continue
            value = doc[key]
            if value is None and self.nullable_fields.get(key):
                continue
            doc[key] = cast(value)

    def parse_and_cast_commands(
        self,
        commands: dict[str, dict[str, Any]],
        editable_fields: Collection[str] | None = None,
    ) -> None:
        """Cast an update command object in place.

        ``<array>.$.replace`` keys are rewritten to ``<array>.$`` and
        ``<array>.$.merge`` keys are expanded into one ``<array>.$.<key>``
        entry per merged key. Paths described by the nested raw schemas, and
        accesses below RawObjects, pass through uncast. Array and raw paths
        are write-protected through their top-level field.

        Args:
            commands: Update operator blocks, e.g. ``{"$set": {...}}``.
            editable_fields: Fields the caller is allowed to modify.

        Raises:
            UnknownFieldError: For a field unknown to the definition and to
                the raw schemas (``Unknown fields``).
            PolicyError: For a field outside ``editable_fields``, or an
                invalid array element operand.
            CastError: For a value that cannot be cast.
        """
        editable_fields = editable_fields or ()
        for command, changes in commands.items():
            if command in UNCAST_COMMANDS:
                continue

            for field_name in list(changes):
                root_field = field_name.split(".")[0]
                array_name, _, element_operation = field_name.partition(ARRAY_ELEMENT_MARKER)
                if self._is_array(array_name):
                    self._check_editable(root_field, editable_fields)
                    self._transform_array_command(changes, field_name, array_name, element_operation)
                    continue

                if self.raw_path_maps.lookup(field_name) is not None or any(
                    prefix.search(field_name) for prefix in self.raw_object_prefixes
                ):
                    self._check_editable(root_field, editable_fields)
                    continue
                if field_name not in self.field_types:
                    raise UnknownFieldError()
                self._check_editable(field_name, editable_fields)

                cast = cast_function_for(self.field_types[field_name])
                if cast is None:
                    continue
                value = changes[field_name]
                if value is None and self.nullable_fields.get(field_name):
                    continue
                changes[field_name] = cast(value)

    def parse_and_cast_text_search_query(self, query: dict[str, Any]) -> None:
        """Cast a filter holding a ``$text`` expression and check its composition.

        The filter must satisfy the regular filter rules as well as the text
        search rules.
        """
        self.parse_and_cast(query)
        validate_single_text_expression(query)
        validate_text_search_query(query, self.normal_indexes)

    def is_text_search_query(self, query: dict[str, Any]) -> bool:
        return is_text_search_query(query)

    def _is_array(self, field_name: str) -> bool:
        if self.field_types.get(field_name) == SemanticType.ARRAY:
            return True
        raw_schema = self.raw_path_maps.lookup(field_name)
        return isinstance(raw_schema, dict) and raw_schema.get("type") == JSON_SCHEMA_ARRAY_TYPE

    @staticmethod
    def _check_editable(field_name: str, editable_fields: Collection[str]) -> None:
        if field_name not in editable_fields:
            raise PolicyError(f'You cannot edit "{field_name}" field')

    @staticmethod
    def _transform_array_command(
        changes: dict[str, Any],
        field_name: str,
        array_name: str,
        element_operation: str,
    ) -> None:
        value = changes[field_name]
        # Empty containers are valid operands, blank scalars are not.
        if value is None or value in ("", 0):
            raise PolicyError("Invalid value for array operation")

        if element_operation == f".{ARRAY_MERGE_ELEMENT_OPERATOR}":
            if not isinstance(value, dict):
                raise PolicyError("Invalid value for array operation")
            del changes[field_name]
            for key, element_value in value.items():
                changes[f"{array_name}.$.{key}"] = element_value
        elif element_operation == f".{ARRAY_REPLACE_ELEMENT_OPERATOR}":
            del changes[field_name]
            changes[f"{array_name}.$"] = value
