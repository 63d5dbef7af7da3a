"""Filter operators and the operator x type legality matrix.

Every filter operator maps to an applier, which receives the operand and the
cast function of the field type, and to the set of semantic types it may be
used on.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from crudbase.domain.entities.collection_definition import SemanticType
from crudbase.domain.services.casters import CastFunction

OperatorApplier = Callable[[Any, CastFunction], Any]


def cast_operand(value: Any, cast: CastFunction) -> Any:
    return cast(value)


def cast_each(values: Any, cast: CastFunction) -> list[Any]:
    return [cast(value) for value in values]


def pass_through(value: Any, cast: CastFunction) -> Any:
    return value


def cast_near_sphere(value: dict[str, Any], cast: CastFunction) -> dict[str, Any]:
    """Build a ``$nearSphere`` operand from ``{from, minDistance?, maxDistance?}``."""
    near_sphere = {"$geometry": cast(value.get("from"))}
    if value.get("minDistance"):
        near_sphere["$minDistance"] = value["minDistance"]
    if value.get("maxDistance"):
        near_sphere["$maxDistance"] = value["maxDistance"]
    return near_sphere


@dataclass(frozen=True)
class FilterOperator:
    """A filter operator and the field types it is legal on."""

    name: str
    apply: OperatorApplier
    supported_types: frozenset[SemanticType]


_ALL_TYPES = frozenset(SemanticType)
_ELEMENT_TYPES = frozenset({
    SemanticType.STRING,
    SemanticType.NUMBER,
    SemanticType.BOOLEAN,
    SemanticType.DATE,
    SemanticType.OBJECT_ID,
    SemanticType.GEO_POINT,
})

FILTER_OPERATORS: dict[str, FilterOperator] = {
    operator.name: operator
    for operator in (
        FilterOperator("$gt", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$lt", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$gte", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$lte", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$eq", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$ne", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$in", cast_each, _ELEMENT_TYPES),
        FilterOperator("$nin", cast_each, _ELEMENT_TYPES),
        FilterOperator("$all", cast_each, _ELEMENT_TYPES),
        FilterOperator("$exists", pass_through, _ALL_TYPES),
        FilterOperator("$nearSphere", cast_near_sphere, frozenset({SemanticType.GEO_POINT})),
        FilterOperator("$regex", cast_operand, _ELEMENT_TYPES),
        # companion of $regex
        FilterOperator("$options", cast_operand, _ELEMENT_TYPES),
        FilterOperator("$elemMatch", pass_through, frozenset({SemanticType.ARRAY})),
    )
}


def get_filter_operator(name: str) -> FilterOperator | None:
    return FILTER_OPERATORS.get(name)


def is_operator_supported(name: str, field_type: SemanticType) -> bool:
    """Whether a filter operator may be applied to a field of the given type.

    Unknown operators are never supported.
    """
    operator = FILTER_OPERATORS.get(name)
    return operator is not None and field_type in operator.supported_types
