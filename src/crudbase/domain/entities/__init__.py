"""Domain entities for CrudBase."""

from crudbase.domain.entities.collection_definition import (
    CollectionDefinition,
    FieldSpec,
    IndexSpec,
    IndexType,
    LifecycleState,
    SemanticType,
)

__all__ = [
    "CollectionDefinition",
    "FieldSpec",
    "IndexSpec",
    "IndexType",
    "LifecycleState",
    "SemanticType",
]
