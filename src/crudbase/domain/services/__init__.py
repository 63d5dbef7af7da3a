"""Domain services for CrudBase.

Services derive lookup maps, translators and schemas from a collection
definition. They have no dependencies on infrastructure or external frameworks.
"""

from crudbase.domain.services.definition_adapters import from_raw_definition
from crudbase.domain.services.definition_validator import DefinitionValidator
from crudbase.domain.services.model_loader import (
    CollectionModel,
    ModelLoader,
    ModelRegistry,
)
from crudbase.domain.services.path_walker import PathMaps, generate_raw_schema_path_maps
from crudbase.domain.services.query_translator import QueryCommandTranslator
from crudbase.domain.services.result_caster import ResultCaster
from crudbase.domain.services.schema_generator import OperationId, SchemaGenerator

__all__ = [
    "CollectionModel",
    "DefinitionValidator",
    "ModelLoader",
    "ModelRegistry",
    "OperationId",
    "PathMaps",
    "QueryCommandTranslator",
    "ResultCaster",
    "SchemaGenerator",
    "from_raw_definition",
    "generate_raw_schema_path_maps",
]
