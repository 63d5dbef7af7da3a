"""Canonical collection definition.

Collection definitions arrive in two shapes (a legacy list of fields or a
JSON-Schema document). Both are normalized by the adapters in
``crudbase.domain.services.definition_adapters`` into the immutable tree
defined here, which is the only shape the rest of the core reads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crudbase.core.constants import MONGOID


class SemanticType(str, Enum):
    """Closed set of field classifications used for casting and schema output."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "Date"
    OBJECT_ID = "ObjectId"
    GEO_POINT = "GeoPoint"
    RAW_OBJECT = "RawObject"
    ARRAY = "Array"


class LifecycleState(str, Enum):
    """Document lifecycle marker stored in the ``__STATE__`` field."""

    PUBLIC = "PUBLIC"
    DRAFT = "DRAFT"
    TRASH = "TRASH"
    DELETED = "DELETED"


class IndexType(str, Enum):
    """Supported index kinds."""

    NORMAL = "normal"
    HASH = "hash"
    GEO = "geo"
    TEXT = "text"


@dataclass(frozen=True)
class FieldSpec:
    """One node of the canonical field tree.

    Attributes:
        name: Field name. Empty for array item nodes.
        type: Semantic type of the field.
        required: Whether the field must be present on insert.
        nullable: Whether ``null`` is an accepted value.
        description: Optional human readable description.
        schema: Nested JSON-Schema body of a RawObject (``properties``,
            ``required``, ``additionalProperties``), or None when schemaless.
        items: Item node of an Array field.
        encryption: Encryption metadata, carried through untouched.
    """

    name: str
    type: SemanticType
    required: bool = False
    nullable: bool = False
    description: str | None = None
    schema: dict[str, Any] | None = None
    items: "FieldSpec | None" = None
    encryption: dict[str, Any] | None = None

    @property
    def properties(self) -> dict[str, Any] | None:
        """Declared nested properties of a RawObject, if any."""
        if self.schema is None:
            return None
        return self.schema.get("properties")

    @property
    def has_raw_schema(self) -> bool:
        """True for a RawObject with properties, or an Array of such objects."""
        if self.type == SemanticType.RAW_OBJECT:
            return self.properties is not None
        if self.type == SemanticType.ARRAY and self.items is not None:
            return self.items.type == SemanticType.RAW_OBJECT and self.items.properties is not None
        return False


@dataclass(frozen=True)
class IndexSpec:
    """Index descriptor. Only the field names matter to the core."""

    name: str
    type: IndexType
    unique: bool = False
    fields: tuple[str, ...] = ()
    field: str | None = None


@dataclass(frozen=True)
class CollectionDefinition:
    """Normalized collection definition.

    Attributes:
        name: Storage collection identifier.
        endpoint_base_path: Base path of the generated HTTP endpoints.
        default_state: State assigned to new documents.
        fields: Ordered top-level fields, reserved fields included.
        indexes: Declared indexes.
        description: Optional description.
        type: ``collection`` or ``view``.
        source: Source collection of a view.
        pipeline: Aggregation pipeline of a view, passed through.
    """

    name: str
    endpoint_base_path: str
    fields: tuple[FieldSpec, ...]
    default_state: LifecycleState = LifecycleState.DRAFT
    indexes: tuple[IndexSpec, ...] = ()
    description: str | None = None
    type: str = "collection"
    source: str | None = None
    pipeline: tuple[dict[str, Any], ...] | None = None
    _by_name: dict[str, FieldSpec] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Collection name is required")
        self._by_name.update({spec.name: spec for spec in self.fields})

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    @property
    def id_type(self) -> SemanticType:
        """Semantic type of the ``_id`` field, defaulting to ObjectId."""
        id_field = self._by_name.get(MONGOID)
        if id_field is None:
            return SemanticType.OBJECT_ID
        return id_field.type

    @property
    def is_view(self) -> bool:
        return self.type == "view"

    def get_field(self, name: str) -> FieldSpec | None:
        return self._by_name.get(name)
