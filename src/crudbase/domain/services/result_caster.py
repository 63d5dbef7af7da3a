"""Normalize stored documents before serialization."""

import re
from collections.abc import Iterable, Iterator
from typing import Any

from crudbase.core.logging import get_logger
from crudbase.domain.entities.collection_definition import CollectionDefinition, SemanticType

logger = get_logger(__name__)

# Leading decimal literal of a string, as read by a lenient float parser.
NUMERIC_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class ResultCaster:
    """Undo storage-side representations of a collection's documents.

    GeoPoints are stored as GeoJSON and returned as bare coordinates. Number
    fields written as strings by older clients are returned as the float of
    their leading decimal literal, so ``"12abc"`` reads as ``12.0``. Stored
    numbers are left untouched. Strings without a leading number are kept
    as stored and logged.
    """

    def __init__(self, definition: CollectionDefinition):
        self.collection_name = definition.name
        self.geo_point_fields = [spec.name for spec in definition.fields if spec.type == SemanticType.GEO_POINT]
        self.number_fields = [spec.name for spec in definition.fields if spec.type == SemanticType.NUMBER]

    def cast_item(self, item: dict[str, Any]) -> dict[str, Any]:
        """Cast one document in place and return it."""
        for name in self.geo_point_fields:
            if item.get(name):
                item[name] = item[name]["coordinates"]

        for name in self.number_fields:
            value = item.get(name)
            # bool is an int subclass, so flags are skipped too.
            if not value or isinstance(value, (int, float)):
                continue
            match = NUMERIC_PREFIX.match(value) if isinstance(value, str) else None
            if match:
                item[name] = float(match.group())
            else:
                logger.warning(
                    "Stored value is not a number",
                    collection_name=self.collection_name,
                    field=name,
                )
        return item

    def cast_items(self, items: Iterable[dict[str, Any]]) -> Iterator[dict[str, Any]]:
        for item in items:
            yield self.cast_item(item)
