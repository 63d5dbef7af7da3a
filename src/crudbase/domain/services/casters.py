"""Cast functions turning wire values into their storage representation.

Only Date, ObjectId, GeoPoint and Array fields have a cast function. Values
of every other type are stored as received.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from crudbase.core.exceptions import CastError
from crudbase.domain.entities.collection_definition import SemanticType

CastFunction = Callable[[Any], Any]

GEO_POINT_TYPE = "Point"


def cast_date(value: Any) -> datetime | None:
    """Cast an ISO-8601 string or epoch milliseconds to an aware UTC datetime.

    Raises:
        CastError: If the value is neither, or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value

    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        if isinstance(value, str):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    except (ValueError, OverflowError, OSError):
        pass
    raise CastError("Invalid Date")


def cast_object_id(value: Any) -> ObjectId | None:
    """Cast a 24-hex or 12-byte identifier to an ObjectId.

    Numbers are rejected even though the driver reads them as timestamps.

    Raises:
        CastError: If the value is not a valid identifier.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        raise CastError("Invalid objectId")

    if isinstance(value, str) and len(value) == 12:
        value = value.encode("utf-8")
    if ObjectId.is_valid(value):
        try:
            return ObjectId(value)
        except (InvalidId, TypeError):
            pass
    raise CastError("Invalid objectId")


def cast_geo_point(value: Any) -> dict[str, Any]:
    """Wrap ``[lng, lat, alt?]`` into a GeoJSON point."""
    return {"type": GEO_POINT_TYPE, "coordinates": value}


def identity(value: Any) -> Any:
    return value


def cast_function_for(field_type: SemanticType) -> CastFunction | None:
    """Cast function registered for a semantic type, or None when values pass as-is."""
    if field_type == SemanticType.DATE:
        return cast_date
    elif field_type == SemanticType.OBJECT_ID:
        return cast_object_id
    elif field_type == SemanticType.GEO_POINT:
        return cast_geo_point
    elif field_type == SemanticType.ARRAY:
        return identity
    elif field_type in (
        SemanticType.STRING,
        SemanticType.NUMBER,
        SemanticType.BOOLEAN,
        SemanticType.RAW_OBJECT,
    ):
        return None
    raise ValueError(f"Unhandled semantic type: {field_type}")
