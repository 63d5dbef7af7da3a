"""Resolve the storage projection of a read request.

A request selects returned fields either with ``_p``, a comma separated
field list, or with ``_rawp``, a JSON projection object that may hold
aggregation expressions. Both are further restricted by the ACL columns the
caller is allowed to read.
"""

import json
import re
from collections.abc import Sequence
from typing import Any

import structlog

from crudbase.core.constants import (
    MONGOID,
    PROJECTION,
    RAW_PROJECTION,
    RAW_PROJECTION_ALLOWED_OPERATORS,
    RAW_PROJECTION_FORBIDDEN_VARIABLES,
)
from crudbase.core.exceptions import ProjectionError
from crudbase.core.logging import get_logger

logger = get_logger(__name__)

# Operators ($op), system variables ($$VAR) and field references ($field).
OPERATOR_OR_VARIABLE_REGEX = re.compile(r"\${1,2}[a-zA-Z_0-9-]+")

Projection = dict[str, Any]


def split_fields(value: str | None) -> list[str]:
    """Split a comma separated list, dropping blank entries."""
    if not value:
        return []
    return [item for item in value.split(",") if item.strip()]


def remove_acl_columns(fields: Sequence[str], acl_columns: Sequence[str]) -> list[str]:
    """Keep only the readable fields. No ACL columns means everything is readable."""
    if not acl_columns:
        return list(fields)
    return [name for name in fields if name in acl_columns]


def check_allowed_operators(
    raw_projection: str,
    field_names: Sequence[str],
    log: structlog.stdlib.BoundLogger | None = None,
) -> None:
    """Check every ``$`` token of a raw projection string.

    ``$$`` system variables are accepted unless explicitly forbidden. Any other
    token must be an allowed operator or a reference to one of ``field_names``.

    Raises:
        ProjectionError: On the first token that is not allowed.
    """
    log = log or logger
    allowed = set(RAW_PROJECTION_ALLOWED_OPERATORS)
    allowed.update(f"${name}" for name in field_names)

    for match in OPERATOR_OR_VARIABLE_REGEX.findall(raw_projection):
        if match.startswith("$$"):
            if match in RAW_PROJECTION_FORBIDDEN_VARIABLES:
                raise ProjectionError(f"Operator {match} is not allowed in raw projection")
            log.debug("System variable in raw projection", variable=match)
            continue
        if match not in allowed:
            raise ProjectionError(f"Operator {match} is not allowed in raw projection")


def _is_exclusion(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def _remove_acl_columns_from_raw(raw: Projection, acl_columns: Sequence[str]) -> Projection:
    if any(name in acl_columns and _is_exclusion(value) for name, value in raw.items()):
        raise ProjectionError("_rawp exclusive projection is overriding at least one acl_read_column value")

    return {
        name: raw[name]
        for name in remove_acl_columns(list(raw), acl_columns)
        if raw[name] is not None
    }


def _parse_raw_projection(
    raw_projection: str,
    acl_columns: Sequence[str],
    field_names: Sequence[str],
    log: structlog.stdlib.BoundLogger,
) -> list[Projection]:
    try:
        check_allowed_operators(raw_projection, acl_columns or field_names, log)
        try:
            parsed = json.loads(raw_projection)
        except json.JSONDecodeError as exc:
            raise ProjectionError(f"Invalid {RAW_PROJECTION} parameter: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise ProjectionError(f"Invalid {RAW_PROJECTION} parameter: expected a JSON object")
        projection = _remove_acl_columns_from_raw(parsed, acl_columns)
    except ProjectionError as exc:
        log.error(str(exc))
        raise
    return [projection] if projection else []


def _build_projection(entries: Sequence[str | Projection]) -> Projection:
    # Without any readable field only the identifier is returned.
    if not entries:
        return {MONGOID: 1}

    projection: Projection = {}
    for entry in entries:
        if isinstance(entry, str):
            projection[entry] = 1
        else:
            projection.update(entry)
    return projection


def resolve_projection(
    client_projection: str | None,
    acl_columns: str | None,
    field_names: Sequence[str],
    raw_projection: str | None = None,
    log: structlog.stdlib.BoundLogger | None = None,
) -> Projection:
    """Build the storage projection for a read request.

    Args:
        client_projection: Value of ``_p``, comma separated field names.
        acl_columns: Comma separated fields the caller may read, if restricted.
        field_names: Every field name of the collection.
        raw_projection: Value of ``_rawp``, a JSON projection object.
        log: Logger bound to the request, defaults to the module logger.

    Returns:
        dict: Field name -> ``1`` or a raw projection expression. Falls back to
        ``{"_id": 1}`` when nothing is readable.

    Raises:
        ProjectionError: If both ``_p`` and ``_rawp`` are given, or the raw
            projection is malformed, uses a forbidden operator or excludes an
            ACL column.
    """
    log = log or logger
    acls = split_fields(acl_columns)

    if client_projection and raw_projection:
        log.error(
            "Use of both _p and _rawp is not permitted",
            **{PROJECTION: client_projection, RAW_PROJECTION: raw_projection},
        )
        raise ProjectionError(f"Use of both {RAW_PROJECTION} and {PROJECTION} parameter is not allowed")

    entries: list[str | Projection]
    if raw_projection:
        entries = list(_parse_raw_projection(raw_projection, acls, field_names, log))
    elif client_projection:
        entries = list(remove_acl_columns(split_fields(client_projection), acls))
    else:
        entries = list(remove_acl_columns(field_names, acls))

    return _build_projection(entries)
