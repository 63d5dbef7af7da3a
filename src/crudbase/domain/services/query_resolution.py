"""Compose the storage filter of a read, count, delete or bulk request."""

import json
from collections.abc import Mapping
from typing import Any

from crudbase.core.constants import QUERY
from crudbase.core.exceptions import MalformedQueryError
from crudbase.core.logging import get_logger
from crudbase.domain.services.query_translator import QueryCommandTranslator

logger = get_logger(__name__)

ACL_ROWS = "acl_rows"


def _load_json(parameter: str, value: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise MalformedQueryError(parameter, exc.msg) from exc


def resolve_query(
    translator: QueryCommandTranslator,
    client_query: str | None = None,
    field_filters: Mapping[str, Any] | None = None,
    acl_rows: str | None = None,
    text_query: bool | None = None,
) -> dict[str, Any]:
    """Build a typed filter from the wire-level query parameters.

    The ``_q`` object, one clause per querystring field filter, and the ACL
    row filter are combined under a single ``$and`` and cast by the
    collection translator.

    Args:
        translator: Translator of the target collection.
        client_query: Value of ``_q``, a JSON filter object.
        field_filters: Querystring field filters, e.g. ``{"price": 3}``.
        acl_rows: JSON filter object, or array of objects, restricting the
            documents the caller may see.
        text_query: Whether the filter holds ``$text``. Detected from the
            composed filter when omitted.

    Returns:
        dict: ``{"$and": [...]}``, or ``{}`` when there is nothing to filter on.

    Raises:
        MalformedQueryError: If ``_q`` or the ACL rows are not valid JSON.
        QueryError: If the composed filter is rejected by the translator.
    """
    clauses: list[Any] = []

    if client_query:
        parsed = _load_json(QUERY, client_query)
        if not isinstance(parsed, dict):
            raise MalformedQueryError(QUERY, "expected a JSON object")
        clauses.append(parsed)

    for name, value in (field_filters or {}).items():
        clauses.append({name: value})

    if acl_rows:
        rows = _load_json(ACL_ROWS, acl_rows)
        clauses.append({"$and": rows} if isinstance(rows, list) else rows)

    if not clauses:
        return {}

    query = {"$and": clauses}
    if text_query is None:
        text_query = translator.is_text_search_query(query)

    logger.debug("Resolving query", clauses=len(clauses), text_query=text_query)
    if text_query:
        translator.parse_and_cast_text_search_query(query)
    else:
        translator.parse_and_cast(query)
    return query
