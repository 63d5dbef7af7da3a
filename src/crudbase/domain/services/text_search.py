"""Composition rules for ``$text`` full-text search filters."""

from collections.abc import Collection
from typing import Any

from crudbase.core.constants import TEXT_SEARCH_OPTIONS
from crudbase.core.exceptions import QueryError, TextSearchError

TEXT_OPERATOR = "$text"


def find_text_expressions(value: Any) -> list[Any]:
    """Collect every ``$text`` operand found anywhere below ``value``."""
    found: list[Any] = []
    if isinstance(value, dict):
        for key, child in value.items():
            if key == TEXT_OPERATOR:
                found.append(child)
            else:
                found.extend(find_text_expressions(child))
    elif isinstance(value, list):
        for child in value:
            found.extend(find_text_expressions(child))
    return found


def is_text_search_query(query: Any) -> bool:
    """Whether a filter contains a ``$text`` expression at any depth.

    Raises:
        QueryError: If the query is missing.
    """
    if query is None:
        raise QueryError("Cannot convert undefined or null to object")
    return len(find_text_expressions(query)) > 0


def _check_text_expression(expression: Any) -> None:
    if not isinstance(expression, dict) or "$search" not in expression:
        raise TextSearchError("$text search query must include $search field")
    for option in expression:
        if option not in TEXT_SEARCH_OPTIONS:
            raise TextSearchError(f"Unknown option for $text search query: {option}")


def _check_or_clauses(clauses: list[Any], normal_indexes: Collection[str]) -> None:
    if any(is_text_search_query(clause) for clause in clauses):
        for clause in clauses:
            for key in clause:
                if not key.startswith("$") and key not in normal_indexes:
                    raise TextSearchError(
                        "To use a $text query in an $or expression, "
                        "all clauses in the $or array must be indexed"
                    )
    for clause in clauses:
        validate_text_search_query(clause, normal_indexes)


def validate_text_search_query(query: dict[str, Any], normal_indexes: Collection[str]) -> None:
    """Reject ``$text`` filters the store cannot execute.

    Args:
        query: Filter to inspect. Never modified.
        normal_indexes: Fields covered by a normal index.

    Raises:
        TextSearchError: If ``$text`` appears more than once, lacks ``$search``,
            carries an unknown option, sits in ``$nor`` or ``$elemMatch``, or
            shares an ``$or`` with an unindexed clause.
    """
    for key, value in query.items():
        if key == TEXT_OPERATOR:
            _check_text_expression(value)
        elif key == "$nor":
            if any(is_text_search_query(clause) for clause in value):
                raise TextSearchError("$text can not appear in a $nor expression")
        elif key == "$elemMatch":
            if find_text_expressions(value):
                raise TextSearchError("$text query can not appear in a $elemMatch query expression")
        elif key == "$or":
            _check_or_clauses(value, normal_indexes)
        elif key.startswith("$"):
            if isinstance(value, list):
                for clause in value:
                    validate_text_search_query(clause, normal_indexes)
            elif isinstance(value, dict):
                validate_text_search_query(value, normal_indexes)
        elif isinstance(value, dict) and "$elemMatch" in value:
            validate_text_search_query(value, normal_indexes)


def validate_single_text_expression(query: dict[str, Any]) -> None:
    if len(find_text_expressions(query)) > 1:
        raise TextSearchError("Query has more than one $text expression")
