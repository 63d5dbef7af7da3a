"""Exceptions raised while loading definitions and translating queries.

Messages are part of the public contract: callers and the HTTP layer
match on them, so they must stay stable.
"""


class CrudBaseError(Exception):
    """Base class for all CrudBase errors."""
    pass


class DefinitionError(CrudBaseError):
    """Raised at boot when a collection definition cannot be used."""
    pass


class UnsupportedSchemaOperationError(DefinitionError):
    """Raised when a field schema uses a JSON-Schema combinator."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unsupported operation in jsonSchema: {operation}")


class DefinitionValidationError(DefinitionError):
    """Raised when a definition does not match the definition meta-schema."""

    def __init__(self, errors: list[str], collection_name: str | None = None):
        self.errors = errors
        self.collection_name = collection_name
        super().__init__(f"invalid collection definition: {errors}")


class CollectionNotFoundError(DefinitionError):
    """Raised when a collection name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Collection not found: {name}")


class QueryError(CrudBaseError):
    """Base class for request-time translation errors."""
    pass


class UnknownFieldError(QueryError):
    """Raised when a query, body or command targets an undeclared field."""

    def __init__(self, field: str | None = None):
        self.field = field
        super().__init__(f"Unknown field: {field}" if field is not None else "Unknown fields")


class UnknownOperatorError(QueryError):
    """Raised for an unrecognized top-level `$` key in a filter."""

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Unknown operator: {operator}")


class UnsupportedOperatorError(QueryError):
    """Raised for an operator that is unknown or illegal for the field type."""

    def __init__(self, operator: str, field_type: str | None = None):
        self.operator = operator
        self.field_type = field_type
        if field_type is None:
            super().__init__(f"Unsupported operator: {operator}")
        else:
            super().__init__(f"Unsupported operator: {operator} for {field_type} field")


class CastError(QueryError):
    """Raised when a value cannot be cast to its field type."""
    pass


class PolicyError(QueryError):
    """Raised when a request violates a write or composition rule."""
    pass


class TextSearchError(PolicyError):
    """Raised when a `$text` query is composed in an unsupported way."""
    pass


class MalformedQueryError(QueryError):
    """Raised when a wire-level query parameter is not a JSON object."""

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        super().__init__(f"Invalid {parameter} parameter: {reason}")


class ProjectionError(QueryError):
    """Raised when a projection request cannot be honoured."""
    pass
