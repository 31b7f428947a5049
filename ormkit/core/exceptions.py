"""Exceptions raised by ormkit.

Expected outcomes (a missing row, a failed validation) are returned as data:
``NotFound`` results and changeset errors. Only programmer errors and
malformed input that the caller explicitly asked to see are raised.
"""

from typing import Any, Sequence


class OrmkitError(Exception):
    """Base exception for all ormkit errors."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class InvalidSchemaError(OrmkitError):
    """Raised when a model does not declare exactly one primary key."""

    def __init__(self, model: Any, primary_keys: Sequence[str]):
        name = getattr(model, "__name__", repr(model))
        super().__init__(
            f"{name} must declare exactly one primary key to be fetched by id, "
            f"found {list(primary_keys)}",
            model=model,
            primary_keys=list(primary_keys),
        )
        self.model = model
        self.primary_keys = list(primary_keys)


class InvalidLockModeError(OrmkitError):
    """Raised when an unknown row lock mode is requested."""

    def __init__(self, lock: Any):
        super().__init__(f"unknown lock mode {lock!r}", lock=lock)
        self.lock = lock


class CastError(OrmkitError):
    """Raised when a predicate value cannot be cast to its column type."""

    def __init__(self, field: str, value: Any, type_name: str):
        super().__init__(
            f"value {value!r} for {field} cannot be cast to {type_name}",
            field=field,
            value=value,
            type_name=type_name,
        )
        self.field = field
        self.value = value
        self.type_name = type_name


class TooManyResultsError(OrmkitError):
    """Raised when fetch clauses match more than one row."""

    def __init__(self, queryable: Any, clauses: dict):
        super().__init__(
            f"expected at most one row for {clauses!r}, got several",
            queryable=queryable,
            clauses=clauses,
        )
        self.queryable = queryable
        self.clauses = clauses


class RecordNotFoundError(OrmkitError):
    """Raised by ``NotFound.unwrap()``."""

    def __init__(self, tag: Any):
        super().__init__(f"record not found: {tag!r}", tag=tag)
        self.tag = tag
