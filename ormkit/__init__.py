"""ormkit - fetch, lock and changeset validation helpers for SQLAlchemy."""

from ormkit.core.exceptions import (
    CastError,
    InvalidLockModeError,
    InvalidSchemaError,
    OrmkitError,
    RecordNotFoundError,
    TooManyResultsError,
)
from ormkit.db.advisory_lock import advisory_lock_key, advisory_xact_lock
from ormkit.db.repo import FetchResult, LockMode, NotFound, Ok, Repo
from ormkit.db.types import FixedWidthInteger

__version__ = "0.1.0"

__all__ = [
    "CastError",
    "FetchResult",
    "FixedWidthInteger",
    "InvalidLockModeError",
    "InvalidSchemaError",
    "LockMode",
    "NotFound",
    "Ok",
    "OrmkitError",
    "RecordNotFoundError",
    "Repo",
    "TooManyResultsError",
    "advisory_lock_key",
    "advisory_xact_lock",
]
