"""PostgreSQL advisory lock helpers.

Advisory locks are useful when there is no specific row to lock but locking a
whole table is too much. ``pg_advisory_xact_lock`` takes a 64-bit signed
integer key, so readable names are hashed into that domain: the key is the
first 8 bytes of the SHA-1 digest of the UTF-8 encoded name, read as a signed
big-endian integer.

A prefix of a cryptographic hash keeps keys uniformly spread, so collisions
with other names (or with keys of other libraries using advisory locks) are
negligible. The key does not depend on the process, so independent workers
agree on it.

Usage pattern
-------------
    with session.begin():
        advisory_xact_lock(session, "nightly-report")
        # lock is held until the transaction commits or rolls back
"""

import enum
import hashlib
import logging
from typing import Union

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

LockName = Union[str, bytes, enum.Enum]

ADVISORY_XACT_LOCK_SQL = text("SELECT pg_advisory_xact_lock(:key)")


def _name_bytes(name: LockName) -> bytes:
    if isinstance(name, enum.Enum):
        name = name.value if isinstance(name.value, (str, bytes)) else name.name
    if isinstance(name, bytes):
        return name
    if isinstance(name, str):
        return name.encode("utf-8")
    raise TypeError(f"advisory lock name must be str, bytes or Enum, got {type(name).__name__}")


def advisory_lock_key(name: LockName) -> int:
    """Return the signed 64-bit advisory lock key for ``name``."""
    digest = hashlib.sha1(_name_bytes(name)).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


def advisory_xact_lock(session: Session, name: LockName) -> None:
    """Acquire a transaction-scoped advisory lock for a named resource.

    Blocks until the lock is granted. There is no timeout besides the
    statement or transaction timeout configured on the connection.
    """
    key = advisory_lock_key(name)
    logger.debug(f"Acquiring advisory lock {name!r} (key={key})")
    session.execute(ADVISORY_XACT_LOCK_SQL, {"key": key})
