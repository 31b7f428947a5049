"""Repository helpers: fetch-or-tagged-not-found, row locks and counting.

``Repo`` wraps a SQLAlchemy ``Session``. Lookups never raise when nothing
matches; they return a ``NotFound`` result tagged with the *original*
queryable (or a caller supplied tag), so callers handle absence explicitly:

    repo = Repo(db)
    result = repo.fetch(Account, account_id, lock="update")
    if not result.ok:
        ...  # result.tag is Account

Options accepted by ``fetch`` and ``fetch_by``:

- ``lock``: ``"update"`` (FOR UPDATE), ``"no_key_update"`` (FOR NO KEY
  UPDATE) or ``None``. Anything else raises ``InvalidLockModeError``.
- ``preload``: relationship name, dotted path or a list of those; loaded
  with ``selectinload``.
- ``error_tag``: value used as the tag of ``NotFound`` instead of the
  queryable.
- ``raise_on_cast_error``: raise ``CastError`` for malformed predicate values
  instead of reporting the row as not found.
- ``prefix``: schema to run the query against (``schema_translate_map``).
- any other keyword is passed through as an execution option.
"""

import datetime
import decimal
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.exc import DBAPIError, MultipleResultsFound, StatementError
from sqlalchemy.orm import Mapper, QueryableAttribute, Session, selectinload

from ormkit.core.exceptions import (
    CastError,
    InvalidLockModeError,
    InvalidSchemaError,
    RecordNotFoundError,
    TooManyResultsError,
)
from ormkit.db.advisory_lock import LockName, advisory_xact_lock

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """A fetched record."""

    value: T
    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class NotFound:
    """No record matched; ``tag`` names what was looked up."""

    tag: Any
    ok: ClassVar[bool] = False

    def unwrap(self):
        raise RecordNotFoundError(self.tag)


FetchResult = Union[Ok[T], NotFound]


# =============================================================================
# Lock modes
# =============================================================================

class LockMode(str, enum.Enum):
    """Row lock clauses that can be appended to a fetch."""

    UPDATE = "update"
    NO_KEY_UPDATE = "no_key_update"


def resolve_lock_mode(lock: Any) -> Optional[LockMode]:
    """Normalize a ``lock`` option, raising ``InvalidLockModeError`` if unknown."""
    if lock is None or lock is False or lock == "none":
        return None
    if isinstance(lock, (str, LockMode)):
        try:
            return LockMode(lock)
        except ValueError:
            pass
    raise InvalidLockModeError(lock)


def apply_lock(stmt: Select, mode: Optional[LockMode]) -> Select:
    if mode is LockMode.UPDATE:
        return stmt.with_for_update()
    if mode is LockMode.NO_KEY_UPDATE:
        # PostgreSQL renders key_share without read as FOR NO KEY UPDATE
        return stmt.with_for_update(key_share=True)
    return stmt


# =============================================================================
# Schema reflection and casting
# =============================================================================

def _mapper_of(entity: Any) -> Optional[Mapper]:
    mapper = inspect(entity, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


def primary_key_field(model: Any) -> str:
    """Return the attribute name of the single primary key of ``model``."""
    mapper = _mapper_of(model)
    if mapper is None:
        raise InvalidSchemaError(model, [])

    keys = [mapper.get_property_by_column(column).key for column in mapper.primary_key]
    if len(keys) != 1:
        raise InvalidSchemaError(model, keys)
    return keys[0]


def _cast_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise TypeError(f"cannot cast {type(value).__name__} to int")


def _cast_bool(value: Any) -> bool:
    if isinstance(value, str) and value.strip().lower() in ("true", "1"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0"):
        return False
    if value in (0, 1):
        return bool(value)
    raise ValueError(f"cannot cast {value!r} to bool")


def _from_iso(parse: Callable[[str], Any]) -> Callable[[Any], Any]:
    def cast(value: Any) -> Any:
        if not isinstance(value, str):
            raise TypeError(f"cannot cast {type(value).__name__} from ISO format")
        return parse(value)
    return cast


CASTERS: Dict[type, Callable[[Any], Any]] = {
    uuid.UUID: lambda value: uuid.UUID(str(value)),
    int: _cast_int,
    float: float,
    decimal.Decimal: lambda value: decimal.Decimal(str(value)),
    bool: _cast_bool,
    datetime.datetime: _from_iso(datetime.datetime.fromisoformat),
    datetime.date: _from_iso(datetime.date.fromisoformat),
    datetime.time: _from_iso(datetime.time.fromisoformat),
}


def cast_value(model: Any, field: str, value: Any) -> Any:
    """Cast a predicate value to the Python type of ``model.field``.

    ``None`` and fields without a known Python type are returned unchanged.
    Column types with a ``check_range`` method (``FixedWidthInteger``) also
    reject values outside their range.
    """
    mapper = _mapper_of(model)
    if value is None or mapper is None or field not in mapper.column_attrs:
        return value

    column_type = mapper.column_attrs[field].columns[0].type
    try:
        python_type = column_type.python_type
    except NotImplementedError:
        return value

    caster = CASTERS.get(python_type)
    if caster is None and not isinstance(value, python_type):
        return value
    check_range = getattr(column_type, "check_range", None)

    try:
        cast = value if isinstance(value, python_type) else caster(value)
        if check_range is not None:
            check_range(cast)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise CastError(field, value, python_type.__name__) from exc
    return cast


# =============================================================================
# Query composition
# =============================================================================

def to_select(queryable: Any) -> Select:
    if isinstance(queryable, Select):
        return queryable
    return select(queryable)


def _entity_of(stmt: Select) -> Any:
    descriptions = stmt.column_descriptions
    return descriptions[0]["entity"] if descriptions else None


def preload_options(entity: Any, preload: Any) -> List[Any]:
    """Build ``selectinload`` options for relationship names or dotted paths."""
    if isinstance(preload, (str, QueryableAttribute)):
        preload = [preload]

    options = []
    for path in preload:
        if isinstance(path, QueryableAttribute):
            options.append(selectinload(path))
            continue

        current, loader = entity, None
        for name in path.split("."):
            attr = getattr(current, name)
            loader = selectinload(attr) if loader is None else loader.selectinload(attr)
            current = attr.property.mapper.class_
        options.append(loader)
    return options


def _execution_options(prefix: Optional[str], options: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(options)
    if prefix is not None:
        merged["schema_translate_map"] = {None: prefix}
    return merged


# =============================================================================
# Repo
# =============================================================================

class Repo:
    """Fetch, count and lock helpers bound to a session."""

    def __init__(self, session: Session):
        self.session = session

    def fetch(self, model: Any, ident: Any, **opts: Any) -> FetchResult:
        """Fetch a record by primary key.

        ``model`` must have exactly one primary key column, otherwise
        ``InvalidSchemaError`` is raised without querying. See ``fetch_by``
        for options.
        """
        field = primary_key_field(model)
        return self.fetch_by(model, {field: ident}, **opts)

    def fetch_by(
        self,
        queryable: Any,
        clauses: Optional[Mapping[str, Any]] = None,
        *,
        lock: Any = None,
        preload: Any = None,
        error_tag: Any = _MISSING,
        raise_on_cast_error: bool = False,
        prefix: Optional[str] = None,
        **execution_options: Any,
    ) -> FetchResult:
        """Fetch a single record matching ``clauses`` (ANDed equality predicates).

        Returns ``Ok(record)`` or ``NotFound(tag)``, where the tag is
        ``error_tag`` when given and the original ``queryable`` otherwise.
        Raises ``TooManyResultsError`` if the clauses match several rows.
        """
        mode = resolve_lock_mode(lock)
        tag = queryable if error_tag is _MISSING else error_tag
        clauses = dict(clauses or {})

        stmt = to_select(queryable)
        entity = _entity_of(stmt)

        try:
            clauses = {field: cast_value(entity, field, value) for field, value in clauses.items()}
        except CastError as error:
            return self._cast_failed(error, tag, raise_on_cast_error)

        if clauses:
            stmt = stmt.filter_by(**clauses)
        stmt = apply_lock(stmt, mode)
        if preload:
            stmt = stmt.options(*preload_options(entity, preload))

        # Flush failures of other pending objects propagate unchanged
        if self.session.autoflush:
            self.session.flush()

        try:
            with self.session.no_autoflush:
                record = self.session.execute(
                    stmt, execution_options=_execution_options(prefix, execution_options)
                ).scalars().one_or_none()
        except MultipleResultsFound:
            logger.warning(f"fetch_by matched several rows for {clauses!r}")
            raise TooManyResultsError(queryable, clauses) from None
        except StatementError as error:
            # Errors raised by the database itself always propagate
            if isinstance(error, DBAPIError):
                raise
            cast_error = CastError("clauses", clauses, str(error.orig or error))
            cast_error.__cause__ = error
            return self._cast_failed(cast_error, tag, raise_on_cast_error)

        if record is None:
            logger.debug(f"No record found for {tag!r} with {clauses!r}")
            return NotFound(tag)
        return Ok(record)

    def _cast_failed(self, error: CastError, tag: Any, raise_on_cast_error: bool) -> NotFound:
        if raise_on_cast_error:
            raise error
        logger.debug(f"Treating cast failure as not found: {error.message}")
        return NotFound(tag)

    def count(self, queryable: Any, *, prefix: Optional[str] = None, **execution_options: Any) -> int:
        """Count the rows of a model or ``Select``."""
        if isinstance(queryable, Select):
            stmt = select(func.count()).select_from(queryable.order_by(None).subquery())
        else:
            stmt = select(func.count()).select_from(queryable)

        return self.session.execute(
            stmt, execution_options=_execution_options(prefix, execution_options)
        ).scalar_one()

    def advisory_xact_lock(self, name: LockName) -> None:
        """Acquire a transaction-scoped advisory lock, see ``ormkit.db.advisory_lock``."""
        advisory_xact_lock(self.session, name)
