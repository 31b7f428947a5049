"""Changeset validators.

Every validator takes a changeset and returns it unchanged or with one error
appended (two for ``validate_email``, one per field for ``validate_cast``).
Validators never raise on invalid data, so several of them can be chained and
all failures are collected.
"""

import datetime
import re
from typing import Any, Callable, Iterable, Optional, Pattern, Tuple, Union
from urllib.parse import urlparse

from ormkit.changeset.changeset import Changeset
from ormkit.core.date_time import datetime_to_string
from ormkit.core.exceptions import CastError
from ormkit.db.repo import cast_value


# =============================================================================
# State validators
# =============================================================================

def validate_transition(changeset: Changeset, field: str, transitions: Iterable[Tuple[Any, Any]]) -> Changeset:
    """Validate that a field changes in one of the allowed ways.

    ``transitions`` lists the allowed ``(from, to)`` pairs. ``from`` is the
    persisted value and ``to`` the pending change. A field that is not changed
    is only valid if ``(value, value)`` is listed, and ``None`` is an ordinary
    value.

        validate_transition(cs, "state", [("pending", "paid"), ("pending", "cancelled")])
    """
    current = changeset.fetch_data(field)
    target = changeset.get_change(field, current)

    if (current, target) in list(transitions):
        return changeset

    return changeset.add_error(
        field,
        "%{field} cannot transition from %{from} to %{to}",
        **{"field": field, "from": current, "to": target, "validation": "transition"},
    )


def validate_changed(changeset: Changeset, field: str) -> Changeset:
    """Validate that a change is pending for ``field``."""
    if field in changeset.changes:
        return changeset
    return changeset.add_error(field, "did not change", validation="changed")


def validate_immutable(changeset: Changeset, field: str) -> Changeset:
    """Validate that a field is not changed, unless its persisted value is ``None``."""
    if changeset.fetch_data(field) is None or field not in changeset.changes:
        return changeset
    return changeset.add_error(field, "cannot be changed", validation="immutable")


# =============================================================================
# Format validators
# =============================================================================

def validate_format(
    changeset: Changeset,
    field: str,
    pattern: Union[str, Pattern],
    message: str = "has invalid format",
) -> Changeset:
    """Validate a pending string change against a regular expression."""
    value = changeset.get_change(field)
    if value is None:
        return changeset
    if isinstance(value, str) and re.search(pattern, value):
        return changeset
    return changeset.add_error(field, message, validation="format")


def validate_length(
    changeset: Changeset,
    field: str,
    min: Optional[int] = None,
    max: Optional[int] = None,
) -> Changeset:
    """Validate the length of a pending change."""
    value = changeset.get_change(field)
    if value is None:
        return changeset

    length = len(value)
    if min is not None and length < min:
        return changeset.add_error(
            field,
            "should be at least %{count} character(s)",
            count=min,
            kind="min",
            validation="length",
        )
    if max is not None and length > max:
        return changeset.add_error(
            field,
            "should be at most %{count} character(s)",
            count=max,
            kind="max",
            validation="length",
        )
    return changeset


# This does not try to understand every valid address; unusual ones may fail.
VALID_EMAIL_RE = re.compile(r"^[\w.!#$%&’*+\-/=?\^`{|}~]+@[a-z0-9-]+(\.[a-z0-9-]+)*$", re.IGNORECASE)
VALID_EMAIL_RE_ONLY_WEB = re.compile(r"^[\w.!#$%&’*+\-/=?\^`{|}~]+@[a-z0-9-]+(\.[a-z0-9-]+)+$", re.IGNORECASE)

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_email(changeset: Changeset, field: str, max_length: int = 320, only_web: bool = True) -> Changeset:
    """Validate that an email has a valid format. ``None`` is ignored.

    With ``only_web`` (the default) the domain part needs a dot, e.g.
    ``domain.tld``.
    """
    pattern = VALID_EMAIL_RE_ONLY_WEB if only_web else VALID_EMAIL_RE
    changeset = validate_format(changeset, field, pattern)
    return validate_length(changeset, field, max=max_length)


def validate_url(changeset: Changeset, field: str) -> Changeset:
    """Validate that a field holds a qualified URL (scheme and dotted host)."""
    url = changeset.get_field(field)
    if url is None:
        return changeset

    try:
        parsed = urlparse(url)
        valid = bool(parsed.scheme) and "." in (parsed.hostname or "")
    except (TypeError, ValueError, AttributeError):
        valid = False

    if valid:
        return changeset
    return changeset.add_error(field, "is not a valid url", validation="format")


def validate_hex_color(changeset: Changeset, field: str) -> Changeset:
    """Validate a ``#rrggbb`` color."""
    return validate_format(changeset, field, HEX_COLOR_RE, message="is not a valid hex color")


# =============================================================================
# Type validators
# =============================================================================

def validate_cast(changeset: Changeset, model: Any, fields: Optional[Iterable[str]] = None) -> Changeset:
    """Cast pending changes to the column types of ``model``.

    A change that cannot be cast, such as a malformed UUID or an integer out
    of range for a ``FixedWidthInteger`` column, is dropped and reported as
    ``is invalid`` (tag ``cast``). Other changes are replaced by their cast
    value. ``fields`` limits the check to some fields.
    """
    names = list(changeset.changes) if fields is None else [name for name in fields if name in changeset.changes]

    for name in names:
        try:
            value = cast_value(model, name, changeset.changes[name])
        except CastError as e:
            changeset = changeset.delete_change(name).add_error(
                name, "is invalid", validation="cast", type=e.type_name
            )
        else:
            changeset = changeset.put_change(name, value)
    return changeset


# =============================================================================
# Date and time validators
# =============================================================================

def _utc_now_like(value: datetime.datetime) -> datetime.datetime:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now if value.tzinfo is not None else now.replace(tzinfo=None)


def validate_past_datetime(changeset: Changeset, field: str, now: Optional[datetime.datetime] = None) -> Changeset:
    """Validate a pending datetime change to not be in the future."""
    value = changeset.get_change(field)
    if value is None:
        return changeset

    now = now or _utc_now_like(value)
    if now < value:
        return changeset.add_error(field, "must be in the past", validation="date_in_past")
    return changeset


def validate_future_datetime(changeset: Changeset, field: str, now: Optional[datetime.datetime] = None) -> Changeset:
    """Validate a pending datetime change to be in the future."""
    value = changeset.get_change(field)
    if value is None:
        return changeset

    now = now or _utc_now_like(value)
    if not now < value:
        return changeset.add_error(field, "must be in the future", validation="date_in_future")
    return changeset


def validate_datetime_after(
    changeset: Changeset,
    field: str,
    reference: datetime.datetime,
    formatter: Callable[[Any], str] = datetime_to_string,
) -> Changeset:
    """Validate a pending datetime change to be strictly after ``reference``."""
    value = changeset.get_change(field)
    if value is None or reference < value:
        return changeset

    return changeset.add_error(
        field,
        "must be after %{reference}",
        reference=formatter(reference),
        validation="datetime_after",
    )


def _as_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return datetime.date.fromisoformat(value)
    raise TypeError(f"cannot read a date from {type(value).__name__}")


def validate_date_after(changeset: Changeset, field: str, reference: datetime.date) -> Changeset:
    """Validate a date field to be on or after ``reference``.

    Values that are not dates (or ISO date strings) get a ``cast`` error.
    """
    value = changeset.get_field(field)
    if value is None:
        return changeset

    try:
        date = _as_date(value)
    except (TypeError, ValueError):
        return changeset.add_error(field, "is invalid", validation="cast", type="date")

    if date < reference:
        return changeset.add_error(
            field,
            "must be after %{reference}",
            reference=str(reference),
            validation="date_after",
        )
    return changeset
