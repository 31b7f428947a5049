"""Changesets and the validators that operate on them."""

from ormkit.changeset.changeset import Changeset, FieldError
from ormkit.changeset.ordering import (
    Ordering,
    OrderSpec,
    compare,
    validate_date_order,
    validate_datetime_order,
    validate_order,
)
from ormkit.changeset.validators import (
    validate_cast,
    validate_changed,
    validate_date_after,
    validate_datetime_after,
    validate_email,
    validate_format,
    validate_future_datetime,
    validate_hex_color,
    validate_immutable,
    validate_length,
    validate_past_datetime,
    validate_transition,
    validate_url,
)

__all__ = [
    "Changeset",
    "FieldError",
    "Ordering",
    "OrderSpec",
    "compare",
    "validate_cast",
    "validate_changed",
    "validate_date_after",
    "validate_date_order",
    "validate_datetime_after",
    "validate_datetime_order",
    "validate_email",
    "validate_format",
    "validate_future_datetime",
    "validate_hex_color",
    "validate_immutable",
    "validate_length",
    "validate_order",
    "validate_past_datetime",
    "validate_transition",
    "validate_url",
]
