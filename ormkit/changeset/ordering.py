"""Ordering validation for pairs of fields (ranges such as from/until).

The check only applies when both values are known: a range with a missing end
is valid. When it fails, the error is placed on the later field.
"""

import enum
from dataclasses import dataclass
from typing import Any, Callable, Collection, Tuple, Union

from ormkit.changeset.changeset import Changeset
from ormkit.core.date_time import datetime_to_string


class Ordering(str, enum.Enum):
    LT = "lt"
    EQ = "eq"
    GT = "gt"


def compare(a: Any, b: Any) -> Ordering:
    """Three-way comparison using the natural ``<`` ordering."""
    if a < b:
        return Ordering.LT
    if b < a:
        return Ordering.GT
    return Ordering.EQ


DEFAULT_VALID_ORDERS: Tuple[Ordering, ...] = (Ordering.LT, Ordering.EQ)

ValidOrders = Union[Any, Collection[Any]]


def _wrap(valid_orders: ValidOrders) -> Tuple[Any, ...]:
    # Orderings are str enums, so check for strings before iterating
    if isinstance(valid_orders, (str, bytes)) or not isinstance(valid_orders, Collection):
        return (valid_orders,)
    return tuple(valid_orders)


@dataclass(frozen=True)
class OrderSpec:
    """Configuration of one ordering check."""

    from_field: str
    until_field: str
    validation_key: str
    compare: Callable[[Any, Any], Any] = compare
    valid_orders: ValidOrders = DEFAULT_VALID_ORDERS
    formatter: Callable[[Any], str] = str

    def apply(self, changeset: Changeset) -> Changeset:
        start = changeset.get_field(self.from_field)
        until = changeset.get_field(self.until_field)

        if start is None or until is None:
            return changeset

        # Tuple membership compares with ==, so "lt" matches Ordering.LT
        if self.compare(start, until) in _wrap(self.valid_orders):
            return changeset

        return changeset.add_error(
            self.until_field,
            "must be after '%{stringified_value}'",
            validation=self.validation_key,
            stringified_value=self.formatter(start),
        )


def validate_order(
    changeset: Changeset,
    from_field: str,
    until_field: str,
    validation_key: str,
    *,
    compare: Callable[[Any, Any], Any] = compare,
    valid_orders: ValidOrders = DEFAULT_VALID_ORDERS,
    formatter: Callable[[Any], str] = str,
) -> Changeset:
    """Validate that ``from_field`` comes before ``until_field``.

    ``compare(from, until)`` must return one of ``valid_orders`` (a single value
    or a collection). By default ``from <= until`` is valid; pass
    ``valid_orders=Ordering.LT`` to require a strict order. A custom
    ``compare`` may return any value, e.g. a boolean with
    ``valid_orders=True``.

    Examples:
        validate_order(cs, "from_number", "to_number", "numbers_order")
        validate_order(cs, "start", "end", "length_order",
                       compare=lambda a, b: len(a) < len(b), valid_orders=True)
    """
    spec = OrderSpec(
        from_field=from_field,
        until_field=until_field,
        validation_key=validation_key,
        compare=compare,
        valid_orders=valid_orders,
        formatter=formatter,
    )
    return spec.apply(changeset)


def validate_date_order(
    changeset: Changeset,
    from_field: str,
    until_field: str,
    *,
    valid_orders: ValidOrders = DEFAULT_VALID_ORDERS,
    formatter: Callable[[Any], str] = str,
) -> Changeset:
    """Validate two date fields to be a date range (tag ``date_order``)."""
    return validate_order(
        changeset,
        from_field,
        until_field,
        "date_order",
        valid_orders=valid_orders,
        formatter=formatter,
    )


def validate_datetime_order(
    changeset: Changeset,
    from_field: str,
    until_field: str,
    *,
    valid_orders: ValidOrders = DEFAULT_VALID_ORDERS,
    formatter: Callable[[Any], str] = datetime_to_string,
) -> Changeset:
    """Validate two datetime fields to be a time range (tag ``datetime_order``)."""
    return validate_order(
        changeset,
        from_field,
        until_field,
        "datetime_order",
        valid_orders=valid_orders,
        formatter=formatter,
    )
