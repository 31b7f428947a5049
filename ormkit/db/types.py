"""Column types."""

from typing import Any, Dict, Union

from sqlalchemy import BigInteger, Integer, SmallInteger
from sqlalchemy.types import TypeDecorator

# Ranges of the PostgreSQL integer types
# https://www.postgresql.org/docs/current/datatype-numeric.html
NAMED_WIDTH_RANGES: Dict[str, range] = {
    "smallint": range(-32_768, 32_767 + 1),
    "integer": range(-2_147_483_648, 2_147_483_647 + 1),
    "bigint": range(-9_223_372_036_854_775_808, 9_223_372_036_854_775_807 + 1),
    "smallserial": range(1, 32_767 + 1),
    "serial": range(1, 2_147_483_647 + 1),
    "bigserial": range(1, 9_223_372_036_854_775_807 + 1),
}

BYTE_SIZE_RANGES: Dict[int, range] = {
    2: NAMED_WIDTH_RANGES["smallint"],
    4: NAMED_WIDTH_RANGES["integer"],
    8: NAMED_WIDTH_RANGES["bigint"],
}


def width_to_range(width: Union[str, int]) -> range:
    """Return the range of values a named width or byte size can hold."""
    if isinstance(width, str):
        return NAMED_WIDTH_RANGES[width]
    return BYTE_SIZE_RANGES[width]


class FixedWidthInteger(TypeDecorator):
    """Integer column that rejects values its database type cannot hold.

    ``width`` is a PostgreSQL type name (``"smallint"``, ``"integer"``,
    ``"bigint"``, ``"smallserial"``, ``"serial"``, ``"bigserial"``) or a size
    in bytes (2, 4 or 8). Out-of-range values are rejected before the statement
    is sent: ``Repo.fetch_by`` reports them as cast failures and
    ``validate_cast`` as ``cast`` errors on a changeset.

        quantity: Mapped[int] = mapped_column(FixedWidthInteger("smallint"))
    """

    impl = Integer
    cache_ok = True

    def __init__(self, width: Union[str, int] = 4):
        self.width = width
        self.value_range = width_to_range(width)
        super().__init__()

    def load_dialect_impl(self, dialect):
        if self.value_range.stop <= NAMED_WIDTH_RANGES["smallint"].stop:
            return dialect.type_descriptor(SmallInteger())
        if self.value_range.stop <= NAMED_WIDTH_RANGES["integer"].stop:
            return dialect.type_descriptor(Integer())
        return dialect.type_descriptor(BigInteger())

    def check_range(self, value: Any) -> None:
        """Raise ``ValueError`` if ``value`` is an integer outside the range."""
        if isinstance(value, int) and value not in self.value_range:
            raise ValueError(
                f"{value} is out of range for {self.width} "
                f"({self.value_range.start}..{self.value_range.stop - 1})"
            )

    def process_bind_param(self, value, dialect):
        if value is not None:
            self.check_range(value)
        return value
