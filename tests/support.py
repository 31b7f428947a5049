"""Models used by the test suite."""

import datetime
import uuid
from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ormkit.db.base import Base
from ormkit.db.types import FixedWidthInteger

# Attached SQLite database standing in for a PostgreSQL schema
TEST_PREFIX = "foo"


class Widget(Base):
    """Model with a UUID primary key."""

    __tablename__ = "widgets"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity: Mapped[Optional[int]] = mapped_column(nullable=True)
    available_from: Mapped[Optional[datetime.date]] = mapped_column(nullable=True)
    available_until: Mapped[Optional[datetime.date]] = mapped_column(nullable=True)

    parts: Mapped[list["Part"]] = relationship("Part", back_populates="widget")


class Part(Base):
    """Model with an integer primary key."""

    __tablename__ = "parts"

    id: Mapped[int] = mapped_column(primary_key=True)
    widget_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("widgets.id"), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)

    widget: Mapped["Widget"] = relationship("Widget", back_populates="parts")


class Tag(Base):
    """Model whose primary key is not called ``id``."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)


class Pairing(Base):
    """Model with a composite primary key."""

    __tablename__ = "pairings"

    left: Mapped[str] = mapped_column(String(50), primary_key=True)
    right: Mapped[str] = mapped_column(String(50), primary_key=True)


class Gauge(Base):
    """Model with fixed-width integer columns."""

    __tablename__ = "gauges"

    id: Mapped[int] = mapped_column(primary_key=True)
    reading: Mapped[Optional[int]] = mapped_column(FixedWidthInteger(4), nullable=True)
    adjustment: Mapped[Optional[int]] = mapped_column(FixedWidthInteger("smallint"), nullable=True)
    serial_number: Mapped[Optional[int]] = mapped_column(FixedWidthInteger("bigserial"), nullable=True)


def insert_widget(db: Session, **attrs) -> Widget:
    widget = Widget(**{"name": "Test Widget", **attrs})
    db.add(widget)
    db.commit()
    db.refresh(widget)
    return widget
