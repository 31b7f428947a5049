"""In-memory changesets.

A ``Changeset`` stages a mutation before it is written: the persisted field
values (``data``), the values that actually changed (``changes``) and the
validation errors collected so far. Changesets are immutable; every operation
returns a new changeset, and errors are only ever appended.

    cs = Changeset.change(booking, {"state": "confirmed"})
    cs = validate_transition(cs, "state", [("pending", "confirmed")])
    if cs.valid:
        cs.apply_changes()
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import inspect

_MISSING = object()

_PLACEHOLDER_RE = re.compile(r"%\{(\w+)\}")


@dataclass(frozen=True)
class FieldError:
    """A validation error on a single field.

    ``message`` may contain ``%{key}`` placeholders, filled from ``metadata``
    (and ``%{field}``) when rendered. Unknown placeholders and any other text
    are kept as they are. ``metadata["validation"]`` is the machine-readable
    tag.
    """

    # metadata is a dict
    __hash__ = None

    field: str
    message: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def validation(self) -> Any:
        return self.metadata.get("validation")

    def render(self) -> str:
        values = {"field": self.field, **self.metadata}

        def substitute(match):
            key = match.group(1)
            return str(values[key]) if key in values else match.group(0)

        return _PLACEHOLDER_RE.sub(substitute, self.message)


@dataclass(frozen=True)
class Changeset:
    # changes is a dict
    __hash__ = None

    data: Any
    changes: Mapping[str, Any] = field(default_factory=dict)
    errors: Tuple[FieldError, ...] = ()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def change(cls, data: Any, attrs: Optional[Mapping[str, Any]] = None) -> "Changeset":
        """Build a changeset for ``data`` (a mapping or an object).

        Only values that differ from the current ones are recorded as changes.
        """
        changeset = cls(data=data)
        for name, value in (attrs or {}).items():
            changeset = changeset.put_change(name, value)
        return changeset

    @classmethod
    def from_instance(cls, instance: Any) -> "Changeset":
        """Build a changeset from the pending attribute history of a mapped instance.

        The previous value of a modified attribute is only known if it was
        loaded before it was set; otherwise it is reported as ``None``.
        """
        state = inspect(instance)
        data: Dict[str, Any] = {}
        changes: Dict[str, Any] = {}

        for attr in state.mapper.column_attrs:
            history = state.attrs[attr.key].history
            if history.added:
                changes[attr.key] = history.added[0]
                data[attr.key] = history.deleted[0] if history.deleted else None
            else:
                data[attr.key] = history.unchanged[0] if history.unchanged else None

        return cls(data=data, changes=changes)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    @property
    def valid(self) -> bool:
        return not self.errors

    def fetch_data(self, name: str) -> Any:
        """Return the persisted value of ``name``, raising ``KeyError`` if unknown."""
        if isinstance(self.data, Mapping):
            return self.data[name]
        try:
            return getattr(self.data, name)
        except AttributeError:
            raise KeyError(name) from None

    def get_change(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    def get_field(self, name: str, default: Any = None) -> Any:
        """Return the pending change of ``name`` if any, else its persisted value."""
        if name in self.changes:
            return self.changes[name]
        try:
            return self.fetch_data(name)
        except KeyError:
            return default

    def put_change(self, name: str, value: Any) -> "Changeset":
        changes = dict(self.changes)
        current = self._data_or_missing(name)
        if current is not _MISSING and current == value:
            changes.pop(name, None)
        else:
            changes[name] = value
        return replace(self, changes=changes)

    def delete_change(self, name: str) -> "Changeset":
        return replace(self, changes={key: value for key, value in self.changes.items() if key != name})

    def _data_or_missing(self, name: str) -> Any:
        try:
            return self.fetch_data(name)
        except KeyError:
            return _MISSING

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def add_error(self, name: str, message: str, **metadata: Any) -> "Changeset":
        return replace(self, errors=self.errors + (FieldError(name, message, metadata),))

    def errors_on(self, name: str) -> List[str]:
        """Rendered error messages for ``name``, in the order they were added."""
        return [error.render() for error in self.errors if error.field == name]

    def validations_on(self, name: str) -> List[Any]:
        """Validation tags of the errors on ``name``."""
        return [error.validation for error in self.errors if error.field == name]

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def apply_changes(self, target: Any = None) -> Any:
        """Write the changes onto ``target`` (defaults to ``data``) and return it.

        Mapping data is not modified; a merged copy is returned instead.
        """
        target = self.data if target is None else target
        if isinstance(target, Mapping):
            return {**target, **self.changes}
        for name, value in self.changes.items():
            setattr(target, name, value)
        return target
