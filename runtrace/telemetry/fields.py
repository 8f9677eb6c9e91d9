"""Ordered, typed field container with visitor traversal."""
from __future__ import annotations

from typing import Iterator

from runtrace.models import Field, FieldCategory, ValueKind

# ValueKind -> Backend method. Must name every kind.
_VISITORS = {
    ValueKind.BOOLEAN: "visit_boolean",
    ValueKind.INT32: "visit_int32",
    ValueKind.INT64: "visit_int64",
    ValueKind.FLOAT: "visit_float",
    ValueKind.DOUBLE: "visit_double",
    ValueKind.STRING: "visit_string",
}

_missing = set(ValueKind) - set(_VISITORS)
if _missing:
    raise ImportError(f"no visitor registered for value kinds: {sorted(k.value for k in _missing)}")


class FieldCollection:
    """Fields in insertion order. Duplicate names are kept; nothing is removed.

    Not synchronized: callers serialize appends and traversal themselves.
    """

    def __init__(self) -> None:
        self._fields: list[Field] = []

    def add_field(self, category: FieldCategory, name: str, value, kind: ValueKind | None = None) -> Field:
        field = Field(category=category, name=name, value=value, kind=kind)
        self._fields.append(field)
        return field

    def accept(self, backend) -> None:
        """Route every field to the backend method matching its kind."""
        for field in self._fields:
            getattr(backend, _VISITORS[field.kind])(field)

    def to_dicts(self) -> list[dict]:
        return [
            {
                "category": f.category.value,
                "name": f.name,
                "kind": f.kind.value,
                "value": f.value,
            }
            for f in self._fields
        ]

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)
