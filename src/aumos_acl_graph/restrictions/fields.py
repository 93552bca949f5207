"""Field allow-list accumulator."""
from __future__ import annotations

from collections.abc import Iterable

from aumos_acl_graph.restrictions.base import LockedAccumulator


class FieldsRestriction(LockedAccumulator):
    """Set of field names the caller may read or write.

    Example
    -------
    >>> fields = FieldsRestriction()
    >>> fields.allow(["id", "name"])
    >>> fields.field_is_allowed("name")
    True
    >>> fields.field_is_allowed("password")
    False
    """

    def __init__(self) -> None:
        super().__init__()
        self._fields: set[str] = set()

    @property
    def fields(self) -> frozenset[str]:
        """Snapshot of the allowed fields."""
        with self._lock:
            return frozenset(self._fields)

    @property
    def is_empty(self) -> bool:
        return not self._fields

    def allow(self, fields: Iterable[str]) -> None:
        """Add ``fields`` to the allow-list."""
        with self._lock:
            self._fields.update(fields)

    def field_is_allowed(self, field: str) -> bool:
        return field in self._fields

    def __repr__(self) -> str:
        return f"FieldsRestriction({sorted(self._fields)!r})"
