"""Per-record field allow-list accumulator.

Tracks which fields of which records a caller may see.  Two kinds of grants
are combined:

- ``allow_some(ids, fields)`` grants ``fields`` on the listed record ids only;
- ``allow_all(fields)`` grants ``fields`` on every record.

As long as no ``allow_all`` grant was made the restriction is id-based, and
:meth:`FieldsByIdRestriction.get_allowed_ids` can be used to build a query
filter.  Once any field is granted on every record, an id filter would hide
data the caller is allowed to see, so asking for the id list fails.
"""
from __future__ import annotations

from collections.abc import Hashable, Iterable

from aumos_acl_graph.restrictions.base import LockedAccumulator


class NoIdRestrictionError(LookupError):
    """Raised when asking for allowed ids while some fields are allowed on all ids."""


class FieldsByIdRestriction(LockedAccumulator):
    """Map of record id to allowed fields, plus fields allowed everywhere."""

    def __init__(self) -> None:
        super().__init__()
        # When we begin, nothing is allowed.
        self._by_id: dict[Hashable, set[str]] = {}
        self._others: set[str] = set()

    @property
    def has_id_restriction(self) -> bool:
        return not self._others

    @property
    def is_empty(self) -> bool:
        return not self._by_id and not self._others

    def get_allowed_ids(self) -> list[Hashable]:
        """Return the ids that carry at least one allowed field, sorted.

        Raises
        ------
        NoIdRestrictionError
            If some fields are allowed on every id.
        """
        with self._lock:
            if self._others:
                raise NoIdRestrictionError(
                    f"Fields {sorted(self._others)} are allowed on all ids."
                )
            ids = list(self._by_id)
        try:
            return sorted(ids)  # type: ignore[type-var]
        except TypeError:
            return ids

    def field_is_allowed(self, record_id: Hashable, field: str) -> bool:
        if field in self._others:
            return True
        allowed = self._by_id.get(record_id)
        return allowed is not None and field in allowed

    def allow_some(self, ids: Iterable[Hashable], fields: Iterable[str]) -> None:
        """Allow ``fields`` on each of ``ids``."""
        field_set = set(fields)
        with self._lock:
            for record_id in ids:
                self._by_id.setdefault(record_id, set()).update(field_set)

    def allow_all(self, fields: Iterable[str]) -> None:
        """Allow ``fields`` on every id."""
        with self._lock:
            self._others.update(fields)

    def __repr__(self) -> str:
        return (
            f"FieldsByIdRestriction(ids={len(self._by_id)}, "
            f"all_ids_fields={sorted(self._others)!r})"
        )
