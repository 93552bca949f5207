"""Restriction accumulators filled by edges on successful paths.

Example
-------
::

    from aumos_acl_graph.restrictions import FieldsRestriction

    fields = FieldsRestriction()
    result = await acl.check("can_read_user", ctx, {"fields": fields})
    visible = {k: v for k, v in row.items() if fields.field_is_allowed(k)}
"""
from __future__ import annotations

from aumos_acl_graph.restrictions.base import LockedAccumulator, RestrictionAccumulator
from aumos_acl_graph.restrictions.fields import FieldsRestriction
from aumos_acl_graph.restrictions.fields_by_id import (
    FieldsByIdRestriction,
    NoIdRestrictionError,
)

__all__ = [
    "FieldsByIdRestriction",
    "FieldsRestriction",
    "LockedAccumulator",
    "NoIdRestrictionError",
    "RestrictionAccumulator",
]
