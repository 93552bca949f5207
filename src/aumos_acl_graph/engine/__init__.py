"""Check and explain engines."""
from __future__ import annotations

from aumos_acl_graph.engine.acl import Acl, RestrictionFillError
from aumos_acl_graph.engine.records import ExplanationRecord, Grant

__all__ = [
    "Acl",
    "ExplanationRecord",
    "Grant",
    "RestrictionFillError",
]
