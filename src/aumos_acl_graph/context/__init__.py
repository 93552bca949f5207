"""Layered context scopes passed to edge predicates."""
from __future__ import annotations

from aumos_acl_graph.context.keys import ContextKey
from aumos_acl_graph.context.scope import ContextScope, ScopeFrozenError

__all__ = [
    "ContextKey",
    "ContextScope",
    "ScopeFrozenError",
]
