"""aumos-acl-graph — Graph-based authorization decisions for async services.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_acl_graph as acl_graph
>>> acl_graph.__version__
'0.1.0'
>>> acl = acl_graph.Acl("public", [
...     {"from": "public", "to": "reader", "explain": "Everyone can read"},
... ])
>>> acl.check_sync("reader", {}) is not None
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

from aumos_acl_graph.config import AclSettings, load_settings, settings_from_string

# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------
from aumos_acl_graph.graph.edge import Edge, EdgeConfigError, EdgeDefinition
from aumos_acl_graph.graph.permission_graph import PermissionGraph

# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------
from aumos_acl_graph.context.keys import ContextKey
from aumos_acl_graph.context.scope import ContextScope, ScopeFrozenError

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
from aumos_acl_graph.engine.acl import Acl, RestrictionFillError
from aumos_acl_graph.engine.records import ExplanationRecord, Grant

# ---------------------------------------------------------------------------
# Restrictions
# ---------------------------------------------------------------------------
from aumos_acl_graph.restrictions.base import RestrictionAccumulator
from aumos_acl_graph.restrictions.fields import FieldsRestriction
from aumos_acl_graph.restrictions.fields_by_id import (
    FieldsByIdRestriction,
    NoIdRestrictionError,
)

# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------
from aumos_acl_graph.loader.graph_loader import GraphConfigError, GraphLoader

__all__ = [
    "__version__",
    # Config
    "AclSettings",
    "load_settings",
    "settings_from_string",
    # Graph
    "Edge",
    "EdgeConfigError",
    "EdgeDefinition",
    "PermissionGraph",
    # Context
    "ContextKey",
    "ContextScope",
    "ScopeFrozenError",
    # Engine
    "Acl",
    "ExplanationRecord",
    "Grant",
    "RestrictionFillError",
    # Restrictions
    "FieldsByIdRestriction",
    "FieldsRestriction",
    "NoIdRestrictionError",
    "RestrictionAccumulator",
    # Loader
    "GraphConfigError",
    "GraphLoader",
]
