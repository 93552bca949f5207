"""Permission graph: edges, edge declarations and the adjacency structure.

Example
-------
::

    from aumos_acl_graph.graph import PermissionGraph

    graph = PermissionGraph.from_definitions([
        {"from": "public", "to": ["reader", "writer"], "explain": "Everyone"},
    ])
    assert graph.can_reach("public", "writer")
"""
from __future__ import annotations

from aumos_acl_graph.graph.edge import (
    Edge,
    EdgeConfigError,
    EdgeDefinition,
    Node,
    normalize_node,
)
from aumos_acl_graph.graph.permission_graph import PermissionGraph

__all__ = [
    "Edge",
    "EdgeConfigError",
    "EdgeDefinition",
    "Node",
    "PermissionGraph",
    "normalize_node",
]
