"""Loading permission graphs from YAML."""
from __future__ import annotations

from aumos_acl_graph.loader.graph_loader import (
    GraphConfigError,
    GraphLoader,
    resolve_reference,
)

__all__ = [
    "GraphConfigError",
    "GraphLoader",
    "resolve_reference",
]
