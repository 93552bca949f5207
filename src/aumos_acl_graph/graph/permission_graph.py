"""Immutable adjacency structure of the permission graph.

Edges are indexed by their ``from`` node into ordered lists.  Declaration
order is significant: it decides which branch wins when several successful
paths bind the same context key, and the order of explanation records.

The graph also answers the static reachability question used to prune dead
branches before any predicate runs.  Because the graph never changes once
sealed, answers are cached per ``(from, to)`` pair for the graph's lifetime.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from aumos_acl_graph.graph.edge import (
    CheckFn,
    Edge,
    EdgeConfigError,
    EdgeDefinition,
    Node,
    RestrictFn,
    normalize_node,
)

logger = logging.getLogger(__name__)


class PermissionGraph:
    """Directed graph of permission nodes.

    Build it with :meth:`from_definitions`, or call :meth:`add_edge` and then
    :meth:`seal`.  After sealing the graph is read-only.

    Examples
    --------
    ::

        graph = PermissionGraph.from_definitions([
            {"from": "public", "to": "secret", "explain": "Key matches"},
            {"from": "secret", "to": "admin", "explain": "Always"},
        ])
        assert graph.can_reach("public", "admin") is True
        assert graph.edges_from("nowhere") == ()
    """

    def __init__(self) -> None:
        self._edges: dict[Node, list[Edge]] = {}
        self._frozen_edges: dict[Node, tuple[Edge, ...]] = {}
        self._reach_cache: dict[tuple[Node, Node], bool] = {}
        self._sealed = False

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[EdgeDefinition | Mapping[str, object]],
    ) -> PermissionGraph:
        """Build and seal a graph from edge declarations.

        Raises
        ------
        EdgeConfigError
            If any declaration is malformed.
        """
        graph = cls()
        for index, definition in enumerate(definitions):
            if not isinstance(definition, EdgeDefinition):
                definition = EdgeDefinition.from_dict(definition, index=index)
            for edge in definition.expand():
                graph._append(edge)
        graph.seal()
        return graph

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_edge(
        self,
        from_node: Node,
        to_node: Node,
        explanation: str,
        check: CheckFn | None = None,
        restrict: Mapping[str, RestrictFn] | None = None,
    ) -> Edge:
        """Append a single edge, preserving declaration order."""
        definition = EdgeDefinition.create(
            from_node, to_node, explanation, check=check, restrict=restrict
        )
        if len(definition.from_nodes) != 1 or len(definition.to_nodes) != 1:
            raise EdgeConfigError("add_edge() takes exactly one 'from' and one 'to' node.")
        edge = next(definition.expand())
        self._append(edge)
        return edge

    def _append(self, edge: Edge) -> None:
        if self._sealed:
            raise EdgeConfigError(
                f"Cannot add {edge!r}: the permission graph is sealed."
            )
        self._edges.setdefault(edge.from_node, []).append(edge)

    def seal(self) -> None:
        """Freeze the adjacency lists.  Further ``add_edge`` calls fail."""
        if self._sealed:
            return
        self._frozen_edges = {node: tuple(edges) for node, edges in self._edges.items()}
        self._sealed = True
        logger.debug(
            "Sealed permission graph: %d nodes, %d edges",
            len(self.nodes),
            self.edge_count,
        )

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def edges_from(self, node: Node) -> tuple[Edge, ...]:
        """Return the outgoing edges of ``node`` in declaration order.

        Unknown nodes have no outgoing edges.
        """
        node = normalize_node(node)
        if self._sealed:
            return self._frozen_edges.get(node, ())
        return tuple(self._edges.get(node, ()))

    def can_reach(self, from_node: Node, to_node: Node) -> bool:
        """Return True if ``to_node`` is structurally reachable from ``from_node``.

        Predicates are ignored.  Results are cached once the graph is sealed;
        cycles are broken with a visited set per query.
        """
        from_node = normalize_node(from_node)
        to_node = normalize_node(to_node)
        if from_node == to_node:
            return True

        key = (from_node, to_node)
        if self._sealed:
            cached = self._reach_cache.get(key)
            if cached is not None:
                return cached

        reachable = self._search(from_node, to_node, set())
        if self._sealed:
            self._reach_cache[key] = reachable
        return reachable

    def _search(self, from_node: Node, to_node: Node, visited: set[Node]) -> bool:
        if from_node == to_node:
            return True
        if from_node in visited:
            return False
        visited.add(from_node)

        for edge in self.edges_from(from_node):
            if self._sealed:
                cached = self._reach_cache.get((edge.to_node, to_node))
                if cached:
                    return True
            if self._search(edge.to_node, to_node, visited):
                return True
        return False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> frozenset[Node]:
        """All nodes that appear on either end of an edge."""
        found: set[Node] = set()
        for from_node, edges in self._edges.items():
            found.add(from_node)
            found.update(edge.to_node for edge in edges)
        return frozenset(found)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self._edges.values())

    def iter_edges(self) -> Iterable[Edge]:
        """Yield every edge, grouped by ``from`` node in insertion order."""
        for edges in self._edges.values():
            yield from edges

    def __len__(self) -> int:
        return self.edge_count

    def __contains__(self, node: object) -> bool:
        return normalize_node(node) in self.nodes

    def __repr__(self) -> str:
        return (
            f"PermissionGraph(nodes={len(self.nodes)}, edges={self.edge_count}, "
            f"sealed={self._sealed})"
        )
