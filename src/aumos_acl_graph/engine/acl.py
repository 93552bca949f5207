"""Permission check and explain engines.

:class:`Acl` answers two questions about a request carrying arbitrary
context data:

- ``check``: can the request reach a permission node from the starting node?
  The answer is the merged context of every successful path (the proof of
  authorization plus whatever the predicates loaded along the way), or
  ``None``.
- ``explain``: which edges were attempted and how did each predicate decide?

Both traversals fan out over the outgoing edges of every node with
``asyncio.gather`` and prune edges whose target cannot structurally reach the
requested permission.  Each attempted edge gets its own child scope, so
sibling branches never see each other's writes.

Example
-------
::

    acl = Acl("public", [
        {
            "from": "public",
            "to": "has_secret_key",
            "explain": "Super secret key must be passed",
            "check": lambda scope: scope.get("key") == "super_secret",
        },
    ])
    assert await acl.check("has_secret_key", {"key": "super_secret"}) is not None
    assert await acl.check("has_secret_key", {"key": "wrong"}) is None
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Coroutine, Iterable, Mapping
from typing import Any, TypeVar

from aumos_acl_graph.config import AclSettings
from aumos_acl_graph.context.scope import ContextScope
from aumos_acl_graph.engine.records import ExplanationRecord, Grant
from aumos_acl_graph.graph.edge import Edge, EdgeDefinition, Node, normalize_node
from aumos_acl_graph.graph.permission_graph import PermissionGraph

logger = logging.getLogger(__name__)

Restrictions = Mapping[str, Any]
Context = Mapping[str, Any] | ContextScope | None

T = TypeVar("T")


class RestrictionFillError(RuntimeError):
    """Raised when a restriction fill function fails.

    Attributes
    ----------
    edge:
        The edge whose fill function raised.
    key:
        The restriction key being filled.
    """

    def __init__(self, edge: Edge, key: str, cause: BaseException) -> None:
        self.edge = edge
        self.key = key
        super().__init__(f"Restriction fill {key!r} of {edge!r} failed: {cause!r}")


async def _gather_branches(coros: list[Coroutine[Any, Any, T]]) -> list[T]:
    """Run sibling branches concurrently, results in declaration order.

    If one branch raises, the others are cancelled and awaited before the
    error propagates, so no branch keeps filling restrictions afterwards.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class Acl:
    """Authorization engine over an immutable permission graph.

    Parameters
    ----------
    default_node:
        Node every check starts from unless ``start=`` is given.  ``None``
        falls back to ``settings.default_node``.
    definitions:
        Edge declarations (``EdgeDefinition`` objects or mappings), or an
        already-built :class:`PermissionGraph`.
    settings:
        Optional runtime settings.

    Raises
    ------
    EdgeConfigError
        If a declaration is malformed.
    """

    def __init__(
        self,
        default_node: Node | None,
        definitions: Iterable[EdgeDefinition | Mapping[str, object]] | PermissionGraph,
        *,
        settings: AclSettings | None = None,
    ) -> None:
        self._settings = settings or AclSettings()
        if default_node is None:
            default_node = self._settings.default_node
        self._default_node = normalize_node(default_node)

        if isinstance(definitions, PermissionGraph):
            definitions.seal()
            self._graph = definitions
        else:
            self._graph = PermissionGraph.from_definitions(definitions)

        logger.debug(
            "Acl ready: default node %r, %d edges", self._default_node, self._graph.edge_count
        )

    @property
    def graph(self) -> PermissionGraph:
        return self._graph

    @property
    def default_node(self) -> Node:
        return self._default_node

    @property
    def settings(self) -> AclSettings:
        return self._settings

    def _start(self, start: Node | None) -> Node:
        return self._default_node if start is None else normalize_node(start)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check(
        self,
        permission: Node,
        context: Context = None,
        restrictions: Restrictions | None = None,
        *,
        start: Node | None = None,
    ) -> ContextScope | None:
        """Check that a request may reach ``permission``.

        Parameters
        ----------
        permission:
            Permission node being checked.
        context:
            Request data (token, entity id, body, ...).  A plain mapping is
            wrapped in a root scope; a scope is used as is.
        restrictions:
            Mapping of restriction key to caller-owned accumulator.  Edges on
            successful paths fill the accumulators whose keys they declare.
        start:
            Node to start from instead of the default node.

        Returns
        -------
        ContextScope | None
            ``None`` when access is denied.  Otherwise a frozen scope
            holding every binding made along the successful paths, reading
            through to the request data.  When ``permission`` is the start
            node the root scope itself is returned.
        """
        from_node = self._start(start)
        to_node = normalize_node(permission)
        root = ContextScope.wrap(context)

        if from_node == to_node:
            return root

        bindings = await self._check(
            from_node, to_node, root, restrictions or {}, frozenset([from_node])
        )
        if bindings is None:
            logger.debug("Denied: %r -> %r", from_node, to_node)
            return None

        logger.debug("Granted: %r -> %r (bindings: %s)", from_node, to_node, sorted(bindings))
        return root.child(bindings).freeze()

    async def explain(
        self,
        permission: Node,
        context: Context = None,
        *,
        start: Node | None = None,
    ) -> list[ExplanationRecord]:
        """Show every edge attempted while looking for ``permission``.

        Records are in pre-order: each attempted edge is followed by the
        edges attempted beyond it.  Unlike :meth:`check` nothing stops at the
        first success and no restriction is filled.
        """
        from_node = self._start(start)
        to_node = normalize_node(permission)
        root = ContextScope.wrap(context)
        return await self._explain(from_node, to_node, root, frozenset([from_node]))

    def can_reach(self, permission: Node, *, start: Node | None = None) -> bool:
        """Return True if ``permission`` is structurally reachable, ignoring predicates."""
        return self._graph.can_reach(self._start(start), permission)

    def check_sync(
        self,
        permission: Node,
        context: Context = None,
        restrictions: Restrictions | None = None,
        *,
        start: Node | None = None,
    ) -> ContextScope | None:
        """Blocking :meth:`check` for callers without a running event loop."""
        return asyncio.run(self.check(permission, context, restrictions, start=start))

    def explain_sync(
        self,
        permission: Node,
        context: Context = None,
        *,
        start: Node | None = None,
    ) -> list[ExplanationRecord]:
        """Blocking :meth:`explain` for callers without a running event loop."""
        return asyncio.run(self.explain(permission, context, start=start))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _candidates(self, from_node: Node, to_node: Node, path: frozenset[Node]) -> list[Edge]:
        return [
            edge
            for edge in self._graph.edges_from(from_node)
            if edge.to_node not in path and self._graph.can_reach(edge.to_node, to_node)
        ]

    async def _check(
        self,
        from_node: Node,
        to_node: Node,
        scope: ContextScope,
        restrictions: Restrictions,
        path: frozenset[Node],
    ) -> dict[str, Any] | None:
        if from_node == to_node:
            return {}

        edges = self._candidates(from_node, to_node, path)
        results = await _gather_branches([
            self._check_edge(edge, to_node, scope, restrictions, path | {edge.to_node})
            for edge in edges
        ])

        # Later-declared branches overwrite earlier ones.
        merged: dict[str, Any] | None = None
        for result in results:
            if result is None:
                continue
            if merged is None:
                merged = {}
            merged.update(result)
        return merged

    async def _check_edge(
        self,
        edge: Edge,
        to_node: Node,
        scope: ContextScope,
        restrictions: Restrictions,
        path: frozenset[Node],
    ) -> dict[str, Any] | None:
        edge_scope = scope.child()

        passed, _ = await self._evaluate(edge, edge_scope)
        if not passed:
            return None

        children = await self._check(edge.to_node, to_node, edge_scope, restrictions, path)
        if children is None:
            return None

        await self._fill_restrictions(edge, edge_scope, restrictions)

        # Bindings made closer to the target win over this edge's own.
        return {**edge_scope.bindings, **children}

    async def _explain(
        self,
        from_node: Node,
        to_node: Node,
        scope: ContextScope,
        path: frozenset[Node],
    ) -> list[ExplanationRecord]:
        edges = self._candidates(from_node, to_node, path)
        groups = await _gather_branches([
            self._explain_edge(edge, to_node, scope, path | {edge.to_node})
            for edge in edges
        ])
        return [record for group in groups for record in group]

    async def _explain_edge(
        self,
        edge: Edge,
        to_node: Node,
        scope: ContextScope,
        path: frozenset[Node],
    ) -> list[ExplanationRecord]:
        edge_scope = scope.child()
        passed, error = await self._evaluate(edge, edge_scope)

        record = ExplanationRecord(
            from_node=edge.from_node,
            to=edge.to_node,
            explanation=edge.explanation,
            check_passed=passed,
            context=edge_scope.freeze() if self._settings.explain_include_context else None,
            error=repr(error) if error is not None else None,
        )
        if not passed or edge.to_node == to_node:
            return [record]

        children = await self._explain(edge.to_node, to_node, edge_scope, path)
        return [record, *children]

    # ------------------------------------------------------------------
    # Edge behaviour
    # ------------------------------------------------------------------

    async def _evaluate(
        self, edge: Edge, scope: ContextScope
    ) -> tuple[bool, Exception | None]:
        """Run the edge predicate against ``scope``.

        A predicate that raises fails its edge only; the exception is logged
        and returned for diagnostics.
        """
        if edge.check is None:
            return True, None

        try:
            outcome = edge.check(scope)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            if isinstance(outcome, Grant):
                scope.update(outcome.bindings)
                passed = True
            else:
                passed = bool(outcome)
        except Exception as exc:
            logger.log(
                self._settings.fault_level,
                "Predicate of %r raised %r; edge treated as failed",
                edge,
                exc,
            )
            return False, exc

        logger.debug("Edge %r %s", edge, "passed" if passed else "failed")
        return passed, None

    async def _fill_restrictions(
        self, edge: Edge, scope: ContextScope, restrictions: Restrictions
    ) -> None:
        if not restrictions or not edge.restrict:
            return

        frozen = scope.freeze()
        for key, accumulator in restrictions.items():
            fill = edge.restrict.get(key)
            if fill is None:
                continue
            try:
                outcome = fill(frozen, accumulator)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                raise RestrictionFillError(edge, key, exc) from exc

    def __repr__(self) -> str:
        return f"Acl(default_node={self._default_node!r}, graph={self._graph!r})"
