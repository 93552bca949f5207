"""Edges of the permission graph and their declaration form.

An :class:`Edge` is a directed, conditionally-passable transition between two
permission nodes.  Edges are never built by hand in application code: they
are declared with :class:`EdgeDefinition`, whose ``from`` and ``to`` sides may
each name a single node or several, and expanded into individual edges.

Example
-------
::

    definition = EdgeDefinition.from_dict({
        "from": "moderator",
        "to": ["can_edit_article", "can_edit_comment"],
        "explain": "Moderators can edit all articles and comments",
    })
    edges = list(definition.expand())
    assert [e.to_node for e in edges] == ["can_edit_article", "can_edit_comment"]
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

Node = Hashable
CheckFn = Callable[..., Any]
RestrictFn = Callable[..., Any]


class EdgeConfigError(ValueError):
    """Raised when an edge declaration is malformed.

    Attributes
    ----------
    index:
        Position of the offending declaration, when known.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        self.index = index
        prefix = f"[edge {index}] " if index is not None else ""
        super().__init__(f"{prefix}{message}")


# ---------------------------------------------------------------------------
# Edge
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Edge:
    """A single directed edge of the permission graph.

    Attributes
    ----------
    from_node:
        Node the edge leaves.
    to_node:
        Node the edge enters.
    explanation:
        Human-readable description, surfaced by ``explain``.
    check:
        Optional predicate receiving the edge's context scope.  ``None`` means
        the edge is always passable.
    restrict:
        Mapping of restriction key to fill function.
    """

    from_node: Node
    to_node: Node
    explanation: str
    check: CheckFn | None = None
    restrict: Mapping[str, RestrictFn] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def is_conditional(self) -> bool:
        return self.check is not None

    def __repr__(self) -> str:
        return f"Edge({self.from_node!r} -> {self.to_node!r}: {self.explanation!r})"


# ---------------------------------------------------------------------------
# EdgeDefinition
# ---------------------------------------------------------------------------


def normalize_node(node: Node) -> Node:
    """Return the plain value of an enum node so enums and strings interoperate."""
    if isinstance(node, Enum):
        return node.value
    return node


def _as_nodes(value: object, side: str, index: int | None) -> tuple[Node, ...]:
    if value is None:
        raise EdgeConfigError(f"'{side}' is required.", index)
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        nodes: tuple[object, ...] = (value,)
    else:
        nodes = tuple(value)
    if not nodes:
        raise EdgeConfigError(f"'{side}' must name at least one node.", index)
    for node in nodes:
        if not isinstance(node, Hashable):
            raise EdgeConfigError(f"'{side}' node {node!r} is not hashable.", index)
        if isinstance(node, str) and not node:
            raise EdgeConfigError(f"'{side}' node names must not be empty.", index)
    return tuple(normalize_node(node) for node in nodes)


@dataclass(frozen=True)
class EdgeDefinition:
    """Declaration of one or more edges sharing an explanation and behaviour.

    ``from_nodes`` and ``to_nodes`` are normalised to tuples; a bare node is
    accepted on either side.
    """

    from_nodes: tuple[Node, ...]
    to_nodes: tuple[Node, ...]
    explanation: str
    check: CheckFn | None = None
    restrict: Mapping[str, RestrictFn] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        from_nodes: object,
        to_nodes: object,
        explanation: object,
        check: CheckFn | None = None,
        restrict: Mapping[str, RestrictFn] | None = None,
        index: int | None = None,
    ) -> EdgeDefinition:
        """Validate raw declaration values and build a definition.

        Raises
        ------
        EdgeConfigError
            If a side is empty, an explanation is missing, or ``check`` or a
            restrict value is not callable.
        """
        froms = _as_nodes(from_nodes, "from", index)
        tos = _as_nodes(to_nodes, "to", index)

        if not isinstance(explanation, str) or not explanation.strip():
            raise EdgeConfigError("'explain' must be a non-empty string.", index)

        if check is not None and not callable(check):
            raise EdgeConfigError(f"'check' must be callable; got {check!r}.", index)

        restrict_fns: dict[str, RestrictFn] = {}
        if restrict is not None:
            if not isinstance(restrict, Mapping):
                raise EdgeConfigError("'restrict' must be a mapping.", index)
            for key, fill in restrict.items():
                if not callable(fill):
                    raise EdgeConfigError(
                        f"'restrict.{key}' must be callable; got {fill!r}.", index
                    )
                restrict_fns[str(key)] = fill

        return cls(
            from_nodes=froms,
            to_nodes=tos,
            explanation=explanation,
            check=check,
            restrict=restrict_fns,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object], index: int | None = None) -> EdgeDefinition:
        """Build a definition from the mapping form.

        Recognised keys are ``from``, ``to``, ``explain`` (or
        ``explanation``), ``check`` and ``restrict``.
        """
        if not isinstance(data, Mapping):
            raise EdgeConfigError(
                f"Edge declaration must be a mapping; got {type(data).__name__}.",
                index,
            )
        explanation = data.get("explain", data.get("explanation"))
        return cls.create(
            data.get("from"),
            data.get("to"),
            explanation,
            check=data.get("check"),  # type: ignore[arg-type]
            restrict=data.get("restrict"),  # type: ignore[arg-type]
            index=index,
        )

    def expand(self) -> Iterator[Edge]:
        """Yield one edge per ``(from, to)`` pair, from-major."""
        restrict = MappingProxyType(dict(self.restrict))
        for from_node in self.from_nodes:
            for to_node in self.to_nodes:
                yield Edge(
                    from_node=from_node,
                    to_node=to_node,
                    explanation=self.explanation,
                    check=self.check,
                    restrict=restrict,
                )
