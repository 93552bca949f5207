"""Result types produced by the traversal and explain engines."""
from __future__ import annotations

import json
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any

from aumos_acl_graph.context.scope import ContextScope

_JSON_SCALARS = (str, int, float, bool, type(None))


def _json_safe(value: Any) -> Any:
    if isinstance(value, _JSON_SCALARS):
        return value
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(v) for v in value]
    return str(value)


@dataclass(frozen=True)
class Grant:
    """Predicate outcome that passes the edge and binds values for its branch.

    Returning ``Grant({"user": user})`` from a predicate is equivalent to
    writing ``scope["user"] = user`` and returning ``True``, but keeps the
    data flow visible in the predicate's return value.

    Example
    -------
    ::

        async def is_logged_in(scope):
            user = await load_user(scope["token"])
            return Grant({"user": user}) if user else False
    """

    bindings: Mapping[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class ExplanationRecord:
    """One attempted edge in an explain traversal.

    Attributes
    ----------
    from_node:
        Node the edge leaves.
    to:
        Node the edge enters.
    explanation:
        The edge's human-readable description.
    check_passed:
        Whether the edge predicate passed.
    context:
        Frozen scope as seen (and written) by the predicate, or ``None``
        when context capture is disabled.
    error:
        ``repr`` of the exception raised by the predicate, if any.
    """

    from_node: Hashable
    to: Hashable
    explanation: str
    check_passed: bool
    context: ContextScope | None = None
    error: str | None = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        return "passed" if self.check_passed else "failed"

    def to_dict(self) -> dict[str, object]:
        """Serialise this record to a JSON-compatible dict."""
        return {
            "from": _json_safe(self.from_node),
            "to": _json_safe(self.to),
            "explain": self.explanation,
            "check_passed": self.check_passed,
            "error": self.error,
            "context": _json_safe(self.context.to_dict()) if self.context is not None else None,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
