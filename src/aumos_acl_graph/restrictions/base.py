"""Contract shared by restriction accumulators.

A restriction accumulator is a caller-owned sink of allow-list facts.  The
caller constructs it empty (nothing allowed), passes it to
:meth:`~aumos_acl_graph.engine.acl.Acl.check` under a key, and reads it back
once the check returns.  Edges on successful paths feed it through their
``restrict`` fill functions.

Accumulators must be:

- monotonic: fills only ever add to what is allowed;
- commutative: the final state does not depend on fill order, because
  branches of a check complete in no particular order;
- safe for concurrent additive mutation.
"""
from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class RestrictionAccumulator(Protocol):
    """Structural type for accumulators accepted by the engine.

    The engine itself never calls accumulator methods: only the fill
    functions declared on edges do.  The protocol therefore only requires a
    way to ask whether anything was granted at all.
    """

    @property
    def is_empty(self) -> bool:
        """True while nothing has been allowed."""


class LockedAccumulator:
    """Base class giving accumulators a mutation lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
