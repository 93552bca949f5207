"""Layered, read-through / write-isolated context scopes.

A :class:`ContextScope` is one layer of key/value bindings with an optional
parent.  Lookups that miss the local layer fall through to the parent chain;
writes and deletes only ever touch the local layer.  Two children created
from the same parent therefore never see each other's writes, which is what
lets concurrent branches of a permission check share their ancestors' data
without locking.

Example
-------
>>> root = ContextScope({"token": "abc"})
>>> left, right = root.child(), root.child()
>>> left["user"] = {"id": 1}
>>> "user" in right
False
>>> left["token"]
'abc'
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from aumos_acl_graph.context.keys import ContextKey, T, key_name


class ScopeFrozenError(TypeError):
    """Raised when writing to a frozen scope."""


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<deleted>"


_DELETED = _Deleted()


class ContextScope(MutableMapping[str, Any]):
    """One layer of a context chain.

    Parameters
    ----------
    bindings:
        Initial local bindings.  Keys may be ``str`` or :class:`ContextKey`.
    parent:
        Scope to read through to for keys not bound locally.
    """

    __slots__ = ("_data", "_parent", "_frozen")

    def __init__(
        self,
        bindings: Mapping[Any, Any] | None = None,
        parent: ContextScope | None = None,
    ) -> None:
        self._data: dict[str, Any] = {}
        self._parent = parent
        self._frozen = False
        if bindings:
            for key, value in bindings.items():
                self[key] = value

    @classmethod
    def wrap(cls, context: Mapping[Any, Any] | ContextScope | None) -> ContextScope:
        """Return ``context`` itself if it is a scope, else a new root scope."""
        if isinstance(context, ContextScope):
            return context
        return cls(context)

    # ------------------------------------------------------------------
    # Layering
    # ------------------------------------------------------------------

    @property
    def parent(self) -> ContextScope | None:
        return self._parent

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def depth(self) -> int:
        """Number of ancestors above this layer."""
        depth, scope = 0, self._parent
        while scope is not None:
            depth, scope = depth + 1, scope._parent
        return depth

    def child(self, bindings: Mapping[Any, Any] | None = None) -> ContextScope:
        """Return a new writable layer on top of this one."""
        return ContextScope(bindings, parent=self)

    def freeze(self) -> ContextScope:
        """Return a read-only view of this layer and its ancestors.

        The view shares the ancestor chain; its local layer is a snapshot.
        """
        view = ContextScope(parent=self._parent)
        view._data = dict(self._data)
        view._frozen = True
        return view

    @property
    def bindings(self) -> dict[str, Any]:
        """Copy of the keys bound in this layer only (deletions excluded)."""
        return {k: v for k, v in self._data.items() if v is not _DELETED}

    def to_dict(self) -> dict[str, Any]:
        """Flatten the chain into a plain dict, closest layer winning."""
        layers: list[dict[str, Any]] = []
        scope: ContextScope | None = self
        while scope is not None:
            layers.append(scope._data)
            scope = scope._parent

        flat: dict[str, Any] = {}
        for layer in reversed(layers):
            for key, value in layer.items():
                if value is _DELETED:
                    flat.pop(key, None)
                else:
                    flat[key] = value
        return flat

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    def require(self, key: ContextKey[T]) -> T:
        """Return the value of a typed key, validating its type.

        Raises
        ------
        KeyError
            If the key is not bound anywhere in the chain.
        TypeError
            If the bound value has the wrong type.
        """
        return key.validate(self[key.name])

    # ------------------------------------------------------------------
    # MutableMapping interface
    # ------------------------------------------------------------------

    def _lookup(self, name: str) -> Any:
        scope: ContextScope | None = self
        while scope is not None:
            if name in scope._data:
                return scope._data[name]
            scope = scope._parent
        return _DELETED

    def __getitem__(self, key: Any) -> Any:
        name = key_name(key)
        value = self._lookup(name)
        if value is _DELETED:
            raise KeyError(name)
        return value

    def __setitem__(self, key: Any, value: Any) -> None:
        if self._frozen:
            raise ScopeFrozenError(f"Cannot set {key_name(key)!r} on a frozen scope.")
        if isinstance(key, ContextKey):
            value = key.validate(value)
        self._data[key_name(key)] = value

    def __delitem__(self, key: Any) -> None:
        if self._frozen:
            raise ScopeFrozenError(f"Cannot delete {key_name(key)!r} on a frozen scope.")
        name = key_name(key)
        if name not in self:
            raise KeyError(name)
        if self._parent is not None and name in self._parent:
            self._data[name] = _DELETED
        else:
            del self._data[name]

    def __contains__(self, key: object) -> bool:
        try:
            name = key_name(key)
        except TypeError:
            return False
        return self._lookup(name) is not _DELETED

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def __len__(self) -> int:
        return len(self.to_dict())

    def __repr__(self) -> str:
        state = ", frozen" if self._frozen else ""
        return f"ContextScope({self.bindings!r}, depth={self.depth}{state})"
