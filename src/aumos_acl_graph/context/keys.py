"""Typed context keys.

A :class:`ContextKey` names a context entry and the type its value must have.
Predicates that share data through the context can import the same key
object instead of agreeing on a bare string, and a wrong value type is caught
at the point of writing.

Example
-------
>>> USER = ContextKey("user", dict)
>>> USER.validate({"id": 1})
{'id': 1}
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ContextKey(Generic[T]):
    """Name and expected type of a context entry.

    Attributes
    ----------
    name:
        The underlying string key stored in the scope.
    value_type:
        Expected type of the value; ``object`` accepts anything.
    nullable:
        Whether ``None`` is accepted in addition to ``value_type``.
    """

    name: str
    value_type: type = object
    nullable: bool = False

    def validate(self, value: Any) -> T:
        """Return ``value`` unchanged, raising TypeError on a type mismatch."""
        if value is None and self.nullable:
            return value
        if not isinstance(value, self.value_type):
            raise TypeError(
                f"Context key {self.name!r} expects {self.value_type.__name__}; "
                f"got {type(value).__name__}."
            )
        return value

    def __str__(self) -> str:
        return self.name


def key_name(key: object) -> str:
    """Return the string stored in a scope for ``key``."""
    if isinstance(key, ContextKey):
        return key.name
    if isinstance(key, str):
        return key
    raise TypeError(f"Context keys must be str or ContextKey; got {type(key).__name__}.")
