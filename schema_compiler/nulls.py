"""
Tri-state field wrapper.

A ``Null[T]`` is either undefined (never set, left out of any output),
an explicit null (serialized as ``null``), or a present value.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class NullState(str, Enum):
    """States of a Null wrapper."""
    UNDEFINED = "undefined"
    NULL = "null"
    VALUE = "value"


class Null(Generic[T]):
    """
    Immutable tri-state wrapper around a column value.

    ``Null()`` is undefined; use ``Null.new(value)`` for a present value and
    ``Null.null()`` for an explicit null.
    """

    __slots__ = ("_state", "_value")

    def __init__(self, state: NullState = NullState.UNDEFINED, value: Optional[T] = None):
        if state != NullState.VALUE:
            value = None
        object.__setattr__(self, "_state", state)
        object.__setattr__(self, "_value", value)

    @classmethod
    def new(cls, value: T) -> "Null[T]":
        """Wrap a present value."""
        return cls(NullState.VALUE, value)

    @classmethod
    def null(cls) -> "Null[T]":
        """Explicit absence."""
        return cls(NullState.NULL)

    @classmethod
    def undefined(cls) -> "Null[T]":
        return cls(NullState.UNDEFINED)

    @classmethod
    def from_optional(cls, value: Optional[T]) -> "Null[T]":
        """Map ``None`` to an explicit null and anything else to a value."""
        if value is None:
            return cls.null()
        return cls.new(value)

    @property
    def state(self) -> NullState:
        return self._state

    def is_some(self) -> bool:
        return self._state == NullState.VALUE

    def is_none(self) -> bool:
        """True for an explicit null only."""
        return self._state == NullState.NULL

    def is_undefined(self) -> bool:
        return self._state == NullState.UNDEFINED

    def take(self) -> Optional[T]:
        """Return the value, or None when undefined or null."""
        return self._value

    def unwrap_or(self, default: T) -> T:
        if self.is_some():
            return self._value
        return default

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Null values are immutable")

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Null):
            return NotImplemented
        return self._state == other._state and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._state, self._value))

    def __repr__(self) -> str:
        if self.is_some():
            return f"Null.new({self._value!r})"
        if self.is_none():
            return "Null.null()"
        return "Null.undefined()"

    def __copy__(self) -> "Null[T]":
        return self

    def __deepcopy__(self, memo) -> "Null[T]":
        from copy import deepcopy
        if not self.is_some():
            return self
        return Null.new(deepcopy(self._value, memo))

    def __reduce__(self):
        return (Null, (self._state, self._value))


def new(value: T) -> Null[T]:
    return Null.new(value)


def null() -> Null[Any]:
    return Null.null()


def undefined() -> Null[Any]:
    return Null.undefined()
