from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, TypeVar

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class Pos:
    """Position in the workflow file, 1-based"""

    line: int
    col: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.col}"


@dataclass(frozen=True, slots=True)
class Value(Generic[_T]):
    """A scalar value in the workflow file together with its position

    Only the value takes part in comparisons, so the same document shifted by
    a few lines still compares equal.
    """

    value: _T
    pos: Pos = field(compare=False)


String = Value[str]
Bool = Value[bool]
Int = Value[int]
Float = Value[float]


def freeze(obj: object, *names: str):
    """Replace list and dict fields of a frozen node with read-only versions"""
    for name in names:
        value = getattr(obj, name)
        if isinstance(value, list):
            object.__setattr__(obj, name, tuple(value))
        elif isinstance(value, Mapping) and not isinstance(value, MappingProxyType):
            object.__setattr__(obj, name, MappingProxyType(dict(value)))
