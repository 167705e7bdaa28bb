"""https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idstrategy"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ._pos import Bool, Int, Pos, String, freeze


@dataclass(frozen=True, slots=True)
class MatrixRow:
    """One axis of the matrix with its candidate values in source order"""

    name: String
    values: tuple[String, ...]

    def __post_init__(self):
        freeze(self, "values")


@dataclass(frozen=True, slots=True)
class MatrixCombination:
    """A key and value of an 'include' or 'exclude' entry"""

    key: String
    value: String


Combinations = tuple[Mapping[str, MatrixCombination], ...]


@dataclass(frozen=True, slots=True)
class Matrix:
    """A build matrix

    Expanding it into jobs is not done here. 'include' and 'exclude' are kept
    exactly as written, including keys which aren't axes in 'rows'.
    """

    rows: Mapping[str, MatrixRow]
    include: Combinations | None = None
    exclude: Combinations | None = None
    pos: Pos | None = field(default=None, compare=False)

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "rows")
        for name in ("include", "exclude"):
            combinations = getattr(self, name)
            if combinations is not None:
                object.__setattr__(self, name, _freeze_combinations(combinations))


def _freeze_combinations(combinations: Combinations) -> Combinations:
    return tuple(MappingProxyType(dict(c)) for c in combinations)


@dataclass(frozen=True, slots=True)
class Strategy:
    """Matrix together with how its jobs are scheduled"""

    matrix: Matrix | None = None
    fail_fast: Bool | None = None
    max_parallel: Int | None = None
    pos: Pos | None = field(default=None, compare=False)
