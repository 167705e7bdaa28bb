"""What a step executes: a script or an action"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from ._pos import String, freeze


class ExecKind(Enum):
    """Kind of execution of a step"""

    ACTION = "action"
    RUN = "run"


class Exec(ABC):
    """How a step is executed"""

    __slots__ = ()

    @property
    @abstractmethod
    def kind(self) -> ExecKind:
        """Return which kind of execution this is"""


@dataclass(frozen=True, slots=True)
class ExecRun(Exec):
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idstepsrun"""

    run: String
    # None means not specified
    shell: String | None = None
    working_directory: String | None = None

    @property
    def kind(self) -> ExecKind:
        return ExecKind.RUN


@dataclass(frozen=True, slots=True)
class Input:
    """An input in the 'with' section of a step"""

    name: String
    value: String


@dataclass(frozen=True, slots=True)
class ExecAction(Exec):
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idstepsuses

    Inputs are keyed by their exact name. 'entrypoint' and 'args' only apply to
    Docker container actions so they're kept apart from the other inputs.
    """

    uses: String
    inputs: Mapping[str, Input] | None = None
    entrypoint: String | None = None
    args: String | None = None

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "inputs")

    @property
    def kind(self) -> ExecKind:
        return ExecKind.ACTION
