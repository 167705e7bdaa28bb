from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ._blocks import EnvVar
from ._exec import Exec, ExecAction, ExecRun
from ._pos import Bool, Float, Pos, String, freeze


@dataclass(frozen=True, slots=True)
class Step:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idsteps

    'if_' is the condition exactly as written, it isn't parsed.
    """

    exec: Exec
    id: String | None = None
    if_: String | None = None
    name: String | None = None
    env: Mapping[str, EnvVar] | None = None
    continue_on_error: Bool | None = None
    timeout_minutes: Float | None = None
    pos: Pos | None = field(default=None, compare=False)

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "env")

    @property
    def run(self) -> ExecRun | None:
        """The script, or None if this step uses an action"""
        return self.exec if isinstance(self.exec, ExecRun) else None

    @property
    def action(self) -> ExecAction | None:
        """The action, or None if this step runs a script"""
        return self.exec if isinstance(self.exec, ExecAction) else None
