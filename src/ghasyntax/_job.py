"""https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobs"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ._blocks import Concurrency, Defaults, Environment, EnvVar
from ._container import Container, Service
from ._permissions import Permissions
from ._pos import Bool, Float, Pos, String, freeze
from ._runner import Runner
from ._step import Step
from ._strategy import Strategy


@dataclass(frozen=True, slots=True)
class Output:
    """A job output, the value is usually an expression"""

    name: String
    value: String


@dataclass(frozen=True, slots=True)
class Job:
    """A job in the 'jobs' section

    'needs' keeps the order it was written in, nothing checks the IDs exist or
    form a graph without cycles. 'steps' are in execution order.
    """

    id: String
    runs_on: Runner
    steps: tuple[Step, ...]
    name: String | None = None
    needs: tuple[String, ...] | None = None
    permissions: Permissions | None = None
    environment: Environment | None = None
    concurrency: Concurrency | None = None
    outputs: Mapping[str, Output] | None = None
    env: Mapping[str, EnvVar] | None = None
    defaults: Defaults | None = None
    if_: String | None = None
    timeout_minutes: Float | None = None
    strategy: Strategy | None = None
    continue_on_error: Bool | None = None
    container: Container | None = None
    services: Mapping[str, Service] | None = None
    pos: Pos | None = field(default=None, compare=False)

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "steps", "needs", "outputs", "env", "services")
