"""Typed, position tracking syntax tree of GitHub Actions workflows"""

from ._blocks import Concurrency, Defaults, DefaultsRun, Environment, EnvVar
from ._container import Container, Credentials, Service
from ._errors import (
    DuplicateKeyError,
    MissingFieldError,
    MutualExclusionError,
    ShapeMismatchError,
    WorkflowParseError,
    WorkflowSyntaxError,
)
from ._events import (
    WEBHOOK_EVENTS,
    DispatchInput,
    Event,
    RepositoryDispatchEvent,
    ScheduledEvent,
    WebhookEvent,
    WorkflowDispatchEvent,
)
from ._exec import Exec, ExecAction, ExecKind, ExecRun, Input
from ._job import Job, Output
from ._parse import load_workflow, parse_workflow
from ._permissions import Permission, Permissions, PermKind
from ._pos import Bool, Float, Int, Pos, String, Value
from ._runner import GitHubHostedRunner, Runner, SelfHostedRunner
from ._step import Step
from ._strategy import Matrix, MatrixCombination, MatrixRow, Strategy
from ._workflow import Workflow

__version__ = "0.1.0"

__all__ = [
    "Bool",
    "Concurrency",
    "Container",
    "Credentials",
    "Defaults",
    "DefaultsRun",
    "DispatchInput",
    "DuplicateKeyError",
    "EnvVar",
    "Environment",
    "Event",
    "Exec",
    "ExecAction",
    "ExecKind",
    "ExecRun",
    "Float",
    "GitHubHostedRunner",
    "Input",
    "Int",
    "Job",
    "Matrix",
    "MatrixCombination",
    "MatrixRow",
    "MissingFieldError",
    "MutualExclusionError",
    "Output",
    "PermKind",
    "Permission",
    "Permissions",
    "Pos",
    "RepositoryDispatchEvent",
    "Runner",
    "ScheduledEvent",
    "SelfHostedRunner",
    "Service",
    "ShapeMismatchError",
    "Step",
    "Strategy",
    "String",
    "Value",
    "WEBHOOK_EVENTS",
    "WebhookEvent",
    "Workflow",
    "WorkflowDispatchEvent",
    "WorkflowParseError",
    "WorkflowSyntaxError",
    "load_workflow",
    "parse_workflow",
]
