"""Builds a workflow tree from the nodes composed by ruamel.yaml"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterator
from pathlib import Path
from typing import TypeVar

import ruamel.yaml
from ruamel.yaml.nodes import MappingNode, Node, SequenceNode

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
from ._exec import Exec, ExecAction, ExecRun, Input
from ._job import Job, Output
from ._permissions import Permission, Permissions, PermKind
from ._pos import Pos, String
from ._runner import SELF_HOSTED_LABEL, GitHubHostedRunner, Runner, SelfHostedRunner
from ._step import Step
from ._strategy import Matrix, MatrixCombination, MatrixRow, Strategy
from ._validation import (
    describe,
    is_null,
    pos_of,
    to_bool,
    to_float,
    to_int,
    to_mapping,
    to_sequence,
    to_string,
    to_strings,
)
from ._workflow import Workflow

logger: logging.Logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_WEBHOOK_FILTERS = {
    "types": "types",
    "branches": "branches",
    "branches-ignore": "branches_ignore",
    "tags": "tags",
    "tags-ignore": "tags_ignore",
    "paths": "paths",
    "paths-ignore": "paths_ignore",
    "workflows": "workflows",
}

# Keys whose forms can't be mixed when the key is repeated
_EXCLUSIVE_FORMS = ("permissions",)


def load_workflow(source: str | Path) -> Workflow:
    """Load a workflow from YAML text or a file

    Args:
        source: the YAML document, or the path of a file containing it

    Returns:
        the workflow

    Raises:
        WorkflowParseError: if the document isn't a valid workflow
        ruamel.yaml.error.YAMLError: if the document isn't valid YAML
    """
    if isinstance(source, Path):
        source = source.read_text(encoding="utf-8")

    yaml = ruamel.yaml.YAML()
    node: Node | None = yaml.compose(source)  # type: ignore

    return parse_workflow(node)


def parse_workflow(node: Node | None) -> Workflow:
    """Build a workflow from a composed YAML document

    Errors don't stop the walk: every independent problem in the document is
    collected and reported together.

    Args:
        node: the root node, None for an empty document

    Returns:
        the workflow

    Raises:
        WorkflowParseError: with all the errors found, if there are any
    """
    parser = _Parser()
    workflow = parser.workflow(node)
    if parser.errors:
        raise WorkflowParseError(parser.errors)
    assert workflow is not None
    return workflow


class _Parser:
    """Walks the document, builders raise and the nearest section catches"""

    def __init__(self):
        self.errors = list[WorkflowSyntaxError]()

    def _attempt(self, build: Callable[..., _T], *args: object) -> _T | None:
        try:
            return build(*args)
        except WorkflowSyntaxError as error:
            logger.debug("Recorded error: %s", error)
            self.errors.append(error)
            return None

    def _items(
        self, node: Node, location: str, exclusive: Collection[str] = ()
    ) -> Iterator[tuple[String, Node]]:
        """Yield the entries of a mapping, recording any repeated keys

        A repeated key in 'exclusive' given in a different form, e.g. once as
        a string and once as a mapping, is recorded as a mutual exclusion.
        """
        seen = dict[str, tuple[String, Node]]()
        for key_node, value in to_mapping(node, location).value:
            key = self._attempt(to_string, key_node, f"{location} key")
            if key is None:
                continue
            if key.value in seen:
                first_key, first_value = seen[key.value]
                if key.value in exclusive and type(first_value) is not type(value):
                    self.errors.append(
                        MutualExclusionError(
                            f"'{key.value}' at '{location}' is given both as"
                            f" {describe(first_value)} at {first_key.pos}"
                            f" and as {describe(value)}",
                            key.pos,
                        )
                    )
                else:
                    self.errors.append(
                        DuplicateKeyError(
                            f"Key '{key.value}' at '{location}' is already"
                            f" defined at {first_key.pos}",
                            key.pos,
                        )
                    )
                continue
            seen[key.value] = key, value
            yield key, value

    def _unexpected(self, key: String, location: str):
        self.errors.append(
            ShapeMismatchError(f"Unexpected key '{key.value}' at '{location}'", key.pos)
        )

    def workflow(self, node: Node | None) -> Workflow | None:
        if node is None:
            self.errors.append(MissingFieldError("Workflow is empty", Pos(1, 1)))
            return None

        location = "top level"
        if self._attempt(to_mapping, node, location) is None:
            return None

        name = permissions = env = defaults = concurrency = None
        on: list[Event] | None = None
        jobs: dict[str, Job] | None = None

        for key, value in self._items(node, location, _EXCLUSIVE_FORMS):
            match key.value:
                case "name":
                    name = self._attempt(to_string, value, "name")
                case "on":
                    on = self._events(value)
                case "permissions":
                    permissions = self._attempt(self._permissions, value, "permissions")
                case "env":
                    env = self._attempt(self._env, value, "env")
                case "defaults":
                    defaults = self._attempt(self._defaults, value, "defaults")
                case "concurrency":
                    concurrency = self._attempt(self._concurrency, value, "concurrency")
                case "jobs":
                    jobs = self._jobs(value)
                case _:
                    self._unexpected(key, location)

        if on is None:
            self.errors.append(
                MissingFieldError("'on' section is missing in workflow", pos_of(node))
            )
        if jobs is None:
            self.errors.append(
                MissingFieldError("'jobs' section is missing in workflow", pos_of(node))
            )
        if self.errors:
            return None

        return Workflow(
            on=on,
            jobs=jobs,
            name=name,
            permissions=permissions,
            env=env,
            defaults=defaults,
            concurrency=concurrency,
        )

    # Triggers

    def _events(self, node: Node) -> list[Event]:
        location = "on"
        events = list[Event]()

        def add(event: Event | None):
            if event is not None:
                events.append(event)

        match node:
            case MappingNode():
                for key, value in self._items(node, location):
                    add(self._attempt(self._event, key, value, f"on.{key.value}"))
            case SequenceNode():
                for i, element in enumerate(node.value):
                    name = self._attempt(to_string, element, f"on[{i}]")
                    if name is not None:
                        add(self._attempt(self._event, name, None, f"on[{i}]"))
            case _:
                name = self._attempt(to_string, node, location)
                if name is not None:
                    add(self._attempt(self._event, name, None, location))

        return events

    def _event(self, name: String, body: Node | None, location: str) -> Event:
        if body is not None and is_null(body):
            body = None

        match name.value:
            case "schedule":
                return self._scheduled_event(name, body, location)
            case "workflow_dispatch":
                return self._workflow_dispatch_event(name, body, location)
            case "repository_dispatch":
                return self._repository_dispatch_event(name, body, location)
            case hook if hook in WEBHOOK_EVENTS:
                return self._webhook_event(name, body, location)
            case _:
                raise ShapeMismatchError(
                    f"Unknown event '{name.value}' at '{location}'", name.pos
                )

    def _webhook_event(
        self, name: String, body: Node | None, location: str
    ) -> WebhookEvent:
        filters = dict[str, tuple[String, ...]]()
        if body is not None:
            for key, value in self._items(body, location):
                field_name = _WEBHOOK_FILTERS.get(key.value)
                if field_name is None:
                    self._unexpected(key, location)
                    continue
                filters[field_name] = to_strings(value, f"{location}.{key.value}")

        return WebhookEvent(hook=name, pos=name.pos, **filters)

    def _scheduled_event(
        self, name: String, body: Node | None, location: str
    ) -> ScheduledEvent:
        if body is None:
            raise MissingFieldError(
                f"'cron' entries are missing at '{location}'", name.pos
            )

        cron = list[String]()
        for i, element in enumerate(to_sequence(body, location).value):
            element_location = f"{location}[{i}]"
            expression = None
            for key, value in self._items(element, element_location):
                if key.value == "cron":
                    expression = to_string(value, f"{element_location}.cron")
                else:
                    self._unexpected(key, element_location)
            if expression is None:
                raise MissingFieldError(
                    f"'cron' is missing at '{element_location}'", pos_of(element)
                )
            cron.append(expression)

        return ScheduledEvent(cron=tuple(cron), pos=name.pos)

    def _workflow_dispatch_event(
        self, name: String, body: Node | None, location: str
    ) -> WorkflowDispatchEvent:
        inputs = None
        if body is not None:
            for key, value in self._items(body, location):
                if key.value == "inputs":
                    inputs = self._dispatch_inputs(value, f"{location}.inputs")
                else:
                    self._unexpected(key, location)

        return WorkflowDispatchEvent(inputs=inputs, pos=name.pos)

    def _dispatch_inputs(self, node: Node, location: str) -> dict[str, DispatchInput]:
        inputs = dict[str, DispatchInput]()
        for name, body in self._items(node, location):
            input_location = f"{location}.{name.value}"
            fields = dict[str, object]()
            if not is_null(body):
                for key, value in self._items(body, input_location):
                    value_location = f"{input_location}.{key.value}"
                    match key.value:
                        case "description" | "default" | "type":
                            fields[key.value] = to_string(value, value_location)
                        case "required":
                            fields["required"] = to_bool(value, value_location)
                        case "options":
                            fields["options"] = to_strings(value, value_location)
                        case _:
                            self._unexpected(key, input_location)
            inputs[name.value] = DispatchInput(name=name, **fields)
        return inputs

    def _repository_dispatch_event(
        self, name: String, body: Node | None, location: str
    ) -> RepositoryDispatchEvent:
        types = None
        if body is not None:
            for key, value in self._items(body, location):
                if key.value == "types":
                    types = to_strings(value, f"{location}.types")
                else:
                    self._unexpected(key, location)

        return RepositoryDispatchEvent(types=types, pos=name.pos)

    # Blocks shared by workflow and jobs

    def _permissions(self, node: Node, location: str) -> Permissions:
        if isinstance(node, MappingNode):
            scopes = dict[str, Permission]()
            for scope, value in self._items(node, location):
                kind_str = to_string(value, f"{location}.{scope.value}")
                kind = PermKind.from_string(kind_str.value)
                if kind is None:
                    raise ShapeMismatchError(
                        f"Expected 'read', 'write' or 'none' at"
                        f" '{location}.{scope.value}' but found '{kind_str.value}'",
                        kind_str.pos,
                    )
                scopes[scope.value] = Permission(name=scope, kind=kind, pos=scope.pos)
            return Permissions.scoped(scopes, pos_of(node))

        value = to_string(node, location)
        match value.value:
            case "read-all":
                kind = PermKind.READ
            case "write-all":
                kind = PermKind.WRITE
            case _:
                raise ShapeMismatchError(
                    f"Expected 'read-all', 'write-all' or a mapping of scopes"
                    f" at '{location}' but found '{value.value}'",
                    value.pos,
                )
        return Permissions.blanket(
            Permission(name=None, kind=kind, pos=value.pos), value.pos
        )

    def _env(self, node: Node, location: str) -> dict[str, EnvVar]:
        return {
            name.value: EnvVar(name, to_string(value, f"{location}.{name.value}"))
            for name, value in self._items(node, location)
        }

    def _defaults(self, node: Node, location: str) -> Defaults:
        run = None
        for key, value in self._items(node, location):
            if key.value != "run":
                self._unexpected(key, location)
                continue
            run_location = f"{location}.run"
            fields = dict[str, String]()
            for run_key, run_value in self._items(value, run_location):
                match run_key.value:
                    case "shell":
                        fields["shell"] = to_string(run_value, f"{run_location}.shell")
                    case "working-directory":
                        fields["working_directory"] = to_string(
                            run_value, f"{run_location}.working-directory"
                        )
                    case _:
                        self._unexpected(run_key, run_location)
            run = DefaultsRun(pos=pos_of(value), **fields)
        return Defaults(run=run, pos=pos_of(node))

    def _concurrency(self, node: Node, location: str) -> Concurrency:
        if not isinstance(node, MappingNode):
            return Concurrency(group=to_string(node, location), pos=pos_of(node))

        group = cancel_in_progress = None
        for key, value in self._items(node, location):
            match key.value:
                case "group":
                    group = to_string(value, f"{location}.group")
                case "cancel-in-progress":
                    cancel_in_progress = to_bool(
                        value, f"{location}.cancel-in-progress"
                    )
                case _:
                    self._unexpected(key, location)
        if group is None:
            raise MissingFieldError(f"'group' is missing at '{location}'", pos_of(node))
        return Concurrency(
            group=group, cancel_in_progress=cancel_in_progress, pos=pos_of(node)
        )

    def _environment(self, node: Node, location: str) -> Environment:
        if not isinstance(node, MappingNode):
            return Environment(name=to_string(node, location), pos=pos_of(node))

        name = url = None
        for key, value in self._items(node, location):
            match key.value:
                case "name":
                    name = to_string(value, f"{location}.name")
                case "url":
                    url = to_string(value, f"{location}.url")
                case _:
                    self._unexpected(key, location)
        if name is None:
            raise MissingFieldError(f"'name' is missing at '{location}'", pos_of(node))
        return Environment(name=name, url=url, pos=pos_of(node))

    # Jobs

    def _jobs(self, node: Node) -> dict[str, Job]:
        jobs = dict[str, Job]()
        if self._attempt(to_mapping, node, "jobs") is None:
            return jobs

        for job_id, value in self._items(node, "jobs"):
            job = self._attempt(self._job, job_id, value, f"jobs.{job_id.value}")
            if job is not None:
                jobs[job_id.value] = job
        return jobs

    # pylint: disable-next=too-many-branches,too-many-locals
    def _job(self, job_id: String, node: Node, location: str) -> Job | None:
        fields = dict[str, object]()
        seen = set[str]()
        runs_on: Runner | None = None
        steps: list[Step] | None = None

        def attempt(
            field_name: str, build: Callable[..., object], value: Node, key: str
        ):
            result = self._attempt(build, value, f"{location}.{key}")
            if result is not None:
                fields[field_name] = result

        for key, value in self._items(node, location, _EXCLUSIVE_FORMS):
            seen.add(key.value)
            match key.value:
                case "name":
                    attempt("name", to_string, value, key.value)
                case "needs":
                    attempt("needs", to_strings, value, key.value)
                case "runs-on":
                    runs_on = self._attempt(self._runner, value, f"{location}.runs-on")
                case "permissions":
                    attempt("permissions", self._permissions, value, key.value)
                case "environment":
                    attempt("environment", self._environment, value, key.value)
                case "concurrency":
                    attempt("concurrency", self._concurrency, value, key.value)
                case "outputs":
                    attempt("outputs", self._outputs, value, key.value)
                case "env":
                    attempt("env", self._env, value, key.value)
                case "defaults":
                    attempt("defaults", self._defaults, value, key.value)
                case "if":
                    attempt("if_", to_string, value, key.value)
                case "steps":
                    steps = self._steps(value, f"{location}.steps")
                case "timeout-minutes":
                    attempt("timeout_minutes", to_float, value, key.value)
                case "strategy":
                    attempt("strategy", self._strategy, value, key.value)
                case "continue-on-error":
                    attempt("continue_on_error", to_bool, value, key.value)
                case "container":
                    attempt("container", self._container, value, key.value)
                case "services":
                    attempt("services", self._services, value, key.value)
                case _:
                    self._unexpected(key, location)

        if "runs-on" not in seen:
            raise MissingFieldError(
                f"'runs-on' section is missing in job '{job_id.value}'", job_id.pos
            )
        if "steps" not in seen:
            raise MissingFieldError(
                f"'steps' section is missing in job '{job_id.value}'", job_id.pos
            )
        if runs_on is None or steps is None:
            return None

        logger.debug("Parsed job '%s' with %d step(s)", job_id.value, len(steps))
        return Job(
            id=job_id,
            runs_on=runs_on,
            steps=tuple(steps),
            pos=job_id.pos,
            **fields,  # type: ignore
        )

    def _runner(self, node: Node, location: str) -> Runner:
        labels = to_strings(node, location)
        if any(label.value == SELF_HOSTED_LABEL for label in labels):
            return SelfHostedRunner(
                labels=tuple(
                    label for label in labels if label.value != SELF_HOSTED_LABEL
                ),
                pos=pos_of(node),
            )
        if len(labels) == 1:
            return GitHubHostedRunner(label=labels[0], pos=pos_of(node))
        raise ShapeMismatchError(
            f"Expected a single label or a '{SELF_HOSTED_LABEL}' label"
            f" at '{location}' but found {len(labels)} labels",
            pos_of(node),
        )

    def _outputs(self, node: Node, location: str) -> dict[str, Output]:
        return {
            name.value: Output(name, to_string(value, f"{location}.{name.value}"))
            for name, value in self._items(node, location)
        }

    def _strategy(self, node: Node, location: str) -> Strategy:
        fields = dict[str, object]()
        for key, value in self._items(node, location):
            value_location = f"{location}.{key.value}"
            match key.value:
                case "matrix":
                    fields["matrix"] = self._matrix(value, value_location)
                case "fail-fast":
                    fields["fail_fast"] = to_bool(value, value_location)
                case "max-parallel":
                    fields["max_parallel"] = to_int(value, value_location)
                case _:
                    self._unexpected(key, location)
        return Strategy(pos=pos_of(node), **fields)  # type: ignore

    def _matrix(self, node: Node, location: str) -> Matrix:
        rows = dict[str, MatrixRow]()
        include = exclude = None
        for key, value in self._items(node, location):
            value_location = f"{location}.{key.value}"
            match key.value:
                case "include":
                    include = self._combinations(value, value_location)
                case "exclude":
                    exclude = self._combinations(value, value_location)
                case _:
                    values = to_sequence(value, value_location)
                    rows[key.value] = MatrixRow(
                        name=key,
                        values=tuple(
                            to_string(element, f"{value_location}[{i}]")
                            for i, element in enumerate(values.value)
                        ),
                    )
        return Matrix(rows=rows, include=include, exclude=exclude, pos=pos_of(node))

    def _combinations(
        self, node: Node, location: str
    ) -> tuple[dict[str, MatrixCombination], ...]:
        combinations = list[dict[str, MatrixCombination]]()
        for i, element in enumerate(to_sequence(node, location).value):
            element_location = f"{location}[{i}]"
            combinations.append(
                {
                    key.value: MatrixCombination(
                        key, to_string(value, f"{element_location}.{key.value}")
                    )
                    for key, value in self._items(element, element_location)
                }
            )
        return tuple(combinations)

    def _container(self, node: Node, location: str) -> Container:
        if not isinstance(node, MappingNode):
            return Container(image=to_string(node, location), pos=pos_of(node))

        image = None
        fields = dict[str, object]()
        for key, value in self._items(node, location):
            value_location = f"{location}.{key.value}"
            match key.value:
                case "image":
                    image = to_string(value, value_location)
                case "credentials":
                    fields["credentials"] = self._credentials(value, value_location)
                case "env":
                    fields["env"] = self._env(value, value_location)
                case "ports":
                    fields["ports"] = to_strings(value, value_location)
                case "volumes":
                    fields["volumes"] = to_strings(value, value_location)
                case "options":
                    fields["options"] = to_string(value, value_location)
                case _:
                    self._unexpected(key, location)
        if image is None:
            raise MissingFieldError(f"'image' is missing at '{location}'", pos_of(node))
        return Container(image=image, pos=pos_of(node), **fields)  # type: ignore

    def _credentials(self, node: Node, location: str) -> Credentials:
        fields = dict[str, String]()
        for key, value in self._items(node, location):
            if key.value in ("username", "password"):
                fields[key.value] = to_string(value, f"{location}.{key.value}")
            else:
                self._unexpected(key, location)
        for required in ("username", "password"):
            if required not in fields:
                raise MissingFieldError(
                    f"'{required}' is missing at '{location}'", pos_of(node)
                )
        return Credentials(pos=pos_of(node), **fields)

    def _services(self, node: Node, location: str) -> dict[str, Service]:
        services = dict[str, Service]()
        for name, value in self._items(node, location):
            container = self._attempt(
                self._container, value, f"{location}.{name.value}"
            )
            if container is not None:
                services[name.value] = Service(name=name, container=container)
        return services

    # Steps

    def _steps(self, node: Node, location: str) -> list[Step] | None:
        sequence = self._attempt(to_sequence, node, location)
        if sequence is None:
            return None

        steps = list[Step]()
        for i, element in enumerate(sequence.value):
            step = self._attempt(self._step, element, f"{location}[{i}]")
            if step is not None:
                steps.append(step)
        return steps

    # pylint: disable-next=too-many-branches
    def _step(self, node: Node, location: str) -> Step:
        keys = dict[str, String]()
        fields = dict[str, object]()
        run = uses = shell = working_directory = None
        inputs: dict[str, Input] | None = None
        entrypoint = args = None

        for key, value in self._items(node, location):
            keys[key.value] = key
            value_location = f"{location}.{key.value}"
            match key.value:
                case "id":
                    fields["id"] = to_string(value, value_location)
                case "if":
                    fields["if_"] = to_string(value, value_location)
                case "name":
                    fields["name"] = to_string(value, value_location)
                case "env":
                    fields["env"] = self._env(value, value_location)
                case "continue-on-error":
                    fields["continue_on_error"] = to_bool(value, value_location)
                case "timeout-minutes":
                    fields["timeout_minutes"] = to_float(value, value_location)
                case "run":
                    run = to_string(value, value_location)
                case "shell":
                    shell = to_string(value, value_location)
                case "working-directory":
                    working_directory = to_string(value, value_location)
                case "uses":
                    uses = to_string(value, value_location)
                case "with":
                    inputs = {}
                    for name, input_value in self._items(value, value_location):
                        input_ = to_string(
                            input_value, f"{value_location}.{name.value}"
                        )
                        match name.value:
                            case "entrypoint":
                                entrypoint = input_
                            case "args":
                                args = input_
                            case _:
                                inputs[name.value] = Input(name, input_)
                case _:
                    self._unexpected(key, location)

        exec_: Exec
        if "run" in keys and "uses" in keys:
            raise MutualExclusionError(
                f"'run' and 'uses' can't be used together at '{location}'",
                keys["uses"].pos,
            )
        if "run" in keys:
            if "with" in keys:
                raise ShapeMismatchError(
                    f"'with' is only available with 'uses' at '{location}'",
                    keys["with"].pos,
                )
            assert run is not None
            exec_ = ExecRun(run=run, shell=shell, working_directory=working_directory)
        elif "uses" in keys:
            for only_run in ("shell", "working-directory"):
                if only_run in keys:
                    raise ShapeMismatchError(
                        f"'{only_run}' is only available with 'run' at '{location}'",
                        keys[only_run].pos,
                    )
            assert uses is not None
            exec_ = ExecAction(
                uses=uses, inputs=inputs, entrypoint=entrypoint, args=args
            )
        else:
            raise MissingFieldError(
                f"Step must have 'run' or 'uses' at '{location}'", pos_of(node)
            )

        return Step(exec=exec_, pos=pos_of(node), **fields)  # type: ignore
