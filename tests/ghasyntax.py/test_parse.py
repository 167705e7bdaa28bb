import math
from pathlib import Path
from textwrap import dedent

import pytest
from pytest import param

from ghasyntax import (
    DuplicateKeyError,
    ExecAction,
    ExecRun,
    GitHubHostedRunner,
    MissingFieldError,
    MutualExclusionError,
    PermKind,
    Pos,
    RepositoryDispatchEvent,
    ScheduledEvent,
    SelfHostedRunner,
    ShapeMismatchError,
    Value,
    WebhookEvent,
    WorkflowDispatchEvent,
    WorkflowParseError,
    load_workflow,
)

JOBS = """\
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - run: make
"""


def _load(text: str):
    return load_workflow(dedent(text))


def _errors(text: str) -> list:
    with pytest.raises(WorkflowParseError) as excinfo:
        _load(text)
    return excinfo.value.errors


def test_minimal_workflow():
    workflow = _load(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: echo hi
        """
    )

    assert workflow.on == (WebhookEvent(hook=Value("push", Pos(1, 5))),)
    assert workflow.on[0].pos == Pos(1, 5)
    job = workflow.jobs["build"]
    assert job.id.pos == Pos(3, 3)
    assert job.runs_on.get_label() == "ubuntu-latest"
    step = job.steps[0]
    assert isinstance(step.exec, ExecRun)
    assert step.exec.run.value == "echo hi"
    assert step.exec.run.pos == Pos(6, 14)
    assert workflow.name is None
    assert workflow.permissions is None
    assert job.needs is None


def test_full_workflow():
    workflow = _load(
        """\
        name: CI
        on:
          push:
            branches: [main]
            paths-ignore:
              - docs/**
          pull_request:
          schedule:
            - cron: "0 0 * * *"
            - cron: "30 12 * * 1"
          workflow_dispatch:
            inputs:
              level:
                description: Log level
                required: true
                default: warning
                type: choice
                options: [info, warning]
              dry-run:
          repository_dispatch:
            types: [deploy]
        permissions:
          contents: read
          issues: write
        env:
          CI: true
        defaults:
          run:
            shell: bash
            working-directory: src
        concurrency:
          group: ci-${{ github.ref }}
          cancel-in-progress: true
        jobs:
          test:
            name: Test
            needs: [lint, build]
            if: github.event_name == 'push'
            runs-on: [self-hosted, linux, ARM64]
            environment:
              name: staging
              url: https://example.com
            concurrency: test
            outputs:
              version: ${{ steps.version.outputs.version }}
            timeout-minutes: 30
            continue-on-error: false
            strategy:
              fail-fast: false
              max-parallel: 2
              matrix:
                python: ["3.11", "3.12"]
            container:
              image: node:20
              credentials:
                username: octocat
                password: ${{ secrets.PASSWORD }}
              env:
                NODE_ENV: test
              ports: [80, "8080:80"]
              volumes:
                - data:/data
              options: --cpus 1
            services:
              redis: redis:7
            steps:
              - id: version
                name: Version
                shell: python
                working-directory: tools
                run: print(1)
                env:
                  DEBUG: "1"
                timeout-minutes: 1.5
                continue-on-error: true
              - uses: actions/checkout@v4
                with:
                  fetch-depth: 0
                  entrypoint: /bin/sh
                  args: -c true
        """
    )

    assert workflow.name.value == "CI"
    assert [event.event_name() for event in workflow.on] == [
        "push",
        "pull_request",
        "schedule",
        "workflow_dispatch",
        "repository_dispatch",
    ]
    push, pull_request, schedule, dispatch, repository_dispatch = workflow.on
    assert isinstance(push, WebhookEvent)
    assert [b.value for b in push.branches] == ["main"]
    assert [p.value for p in push.paths_ignore] == ["docs/**"]
    assert push.types is None
    assert pull_request == WebhookEvent(hook=Value("pull_request", Pos(1, 1)))
    assert isinstance(schedule, ScheduledEvent)
    assert [c.value for c in schedule.cron] == ["0 0 * * *", "30 12 * * 1"]
    assert isinstance(dispatch, WorkflowDispatchEvent)
    level = dispatch.inputs["level"]
    assert level.required.value is True
    assert level.default.value == "warning"
    assert level.type.value == "choice"
    assert [o.value for o in level.options] == ["info", "warning"]
    assert dispatch.inputs["dry-run"].description is None
    assert isinstance(repository_dispatch, RepositoryDispatchEvent)
    assert [t.value for t in repository_dispatch.types] == ["deploy"]

    assert workflow.permissions.all is None
    assert workflow.permissions.effective("issues") is PermKind.WRITE
    assert workflow.permissions.effective("packages") is PermKind.NONE
    assert workflow.env["CI"].value.value == "true"
    assert workflow.defaults.run.shell.value == "bash"
    assert workflow.defaults.run.working_directory.value == "src"
    assert workflow.concurrency.group.value == "ci-${{ github.ref }}"
    assert workflow.concurrency.cancel_in_progress.value is True

    job = workflow.jobs["test"]
    assert job.name.value == "Test"
    assert [n.value for n in job.needs] == ["lint", "build"]
    assert job.if_.value == "github.event_name == 'push'"
    assert isinstance(job.runs_on, SelfHostedRunner)
    assert job.runs_on.all_labels() == ("self-hosted", "linux", "ARM64")
    assert job.environment.name.value == "staging"
    assert job.environment.url.value == "https://example.com"
    assert job.concurrency.group.value == "test"
    assert job.concurrency.cancel_in_progress is None
    assert job.outputs["version"].value.value == "${{ steps.version.outputs.version }}"
    assert job.timeout_minutes.value == 30.0
    assert job.continue_on_error.value is False
    assert job.strategy.fail_fast.value is False
    assert job.strategy.max_parallel.value == 2
    assert [v.value for v in job.strategy.matrix.rows["python"].values] == [
        "3.11",
        "3.12",
    ]
    container = job.container
    assert container.image.value == "node:20"
    assert container.credentials.username.value == "octocat"
    assert container.env["NODE_ENV"].value.value == "test"
    assert [p.value for p in container.ports] == ["80", "8080:80"]
    assert [v.value for v in container.volumes] == ["data:/data"]
    assert container.options.value == "--cpus 1"
    assert job.services["redis"].container.image.value == "redis:7"

    run_step, action_step = job.steps
    assert run_step.id.value == "version"
    assert run_step.name.value == "Version"
    assert run_step.run.shell.value == "python"
    assert run_step.run.working_directory.value == "tools"
    assert run_step.env["DEBUG"].value.value == "1"
    assert run_step.timeout_minutes.value == 1.5
    assert run_step.continue_on_error.value is True
    assert run_step.action is None
    action = action_step.action
    assert isinstance(action, ExecAction)
    assert action.uses.value == "actions/checkout@v4"
    assert list(action.inputs) == ["fetch-depth"]
    assert action.entrypoint.value == "/bin/sh"
    assert action.args.value == "-c true"


@pytest.mark.parametrize(
    "on, expected",
    [
        param("push", ["push"], id="single name"),
        param("[push, pull_request]", ["push", "pull_request"], id="sequence"),
        param(
            "[push, schedule_like, issues]",
            None,
            id="unknown name in sequence",
        ),
        param(
            "\n  issues:\n  push:\n  fork:", ["issues", "push", "fork"], id="mapping"
        ),
        param("[push, push]", ["push", "push"], id="repeats in sequence are kept"),
    ],
)
def test_triggers_keep_source_order(on: str, expected):
    text = f"on: {on}\n{JOBS}"
    if expected is None:
        with pytest.raises(WorkflowParseError):
            load_workflow(text)
        return

    workflow = load_workflow(text)

    assert [event.event_name() for event in workflow.on] == expected


def test_steps_keep_source_order():
    workflow = _load(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: one
              - uses: actions/checkout@v4
              - run: three
        """
    )

    steps = workflow.jobs["build"].steps
    assert [step.exec.kind.value for step in steps] == ["run", "action", "run"]
    assert steps[0].run.run.value == "one"
    assert steps[2].run.run.value == "three"


def test_absent_if_differs_from_empty_if():
    workflow = _load(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: one
              - if: ""
                run: two
        """
    )

    first, second = workflow.jobs["build"].steps
    assert first.if_ is None
    assert second.if_ == Value("", Pos(1, 1))


def test_matrix_include_is_separate_from_rows():
    workflow = _load(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            strategy:
              matrix:
                os: [ubuntu, windows]
                include:
                  - os: macos
                    extra: true
            steps:
              - run: make
        """
    )

    matrix = workflow.jobs["build"].strategy.matrix
    assert list(matrix.rows) == ["os"]
    assert [v.value for v in matrix.rows["os"].values] == ["ubuntu", "windows"]
    assert len(matrix.include) == 1
    include = matrix.include[0]
    assert include["os"].value.value == "macos"
    assert include["extra"].value.value == "true"
    assert matrix.exclude is None


def test_matrix_include_and_exclude_keep_source_order():
    workflow = _load(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            strategy:
              matrix:
                os: [ubuntu, windows, macos]
                python: ["3.12", "3.11"]
                include:
                  - os: windows
                    experimental: true
                  - os: macos
                    python: "3.10"
                exclude:
                  - os: windows
                    python: "3.11"
                  - os: macos
                  - python: "3.12"
                    os: ubuntu
            steps:
              - run: make
        """
    )

    matrix = workflow.jobs["build"].strategy.matrix
    assert list(matrix.rows) == ["os", "python"]
    assert [list(entry) for entry in matrix.include] == [
        ["os", "experimental"],
        ["os", "python"],
    ]
    assert [
        {key: c.value.value for key, c in entry.items()} for entry in matrix.include
    ] == [{"os": "windows", "experimental": "true"}, {"os": "macos", "python": "3.10"}]
    assert [list(entry) for entry in matrix.exclude] == [
        ["os", "python"],
        ["os"],
        ["python", "os"],
    ]
    assert [
        {key: c.value.value for key, c in entry.items()} for entry in matrix.exclude
    ] == [
        {"os": "windows", "python": "3.11"},
        {"os": "macos"},
        {"os": "ubuntu", "python": "3.12"},
    ]

    experimental = matrix.include[0]["experimental"]
    assert "experimental" not in matrix.rows
    assert experimental.key.value == "experimental"
    assert experimental.key.pos == Pos(11, 13)


@pytest.mark.parametrize(
    "timeout, expected",
    [
        param("30", 30.0, id="integer"),
        param("1.5", 1.5, id="float"),
        param("1_0", 10.0, id="underscores"),
        param("+0x1A", 26.0, id="hexadecimal"),
        param("-0o7", -7.0, id="octal"),
        param("!!int '30'", 30.0, id="explicit tag"),
        param(".inf", math.inf, id="infinity"),
    ],
)
def test_numbers_are_typed_by_yaml(timeout: str, expected: float):
    workflow = load_workflow(f"on: push\n{JOBS}    timeout-minutes: {timeout}\n")

    timeout_minutes = workflow.jobs["build"].timeout_minutes
    assert timeout_minutes.value == expected
    assert timeout_minutes.pos == Pos(7, 22)


def test_max_parallel_accepts_any_yaml_integer():
    text = f"on: push\n{JOBS}    strategy:\n      max-parallel: 0x10\n"
    workflow = load_workflow(text)

    assert workflow.jobs["build"].strategy.max_parallel.value == 16


def test_explicit_string_tag_is_not_null():
    text = "on: push\n" + JOBS.replace("run: make", "run: !!str null")
    workflow = load_workflow(text)

    assert workflow.jobs["build"].steps[0].run.run.value == "null"


@pytest.mark.parametrize(
    "runs_on, expected",
    [
        param("ubuntu-latest", GitHubHostedRunner, id="label"),
        param("[windows-latest]", GitHubHostedRunner, id="single label sequence"),
        param("self-hosted", SelfHostedRunner, id="self-hosted label"),
        param("[linux, self-hosted]", SelfHostedRunner, id="self-hosted anywhere"),
    ],
)
def test_runner_variant(runs_on: str, expected: type):
    workflow = load_workflow(JOBS.replace("ubuntu-latest", runs_on) + "on: push\n")

    assert isinstance(workflow.jobs["build"].runs_on, expected)


def test_blanket_and_scoped_permissions_together_is_mutual_exclusion():
    errors = _errors(
        """\
        on: push
        permissions: write-all
        permissions:
          issues: read
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: make
        """
    )

    assert len(errors) == 1
    assert isinstance(errors[0], MutualExclusionError)
    assert errors[0].pos == Pos(3, 1)


def test_duplicate_job_ids_are_rejected():
    errors = _errors(
        """\
        on: push
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: make
          build:
            runs-on: windows-latest
            steps:
              - run: make
        """
    )

    assert len(errors) == 1
    assert isinstance(errors[0], DuplicateKeyError)
    assert errors[0].pos == Pos(7, 3)
    assert "line 3, column 3" in errors[0].message


@pytest.mark.parametrize(
    "step, error_type",
    [
        param(
            "{run: make, uses: actions/checkout@v4}",
            MutualExclusionError,
            id="run and uses",
        ),
        param("{name: nothing}", MissingFieldError, id="neither run nor uses"),
        param("{run: make, with: {a: b}}", ShapeMismatchError, id="with on run"),
        param(
            "{uses: actions/checkout@v4, shell: bash}",
            ShapeMismatchError,
            id="shell on uses",
        ),
        param("{run: make, timeout-minutes: soon}", ShapeMismatchError, id="bad float"),
        param(
            "{run: make, continue-on-error: 'true'}",
            ShapeMismatchError,
            id="quoted bool",
        ),
        param("{run: ~}", ShapeMismatchError, id="null run"),
        param(
            "{run: make, timeout-minutes: '30'}",
            ShapeMismatchError,
            id="quoted number",
        ),
        param("{run: make, run: again}", DuplicateKeyError, id="duplicate key"),
        param("{run: make, unknown: 1}", ShapeMismatchError, id="unknown key"),
        param("make", ShapeMismatchError, id="not a mapping"),
    ],
)
def test_step_errors(step: str, error_type: type):
    text = "on: push\n" + JOBS.replace("- run: make", f"- {step}")

    with pytest.raises(WorkflowParseError) as excinfo:
        load_workflow(text)

    assert [type(e) for e in excinfo.value.errors] == [error_type]


@pytest.mark.parametrize(
    "text, error_type, pos",
    [
        param("", MissingFieldError, Pos(1, 1), id="empty document"),
        param("- on\n", ShapeMismatchError, Pos(1, 1), id="not a mapping"),
        param(JOBS, MissingFieldError, Pos(1, 1), id="missing on"),
        param("on: push\n", MissingFieldError, Pos(1, 1), id="missing jobs"),
        param(f"on: pushed\n{JOBS}", ShapeMismatchError, Pos(1, 5), id="unknown event"),
        param(f"on: schedule\n{JOBS}", MissingFieldError, Pos(1, 5), id="no cron"),
        param(
            f"on:\n  schedule:\n    - {{}}\n{JOBS}",
            MissingFieldError,
            Pos(3, 7),
            id="schedule entry without cron",
        ),
        param(
            f"on:\n  push:\n    branch: [main]\n{JOBS}",
            ShapeMismatchError,
            Pos(3, 5),
            id="unknown filter",
        ),
        param(
            f"on: push\npermissions: read\n{JOBS}",
            ShapeMismatchError,
            Pos(2, 14),
            id="bad blanket permission",
        ),
        param(
            f"on: push\npermissions:\n  issues: admin\n{JOBS}",
            ShapeMismatchError,
            Pos(3, 11),
            id="bad scope permission",
        ),
        param(
            f"on: push\nconcurrency:\n  cancel-in-progress: true\n{JOBS}",
            MissingFieldError,
            Pos(3, 3),
            id="concurrency without group",
        ),
        param(
            f"on: push\nrun-name: x\n{JOBS}",
            ShapeMismatchError,
            Pos(2, 1),
            id="unknown top level key",
        ),
        param(
            "on: push\njobs:\n  build:\n    steps:\n      - run: make\n",
            MissingFieldError,
            Pos(3, 3),
            id="missing runs-on",
        ),
        param(
            "on: push\njobs:\n  build:\n    runs-on: ubuntu-latest\n",
            MissingFieldError,
            Pos(3, 3),
            id="missing steps",
        ),
        param(
            f"on: push\n{JOBS}    runs-on: [linux, arm]\n",
            DuplicateKeyError,
            Pos(7, 5),
            id="duplicate runs-on",
        ),
        param(
            f"on: push\n{JOBS}    container:\n      ports: [80]\n",
            MissingFieldError,
            Pos(8, 7),
            id="container without image",
        ),
        param(
            f"on: push\n{JOBS}    container:\n      image: x\n"
            "      credentials:\n        username: u\n",
            MissingFieldError,
            Pos(10, 9),
            id="credentials without password",
        ),
        param(
            f"on: push\n{JOBS}    strategy:\n      matrix:\n        os: ubuntu\n",
            ShapeMismatchError,
            Pos(9, 13),
            id="matrix row not a sequence",
        ),
        param(
            f"on: push\n{JOBS}    strategy:\n      max-parallel: 1.5\n",
            ShapeMismatchError,
            Pos(8, 21),
            id="max-parallel not an integer",
        ),
    ],
)
def test_construction_errors(text: str, error_type: type, pos: Pos):
    with pytest.raises(WorkflowParseError) as excinfo:
        load_workflow(text)

    errors = excinfo.value.errors
    assert [type(e) for e in errors] == [error_type]
    assert errors[0].pos == pos


def test_errors_are_collected_across_the_document():
    errors = _errors(
        """\
        on: [push, nope]
        jobs:
          build:
            runs-on: ubuntu-latest
            steps:
              - run: make
                uses: actions/checkout@v4
              - name: nothing
          test:
            steps:
              - run: make
        """
    )

    assert [(type(e), e.pos) for e in errors] == [
        (ShapeMismatchError, Pos(1, 12)),
        (MutualExclusionError, Pos(7, 9)),
        (MissingFieldError, Pos(8, 9)),
        (MissingFieldError, Pos(9, 3)),
    ]


def test_parse_error_lists_every_error():
    with pytest.raises(WorkflowParseError) as excinfo:
        load_workflow("on: [pushed, pulled]\n" + JOBS)

    assert str(excinfo.value).splitlines() == [
        "line 1, column 6: Unknown event 'pushed' at 'on[0]'",
        "line 1, column 14: Unknown event 'pulled' at 'on[1]'",
    ]
    assert excinfo.value.pos == Pos(1, 6)


def test_load_from_path(tmp_path: Path):
    path = tmp_path / "ci.yml"
    path.write_text("on: push\n" + JOBS, encoding="utf-8")

    workflow = load_workflow(path)

    assert list(workflow.jobs) == ["build"]
