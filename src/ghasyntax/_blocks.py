"""Blocks which appear both at workflow and job level"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._pos import Bool, Pos, String


@dataclass(frozen=True, slots=True)
class EnvVar:
    """An environment variable in an 'env' section"""

    name: String
    value: String


@dataclass(frozen=True, slots=True)
class DefaultsRun:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#defaultsrun"""

    shell: String | None = None
    working_directory: String | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Defaults:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#defaults"""

    run: DefaultsRun | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Concurrency:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#concurrency"""

    group: String
    cancel_in_progress: Bool | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Environment:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idenvironment"""

    name: String
    # Maps to 'environment_url' in the deployments API
    url: String | None = None
    pos: Pos | None = field(default=None, compare=False)
