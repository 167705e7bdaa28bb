"""https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idcontainer"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ._blocks import EnvVar
from ._pos import Pos, String, freeze


@dataclass(frozen=True, slots=True)
class Credentials:
    """Registry login for the image, both fields are always present"""

    username: String
    password: String
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Container:
    """A container for a job or a service"""

    image: String
    credentials: Credentials | None = None
    env: Mapping[str, EnvVar] | None = None
    ports: tuple[String, ...] | None = None
    volumes: tuple[String, ...] | None = None
    options: String | None = None
    pos: Pos | None = field(default=None, compare=False)

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "env", "ports", "volumes")


@dataclass(frozen=True, slots=True)
class Service:
    """https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idservices"""

    name: String
    container: Container
