from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ._blocks import Concurrency, Defaults, EnvVar
from ._events import Event
from ._job import Job
from ._permissions import Permissions
from ._pos import String, freeze


@dataclass(frozen=True, slots=True)
class Workflow:
    """Top level object

    'on' keeps the triggers in source order. 'jobs' is keyed by job ID.
    """

    on: tuple[Event, ...]
    jobs: Mapping[str, Job]
    name: String | None = None
    permissions: Permissions | None = None
    env: Mapping[str, EnvVar] | None = None
    defaults: Defaults | None = None
    concurrency: Concurrency | None = None

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "on", "jobs", "env")

    def find_events(self, name: str) -> tuple[Event, ...]:
        """Return the triggers with this canonical name in source order"""
        return tuple(event for event in self.on if event.event_name() == name)
