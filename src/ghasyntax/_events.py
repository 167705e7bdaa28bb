"""Workflow triggers in the 'on' section

https://docs.github.com/en/actions/using-workflows/events-that-trigger-workflows
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field

from ._pos import Bool, Pos, String, freeze

WEBHOOK_EVENTS = frozenset(
    {
        "branch_protection_rule",
        "check_run",
        "check_suite",
        "create",
        "delete",
        "deployment",
        "deployment_status",
        "discussion",
        "discussion_comment",
        "fork",
        "gollum",
        "issue_comment",
        "issues",
        "label",
        "merge_group",
        "milestone",
        "page_build",
        "project",
        "project_card",
        "project_column",
        "public",
        "pull_request",
        "pull_request_review",
        "pull_request_review_comment",
        "pull_request_target",
        "push",
        "registry_package",
        "release",
        "status",
        "watch",
        "workflow_run",
    }
)


class Event(ABC):
    """A trigger of the workflow"""

    __slots__ = ()

    @abstractmethod
    def event_name(self) -> str:
        """Return the canonical name of the trigger"""


@dataclass(frozen=True, slots=True)
class WebhookEvent(Event):
    """Trigger based on a webhook event

    Only some events accept 'types', only 'push' and 'pull_request' style
    events accept the branch, tag and path filters and only 'workflow_run'
    accepts 'workflows'. Which filters are allowed is left to validation; an
    absent filter is None and an empty one is ().
    """

    hook: String
    types: tuple[String, ...] | None = None
    branches: tuple[String, ...] | None = None
    branches_ignore: tuple[String, ...] | None = None
    tags: tuple[String, ...] | None = None
    tags_ignore: tuple[String, ...] | None = None
    paths: tuple[String, ...] | None = None
    paths_ignore: tuple[String, ...] | None = None
    workflows: tuple[String, ...] | None = None
    pos: Pos | None = field(default=None, compare=False)

    def __post_init__(self):
        freeze(
            self,
            "types",
            "branches",
            "branches_ignore",
            "tags",
            "tags_ignore",
            "paths",
            "paths_ignore",
            "workflows",
        )

    def event_name(self) -> str:
        return self.hook.value


@dataclass(frozen=True, slots=True)
class ScheduledEvent(Event):
    """Trigger at times given by cron expressions"""

    cron: tuple[String, ...]
    pos: Pos | None = field(default=None, compare=False)

    def __post_init__(self):
        freeze(self, "cron")

    def event_name(self) -> str:
        return "schedule"


@dataclass(frozen=True, slots=True)
class DispatchInput:
    """An input of a manually dispatched workflow"""

    name: String
    description: String | None = None
    required: Bool | None = None
    default: String | None = None
    type: String | None = None
    # Only meaningful for 'type: choice'
    options: tuple[String, ...] | None = None

    def __post_init__(self):
        freeze(self, "options")


@dataclass(frozen=True, slots=True)
class WorkflowDispatchEvent(Event):
    """Trigger run manually from the UI or the API"""

    inputs: Mapping[str, DispatchInput] | None = None
    pos: Pos | None = field(default=None, compare=False)

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        freeze(self, "inputs")

    def event_name(self) -> str:
        return "workflow_dispatch"


@dataclass(frozen=True, slots=True)
class RepositoryDispatchEvent(Event):
    """Trigger from outside GitHub through the repository dispatch API"""

    types: tuple[String, ...] | None = None
    pos: Pos | None = field(default=None, compare=False)

    def __post_init__(self):
        freeze(self, "types")

    def event_name(self) -> str:
        return "repository_dispatch"
