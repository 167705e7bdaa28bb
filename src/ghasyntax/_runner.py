"""https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#jobsjob_idruns-on"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ._pos import Pos, String, freeze

SELF_HOSTED_LABEL = "self-hosted"


class Runner(ABC):
    """The machine a job runs on"""

    __slots__ = ()

    @abstractmethod
    def get_label(self) -> str:
        """Return the label used to pick a runner"""


@dataclass(frozen=True, slots=True)
class GitHubHostedRunner(Runner):
    """A runner hosted by GitHub, e.g. 'ubuntu-latest'"""

    label: String
    pos: Pos | None = field(default=None, compare=False)

    def get_label(self) -> str:
        return self.label.value


@dataclass(frozen=True, slots=True)
class SelfHostedRunner(Runner):
    """A self-hosted runner

    For example `runs-on: [self-hosted, linux, ARM64]` gives labels
    "linux" and "ARM64".
    """

    labels: tuple[String, ...] = ()
    pos: Pos | None = field(default=None, compare=False)

    def __post_init__(self):
        freeze(self, "labels")

    def get_label(self) -> str:
        return SELF_HOSTED_LABEL

    def all_labels(self) -> tuple[str, ...]:
        """Return every label a matching runner must have, in source order"""
        return (SELF_HOSTED_LABEL, *(label.value for label in self.labels))
