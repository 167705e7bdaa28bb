"""https://docs.github.com/en/actions/using-workflows/workflow-syntax-for-github-actions#permissions"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from ._errors import MutualExclusionError
from ._pos import Pos, String, freeze


class PermKind(Enum):
    """Access granted to a scope"""

    NONE = "none"
    READ = "read"
    WRITE = "write"

    @classmethod
    def from_string(cls, value: str) -> PermKind | None:
        """Return the kind for 'none', 'read' or 'write', otherwise None"""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Permission:
    """A permission for one scope, or for all scopes when name is None

    The all scopes case comes from 'read-all' or 'write-all'.
    """

    name: String | None
    kind: PermKind
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Permissions:
    """Either a blanket grant for all scopes or a grant per scope, never both"""

    pos: Pos = field(compare=False)
    all: Permission | None = None
    scopes: Mapping[str, Permission] | None = None

    __hash__ = None  # mappings aren't hashable

    def __post_init__(self):
        if self.all is not None and self.scopes:
            raise MutualExclusionError(
                "Permissions for all scopes and for individual scopes"
                " can't be given together",
                self.pos,
            )
        if self.all is not None and self.all.name is not None:
            raise ValueError(
                f"Blanket permission must not have a scope name: {self.all.name.value}"
            )
        freeze(self, "scopes")

    @classmethod
    def blanket(cls, permission: Permission, pos: Pos) -> Permissions:
        """Return permissions from 'read-all' or 'write-all'"""
        return cls(all=permission, pos=pos)

    @classmethod
    def scoped(cls, scopes: Mapping[str, Permission], pos: Pos) -> Permissions:
        """Return permissions given per scope"""
        return cls(scopes=scopes, pos=pos)

    def effective(self, scope: str) -> PermKind:
        """Return the permission a scope ends up with

        The blanket grant wins over everything, then the scope's own entry.
        Scopes which aren't mentioned get no access.
        """
        if self.all is not None:
            return self.all.kind
        if self.scopes is not None and scope in self.scopes:
            return self.scopes[scope].kind
        return PermKind.NONE
