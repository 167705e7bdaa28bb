"""Errors raised while constructing a workflow tree"""

from __future__ import annotations

from collections.abc import Sequence

from ._pos import Pos


class WorkflowSyntaxError(Exception):
    """The base class for errors in a workflow document"""

    def __init__(self, message: str, pos: Pos):
        super().__init__(message, pos)
        self.message = message
        self.pos = pos

    def __str__(self) -> str:
        return f"{self.pos}: {self.message}"


class ShapeMismatchError(WorkflowSyntaxError):
    """Happens when a value doesn't have any of the shapes allowed for its key"""


class MutualExclusionError(WorkflowSyntaxError):
    """Happens when fields which exclude each other are given together

    For example a step with both ``run`` and ``uses``.
    """


class MissingFieldError(WorkflowSyntaxError):
    """Happens when a mandatory field is absent"""


class DuplicateKeyError(WorkflowSyntaxError):
    """Happens when two entries compete for the same unique key"""


class WorkflowParseError(WorkflowSyntaxError):
    """Raised when a document can't be turned into a workflow

    All the errors found in the document are in ``errors``, in source order.
    """

    def __init__(self, errors: Sequence[WorkflowSyntaxError]):
        if not errors:
            raise ValueError("Expected at least one error")
        self.errors = sorted(errors, key=lambda e: (e.pos.line, e.pos.col))
        first = self.errors[0]
        super().__init__(first.message, first.pos)

    def __str__(self) -> str:
        return "\n".join(str(error) for error in self.errors)
