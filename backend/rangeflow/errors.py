"""
Error taxonomy for rangeflow.

Every failure raised by the toolkit, the evaluators or the CLI derives from
RangeflowError. None of them are recoverable; the CLI reports them and exits.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional


class RangeflowError(Exception):
    """Base class for all rangeflow errors."""


class ParseFailureKind(str, Enum):
    """Why a parser did not match."""
    NO_DIGITS_FOUND = "no_digits_found"
    NUMERIC_OVERFLOW = "numeric_overflow"
    MISSING_DELIMITER = "missing_delimiter"
    TOO_FEW_ITEMS = "too_few_items"
    TRAILING_INPUT = "trailing_input"
    UNEXPECTED_INPUT = "unexpected_input"


class ParseFailure(RangeflowError):
    """
    Raised when a parser does not match its input.

    Attributes:
        kind: The failure category.
        expected: Human-readable description of what was expected.
        remaining: The unconsumed input at the point of failure.
        position: Offset into the full input, filled in by run_to_completion.
    """

    def __init__(
        self,
        kind: ParseFailureKind,
        expected: str,
        remaining: str,
        position: Optional[int] = None,
    ):
        self.kind = kind
        self.expected = expected
        self.remaining = remaining
        self.position = position
        super().__init__(self._format())

    def _format(self) -> str:
        snippet = self.remaining[:20]
        if len(self.remaining) > 20:
            snippet += "..."
        where = f" at position {self.position}" if self.position is not None else ""
        return f"{self.kind.value}: expected {self.expected}{where}, found {snippet!r}"

    def located(self, full_length: int) -> "ParseFailure":
        """Return a copy with an absolute position inside an input of full_length."""
        return ParseFailure(
            self.kind,
            self.expected,
            self.remaining,
            position=full_length - len(self.remaining),
        )


class WorkflowDefinitionError(RangeflowError):
    """The workflow table is inconsistent."""


class UndefinedReference(WorkflowDefinitionError):
    """A workflow name is referenced but never defined."""

    def __init__(self, name: str, referenced_by: Optional[str] = None):
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by:
            message = f"Workflow {name!r} referenced by {referenced_by!r} is not defined"
        else:
            message = f"Workflow {name!r} is not defined"
        super().__init__(message)


class DuplicateWorkflow(WorkflowDefinitionError):
    """Two workflows share a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Workflow {name!r} is defined more than once")


class CycleDetected(RangeflowError):
    """Workflow traversal revisits a workflow it cannot escape from."""

    def __init__(self, path: List[str], steps: Optional[int] = None):
        self.path = list(path)
        self.steps = steps
        route = " -> ".join(self.path)
        if steps is not None:
            message = f"Gave up after {steps} workflow steps: {route}"
        else:
            message = f"Workflow cycle: {route}"
        super().__init__(message)


class MissingInputArgument(RangeflowError):
    """No input file path was supplied."""

    def __init__(self):
        super().__init__("Please specify the input file name as the first argument")


class ConfigError(RangeflowError):
    """The configuration file could not be read or is invalid."""
