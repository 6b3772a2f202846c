"""
Rangeflow domain models.

Pydantic models for workflows, rules, outcomes and parts. All models are
frozen: once parsed they are never modified.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import DuplicateWorkflow, UndefinedReference

ENTRY_WORKFLOW = "in"
RESERVED_NAMES = {"A", "R"}

_NAME_PATTERN = re.compile(r"^[A-Za-z]+$")


def _check_name(value: str, what: str) -> str:
    if not _NAME_PATTERN.match(value):
        raise ValueError(f"{what} must be one or more ASCII letters, got {value!r}")
    return value


class OutcomeKind(str, Enum):
    """Terminal or redirecting result of a rule."""
    ACCEPT = "accept"
    REJECT = "reject"
    GOTO = "goto"


class Comparison(str, Enum):
    """Rule comparison operator."""
    LESS = "<"
    GREATER = ">"

    def holds(self, value: int, threshold: int) -> bool:
        """Check whether value compares to threshold as this operator requires."""
        if self is Comparison.LESS:
            return value < threshold
        return value > threshold


class Outcome(BaseModel):
    """Accept, Reject, or a jump to another workflow."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    target: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self) -> "Outcome":
        if self.kind is OutcomeKind.GOTO:
            if not self.target:
                raise ValueError("goto outcome requires a target workflow")
            _check_name(self.target, "workflow name")
            if self.target in RESERVED_NAMES:
                raise ValueError(f"{self.target!r} is reserved for accept/reject")
        elif self.target is not None:
            raise ValueError(f"{self.kind.value} outcome cannot have a target")
        return self

    @classmethod
    def accept(cls) -> "Outcome":
        return cls(kind=OutcomeKind.ACCEPT)

    @classmethod
    def reject(cls) -> "Outcome":
        return cls(kind=OutcomeKind.REJECT)

    @classmethod
    def goto(cls, target: str) -> "Outcome":
        return cls(kind=OutcomeKind.GOTO, target=target)

    @classmethod
    def from_token(cls, token: str) -> "Outcome":
        """Build an outcome from its textual form: A, R, or a workflow name."""
        if token == "A":
            return cls.accept()
        if token == "R":
            return cls.reject()
        return cls.goto(token)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not OutcomeKind.GOTO

    def __str__(self) -> str:
        if self.kind is OutcomeKind.ACCEPT:
            return "A"
        if self.kind is OutcomeKind.REJECT:
            return "R"
        return self.target


class Rule(BaseModel):
    """A single comparison on one rating, with the outcome when it holds."""

    model_config = ConfigDict(frozen=True)

    rating: str
    op: Comparison
    threshold: int
    outcome: Outcome

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v: str) -> str:
        return _check_name(v, "rating name")

    def matches(self, part: "Part") -> bool:
        """Check the rule against a part. Missing ratings never match."""
        value = part.ratings.get(self.rating)
        if value is None:
            return False
        return self.op.holds(value, self.threshold)

    def __str__(self) -> str:
        return f"{self.rating}{self.op.value}{self.threshold}:{self.outcome}"


class Workflow(BaseModel):
    """Named, ordered list of rules with a fallback outcome."""

    model_config = ConfigDict(frozen=True)

    name: str
    rules: Tuple[Rule, ...] = ()
    fallback: Outcome

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        _check_name(v, "workflow name")
        if v in RESERVED_NAMES:
            raise ValueError(f"{v!r} is reserved for accept/reject")
        return v

    def apply(self, part: "Part") -> Outcome:
        """Return the outcome of the first matching rule, or the fallback."""
        for rule in self.rules:
            if rule.matches(part):
                return rule.outcome
        return self.fallback

    def outcomes(self) -> Iterator[Outcome]:
        """Every outcome this workflow can produce, fallback last."""
        for rule in self.rules:
            yield rule.outcome
        yield self.fallback

    def targets(self) -> List[str]:
        """Names of workflows this one can jump to, in order of appearance."""
        return [o.target for o in self.outcomes() if o.kind is OutcomeKind.GOTO]

    def __str__(self) -> str:
        body = ",".join([str(r) for r in self.rules] + [str(self.fallback)])
        return f"{self.name}{{{body}}}"


class Part(BaseModel):
    """A fully specified point: one integer value per rating."""

    model_config = ConfigDict(frozen=True)

    ratings: Dict[str, int] = Field(default_factory=dict)

    @field_validator("ratings")
    @classmethod
    def check_ratings(cls, v: Dict[str, int]) -> Dict[str, int]:
        for name in v:
            _check_name(name, "rating name")
        return v

    @property
    def total(self) -> int:
        """Sum of all ratings."""
        return sum(self.ratings.values())

    def __str__(self) -> str:
        body = ",".join(f"{k}={v}" for k, v in self.ratings.items())
        return f"{{{body}}}"


class WorkflowSystem:
    """
    Immutable lookup table of workflows keyed by name.

    Construction rejects duplicate names; lookup of an unknown name raises
    UndefinedReference instead of KeyError.
    """

    def __init__(self, workflows: Iterable[Workflow]):
        table: Dict[str, Workflow] = {}
        for workflow in workflows:
            if workflow.name in table:
                raise DuplicateWorkflow(workflow.name)
            table[workflow.name] = workflow
        self._workflows = table

    def get(self, name: str, referenced_by: Optional[str] = None) -> Workflow:
        """Look up a workflow by name."""
        try:
            return self._workflows[name]
        except KeyError:
            raise UndefinedReference(name, referenced_by) from None

    def __contains__(self, name: object) -> bool:
        return name in self._workflows

    def __iter__(self) -> Iterator[Workflow]:
        return iter(self._workflows.values())

    def __len__(self) -> int:
        return len(self._workflows)

    @property
    def names(self) -> List[str]:
        return list(self._workflows)

    def __repr__(self) -> str:
        return f"WorkflowSystem({self.names!r})"


class Problem(BaseModel):
    """A parsed input file: the workflow table and the parts to sort."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    system: WorkflowSystem
    parts: Tuple[Part, ...] = ()
