"""
Rangeflow: workflow rule evaluation over points and integer ranges.

This package provides a small combinator-style parser toolkit, the workflow
input grammar built on it, and evaluators that sort single parts or count
every accepted point of a multi-dimensional rating domain.
"""

from .errors import (
    RangeflowError,
    ParseFailure,
    ParseFailureKind,
    WorkflowDefinitionError,
    UndefinedReference,
    DuplicateWorkflow,
    CycleDetected,
    MissingInputArgument,
    ConfigError,
)
from .models import (
    Comparison,
    Outcome,
    OutcomeKind,
    Part,
    Problem,
    Rule,
    Workflow,
    WorkflowSystem,
)
from .grammar import parse_part, parse_problem, parse_workflow
from .config import EvaluatorConfig, load_config

__version__ = "1.0.0"
__all__ = [
    "RangeflowError",
    "ParseFailure",
    "ParseFailureKind",
    "WorkflowDefinitionError",
    "UndefinedReference",
    "DuplicateWorkflow",
    "CycleDetected",
    "MissingInputArgument",
    "ConfigError",
    "Comparison",
    "Outcome",
    "OutcomeKind",
    "Part",
    "Problem",
    "Rule",
    "Workflow",
    "WorkflowSystem",
    "parse_part",
    "parse_problem",
    "parse_workflow",
    "EvaluatorConfig",
    "load_config",
]
