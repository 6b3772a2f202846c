"""
Input grammar for workflow files.

The input has two sections separated by a blank line:

    px{a<2006:qkq,m>2090:A,rfg}
    in{s<1351:px,qqz}
    ...

    {x=787,m=2655,a=1222,s=2876}
    ...

The parts section is optional; range evaluation only needs the workflows.
"""

from __future__ import annotations

from typing import Any, Callable, Tuple

from pydantic import ValidationError

from .errors import ParseFailure, ParseFailureKind
from .logic.parser import (
    Parser,
    alpha1,
    alt,
    delimited,
    map_value,
    multispace0,
    number,
    optional,
    preceded,
    run_to_completion,
    separated_list0,
    separated_list1,
    sequence,
    tag,
)
from .models import Comparison, Outcome, Part, Problem, Rule, Workflow, WorkflowSystem


def _build(parser: Parser, fn: Callable[[Any], Any], what: str) -> Parser:
    """Like map_value, but model validation errors become parse failures."""

    def parse(text: str) -> Tuple[str, Any]:
        rest, value = parser(text)
        try:
            return rest, fn(value)
        except ValidationError as e:
            message = e.errors()[0]["msg"] if e.errors() else str(e)
            raise ParseFailure(ParseFailureKind.UNEXPECTED_INPUT, f"a valid {what} ({message})", text) from e

    return parse


comparison = alt(
    map_value(tag("<"), lambda _: Comparison.LESS),
    map_value(tag(">"), lambda _: Comparison.GREATER),
)

outcome = _build(alpha1, Outcome.from_token, "outcome")

rule = _build(
    sequence(alpha1, comparison, number, preceded(tag(":"), outcome)),
    lambda v: Rule(rating=v[0], op=v[1], threshold=v[2], outcome=v[3]),
    "rule",
)


def _rules_and_fallback(text: str) -> Tuple[str, Tuple[Any, Outcome]]:
    """Zero or more rules, then the fallback outcome (comma-separated when rules exist)."""
    rest, rules = separated_list0(",", rule)(text)
    if rules:
        rest, fallback = preceded(tag(","), outcome)(rest)
    else:
        rest, fallback = outcome(rest)
    return rest, (tuple(rules), fallback)


workflow = _build(
    sequence(alpha1, delimited("{", "}", _rules_and_fallback)),
    lambda v: Workflow(name=v[0], rules=v[1][0], fallback=v[1][1]),
    "workflow",
)

rating = sequence(alpha1, preceded(tag("="), number))

part = _build(
    delimited("{", "}", separated_list1(",", rating)),
    lambda ratings: Part(ratings=dict(ratings)),
    "part",
)


def _problem(text: str) -> Tuple[str, Problem]:
    rest, workflows = separated_list1("\n", workflow)(text)
    system = WorkflowSystem(workflows)
    rest, parts = optional(preceded(multispace0, separated_list1("\n", part)))(rest)
    return rest, Problem(system=system, parts=tuple(parts or ()))


def parse_workflow(text: str) -> Workflow:
    """Parse a single workflow line such as ``in{s<1351:px,qqz}``."""
    return run_to_completion(workflow, text)


def parse_part(text: str) -> Part:
    """Parse a single part line such as ``{x=787,m=2655}``."""
    return run_to_completion(part, text)


def parse_problem(text: str) -> Problem:
    """
    Parse a complete input file.

    Raises:
        ParseFailure: If the text does not follow the grammar.
        DuplicateWorkflow: If a workflow name is defined twice.
    """
    return run_to_completion(_problem, text.replace("\r\n", "\n"))
