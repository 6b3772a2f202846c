"""
Workflow evaluators.

Two ways of running parts through a WorkflowSystem:
- evaluate_part walks a single fully specified part to Accept or Reject.
- evaluate_ranges pushes a whole box of parts through at once, splitting it
  at every rule, and counts the accepted points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from ..errors import CycleDetected
from ..models import ENTRY_WORKFLOW, Outcome, OutcomeKind, Part, WorkflowSystem
from .intervals import Interval

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10_000


def evaluate_part(
    system: WorkflowSystem,
    part: Part,
    entry: str = ENTRY_WORKFLOW,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> Outcome:
    """
    Walk a part through the workflows until it is accepted or rejected.

    Args:
        system: The workflow table.
        part: The part to sort.
        entry: Name of the first workflow.
        max_steps: Upper bound on workflow hops before giving up.

    Returns:
        The terminal Accept or Reject outcome.

    Raises:
        UndefinedReference: If a jump targets an unknown workflow.
        CycleDetected: If max_steps hops pass without a terminal outcome.
    """
    path = [entry]
    workflow = system.get(entry)
    for _ in range(max_steps):
        outcome = workflow.apply(part)
        if outcome.is_terminal:
            logger.debug("%s: %s via %s", part, outcome, " -> ".join(path))
            return outcome
        path.append(outcome.target)
        workflow = system.get(outcome.target, referenced_by=workflow.name)

    raise CycleDetected(path[-10:], steps=max_steps)


def is_accepted(
    system: WorkflowSystem,
    part: Part,
    entry: str = ENTRY_WORKFLOW,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> bool:
    """Check whether a part ends in Accept."""
    return evaluate_part(system, part, entry, max_steps).kind is OutcomeKind.ACCEPT


def score_parts(
    system: WorkflowSystem,
    parts: Iterable[Part],
    entry: str = ENTRY_WORKFLOW,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> int:
    """Sum every rating of every accepted part."""
    total = 0
    accepted = 0
    for part in parts:
        if is_accepted(system, part, entry, max_steps):
            total += part.total
            accepted += 1
    logger.info("Accepted %d part(s), rating sum %d", accepted, total)
    return total


@dataclass
class RangeEvaluation:
    """
    Result of a range-partitioning run.

    Attributes:
        accepted: Intervals that reached Accept.
        rejected: Intervals that reached Reject.
        dispatched: Every non-empty interval handed to an outcome, in order.
        visits: Number of workflow applications performed.
    """
    accepted: List[Interval] = field(default_factory=list)
    rejected: List[Interval] = field(default_factory=list)
    dispatched: List[Tuple[Interval, Outcome]] = field(default_factory=list)
    visits: int = 0

    @property
    def accepted_count(self) -> int:
        """Total number of accepted integer points."""
        return sum(interval.size for interval in self.accepted)

    @property
    def rejected_count(self) -> int:
        return sum(interval.size for interval in self.rejected)


class RangeEvaluator:
    """
    Work-list evaluator splitting intervals across a workflow graph.

    Each work item is an (interval, workflow name) pair. Applying a workflow
    carves the matching part off the interval for every rule in turn; the
    final remainder goes to the fallback. Sibling pieces are disjoint, so
    the traversal order does not affect the result.
    """

    def __init__(self, system: WorkflowSystem):
        self.system = system

    def evaluate(
        self,
        domain: Interval,
        entry: str = ENTRY_WORKFLOW,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> RangeEvaluation:
        """
        Evaluate every point of domain.

        Args:
            domain: The initial box.
            entry: Name of the first workflow.
            max_steps: Upper bound on workflow applications before giving up.

        Returns:
            RangeEvaluation with accepted and rejected intervals.

        Raises:
            UndefinedReference: If a jump targets an unknown workflow.
            CycleDetected: If more than max_steps workflow applications are needed.
        """
        result = RangeEvaluation()
        stack: List[Tuple[Interval, str, str]] = [(domain, entry, "")]
        recent: List[str] = []

        while stack:
            interval, name, source = stack.pop()
            if result.visits >= max_steps:
                raise CycleDetected(recent + [name], steps=max_steps)
            workflow = self.system.get(name, referenced_by=source or None)
            result.visits += 1
            recent = (recent + [name])[-9:]
            logger.debug("Applying %s to %s", workflow.name, interval)

            remainder = interval
            for rule in workflow.rules:
                matching, remainder = remainder.split(rule)
                if matching is not None and not matching.is_empty:
                    self._dispatch(result, stack, matching, rule.outcome, workflow.name)
                if remainder.is_empty:
                    break
            else:
                if not remainder.is_empty:
                    self._dispatch(result, stack, remainder, workflow.fallback, workflow.name)

        logger.info(
            "Range evaluation: %d workflow visit(s), %d accepted interval(s), %d point(s)",
            result.visits,
            len(result.accepted),
            result.accepted_count,
        )
        return result

    def _dispatch(
        self,
        result: RangeEvaluation,
        stack: List[Tuple[Interval, str, str]],
        interval: Interval,
        outcome: Outcome,
        source: str,
    ) -> None:
        """Route an interval to its outcome."""
        result.dispatched.append((interval, outcome))
        if outcome.kind is OutcomeKind.ACCEPT:
            result.accepted.append(interval)
        elif outcome.kind is OutcomeKind.REJECT:
            result.rejected.append(interval)
        else:
            stack.append((interval, outcome.target, source))


def evaluate_ranges(
    system: WorkflowSystem,
    domain: Interval,
    entry: str = ENTRY_WORKFLOW,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> RangeEvaluation:
    """Run RangeEvaluator over domain."""
    return RangeEvaluator(system).evaluate(domain, entry, max_steps)


def count_accepted(
    system: WorkflowSystem,
    domain: Interval,
    entry: str = ENTRY_WORKFLOW,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> int:
    """Count the integer points of domain that end in Accept."""
    return evaluate_ranges(system, domain, entry, max_steps).accepted_count
