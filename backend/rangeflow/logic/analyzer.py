"""
Workflow Analyzer.

Static checks over a workflow graph: undefined references, workflows that
can never be reached from the entry, and cycles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple

from ..errors import CycleDetected, UndefinedReference
from ..models import ENTRY_WORKFLOW, WorkflowSystem

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Result of workflow graph analysis."""
    entry: str = ENTRY_WORKFLOW
    total_workflows: int = 0
    undefined_references: List[Tuple[str, str]] = field(default_factory=list)
    unreachable: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the graph can be evaluated safely."""
        return not self.undefined_references and not self.cycles

    @property
    def warnings(self) -> List[str]:
        return [f"Workflow {name!r} is unreachable from {self.entry!r}" for name in self.unreachable]

    def raise_for_errors(self, include_cycles: bool = True) -> None:
        """
        Raise the first blocking problem found.

        Args:
            include_cycles: Treat cycles as errors. Callers that bound their
                own traversal can pass False.

        Raises:
            UndefinedReference: For a missing workflow.
            CycleDetected: For a cycle reachable from the entry.
        """
        if self.undefined_references:
            source, name = self.undefined_references[0]
            raise UndefinedReference(name, referenced_by=source or None)
        if include_cycles and self.cycles:
            raise CycleDetected(self.cycles[0])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entry": self.entry,
            "ok": self.ok,
            "total_workflows": self.total_workflows,
            "undefined_references": [
                {"workflow": source, "target": name}
                for source, name in self.undefined_references
            ],
            "unreachable": self.unreachable,
            "cycles": [" -> ".join(cycle) for cycle in self.cycles],
        }


class WorkflowAnalyzer:
    """
    Analyzes a workflow table before evaluation.

    Provides:
    - Undefined reference detection (including a missing entry workflow)
    - Reachability from the entry workflow
    - Cycle detection along reachable jumps
    """

    def analyze(self, system: WorkflowSystem, entry: str = ENTRY_WORKFLOW) -> AnalysisResult:
        """
        Analyze a workflow system.

        Args:
            system: The workflow table.
            entry: Name of the first workflow.

        Returns:
            AnalysisResult with analysis details.
        """
        result = AnalysisResult(entry=entry, total_workflows=len(system))

        if entry not in system:
            result.undefined_references.append(("", entry))

        for workflow in system:
            for target in workflow.targets():
                if target not in system and (workflow.name, target) not in result.undefined_references:
                    result.undefined_references.append((workflow.name, target))

        reachable = self._find_reachable(system, entry)
        result.unreachable = [name for name in system.names if name not in reachable]
        result.cycles = self._find_cycles(system, entry)

        for warning in result.warnings:
            logger.warning(warning)
        logger.debug("Analysis of %d workflow(s): %s", len(system), result.to_dict())
        return result

    def _find_reachable(self, system: WorkflowSystem, entry: str) -> Set[str]:
        """Breadth-first walk over defined workflows."""
        if entry not in system:
            return set()
        seen = {entry}
        queue = [entry]
        while queue:
            name = queue.pop(0)
            for target in system.get(name).targets():
                if target in system and target not in seen:
                    seen.add(target)
                    queue.append(target)
        return seen

    def _find_cycles(self, system: WorkflowSystem, entry: str) -> List[List[str]]:
        """Depth-first search for back edges, iterative to keep the stack flat."""
        if entry not in system:
            return []

        cycles: List[List[str]] = []
        done: Set[str] = set()
        path: List[str] = [entry]
        on_path: Set[str] = {entry}
        stack = [iter(system.get(entry).targets())]

        while stack:
            target = next(stack[-1], None)
            if target is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue
            if target not in system or target in done:
                continue
            if target in on_path:
                start = path.index(target)
                cycles.append(path[start:] + [target])
                continue
            path.append(target)
            on_path.add(target)
            stack.append(iter(system.get(target).targets()))

        return cycles
