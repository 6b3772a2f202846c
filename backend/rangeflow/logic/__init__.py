"""
Logic engine for rangeflow.

Provides the parser toolkit, interval splitting, workflow evaluation and
workflow graph analysis.
"""

from .intervals import Interval, Span
from .evaluator import (
    RangeEvaluation,
    RangeEvaluator,
    count_accepted,
    evaluate_part,
    evaluate_ranges,
    is_accepted,
    score_parts,
)
from .analyzer import AnalysisResult, WorkflowAnalyzer

__all__ = [
    "Interval",
    "Span",
    "RangeEvaluation",
    "RangeEvaluator",
    "count_accepted",
    "evaluate_part",
    "evaluate_ranges",
    "is_accepted",
    "score_parts",
    "AnalysisResult",
    "WorkflowAnalyzer",
]
