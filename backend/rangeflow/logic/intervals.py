"""
Interval arithmetic for range partitioning.

An Interval is an axis-aligned box: one inclusive integer Span per rating.
Splitting never mutates; it returns new sibling intervals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from ..models import Comparison, Rule


@dataclass(frozen=True)
class Span:
    """Inclusive integer range. Empty when start == end + 1."""
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end + 1:
            raise ValueError(f"Inverted span {self.start}..={self.end}")

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def split(self, op: Comparison, threshold: int) -> Tuple["Span", "Span"]:
        """
        Split at threshold into (matching, non-matching).

        The cut is clamped to the span, so a threshold outside it yields one
        full side and one empty side.
        """
        if op is Comparison.LESS:
            cut = min(max(threshold, self.start), self.end + 1)
            return Span(self.start, cut - 1), Span(cut, self.end)
        cut = min(max(threshold + 1, self.start), self.end + 1)
        return Span(cut, self.end), Span(self.start, cut - 1)

    def __str__(self) -> str:
        return f"{self.start}..={self.end}"


@dataclass(frozen=True)
class Interval:
    """
    One Span per rating name.

    Intervals compare by value but are unhashable, since spans is a dict.
    """
    spans: Dict[str, Span] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def full(cls, dimensions: Iterable[str], low: int, high: int) -> "Interval":
        """Build the box covering low..=high on every dimension."""
        return cls({name: Span(low, high) for name in dimensions})

    @property
    def size(self) -> int:
        """Number of integer points in the box."""
        total = 1
        for span in self.spans.values():
            total *= span.size
        return total

    @property
    def is_empty(self) -> bool:
        return any(span.is_empty for span in self.spans.values())

    def with_span(self, rating: str, span: Span) -> "Interval":
        spans = dict(self.spans)
        spans[rating] = span
        return Interval(spans)

    def split(self, rule: Rule) -> Tuple[Optional["Interval"], "Interval"]:
        """
        Partition by a rule's comparison into (matching, non-matching).

        A rule on a rating this interval does not cover matches nothing, and
        the matching side is None.
        """
        span = self.spans.get(rule.rating)
        if span is None:
            return None, self
        matching, rest = span.split(rule.op, rule.threshold)
        return self.with_span(rule.rating, matching), self.with_span(rule.rating, rest)

    def __str__(self) -> str:
        body = ",".join(f"{name}={span}" for name, span in self.spans.items())
        return f"{{{body}}}"
