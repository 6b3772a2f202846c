"""
Tests for the point and range workflow evaluators.
"""

from itertools import product
from pathlib import Path

import pytest

from backend.rangeflow.errors import CycleDetected, UndefinedReference
from backend.rangeflow.grammar import parse_problem
from backend.rangeflow.logic import (
    Interval,
    Span,
    count_accepted,
    evaluate_part,
    evaluate_ranges,
    is_accepted,
    score_parts,
)
from backend.rangeflow.models import Comparison, Outcome, Part, Rule

EXAMPLE = Path(__file__).parent / "data" / "example.txt"
XMAS = ["x", "m", "a", "s"]


def system_of(text):
    return parse_problem(text).system


class TestSpan:
    """Tests for Span splitting."""

    def test_less(self):
        """Test a split below the threshold."""
        assert Span(1, 10).split(Comparison.LESS, 5) == (Span(1, 4), Span(5, 10))

    def test_greater(self):
        """Test a split above the threshold."""
        assert Span(1, 10).split(Comparison.GREATER, 5) == (Span(6, 10), Span(1, 5))

    @pytest.mark.parametrize(
        "op,threshold,matching_size",
        [
            (Comparison.LESS, 0, 0),
            (Comparison.LESS, 1, 0),
            (Comparison.LESS, 11, 10),
            (Comparison.LESS, 50, 10),
            (Comparison.GREATER, 10, 0),
            (Comparison.GREATER, 0, 10),
            (Comparison.GREATER, -5, 10),
        ],
    )
    def test_threshold_outside_span(self, op, threshold, matching_size):
        """Test that out-of-range thresholds give one full and one empty side."""
        matching, rest = Span(1, 10).split(op, threshold)
        assert matching.size == matching_size
        assert rest.size == 10 - matching_size

    def test_partition_is_complete_and_disjoint(self):
        """Test that both sides always partition the original span."""
        span = Span(1, 10)
        original = set(range(1, 11))
        for op in Comparison:
            for threshold in range(-2, 14):
                matching, rest = span.split(op, threshold)
                matching_values = set(range(matching.start, matching.end + 1))
                rest_values = set(range(rest.start, rest.end + 1))
                assert not matching_values & rest_values
                assert matching_values | rest_values == original
                assert all(op.holds(v, threshold) for v in matching_values)
                assert not any(op.holds(v, threshold) for v in rest_values)

    def test_inverted_span(self):
        """Test that a span cannot invert below empty."""
        assert Span(5, 4).is_empty
        with pytest.raises(ValueError):
            Span(5, 3)


class TestInterval:
    """Tests for Interval."""

    def test_size(self):
        """Test the point count of a box."""
        assert Interval.full(XMAS, 1, 4000).size == 4000 ** 4

    def test_unhashable(self):
        """Test that intervals compare by value but cannot be hashed."""
        interval = Interval.full(["a"], 1, 10)
        assert interval == Interval({"a": Span(1, 10)})
        with pytest.raises(TypeError):
            hash(interval)

    def test_split_leaves_original(self):
        """Test that splitting returns new intervals."""
        interval = Interval.full(["a", "b"], 1, 10)
        rule = Rule(rating="a", op="<", threshold=4, outcome=Outcome.accept())
        matching, rest = interval.split(rule)
        assert matching.spans == {"a": Span(1, 3), "b": Span(1, 10)}
        assert rest.spans == {"a": Span(4, 10), "b": Span(1, 10)}
        assert interval.spans["a"] == Span(1, 10)

    def test_split_unknown_rating(self):
        """Test that a rule on another rating matches nothing."""
        interval = Interval.full(["a"], 1, 10)
        rule = Rule(rating="z", op="<", threshold=4, outcome=Outcome.accept())
        matching, rest = interval.split(rule)
        assert matching is None
        assert rest == interval


class TestEvaluatePart:
    """Tests for single-part evaluation."""

    def test_reject_above(self):
        """Test a part matching the reject rule."""
        system = system_of("in{a>1:R,A}")
        assert evaluate_part(system, Part(ratings={"a": 2})) == Outcome.reject()

    def test_accept_fallback(self):
        """Test a part reaching the fallback."""
        system = system_of("in{a>1:R,A}")
        assert evaluate_part(system, Part(ratings={"a": 1})) == Outcome.accept()

    def test_follows_jumps(self):
        """Test a part crossing several workflows."""
        system = system_of(EXAMPLE.read_text())
        part = Part(ratings={"x": 787, "m": 2655, "a": 1222, "s": 2876})
        assert is_accepted(system, part)

    def test_example_score(self):
        """Test the rating sum of the puzzle example."""
        problem = parse_problem(EXAMPLE.read_text())
        assert score_parts(problem.system, problem.parts) == 19114

    def test_example_outcomes(self):
        """Test each example part's outcome and rating sum."""
        problem = parse_problem(EXAMPLE.read_text())
        outcomes = [evaluate_part(problem.system, part) for part in problem.parts]
        assert [str(o) for o in outcomes] == ["A", "R", "A", "R", "A"]
        assert [p.total for p in problem.parts] == [7540, 4286, 4623, 4557, 6951]

    def test_undefined_reference(self):
        """Test a jump to a missing workflow."""
        system = system_of("in{a<5:zz,R}")
        with pytest.raises(UndefinedReference) as exc_info:
            evaluate_part(system, Part(ratings={"a": 1}))
        assert exc_info.value.name == "zz"
        assert exc_info.value.referenced_by == "in"

    def test_missing_entry(self):
        """Test a table without the entry workflow."""
        with pytest.raises(UndefinedReference):
            evaluate_part(system_of("foo{A}"), Part(ratings={"a": 1}))

    def test_cycle_detected(self):
        """Test that a loop gives up instead of spinning forever."""
        system = system_of("in{a<5:b,R}\nb{a<100:in,A}")
        with pytest.raises(CycleDetected) as exc_info:
            evaluate_part(system, Part(ratings={"a": 1}), max_steps=50)
        assert exc_info.value.steps == 50
        assert set(exc_info.value.path) == {"in", "b"}

    def test_cycle_not_taken(self):
        """Test that a cycle the part never enters is harmless."""
        system = system_of("in{a<5:b,R}\nb{a<100:in,A}")
        assert evaluate_part(system, Part(ratings={"a": 7}), max_steps=50) == Outcome.reject()


class TestEvaluateRanges:
    """Tests for range-partitioning evaluation."""

    def test_single_dimension(self):
        """Test counting a one-dimensional domain."""
        system = system_of("in{a<5:A,R}")
        result = evaluate_ranges(system, Interval.full(["a"], 1, 10))
        assert result.accepted_count == 4
        assert result.accepted == [Interval({"a": Span(1, 4)})]
        assert result.rejected == [Interval({"a": Span(5, 10)})]

    def test_example_count(self):
        """Test the accepted combinations of the puzzle example."""
        system = system_of(EXAMPLE.read_text())
        assert count_accepted(system, Interval.full(XMAS, 1, 4000)) == 167409079868000

    def test_count_is_conserved(self):
        """Test that every point ends up accepted or rejected exactly once."""
        system = system_of(EXAMPLE.read_text())
        domain = Interval.full(XMAS, 1, 4000)
        result = evaluate_ranges(system, domain)
        assert result.accepted_count + result.rejected_count == domain.size

        terminal = [i for i, o in result.dispatched if o.is_terminal]
        assert sum(i.size for i in terminal) == domain.size
        assert all(not i.is_empty for i, _ in result.dispatched)

    def test_empty_rule_list(self):
        """Test that a rule-less workflow applies its fallback to everything."""
        system = system_of("in{next}\nnext{A}")
        result = evaluate_ranges(system, Interval.full(["a", "b"], 1, 10))
        assert result.accepted_count == 100
        assert result.visits == 2

    def test_threshold_outside_domain(self):
        """Test rules that match everything or nothing."""
        system = system_of("in{a>100:R,a<100:A,R}")
        assert count_accepted(system, Interval.full(["a"], 1, 10)) == 10

    def test_undefined_reference(self):
        """Test a range routed to a missing workflow."""
        system = system_of("in{a<5:zz,R}")
        with pytest.raises(UndefinedReference):
            count_accepted(system, Interval.full(["a"], 1, 10))

    def test_unreached_undefined_reference(self):
        """Test that a missing workflow no range reaches is not an error."""
        system = system_of("in{a<0:zz,A}")
        assert count_accepted(system, Interval.full(["a"], 1, 10)) == 10

    def test_cycle_detected(self):
        """Test that a loop that never narrows gives up instead of spinning forever."""
        system = system_of("in{a<5:in,R}")
        with pytest.raises(CycleDetected) as exc_info:
            count_accepted(system, Interval.full(["a"], 1, 10), max_steps=100)
        assert exc_info.value.steps == 100
        assert set(exc_info.value.path) == {"in"}

    def test_narrowing_cycle_terminates(self):
        """Test that a cycle no range can follow forever is evaluated normally."""
        system = system_of("in{a<5:b,R}\nb{a>10:in,A}")
        assert count_accepted(system, Interval.full(["a"], 1, 10), max_steps=100) == 4

    @pytest.mark.parametrize(
        "text",
        [
            "in{x<5:A,m>8:R,mid}\nmid{x>9:A,m<3:R,A}",
            "in{x<0:A,x>100:R,m<7:lo,hi}\nlo{A}\nhi{x>6:lo,R}",
            "in{z<5:A,x<7:R,m>2:A,R}",
            "in{x>3:a,R}\na{m<10:b,A}\nb{x<8:c,m>4:A,R}\nc{m>2:A,x>5:R,A}",
        ],
    )
    def test_matches_point_by_point(self, text):
        """Test that range counting agrees with evaluating every point."""
        system = system_of(text)
        low, high = 1, 12
        expected = sum(
            is_accepted(system, Part(ratings={"x": x, "m": m}))
            for x, m in product(range(low, high + 1), repeat=2)
        )
        assert count_accepted(system, Interval.full(["x", "m"], low, high)) == expected

    def test_accepted_intervals_disjoint(self):
        """Test that accepted boxes never overlap."""
        system = system_of("in{x>3:a,R}\na{m<10:b,A}\nb{x<8:c,m>4:A,R}\nc{m>2:A,x>5:R,A}")
        result = evaluate_ranges(system, Interval.full(["x", "m"], 1, 12))
        seen = set()
        for interval in result.accepted:
            points = set(product(
                range(interval.spans["x"].start, interval.spans["x"].end + 1),
                range(interval.spans["m"].start, interval.spans["m"].end + 1),
            ))
            assert not seen & points
            seen |= points
