"""
Test ComparisonEngine.compare().

Validates:
- Fixed / new / persistent categorization by rule id
- Partition, symmetry and self-comparison properties
- Best-effort defaults for scans without summary or violations
- improvement_percentage rounding and its fixed-over-previous definition
"""
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from a11y_tracker.services.comparison_engine import ComparisonEngine
from a11y_tracker.services.scan_snapshot import ScanSnapshot, ScanSummary, Violation


def make_snapshot(violation_ids, score=None, total_issues=None, impacts=None, descriptions=None):
    """Build a completed snapshot with the given violation ids."""
    impacts = impacts or {}
    descriptions = descriptions or {}
    violations = tuple(
        Violation(
            id=vid,
            description=descriptions.get(vid, f"{vid} description"),
            impact=impacts.get(vid, "serious"),
            node_count=1,
        )
        for vid in violation_ids
    )
    summary = None
    if score is not None or total_issues is not None:
        summary = ScanSummary(
            accessibility_score=score or 0,
            total_issues=total_issues if total_issues is not None else len(violation_ids),
        )
    return ScanSnapshot(
        id=uuid4(),
        url="https://example.com",
        created_at=datetime(2024, 1, 1),
        status="completed",
        summary=summary,
        violations=violations,
    )


@pytest.fixture
def engine():
    return ComparisonEngine()


class TestComparisonScenario:
    """Test the reference comparison scenario."""

    def test_fixed_new_and_persistent(self, engine):
        """Test: previous [a, b] vs current [b, c]."""
        previous = make_snapshot(["a", "b"], score=50, total_issues=2)
        current = make_snapshot(["b", "c"], score=70)

        result = engine.compare(current, previous)

        assert result.score_change == 20
        assert result.issues_fixed == 1
        assert result.new_issues == 1
        assert result.still_present == 1
        assert [v["id"] for v in result.fixed_violations] == ["a"]
        assert [v["id"] for v in result.new_violations] == ["c"]
        assert [v["id"] for v in result.persistent_violations] == ["b"]
        assert result.improvement_percentage == Decimal("50.00")

    def test_improvement_percentage_has_two_decimal_places(self, engine):
        """Test: improvement_percentage is fixed to 2 decimals."""
        previous = make_snapshot(["a", "b", "c"], score=50, total_issues=3)
        current = make_snapshot(["b", "c"], score=50)

        result = engine.compare(current, previous)

        assert str(result.improvement_percentage) == "33.33"
        assert str(engine.compare(make_snapshot(["z"]), make_snapshot(["a"], total_issues=2)).improvement_percentage) == "50.00"

    def test_improvement_percentage_ignores_new_issues(self, engine):
        """Test: new issues do not reduce improvement_percentage."""
        previous = make_snapshot(["a", "b"], score=50, total_issues=2)
        current = make_snapshot(["c", "d", "e"], score=30)

        result = engine.compare(current, previous)

        assert result.issues_fixed == 2
        assert result.new_issues == 3
        assert result.improvement_percentage == Decimal("100.00")

    def test_improvement_percentage_can_exceed_hundred(self, engine):
        """Test: fixed count over a smaller previous total reports above 100%."""
        previous = make_snapshot(["a", "b", "c"], score=50, total_issues=2)
        current = make_snapshot([], score=90)

        result = engine.compare(current, previous)

        assert result.improvement_percentage == Decimal("150.00")

    def test_improvement_percentage_zero_without_previous_total(self, engine):
        """Test: improvement_percentage stays 0 when previous total_issues is 0."""
        previous = make_snapshot(["a"], score=50, total_issues=0)
        current = make_snapshot([], score=60)

        result = engine.compare(current, previous)

        assert result.issues_fixed == 1
        assert result.improvement_percentage == 0

    def test_metadata_source_per_category(self, engine):
        """Test: fixed uses previous metadata, new/persistent use current metadata."""
        previous = make_snapshot(
            ["a", "b"],
            descriptions={"a": "old a", "b": "old b"},
            impacts={"a": "minor", "b": "minor"},
        )
        current = make_snapshot(
            ["b", "c"],
            descriptions={"b": "new b", "c": "new c"},
            impacts={"b": "critical", "c": "critical"},
        )

        result = engine.compare(current, previous)

        assert result.fixed_violations == [{"id": "a", "description": "old a", "impact": "minor"}]
        assert result.persistent_violations == [{"id": "b", "description": "new b", "impact": "critical"}]
        assert result.new_violations == [{"id": "c", "description": "new c", "impact": "critical"}]

    def test_emission_follows_scan_order(self, engine):
        """Test: output order follows each scan's own violation order, unsorted."""
        previous = make_snapshot(["z", "m", "a", "keep"])
        current = make_snapshot(["y", "keep2", "b", "keep"])
        current_with_persistent = make_snapshot(["keep", "y", "b"])

        result = engine.compare(current, previous)
        assert [v["id"] for v in result.fixed_violations] == ["z", "m", "a"]
        assert [v["id"] for v in result.new_violations] == ["y", "keep2", "b"]

        result = engine.compare(current_with_persistent, previous)
        assert [v["id"] for v in result.new_violations] == ["y", "b"]


class TestComparisonProperties:
    """Test algebraic properties of the comparison."""

    @pytest.mark.parametrize("previous_ids,current_ids", [
        (["a", "b"], ["b", "c"]),
        ([], ["a"]),
        (["a", "b", "c"], []),
        (["a", "a", "b"], ["b", "b", "d"]),
    ])
    def test_partition(self, engine, previous_ids, current_ids):
        """Test: every id lands in exactly one category per side."""
        previous = make_snapshot(previous_ids)
        current = make_snapshot(current_ids)

        result = engine.compare(current, previous)

        fixed = {v["id"] for v in result.fixed_violations}
        new = {v["id"] for v in result.new_violations}
        persistent = {v["id"] for v in result.persistent_violations}

        assert fixed | persistent == set(previous_ids)
        assert not fixed & persistent
        assert new | persistent == set(current_ids)
        assert not new & persistent
        assert result.issues_fixed + result.still_present == len(set(previous_ids))
        assert result.new_issues + result.still_present == len(set(current_ids))

    def test_symmetry_of_fixed_and_new(self, engine):
        """Test: fixed(A -> B) equals new(B -> A)."""
        a = make_snapshot(["x", "y", "z"])
        b = make_snapshot(["y", "w"])

        forward = engine.compare(b, a)
        backward = engine.compare(a, b)

        assert forward.fixed_violations == backward.new_violations
        assert forward.new_violations == backward.fixed_violations
        assert forward.issues_fixed == backward.new_issues

    def test_self_comparison(self, engine):
        """Test: comparing a scan with itself changes nothing."""
        snapshot = make_snapshot(["a", "b", "c"], score=72.5, total_issues=3)

        result = engine.compare(snapshot, snapshot)

        assert result.issues_fixed == 0
        assert result.new_issues == 0
        assert result.still_present == 3
        assert result.score_change == 0
        assert result.improvement_percentage == 0

    def test_duplicate_ids_collapse(self, engine):
        """Test: a rule id repeated within one scan is counted and emitted once."""
        previous = make_snapshot(["a", "a", "b"])
        current = make_snapshot(["b", "b", "c", "c"])

        result = engine.compare(current, previous)

        assert [v["id"] for v in result.fixed_violations] == ["a"]
        assert [v["id"] for v in result.persistent_violations] == ["b"]
        assert [v["id"] for v in result.new_violations] == ["c"]

    def test_inputs_are_not_mutated(self, engine):
        """Test: compare() leaves both snapshots untouched."""
        previous = make_snapshot(["a", "b"], score=50, total_issues=2)
        current = make_snapshot(["b", "c"], score=70)
        before = (previous, current)

        engine.compare(current, previous)

        assert (previous, current) == before
        assert [v.id for v in previous.violations] == ["a", "b"]


class TestComparisonDefaults:
    """Test best-effort handling of partial audit data."""

    def test_missing_summary_and_violations(self, engine):
        """Test: an empty scan compares without failing against a full scan."""
        empty = ScanSnapshot(
            id=uuid4(),
            url="https://example.com",
            created_at=None,
            status="completed",
        )
        full = make_snapshot(["a", "b"], score=80, total_issues=2)

        result = engine.compare(full, empty)

        assert result.score_change == 80
        assert result.issues_fixed == 0
        assert result.new_issues == 2
        assert result.still_present == 0
        assert result.improvement_percentage == 0

        result = engine.compare(empty, full)

        assert result.score_change == -80
        assert result.issues_fixed == 2
        assert result.new_issues == 0
        assert result.improvement_percentage == Decimal("100.00")

    def test_to_dict_is_json_ready(self, engine):
        """Test: to_dict() returns plain JSON types."""
        previous = make_snapshot(["a", "b"], score=50, total_issues=2)
        current = make_snapshot(["b", "c"], score=70)

        data = engine.compare(current, previous).to_dict()

        assert data["improvement_percentage"] == "50.00"
        assert isinstance(data["improvement_percentage"], str)
        assert data["issues_fixed"] == 1
        assert data["fixed_violations"][0]["id"] == "a"
