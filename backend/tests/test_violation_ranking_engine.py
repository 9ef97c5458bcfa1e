"""
Test ViolationRankingEngine.rank().

Validates:
- Counting per violation entry across scans
- Ordering by count with first-seen tie order
- First-seen description/impact
- Result limit
"""
from datetime import datetime
from uuid import uuid4

import pytest

from a11y_tracker.services.scan_snapshot import ScanSnapshot, Violation
from a11y_tracker.services.violation_ranking_engine import (
    FIRST_SEEN_METADATA_WINS,
    ViolationRankingEngine,
)


def make_snapshot(*violations):
    """Build a snapshot from (id, description, impact) tuples or bare ids."""
    items = []
    for v in violations:
        if isinstance(v, str):
            v = (v, f"{v} description", "serious")
        items.append(Violation(id=v[0], description=v[1], impact=v[2], node_count=1))
    return ScanSnapshot(
        id=uuid4(),
        url="https://example.com",
        created_at=datetime(2024, 1, 1),
        status="completed",
        violations=tuple(items),
    )


@pytest.fixture
def engine():
    return ViolationRankingEngine()


class TestViolationRanking:
    """Test global violation ranking."""

    def test_counts_across_scans(self, engine):
        """Test: image-alt in three scans outranks color-contrast in one."""
        snapshots = [
            make_snapshot("color-contrast", "image-alt"),
            make_snapshot("image-alt"),
            make_snapshot("image-alt"),
        ]

        ranking = engine.rank(snapshots)

        assert [(r.id, r.count) for r in ranking] == [("image-alt", 3), ("color-contrast", 1)]

    def test_counts_every_entry(self, engine):
        """Test: a rule repeated within one scan counts once per entry."""
        ranking = engine.rank([make_snapshot("label", "label", "label"), make_snapshot("list")])

        assert ranking[0].id == "label"
        assert ranking[0].count == 3

    def test_first_seen_metadata_wins(self, engine):
        """Test: description and impact come from the first occurrence."""
        snapshots = [
            make_snapshot(("image-alt", "Images must have alt text", "critical")),
            make_snapshot(("image-alt", "Reworded description", "minor")),
        ]

        ranking = engine.rank(snapshots)

        assert engine.metadata_policy == FIRST_SEEN_METADATA_WINS
        assert ranking[0].description == "Images must have alt text"
        assert ranking[0].impact == "critical"
        assert ranking[0].count == 2

    def test_ties_keep_first_seen_order(self, engine):
        """Test: equal counts keep the order rule ids were first seen."""
        snapshots = [
            make_snapshot("b-rule", "a-rule"),
            make_snapshot("c-rule", "a-rule", "b-rule", "c-rule"),
        ]

        ranking = engine.rank(snapshots)

        assert [r.id for r in ranking] == ["b-rule", "a-rule", "c-rule"]
        assert all(r.count == 2 for r in ranking)

    def test_limit(self, engine):
        """Test: at most ten entries are returned, highest counts first."""
        ids = [f"rule-{i}" for i in range(15)]
        snapshots = [make_snapshot(*ids[:i + 1]) for i in range(15)]

        ranking = engine.rank(snapshots)

        assert len(ranking) == 10
        assert ranking[0].id == "rule-0"
        assert ranking[0].count == 15
        assert ranking[-1].id == "rule-9"
        counts = [r.count for r in ranking]
        assert counts == sorted(counts, reverse=True)

    def test_custom_limit(self):
        """Test: limit is configurable."""
        ranking = ViolationRankingEngine(limit=1).rank([make_snapshot("a", "b", "b")])

        assert [r.id for r in ranking] == ["b"]

    def test_no_scans(self, engine):
        """Test: no scans gives an empty ranking."""
        assert engine.rank([]) == []
        assert engine.rank([make_snapshot()]) == []

    def test_to_dict(self, engine):
        """Test: ranking entries serialize with count."""
        data = engine.rank([make_snapshot(("region", "Content in landmarks", "moderate"))])[0].to_dict()

        assert data == {
            "id": "region",
            "description": "Content in landmarks",
            "impact": "moderate",
            "count": 1,
        }
