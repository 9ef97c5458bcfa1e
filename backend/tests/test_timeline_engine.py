"""
Test TimelineEngine.

Validates:
- Timeline points keep input order and read missing summaries as zero
- Whole-series statistics (improvement, averages, issue reduction)
- History rows carry deltas against the immediate predecessor
"""
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from a11y_tracker.services.scan_snapshot import ScanSnapshot, ScanSummary
from a11y_tracker.services.timeline_engine import TimelineEngine


START = datetime(2024, 3, 1, 12, 0, 0)


def make_series(*entries):
    """Build snapshots from (score, total_issues, critical_issues) tuples, one day apart."""
    snapshots = []
    for day, (score, total, critical) in enumerate(entries):
        snapshots.append(ScanSnapshot(
            id=uuid4(),
            url="https://example.com",
            created_at=START + timedelta(days=day),
            status="completed",
            summary=ScanSummary(
                accessibility_score=score,
                total_issues=total,
                critical_issues=critical,
            ),
        ))
    return snapshots


@pytest.fixture
def engine():
    return TimelineEngine()


class TestTimelinePoints:
    """Test timeline point construction."""

    def test_points_keep_input_order(self, engine):
        """Test: one point per snapshot, same order, same values."""
        snapshots = make_series((40, 10, 3), (60, 6, 1), (80, 2, 0))

        points = engine.timeline(snapshots)

        assert [p.score for p in points] == [40, 60, 80]
        assert [p.total_issues for p in points] == [10, 6, 2]
        assert [p.critical_issues for p in points] == [3, 1, 0]
        assert [p.date for p in points] == [s.created_at for s in snapshots]

    def test_missing_summary_reads_as_zero(self, engine):
        """Test: a completed scan without summary yields a zero point."""
        snapshot = ScanSnapshot(
            id=uuid4(),
            url="https://example.com",
            created_at=START,
            status="completed",
        )

        point = engine.timeline([snapshot])[0]

        assert point.score == 0
        assert point.total_issues == 0
        assert point.critical_issues == 0

    def test_empty_input(self, engine):
        """Test: empty history gives empty timeline, rows and no stats."""
        assert engine.timeline([]) == []
        assert engine.history_rows([]) == []
        assert engine.summarize_timeline([]) is None


class TestTimelineStats:
    """Test whole-series statistics."""

    def test_three_scan_progression(self, engine):
        """Test: scores 40, 60, 80 and issues 10, 6, 2."""
        points = engine.timeline(make_series((40, 10, 3), (60, 6, 1), (80, 2, 0)))

        stats = engine.summarize_timeline(points)

        assert stats.total_scans == 3
        assert stats.first_score == 40
        assert stats.last_score == 80
        assert stats.improvement == 40
        assert stats.improvement_percent == Decimal("100.0")
        assert stats.avg_score == Decimal("60.0")
        assert stats.first_issues == 10
        assert stats.last_issues == 2
        assert stats.issues_reduced == 8

    def test_single_scan(self, engine):
        """Test: one scan has zero improvement and its own score as average."""
        stats = engine.summarize_timeline(engine.timeline(make_series((73, 5, 1))))

        assert stats.total_scans == 1
        assert stats.improvement == 0
        assert stats.improvement_percent == Decimal("0.0")
        assert stats.avg_score == Decimal("73.0")
        assert stats.issues_reduced == 0

    def test_zero_first_score(self, engine):
        """Test: improvement_percent is 0 when the first score is 0."""
        stats = engine.summarize_timeline(engine.timeline(make_series((0, 12, 4), (50, 8, 2))))

        assert stats.improvement == 50
        assert stats.improvement_percent == 0

    def test_regression_and_rounding(self, engine):
        """Test: negative improvement and one-decimal half-up rounding."""
        stats = engine.summarize_timeline(engine.timeline(make_series((90, 3, 0), (60, 9, 2), (61, 7, 1))))

        assert stats.improvement == -29
        # -29 / 90 * 100 = -32.22...
        assert stats.improvement_percent == Decimal("-32.2")
        # (90 + 60 + 61) / 3 = 70.33...
        assert stats.avg_score == Decimal("70.3")
        assert stats.issues_reduced == -4

    def test_to_dict_is_json_ready(self, engine):
        """Test: Decimal fields serialize as fixed-precision strings."""
        stats = engine.summarize_timeline(engine.timeline(make_series((40, 10, 3), (60, 6, 1))))

        data = stats.to_dict()

        assert data["improvement_percent"] == "50.0"
        assert data["avg_score"] == "50.0"
        assert isinstance(data["avg_score"], str)


class TestHistoryRows:
    """Test per-row deltas."""

    def test_rows_against_predecessor(self, engine):
        """Test: first row has no delta; later rows diff the previous point."""
        points = engine.timeline(make_series((40, 10, 3), (60, 6, 1), (55, 7, 1)))

        rows = engine.history_rows(points)

        assert [r.is_first_scan for r in rows] == [True, False, False]
        assert rows[0].score_change is None
        assert rows[0].issue_change is None
        assert rows[1].score_change == 20
        assert rows[1].issue_change == -4
        assert rows[2].score_change == -5
        assert rows[2].issue_change == 1

    def test_row_dict_includes_point_fields(self, engine):
        """Test: a row serializes its point plus delta fields."""
        rows = engine.history_rows(engine.timeline(make_series((40, 10, 3), (60, 6, 1))))

        data = rows[1].to_dict()

        assert data["score"] == 60
        assert data["total_issues"] == 6
        assert data["critical_issues"] == 1
        assert data["date"] == (START + timedelta(days=1)).isoformat()
        assert data["is_first_scan"] is False
        assert data["score_change"] == 20
        assert data["issue_change"] == -4
