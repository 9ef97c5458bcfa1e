"""Timeline engine for a URL's scan history."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from a11y_tracker.services.comparison_engine import round_decimal
from a11y_tracker.services.scan_snapshot import ScanSnapshot


ONE_PLACE = Decimal("0.1")


@dataclass
class TimelinePoint:
    """A single completed scan in a URL's timeline."""
    date: Optional[datetime]
    score: float
    total_issues: int
    critical_issues: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat() if self.date else None,
            "score": self.score,
            "total_issues": self.total_issues,
            "critical_issues": self.critical_issues,
        }


@dataclass
class TimelineRow:
    """A timeline point with its change from the preceding point."""
    point: TimelinePoint
    is_first_scan: bool
    score_change: Optional[float] = None
    issue_change: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        row = self.point.to_dict()
        row.update({
            "is_first_scan": self.is_first_scan,
            "score_change": self.score_change,
            "issue_change": self.issue_change,
        })
        return row


@dataclass
class TimelineStats:
    """Whole-series statistics of a timeline."""
    total_scans: int
    first_score: float
    last_score: float
    improvement: float
    improvement_percent: Decimal
    avg_score: Decimal
    first_issues: int
    last_issues: int
    issues_reduced: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_scans": self.total_scans,
            "first_score": self.first_score,
            "last_score": self.last_score,
            "improvement": self.improvement,
            "improvement_percent": str(self.improvement_percent),
            "avg_score": str(self.avg_score),
            "first_issues": self.first_issues,
            "last_issues": self.last_issues,
            "issues_reduced": self.issues_reduced,
        }


class TimelineEngine:
    """
    Timeline engine for the progress of a single URL.

    Rules:
    - Input is already restricted to one URL's completed scans, oldest
      first; the engine neither re-sorts nor re-filters
    - Missing summary fields read as zero
    - Deterministic: same inputs produce same outputs
    """

    def timeline(self, snapshots: Sequence[ScanSnapshot]) -> List[TimelinePoint]:
        """Map each snapshot to a timeline point, keeping input order."""
        return [
            TimelinePoint(
                date=snapshot.created_at,
                score=snapshot.score,
                total_issues=snapshot.total_issues,
                critical_issues=snapshot.critical_issues,
            )
            for snapshot in snapshots
        ]

    def summarize_timeline(self, points: Sequence[TimelinePoint]) -> Optional[TimelineStats]:
        """
        Compute whole-series statistics.

        Args:
            points: Timeline points, oldest first

        Returns:
            TimelineStats, or None for an empty timeline
        """
        if not points:
            return None

        scores = [p.score for p in points]
        first_score = scores[0]
        last_score = scores[-1]
        improvement = last_score - first_score

        improvement_percent = Decimal("0.0")
        if first_score > 0:
            improvement_percent = round_decimal((improvement / first_score) * 100, ONE_PLACE)

        return TimelineStats(
            total_scans=len(points),
            first_score=first_score,
            last_score=last_score,
            improvement=improvement,
            improvement_percent=improvement_percent,
            avg_score=round_decimal(sum(scores) / len(scores), ONE_PLACE),
            first_issues=points[0].total_issues,
            last_issues=points[-1].total_issues,
            issues_reduced=points[0].total_issues - points[-1].total_issues,
        )

    def history_rows(self, points: Sequence[TimelinePoint]) -> List[TimelineRow]:
        """Pair every point with its delta against the immediate predecessor."""
        rows = []
        previous = None
        for point in points:
            if previous is None:
                rows.append(TimelineRow(point=point, is_first_scan=True))
            else:
                rows.append(TimelineRow(
                    point=point,
                    is_first_scan=False,
                    score_change=point.score - previous.score,
                    issue_change=point.total_issues - previous.total_issues,
                ))
            previous = point
        return rows
