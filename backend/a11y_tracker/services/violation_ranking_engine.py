"""Ranking of the most frequent violation rules across all scans."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from a11y_tracker.services.scan_snapshot import ScanSnapshot


# The first occurrence of a rule id fixes its description and impact.
# Later occurrences only add to the count.
FIRST_SEEN_METADATA_WINS = "first_seen_metadata_wins"


@dataclass
class ViolationRanking:
    """Occurrence count of one rule id."""
    id: str
    description: Optional[str]
    impact: Optional[str]
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "impact": self.impact,
            "count": self.count,
        }


class ViolationRankingEngine:
    """
    Counts violation entries by rule id over completed scans.

    Every violation entry of every scan adds one to its rule's count.
    Ties keep the order in which rule ids were first seen.
    """

    metadata_policy = FIRST_SEEN_METADATA_WINS

    def __init__(self, limit: int = 10):
        self.limit = limit

    def rank(self, snapshots: Sequence[ScanSnapshot]) -> List[ViolationRanking]:
        """Return the top `limit` rule ids by occurrence count."""
        counts: Dict[str, ViolationRanking] = {}
        for snapshot in snapshots:
            for violation in snapshot.violations:
                entry = counts.get(violation.id)
                if entry is None:
                    entry = ViolationRanking(
                        id=violation.id,
                        description=violation.description,
                        impact=violation.impact,
                    )
                    counts[violation.id] = entry
                entry.count += 1

        # sorted() is stable, dict order is first-seen order
        ranked = sorted(counts.values(), key=lambda r: r.count, reverse=True)
        return ranked[:self.limit]
