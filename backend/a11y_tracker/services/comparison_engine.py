"""Comparison engine for diffing the violations of two scans."""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from a11y_tracker.services.scan_snapshot import ScanSnapshot, Violation


TWO_PLACES = Decimal("0.01")


@dataclass
class ComparisonResult:
    """Categorized violation diff and summary deltas between two scans."""
    score_change: float = 0.0
    issues_fixed: int = 0
    new_issues: int = 0
    still_present: int = 0
    improvement_percentage: Decimal = Decimal("0.00")
    fixed_violations: List[Dict[str, Any]] = field(default_factory=list)
    new_violations: List[Dict[str, Any]] = field(default_factory=list)
    persistent_violations: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score_change": self.score_change,
            "issues_fixed": self.issues_fixed,
            "new_issues": self.new_issues,
            "still_present": self.still_present,
            "improvement_percentage": str(self.improvement_percentage),
            "fixed_violations": list(self.fixed_violations),
            "new_violations": list(self.new_violations),
            "persistent_violations": list(self.persistent_violations),
        }


def round_decimal(value: float, places: Decimal) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    return Decimal(str(value)).quantize(places, rounding=ROUND_HALF_UP)


class ComparisonEngine:
    """
    Comparison engine for two scans of the same URL.

    Rules:
    - Pure computation: no database access, never mutates its inputs
    - Never raises on partial data: a missing summary or violation list
      reads as zero/empty
    - Violations are matched by rule id with set semantics; duplicates
      within one scan count once
    - Output order follows each scan's own violation order

    Callers must check that both scans exist, share a URL and are
    completed before calling compare().
    """

    def compare(self, current: ScanSnapshot, previous: ScanSnapshot) -> ComparisonResult:
        """
        Compare a scan against an earlier scan.

        Args:
            current: The newer scan
            previous: The older scan

        Returns:
            ComparisonResult with fixed, new and persistent violations
        """
        result = ComparisonResult()

        current_ids = {v.id for v in current.violations}
        previous_ids = {v.id for v in previous.violations}

        # Fixed: reported previously, gone now (previous metadata)
        for violation in self._unique(previous.violations):
            if violation.id not in current_ids:
                result.fixed_violations.append(violation.to_dict())

        # New and persistent use the current scan's metadata
        for violation in self._unique(current.violations):
            if violation.id in previous_ids:
                result.persistent_violations.append(violation.to_dict())
            else:
                result.new_violations.append(violation.to_dict())

        result.issues_fixed = len(result.fixed_violations)
        result.new_issues = len(result.new_violations)
        result.still_present = len(result.persistent_violations)

        result.score_change = current.score - previous.score

        # Fixed count over the previous total; new issues are not subtracted
        previous_total = previous.total_issues
        if previous_total > 0:
            result.improvement_percentage = round_decimal(
                (result.issues_fixed / previous_total) * 100, TWO_PLACES
            )

        return result

    @staticmethod
    def _unique(violations: Iterable[Violation]) -> List[Violation]:
        """First occurrence of each rule id, in original order."""
        seen = set()
        unique = []
        for violation in violations:
            if violation.id in seen:
                continue
            seen.add(violation.id)
            unique.append(violation)
        return unique
