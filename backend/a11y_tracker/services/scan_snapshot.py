"""Immutable, storage-independent views of scans consumed by the engines."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from a11y_tracker.models.scan import Scan


@dataclass(frozen=True)
class Violation:
    """A failed accessibility rule reported by the audit tool."""
    id: str
    description: Optional[str] = None
    impact: Optional[str] = None
    node_count: int = 0

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Violation":
        nodes = payload.get("nodes") or []
        return cls(
            id=payload.get("id"),
            description=payload.get("description"),
            impact=payload.get("impact"),
            node_count=len(nodes),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Metadata emitted in comparison and ranking output."""
        return {
            "id": self.id,
            "description": self.description,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class ScanSummary:
    """Aggregate counts of one scan. Missing values read as zero."""
    accessibility_score: float = 0.0
    total_issues: int = 0
    critical_issues: int = 0
    moderate_issues: int = 0
    minor_issues: int = 0

    @classmethod
    def from_json(cls, summary_json: Dict[str, Any]) -> "ScanSummary":
        return cls(
            accessibility_score=float(summary_json.get("accessibility_score") or 0),
            total_issues=int(summary_json.get("total_issues") or 0),
            critical_issues=int(summary_json.get("critical_issues") or 0),
            moderate_issues=int(summary_json.get("moderate_issues") or 0),
            minor_issues=int(summary_json.get("minor_issues") or 0),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "accessibility_score": self.accessibility_score,
            "total_issues": self.total_issues,
            "critical_issues": self.critical_issues,
            "moderate_issues": self.moderate_issues,
            "minor_issues": self.minor_issues,
        }


@dataclass(frozen=True)
class ScanSnapshot:
    """
    Read-only snapshot of a scan.

    `summary` is None when the audit produced no summary; `violations`
    keeps the order reported by the audit tool.
    """
    id: Optional[UUID]
    url: str
    created_at: Optional[datetime]
    status: str
    summary: Optional[ScanSummary] = None
    violations: Tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def score(self) -> float:
        return self.summary.accessibility_score if self.summary else 0.0

    @property
    def total_issues(self) -> int:
        return self.summary.total_issues if self.summary else 0

    @property
    def critical_issues(self) -> int:
        return self.summary.critical_issues if self.summary else 0

    @classmethod
    def from_scan(cls, scan: Scan) -> "ScanSnapshot":
        """Build a snapshot from a persisted Scan row."""
        summary = ScanSummary.from_json(scan.summary_json) if scan.summary_json else None
        raw_violations = (scan.axe_results or {}).get("violations") or []
        return cls(
            id=scan.id,
            url=scan.url,
            created_at=scan.created_at,
            status=scan.status_value,
            summary=summary,
            violations=tuple(Violation.from_payload(v) for v in raw_violations),
        )
