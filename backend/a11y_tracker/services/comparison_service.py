"""Comparison service: loads scans, enforces preconditions, runs the engines."""
import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from a11y_tracker.config import settings
from a11y_tracker.models.scan import Scan
from a11y_tracker.services.comparison_engine import ComparisonEngine
from a11y_tracker.services.scan_repository import ScanRepository
from a11y_tracker.services.scan_snapshot import ScanSnapshot
from a11y_tracker.services.timeline_engine import TimelineEngine
from a11y_tracker.services.violation_ranking_engine import ViolationRankingEngine
from a11y_tracker.utils.invariants import (
    check_same_url,
    check_scan_completed,
    check_scan_exists,
)

logger = logging.getLogger(__name__)


class ComparisonServiceError(Exception):
    """Base exception for comparison service errors."""
    pass


class NoPreviousScanError(ComparisonServiceError):
    """Raised when a scan has no earlier completed scan of the same URL."""
    pass


class ComparisonService:
    """
    Service for comparing scans and tracking a URL's progress.

    Capabilities:
    - Compare two explicit scans
    - Compare a scan with the previous completed scan of its URL
    - List recent scan history for a URL
    - Build a URL's timeline with per-row deltas and statistics
    - Rank the most frequent violations across all scans

    Rules:
    - Read-only: never writes to the database
    - Missing scans, URL mismatches and incomplete scans are rejected
      here, before the engines run
    """

    def __init__(self, db: Session):
        """
        Initialize comparison service.

        Args:
            db: Database session
        """
        self.db = db
        self.repository = ScanRepository(db)
        self.comparison_engine = ComparisonEngine()
        self.timeline_engine = TimelineEngine()
        self.ranking_engine = ViolationRankingEngine(limit=settings.top_violations_limit)

    def compare_scans(self, current_id: UUID, previous_id: UUID) -> Dict[str, Any]:
        """
        Compare two specific scans.

        Raises:
            ScanNotFoundError: If either scan does not exist
            ScanUrlMismatchError: If the scans audit different URLs
            ScanNotCompletedError: If either scan is not completed
        """
        current = check_scan_exists(self.repository.get_by_id(current_id), current_id)
        previous = check_scan_exists(self.repository.get_by_id(previous_id), previous_id)

        check_same_url(current, previous)
        check_scan_completed(current)
        check_scan_completed(previous)

        return self._build_comparison(current, previous)

    def compare_with_previous(self, scan_id: UUID) -> Dict[str, Any]:
        """
        Compare a scan with the most recent earlier completed scan of its URL.

        Raises:
            ScanNotFoundError: If the scan does not exist
            ScanNotCompletedError: If the scan is not completed
            NoPreviousScanError: If this is the first completed scan of the URL
        """
        current = check_scan_exists(self.repository.get_by_id(scan_id), scan_id)
        check_scan_completed(current)

        previous = self.repository.get_most_recent_completed_before(
            url=current.url,
            exclude_id=current.id,
            before=current.created_at,
        )
        if previous is None:
            logger.info("No previous scan for %s (scan %s)", current.url, current.id)
            raise NoPreviousScanError(f"No previous scan found for {current.url}")

        return self._build_comparison(current, previous)

    def get_scan_history(self, url: str) -> Dict[str, Any]:
        """Recent completed scans of a URL, newest first, for picking a comparison."""
        scans = self.repository.get_recent_completed_for_url(url, settings.history_limit)
        return {
            "scans": [self._scan_header(scan) for scan in scans],
            "total": len(scans),
        }

    def get_progress_timeline(self, url: str) -> Dict[str, Any]:
        """Timeline points, history rows and statistics of a URL."""
        snapshots = [
            ScanSnapshot.from_scan(scan)
            for scan in self.repository.get_all_completed_for_url(url)
        ]
        points = self.timeline_engine.timeline(snapshots)
        stats = self.timeline_engine.summarize_timeline(points)
        rows = self.timeline_engine.history_rows(points)

        return {
            "url": url,
            "timeline": [p.to_dict() for p in points],
            "history": [r.to_dict() for r in rows],
            "stats": stats.to_dict() if stats else None,
        }

    def get_top_violations(self) -> List[Dict[str, Any]]:
        """Most frequent violation rules over all completed scans."""
        snapshots = [ScanSnapshot.from_scan(scan) for scan in self.repository.get_all_completed()]
        return [r.to_dict() for r in self.ranking_engine.rank(snapshots)]

    def _build_comparison(self, current: Scan, previous: Scan) -> Dict[str, Any]:
        comparison = self.comparison_engine.compare(
            ScanSnapshot.from_scan(current),
            ScanSnapshot.from_scan(previous),
        )
        logger.debug(
            "Compared scan %s with %s: %d fixed, %d new, %d persistent",
            current.id, previous.id,
            comparison.issues_fixed, comparison.new_issues, comparison.still_present,
        )
        return {
            "current_scan": self._scan_header(current),
            "previous_scan": self._scan_header(previous),
            "comparison": comparison.to_dict(),
        }

    @staticmethod
    def _scan_header(scan: Scan) -> Dict[str, Any]:
        summary = scan.summary_json or {}
        return {
            "id": str(scan.id),
            "url": scan.url,
            "date": scan.created_at.isoformat() if scan.created_at else None,
            "score": summary.get("accessibility_score"),
            "total_issues": summary.get("total_issues"),
        }
