"""Scan service for scan records, audit results and report statistics."""
import logging
import math
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from a11y_tracker.models.scan import Scan, ScanStatus, ScanType
from a11y_tracker.services.audit_runner import AuditPayload, AuditRunner
from a11y_tracker.services.comparison_engine import TWO_PLACES, round_decimal
from a11y_tracker.utils.invariants import (
    InvariantViolationError,
    check_scan_exists,
    check_scan_pending,
)

logger = logging.getLogger(__name__)


class ScanServiceError(Exception):
    """Base exception for scan service errors."""
    pass


class InvalidScanRequestError(ScanServiceError):
    """Raised when a scan request is missing required data."""
    pass


def calculate_summary(
    lighthouse_results: Optional[Dict[str, Any]],
    axe_results: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Bucket Axe violations by impact and take the Lighthouse score.

    Serious and moderate violations share the moderate bucket.
    Counts are per violation entry, not per affected node.
    """
    violations = (axe_results or {}).get("violations") or []
    total_issues = len(violations)
    critical_issues = 0
    moderate_issues = 0
    minor_issues = 0
    for violation in violations:
        impact = violation.get("impact")
        if impact == "critical":
            critical_issues += 1
        elif impact in ("serious", "moderate"):
            moderate_issues += 1
        elif impact == "minor":
            minor_issues += 1

    accessibility_score = 0
    if lighthouse_results:
        accessibility_score = lighthouse_results.get("score") or 0

    return {
        "total_issues": total_issues,
        "critical_issues": critical_issues,
        "moderate_issues": moderate_issues,
        "minor_issues": minor_issues,
        "accessibility_score": accessibility_score,
    }


VALID_SCAN_TYPES = {t.value for t in ScanType}


def validate_scan_request(url: Optional[str], scan_type: str) -> str:
    """
    Check a scan request and return the normalized URL.

    Raises:
        InvalidScanRequestError: If url is empty or scan_type unknown
    """
    url = (url or "").strip()
    if not url:
        raise InvalidScanRequestError("URL is required")
    if scan_type not in VALID_SCAN_TYPES:
        raise InvalidScanRequestError(
            f"Invalid scan_type '{scan_type}'. "
            f"Expected one of: {', '.join(sorted(VALID_SCAN_TYPES))}"
        )
    return url


def serialize_scan(scan: Scan, include_results: bool = True) -> Dict[str, Any]:
    """JSON-ready representation of a scan."""
    data = {
        "id": str(scan.id),
        "url": scan.url,
        "scan_type": scan.scan_type,
        "status": scan.status_value,
        "summary": scan.summary_json,
        "error": scan.error,
        "created_at": scan.created_at.isoformat() if scan.created_at else None,
    }
    if include_results:
        data["lighthouse_results"] = scan.lighthouse_results
        data["axe_results"] = scan.axe_results
    return data


class ScanService:
    """
    Service for scan records and their audit lifecycle.

    Capabilities:
    - Create pending scans
    - Record audit results or failures (terminal transition, exactly once)
    - Execute an audit through a pluggable AuditRunner
    - Read, list and delete scans
    - Compute report statistics

    Rules:
    - Scans are created PENDING and move once to COMPLETED or FAILED
    - Audit analysis is delegated to the AuditRunner; this service only
      stores and summarizes its output
    """

    def __init__(self, db: Session):
        """
        Initialize scan service.

        Args:
            db: Database session
        """
        self.db = db

    def create_scan(self, url: str, scan_type: str = ScanType.BOTH.value) -> Scan:
        """
        Create a pending scan record.

        Raises:
            InvalidScanRequestError: If url is empty or scan_type unknown
        """
        url = validate_scan_request(url, scan_type)

        scan = Scan(url=url, scan_type=scan_type, status=ScanStatus.PENDING)
        self.db.add(scan)
        self.db.flush()

        logger.info("Created pending scan %s for %s (%s)", scan.id, url, scan_type)
        return scan

    def record_audit_results(self, scan_id: UUID, payload: AuditPayload) -> Scan:
        """
        Store audit output and mark the scan COMPLETED.

        Raises:
            ScanNotFoundError: If the scan does not exist
            ScanAlreadyTerminalError: If the scan already completed or failed
        """
        scan = check_scan_exists(self._get(scan_id), scan_id)
        check_scan_pending(scan)

        scan.lighthouse_results = payload.lighthouse_results
        scan.axe_results = payload.axe_results
        scan.summary_json = calculate_summary(payload.lighthouse_results, payload.axe_results)
        scan.status = ScanStatus.COMPLETED

        self.db.commit()
        self.db.refresh(scan)

        logger.info(
            "Scan %s completed: score=%s issues=%s",
            scan.id,
            scan.summary_json["accessibility_score"],
            scan.summary_json["total_issues"],
        )
        return scan

    def record_audit_failure(self, scan_id: UUID, error: str) -> Scan:
        """
        Mark the scan FAILED with an error message.

        Raises:
            ScanNotFoundError: If the scan does not exist
            ScanAlreadyTerminalError: If the scan already completed or failed
        """
        scan = check_scan_exists(self._get(scan_id), scan_id)
        check_scan_pending(scan)

        scan.status = ScanStatus.FAILED
        scan.error = error

        self.db.commit()
        self.db.refresh(scan)

        logger.warning("Scan %s failed: %s", scan.id, error)
        return scan

    def execute_audit(self, scan_id: UUID, runner: AuditRunner) -> Scan:
        """
        Run the audit tools for a pending scan and record the outcome.

        Any exception raised by the runner, or while storing its output,
        marks the scan FAILED.
        """
        scan = check_scan_exists(self._get(scan_id), scan_id)
        check_scan_pending(scan)

        try:
            payload = runner.run(scan.url, scan.scan_type)
        except Exception as e:
            logger.exception("Audit run failed for scan %s", scan_id)
            return self.record_audit_failure(scan_id, str(e))

        try:
            return self.record_audit_results(scan_id, payload)
        except InvariantViolationError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("Could not record audit results for scan %s", scan_id)
            return self.record_audit_failure(scan_id, f"Invalid audit results: {e}")

    def get_scan(self, scan_id: UUID) -> Scan:
        """
        Raises:
            ScanNotFoundError: If the scan does not exist
        """
        return check_scan_exists(self._get(scan_id), scan_id)

    def list_scans(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """
        Paginated scan listing, newest first.

        Raises:
            InvalidScanRequestError: If page or limit is below 1
        """
        if page < 1 or limit < 1:
            raise InvalidScanRequestError("page and limit must be positive")

        total = self.db.query(func.count(Scan.id)).scalar() or 0
        scans = self.db.query(Scan).order_by(
            Scan.created_at.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return {
            "scans": [serialize_scan(s, include_results=False) for s in scans],
            "total_pages": math.ceil(total / limit),
            "current_page": page,
            "total_scans": total,
        }

    def delete_scan(self, scan_id: UUID) -> None:
        """
        Raises:
            ScanNotFoundError: If the scan does not exist
        """
        scan = check_scan_exists(self._get(scan_id), scan_id)
        self.db.delete(scan)
        self.db.commit()
        logger.info("Deleted scan %s", scan_id)

    def report_stats(self) -> Dict[str, Any]:
        """Scan counts by status and the mean score of completed scans."""
        total_scans = self.db.query(func.count(Scan.id)).scalar() or 0
        completed_scans = self.db.query(func.count(Scan.id)).filter(
            Scan.status == ScanStatus.COMPLETED
        ).scalar() or 0
        failed_scans = self.db.query(func.count(Scan.id)).filter(
            Scan.status == ScanStatus.FAILED
        ).scalar() or 0

        # Scores live in JSON, so average them here rather than in SQL
        scores = [
            scan.summary_json["accessibility_score"]
            for scan in self.db.query(Scan).filter(Scan.status == ScanStatus.COMPLETED).all()
            if scan.summary_json and scan.summary_json.get("accessibility_score") is not None
        ]
        average = sum(scores) / len(scores) if scores else 0

        return {
            "total_scans": total_scans,
            "completed_scans": completed_scans,
            "failed_scans": failed_scans,
            "average_accessibility_score": str(round_decimal(average, TWO_PLACES)),
        }

    def _get(self, scan_id: UUID) -> Optional[Scan]:
        return self.db.query(Scan).filter(Scan.id == scan_id).first()
