"""
Services package.

Engines are pure: they take in-memory snapshots and return dataclasses,
with no database access.

Services hold the data access and business rules around them:
    - Accept database session as parameter
    - Perform database operations
    - Check preconditions before calling engines
    - Return data or raise exceptions
"""

from a11y_tracker.services.scan_snapshot import (
    ScanSnapshot,
    ScanSummary,
    Violation,
)
from a11y_tracker.services.comparison_engine import (
    ComparisonEngine,
    ComparisonResult,
)
from a11y_tracker.services.timeline_engine import (
    TimelineEngine,
    TimelinePoint,
    TimelineRow,
    TimelineStats,
)
from a11y_tracker.services.violation_ranking_engine import (
    FIRST_SEEN_METADATA_WINS,
    ViolationRanking,
    ViolationRankingEngine,
)
from a11y_tracker.services.audit_runner import (
    AuditPayload,
    AuditRunner,
)
from a11y_tracker.services.scan_repository import ScanRepository
from a11y_tracker.services.scan_service import (
    ScanService,
    ScanServiceError,
    InvalidScanRequestError,
    calculate_summary,
)
from a11y_tracker.services.comparison_service import (
    ComparisonService,
    ComparisonServiceError,
    NoPreviousScanError,
)

__all__ = [
    "ScanSnapshot",
    "ScanSummary",
    "Violation",
    "ComparisonEngine",
    "ComparisonResult",
    "TimelineEngine",
    "TimelinePoint",
    "TimelineRow",
    "TimelineStats",
    "FIRST_SEEN_METADATA_WINS",
    "ViolationRanking",
    "ViolationRankingEngine",
    "AuditPayload",
    "AuditRunner",
    "ScanRepository",
    "ScanService",
    "ScanServiceError",
    "InvalidScanRequestError",
    "calculate_summary",
    "ComparisonService",
    "ComparisonServiceError",
    "NoPreviousScanError",
]
