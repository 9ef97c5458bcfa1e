"""
System invariants and validation utilities.

Enforces critical system constraints:
1. No duplicate execution for same request_id
2. No comparison involving a missing scan
3. No comparison across different URLs
4. No comparison or timeline over scans that are not completed
5. A scan reaches a terminal status exactly once

Fail fast with explicit errors.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from a11y_tracker.models.idempotency import IdempotencyKey, RequestStatus
from a11y_tracker.models.scan import Scan, ScanStatus


class InvariantViolationError(Exception):
    """Base exception for invariant violations."""

    def __init__(self, invariant_name: str, message: str, details: dict = None):
        self.invariant_name = invariant_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[INVARIANT VIOLATION: {invariant_name}] {message}")


class ScanNotFoundError(InvariantViolationError):
    """Raised when a referenced scan does not exist."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("scan_not_found", message, details)


class ScanUrlMismatchError(InvariantViolationError):
    """Raised when comparing scans of different URLs."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("scan_url_mismatch", message, details)


class ScanNotCompletedError(InvariantViolationError):
    """Raised when a scan that is not completed is used for comparison."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("scan_not_completed", message, details)


class ScanAlreadyTerminalError(InvariantViolationError):
    """Raised when a scan that already completed or failed is transitioned again."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("scan_already_terminal", message, details)


class DuplicateExecutionError(InvariantViolationError):
    """Raised when duplicate execution detected for same request_id."""

    def __init__(self, message: str, details: dict = None):
        super().__init__("duplicate_execution", message, details)


def check_no_duplicate_execution(db: Session, request_id: str, orchestrator_name: str) -> None:
    """
    Invariant: A request_id runs at most once per orchestrator.

    FAILED keys do not block a retry; PROCESSING and COMPLETED keys do.

    Raises:
        DuplicateExecutionError: If the request is running or already done
    """
    existing = db.query(IdempotencyKey).filter(
        IdempotencyKey.request_id == request_id,
        IdempotencyKey.orchestrator_name == orchestrator_name,
    ).first()

    if existing is None or existing.status == RequestStatus.FAILED:
        return

    raise DuplicateExecutionError(
        f"request_id '{request_id}' is {existing.status.value.lower()} in '{orchestrator_name}'",
        details={
            "request_id": request_id,
            "orchestrator_name": orchestrator_name,
            "status": existing.status.value,
        }
    )


def check_scan_exists(scan: Optional[Scan], scan_id: UUID) -> Scan:
    """
    Invariant: Operations only reference existing scans.

    Returns:
        The scan, when present

    Raises:
        ScanNotFoundError: If scan is None
    """
    if scan is None:
        raise ScanNotFoundError(
            f"Scan {scan_id} not found",
            details={"scan_id": str(scan_id)}
        )
    return scan


def check_scan_completed(scan: Scan) -> None:
    """
    Invariant: Comparisons read only completed scans.

    Raises:
        ScanNotCompletedError: If the scan is pending or failed
    """
    if scan.status != ScanStatus.COMPLETED:
        raise ScanNotCompletedError(
            "Scan must be completed for comparison",
            details={"scan_id": str(scan.id), "status": scan.status_value}
        )


def check_same_url(current: Scan, previous: Scan) -> None:
    """
    Invariant: Comparisons are between scans of the same URL.

    Raises:
        ScanUrlMismatchError: If the URLs differ
    """
    if current.url != previous.url:
        raise ScanUrlMismatchError(
            "Scans must be of the same URL",
            details={
                "current_scan_id": str(current.id),
                "current_url": current.url,
                "previous_scan_id": str(previous.id),
                "previous_url": previous.url,
            }
        )


def check_scan_pending(scan: Scan) -> None:
    """
    Invariant: A scan moves to completed/failed exactly once.

    Raises:
        ScanAlreadyTerminalError: If the scan already left PENDING
    """
    if scan.status != ScanStatus.PENDING:
        raise ScanAlreadyTerminalError(
            f"Scan {scan.id} is already {scan.status_value}",
            details={"scan_id": str(scan.id), "status": scan.status_value}
        )


def validate_request_id(request_id: str) -> None:
    """
    Raises:
        ValueError: If request_id is empty, not a string or over 255 chars
    """
    if not isinstance(request_id, str) or not request_id:
        raise ValueError("request_id must be a non-empty string")
    if len(request_id) > 255:
        raise ValueError(f"request_id too long (max 255 chars, got {len(request_id)})")


def validate_orchestrator_name(orchestrator_name: str) -> None:
    """
    Raises:
        ValueError: If the name is empty, over 100 chars or not snake_case
    """
    if not orchestrator_name or len(orchestrator_name) > 100:
        raise ValueError("orchestrator_name must be 1-100 characters")
    if not orchestrator_name.replace('_', '').isalnum():
        raise ValueError("orchestrator_name must contain only alphanumeric characters and underscores")
