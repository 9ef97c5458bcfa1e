"""Scan orchestrator for starting accessibility scans."""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from a11y_tracker.models.scan import ScanType
from a11y_tracker.orchestrators.base import BaseOrchestrator
from a11y_tracker.services.scan_service import (
    ScanService,
    serialize_scan,
    validate_scan_request,
)


class ScanOrchestrator(BaseOrchestrator[Dict[str, Any]]):
    """
    Orchestrator for creating scan records.

    Steps:
    1. Validate the request (URL present, known scan type)
    2. Create a PENDING scan
    3. Return the scan as JSON

    Extends BaseOrchestrator to provide:
    - Idempotent scan creation: retrying a request_id returns the same scan
    - Decision tracing
    - Evidence bundling

    The audit itself runs afterwards, outside this orchestrator, and moves
    the scan to COMPLETED or FAILED.
    """

    @property
    def orchestrator_name(self) -> str:
        return "scan_orchestrator"

    def __init__(self, db: Session):
        """
        Initialize scan orchestrator.

        Args:
            db: Database session
        """
        super().__init__(db)
        self.scan_service = ScanService(db)

    def start_scan(
        self,
        request_id: str,
        url: Optional[str],
        scan_type: str = ScanType.BOTH.value,
    ) -> Dict[str, Any]:
        """
        Create a pending scan with idempotency and tracing.

        Args:
            request_id: Idempotency key
            url: URL to audit
            scan_type: lighthouse, axe or both

        Returns:
            Serialized pending scan

        Raises:
            InvalidScanRequestError: If url is empty or scan_type unknown
            DuplicateRequestError: If the same request is still in flight
            OrchestrationError: If creation fails
        """
        url = validate_scan_request(url, scan_type)

        return self.execute(
            request_id=request_id,
            input_data={"url": url, "scan_type": scan_type},
        )

    def _execute_pipeline(self, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute the scan creation pipeline.

        Args:
            context: Execution context with input data

        Returns:
            Serialized pending scan
        """
        url = context["input"]["url"]
        scan_type = context["input"]["scan_type"]

        with self._trace_step("create_pending_scan") as step:
            scan = self.scan_service.create_scan(url=url, scan_type=scan_type)
            step.details = {"scan_id": str(scan.id), "url": url, "scan_type": scan_type}

            self.add_evidence(
                evidence_type="scan_requested",
                data={"url": url, "scan_type": scan_type},
                source=f"Scan:{scan.id}",
            )

        return serialize_scan(scan)

    def _result_resource_type(self) -> Optional[str]:
        return "Scan"
