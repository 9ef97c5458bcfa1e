"""Scan endpoints: create, list, read and delete scans."""
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from a11y_tracker.config import settings
from a11y_tracker.database import get_db
from a11y_tracker.models.scan import ScanStatus, ScanType
from a11y_tracker.orchestrators.base import DuplicateRequestError, OrchestrationError
from a11y_tracker.orchestrators.scan_orchestrator import ScanOrchestrator
from a11y_tracker.services.audit_runner import AuditRunner
from a11y_tracker.services.scan_service import ScanService, ScanServiceError, serialize_scan
from a11y_tracker.utils.invariants import InvariantViolationError, ScanNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scans", tags=["scans"])


class ScanCreateRequest(BaseModel):
    url: Optional[str] = Field(None, description="URL to audit")
    scan_type: str = Field(ScanType.BOTH.value, description="lighthouse, axe or both")


def run_audit_in_background(session_factory, scan_id: uuid.UUID, runner: AuditRunner) -> None:
    """Run the audit for a freshly created scan in its own session."""
    db = session_factory()
    try:
        ScanService(db).execute_audit(scan_id, runner)
    except InvariantViolationError as e:
        # Scan deleted or already finished before the task ran
        logger.warning("Skipped audit for scan %s: %s", scan_id, e.message)
    finally:
        db.close()


@router.post("", status_code=201)
def create_scan(
    payload: ScanCreateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    request_id = (idempotency_key or "").strip() or f"scan-{uuid.uuid4()}"

    try:
        scan = ScanOrchestrator(db).start_scan(
            request_id=request_id,
            url=payload.url,
            scan_type=payload.scan_type,
        )
    except ScanServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateRequestError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrchestrationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    # A replayed request returns the cached payload; read the live status
    try:
        current = ScanService(db).get_scan(uuid.UUID(scan["id"]))
    except ScanNotFoundError:
        raise HTTPException(status_code=404, detail="Scan not found")

    runner = getattr(request.app.state, "audit_runner", None)
    if runner is not None and current.status == ScanStatus.PENDING:
        background_tasks.add_task(
            run_audit_in_background,
            request.app.state.session_factory,
            current.id,
            runner,
        )

    return {"message": "Scan started", "scan_id": scan["id"], "scan": serialize_scan(current)}


@router.get("")
def list_scans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=100),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return ScanService(db).list_scans(page=page, limit=limit)


@router.get("/{scan_id}")
def get_scan(scan_id: uuid.UUID, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        return serialize_scan(ScanService(db).get_scan(scan_id))
    except ScanNotFoundError:
        raise HTTPException(status_code=404, detail="Scan not found")


@router.delete("/{scan_id}")
def delete_scan(scan_id: uuid.UUID, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        ScanService(db).delete_scan(scan_id)
    except ScanNotFoundError:
        raise HTTPException(status_code=404, detail="Scan not found")
    return {"message": "Scan deleted successfully"}
