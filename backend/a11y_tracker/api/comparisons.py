"""Comparison endpoints: scan diffs, history and progress timeline."""
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from a11y_tracker.database import get_db
from a11y_tracker.services.comparison_service import ComparisonService, NoPreviousScanError
from a11y_tracker.utils.invariants import (
    ScanNotCompletedError,
    ScanNotFoundError,
    ScanUrlMismatchError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comparisons", tags=["comparisons"])


def _require_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL parameter required")
    return url


@router.get("/auto/{scan_id}")
def compare_with_previous(scan_id: uuid.UUID, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        return ComparisonService(db).compare_with_previous(scan_id)
    except ScanNotFoundError:
        raise HTTPException(status_code=404, detail="Scan not found")
    except ScanNotCompletedError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NoPreviousScanError:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "No previous scan found for this URL",
                "message": "This is the first scan for this URL",
            },
        )


@router.get("/history")
def get_scan_history(
    url: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return ComparisonService(db).get_scan_history(_require_url(url))


@router.get("/timeline")
def get_progress_timeline(
    url: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return ComparisonService(db).get_progress_timeline(_require_url(url))


@router.get("/{current_id}/{previous_id}")
def compare_two_scans(
    current_id: uuid.UUID,
    previous_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        return ComparisonService(db).compare_scans(current_id, previous_id)
    except ScanNotFoundError:
        raise HTTPException(status_code=404, detail="One or both scans not found")
    except (ScanUrlMismatchError, ScanNotCompletedError) as e:
        logger.info("Rejected comparison %s vs %s: %s", current_id, previous_id, e.message)
        raise HTTPException(status_code=400, detail=e.message)
