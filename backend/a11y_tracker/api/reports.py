"""Report endpoints: aggregate statistics and top violations."""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from a11y_tracker.database import get_db
from a11y_tracker.services.comparison_service import ComparisonService
from a11y_tracker.services.scan_service import ScanService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ScanService(db).report_stats()


@router.get("/top-violations")
def get_top_violations(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return ComparisonService(db).get_top_violations()
