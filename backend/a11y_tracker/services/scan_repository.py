"""Read queries over persisted scans."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from a11y_tracker.models.scan import Scan, ScanStatus


class ScanRepository:
    """
    Storage query contract used by the comparison layer.

    All queries return Scan rows; callers treat them as read-only.
    """

    def __init__(self, db: Session):
        """
        Initialize repository.

        Args:
            db: Database session
        """
        self.db = db

    def get_by_id(self, scan_id: UUID) -> Optional[Scan]:
        return self.db.query(Scan).filter(Scan.id == scan_id).first()

    def get_most_recent_completed_before(
        self,
        url: str,
        exclude_id: UUID,
        before: datetime,
    ) -> Optional[Scan]:
        """Latest completed scan of `url` created before `before`, other than `exclude_id`."""
        return self.db.query(Scan).filter(
            Scan.url == url,
            Scan.status == ScanStatus.COMPLETED,
            Scan.id != exclude_id,
            Scan.created_at < before,
        ).order_by(Scan.created_at.desc()).first()

    def get_all_completed_for_url(self, url: str) -> List[Scan]:
        """Completed scans of `url`, oldest first."""
        return self.db.query(Scan).filter(
            Scan.url == url,
            Scan.status == ScanStatus.COMPLETED,
        ).order_by(Scan.created_at.asc()).all()

    def get_recent_completed_for_url(self, url: str, limit: int) -> List[Scan]:
        """Most recent completed scans of `url`, newest first."""
        return self.db.query(Scan).filter(
            Scan.url == url,
            Scan.status == ScanStatus.COMPLETED,
        ).order_by(Scan.created_at.desc()).limit(limit).all()

    def get_all_completed(self) -> List[Scan]:
        """All completed scans, in insertion order."""
        return self.db.query(Scan).filter(
            Scan.status == ScanStatus.COMPLETED,
        ).order_by(Scan.created_at.asc()).all()
