"""Scan model."""
import enum

from sqlalchemy import Column, String, Text
from sqlalchemy import Enum as SQLEnum

from a11y_tracker.database import Base
from a11y_tracker.models.base import BaseModel, JSONType


class ScanStatus(str, enum.Enum):
    """Lifecycle status of a scan"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanType(str, enum.Enum):
    """Which audit tools a scan runs"""
    LIGHTHOUSE = "lighthouse"
    AXE = "axe"
    BOTH = "both"


class Scan(Base, BaseModel):
    """
    Scan model storing one accessibility audit run against a URL.

    **LIFECYCLE RULES:**
    - Created as PENDING by the scan orchestrator
    - Moved exactly once to COMPLETED or FAILED by audit execution
    - Audit payloads are never edited after the terminal transition
    - Only COMPLETED scans take part in comparisons and timelines

    Attributes:
        url: Audited URL
        scan_type: lighthouse, axe or both
        lighthouse_results: Lighthouse output (score, categories, audits)
        axe_results: Axe-core output (violations, passes, incomplete, inapplicable)
        summary_json: Aggregate counts and accessibility score
        status: pending, completed or failed
        error: Failure message for FAILED scans
        created_at: Creation timestamp (from BaseModel)
    """

    __tablename__ = "scans"

    url = Column(String(2048), nullable=False, index=True)
    scan_type = Column(String(20), nullable=False, default=ScanType.BOTH.value)

    lighthouse_results = Column(JSONType, nullable=True)
    axe_results = Column(JSONType, nullable=True)
    summary_json = Column(JSONType, nullable=True)

    status = Column(
        SQLEnum(
            ScanStatus,
            name="scan_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ScanStatus.PENDING,
        index=True,
    )
    error = Column(Text, nullable=True)

    @property
    def status_value(self) -> str:
        """Status as its plain string value."""
        return self.status.value if isinstance(self.status, ScanStatus) else self.status

    def __repr__(self):
        return f"<Scan(id='{self.id}', url='{self.url}', status='{self.status}')>"
