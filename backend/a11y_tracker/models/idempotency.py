"""
Idempotency Models

Request deduplication and audit trail for orchestrated scan operations.
"""

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum

from a11y_tracker.database import Base
from a11y_tracker.models.base import GUID, JSONType, utcnow


class RequestStatus(str, enum.Enum):
    """Status of an idempotent request"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class IdempotencyKey(Base):
    """
    Tracks idempotent requests so a retried "start scan" never creates
    a second scan record.

    On a repeated request_id the orchestrator:
    - COMPLETED: returns the cached response
    - PROCESSING: rejects the duplicate in-flight request
    - FAILED: deletes the record and retries
    """
    __tablename__ = "idempotency_keys"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)

    request_id = Column(String(255), unique=True, nullable=False, index=True)
    orchestrator_name = Column(String(100), nullable=False, index=True)

    status = Column(
        SQLEnum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True
    )

    request_payload = Column(JSONType, nullable=True)
    response_data = Column(JSONType, nullable=True)

    error_message = Column(Text, nullable=True)
    error_details = Column(JSONType, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Scan (or other resource) produced by the request
    result_resource_type = Column(String(50), nullable=True)
    result_resource_id = Column(GUID(), nullable=True, index=True)

    expires_at = Column(DateTime, nullable=True, index=True)

    def __repr__(self):
        return f"<IdempotencyKey(request_id='{self.request_id}', status='{self.status}')>"


class DecisionTrace(Base):
    """
    Step-by-step execution log of one orchestrator run, stored as JSON.
    """
    __tablename__ = "decision_traces"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    request_id = Column(String(255), nullable=False, index=True)
    orchestrator_name = Column(String(100), nullable=False, index=True)
    trace_json = Column(JSONType, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<DecisionTrace(request_id='{self.request_id}', orchestrator='{self.orchestrator_name}')>"


class EvidenceBundle(Base):
    """
    Evidence recorded during an orchestrator run, linked to its DecisionTrace.
    """
    __tablename__ = "evidence_bundles"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    decision_trace_id = Column(GUID(), ForeignKey('decision_traces.id'), nullable=False, index=True)
    evidence_json = Column(JSONType, nullable=False)

    def __repr__(self):
        return f"<EvidenceBundle(decision_trace_id='{self.decision_trace_id}')>"
