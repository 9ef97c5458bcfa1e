"""
Models Package

Imports all SQLAlchemy models for application use.
"""

from a11y_tracker.models.base import BaseModel, GUID, JSONType
from a11y_tracker.models.scan import Scan, ScanStatus, ScanType
from a11y_tracker.models.idempotency import (
    IdempotencyKey,
    DecisionTrace,
    EvidenceBundle,
    RequestStatus,
)

__all__ = [
    'BaseModel',
    'GUID',
    'JSONType',
    'Scan',
    'ScanStatus',
    'ScanType',
    'IdempotencyKey',
    'DecisionTrace',
    'EvidenceBundle',
    'RequestStatus',
]
