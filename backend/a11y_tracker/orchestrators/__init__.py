"""
Orchestrators package.

Orchestrators wrap write-side workflows with idempotency, decision traces
and evidence bundles (see BaseOrchestrator).

Difference between Services and Orchestrators:
    - Services: Single-responsibility, focused on one domain/entity
    - Orchestrators: Request-level workflows that must be safe to retry
"""

from a11y_tracker.orchestrators.base import (
    BaseOrchestrator,
    OrchestrationError,
    DuplicateRequestError,
)
from a11y_tracker.orchestrators.scan_orchestrator import ScanOrchestrator

__all__ = [
    "BaseOrchestrator",
    "OrchestrationError",
    "DuplicateRequestError",
    "ScanOrchestrator",
]
