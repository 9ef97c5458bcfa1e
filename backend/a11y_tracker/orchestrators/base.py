"""
Base Orchestrator

Write-side workflows run through BaseOrchestrator.execute(), which gives
every request:
- an IdempotencyKey row, so a retried request_id replays its cached response
- a DecisionTrace with one entry per traced step
- an EvidenceBundle of what the pipeline recorded along the way
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from sqlalchemy.orm import Session

from a11y_tracker.config import settings
from a11y_tracker.models.base import utcnow
from a11y_tracker.models.idempotency import (
    DecisionTrace,
    EvidenceBundle,
    IdempotencyKey,
    RequestStatus,
)
from a11y_tracker.utils.invariants import (
    DuplicateExecutionError,
    check_no_duplicate_execution,
    validate_orchestrator_name,
    validate_request_id,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class OrchestrationError(Exception):
    """Base exception for orchestration errors"""
    pass


class DuplicateRequestError(OrchestrationError):
    """Raised when the same request_id is still being processed"""
    pass


class ExecutionStep:
    """One traced step of an orchestrator run"""

    def __init__(self, action: str, step_number: int):
        self.step = step_number
        self.action = action
        self.status = "in_progress"
        self.started_at = utcnow().isoformat()
        self.completed_at = None
        self.duration_ms = None
        self.details: Dict[str, Any] = {}
        self.error = None
        self._clock = time.time()

    def finish(self, status: str, error: Optional[str] = None):
        self.status = status
        self.error = error
        self.completed_at = utcnow().isoformat()
        self.duration_ms = int((time.time() - self._clock) * 1000)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "step": self.step,
            "action": self.action,
            "status": self.status,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_ms": self.duration_ms,
        }
        if self.details:
            data["details"] = self.details
        if self.error:
            data["error"] = self.error
        return data


class EvidenceCollector:
    """Evidence items gathered while a pipeline runs"""

    def __init__(self):
        self.items: List[Dict[str, Any]] = []

    def add(self, evidence_type: str, data: Any, source: Optional[str] = None):
        item = {"type": evidence_type, "data": data, "timestamp": utcnow().isoformat()}
        if source:
            item["source"] = source
        self.items.append(item)


class BaseOrchestrator(ABC, Generic[T]):
    """
    Abstract orchestrator with idempotency and traceability.

    Subclasses provide `orchestrator_name` and `_execute_pipeline()`; results
    must be JSON-ready dicts so they can be cached on the IdempotencyKey.

    Replay rules for an existing request_id:
    - COMPLETED: return the cached response, run nothing
    - PROCESSING: raise DuplicateRequestError
    - FAILED: discard the old key and run again
    """

    def __init__(self, db: Session):
        """
        Initialize base orchestrator.

        Args:
            db: Database session
        """
        self.db = db
        self._request_id: Optional[str] = None
        self._started: Optional[float] = None
        self._steps: List[ExecutionStep] = []
        self._evidence = EvidenceCollector()

    @property
    @abstractmethod
    def orchestrator_name(self) -> str:
        """Unique orchestrator name (e.g., "scan_orchestrator")."""
        pass

    @abstractmethod
    def _execute_pipeline(self, context: Dict[str, Any]) -> T:
        """
        Run the workflow.

        Args:
            context: {"input": input_data, "request_id": ..., "orchestrator": ...}
        """
        pass

    def _result_resource_type(self) -> Optional[str]:
        """Resource type recorded on the IdempotencyKey for the result's id."""
        return None

    def execute(
        self,
        request_id: str,
        input_data: Dict[str, Any],
        ttl_hours: Optional[int] = None
    ) -> T:
        """
        Run the pipeline once per request_id.

        Raises:
            DuplicateRequestError: If request is already being processed
            OrchestrationError: If request_id is invalid or the pipeline fails
        """
        try:
            validate_request_id(request_id)
            validate_orchestrator_name(self.orchestrator_name)
        except ValueError as e:
            raise OrchestrationError(f"Invalid input: {e}") from e

        self._request_id = request_id
        self._started = time.time()
        self._steps = []
        self._evidence = EvidenceCollector()

        try:
            with self._trace_step("check_idempotency"):
                existing = self._get_idempotency_key(request_id)
                if existing is not None:
                    cached = self._replay(existing)
                    if cached is not None:
                        logger.info(
                            "%s: returning cached response for request %s",
                            self.orchestrator_name, request_id,
                        )
                        return cached

                try:
                    check_no_duplicate_execution(self.db, request_id, self.orchestrator_name)
                except DuplicateExecutionError as e:
                    raise OrchestrationError(f"Duplicate execution prevented: {e}") from e

            with self._trace_step("claim_request"):
                key = self._claim(request_id, input_data, ttl_hours or settings.idempotency_ttl_hours)

            try:
                with self._trace_step("execute_pipeline"):
                    result = self._execute_pipeline({
                        "input": input_data,
                        "request_id": request_id,
                        "orchestrator": self.orchestrator_name,
                    })

                with self._trace_step("complete_request"):
                    self._persist_trace()
                    self._complete(key, result)

                self.db.commit()
                return result

            except Exception as e:
                logger.warning("%s: request %s failed: %s", self.orchestrator_name, request_id, e)
                self._persist_trace(error=str(e))
                self._fail(key, e)
                self.db.commit()
                raise

        except DuplicateRequestError:
            raise
        except OrchestrationError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            raise OrchestrationError(f"Orchestration failed: {e}") from e

    def add_evidence(self, evidence_type: str, data: Any, source: Optional[str] = None):
        """Record evidence for the current run."""
        self._evidence.add(evidence_type, data, source)

    @contextmanager
    def _trace_step(self, action: str):
        """
        Trace a block as one step.

        Usage:
            with self._trace_step("create_pending_scan") as step:
                step.details = {...}
        """
        step = ExecutionStep(action, len(self._steps) + 1)
        self._steps.append(step)
        try:
            yield step
        except Exception as e:
            step.finish("failed", error=str(e))
            raise
        step.finish("success")

    def _get_idempotency_key(self, request_id: str) -> Optional[IdempotencyKey]:
        return self.db.query(IdempotencyKey).filter(
            IdempotencyKey.request_id == request_id,
            IdempotencyKey.orchestrator_name == self.orchestrator_name,
        ).first()

    def _replay(self, key: IdempotencyKey) -> Optional[T]:
        if key.status == RequestStatus.COMPLETED:
            if key.response_data is None:
                raise OrchestrationError("Completed request has no cached response")
            return key.response_data  # type: ignore

        if key.status == RequestStatus.PROCESSING:
            raise DuplicateRequestError(f"Request {key.request_id} is already being processed")

        if key.status == RequestStatus.FAILED:
            self.db.delete(key)
            self.db.flush()
            return None

        raise OrchestrationError(f"Request {key.request_id} is in unexpected state: {key.status}")

    def _claim(self, request_id: str, input_data: Dict[str, Any], ttl_hours: int) -> IdempotencyKey:
        now = utcnow()
        key = IdempotencyKey(
            request_id=request_id,
            orchestrator_name=self.orchestrator_name,
            status=RequestStatus.PROCESSING,
            request_payload=input_data,
            created_at=now,
            started_at=now,
            expires_at=now + timedelta(hours=ttl_hours),
        )
        self.db.add(key)
        self.db.flush()
        return key

    def _complete(self, key: IdempotencyKey, result: T):
        key.status = RequestStatus.COMPLETED
        key.completed_at = utcnow()
        key.response_data = result

        resource_id = result.get("id") if isinstance(result, dict) else None
        if resource_id:
            key.result_resource_id = uuid.UUID(str(resource_id))
            key.result_resource_type = self._result_resource_type()
        self.db.flush()

    def _fail(self, key: IdempotencyKey, error: Exception):
        key.status = RequestStatus.FAILED
        key.completed_at = utcnow()
        key.error_message = str(error)
        key.error_details = {"error_type": type(error).__name__, "error_message": str(error)}
        self.db.flush()

    def _persist_trace(self, error: Optional[str] = None):
        """Write the DecisionTrace and, when evidence exists, its EvidenceBundle."""
        trace_json = {
            "started_at": datetime.fromtimestamp(self._started, timezone.utc).replace(tzinfo=None).isoformat(),
            "completed_at": utcnow().isoformat(),
            "duration_ms": int((time.time() - self._started) * 1000),
            "steps": [step.to_dict() for step in self._steps],
            "result": "failed" if error else "success",
        }
        if error:
            trace_json["error"] = error

        trace = DecisionTrace(
            request_id=self._request_id,
            orchestrator_name=self.orchestrator_name,
            trace_json=trace_json,
        )
        self.db.add(trace)
        self.db.flush()

        if self._evidence.items:
            self.db.add(EvidenceBundle(
                decision_trace_id=trace.id,
                evidence_json={"evidence": self._evidence.items},
            ))
            self.db.flush()
