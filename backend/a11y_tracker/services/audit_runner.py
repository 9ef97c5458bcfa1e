"""Contract for the external tools that perform the actual audits."""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass
class AuditPayload:
    """
    Raw results produced by the audit tools for one scan.

    Attributes:
        lighthouse_results: {"score": 0-100, "categories": {...}, "audits": {...}}
        axe_results: {"violations": [...], "passes": [...], "incomplete": [...], "inapplicable": [...]}
    """
    lighthouse_results: Optional[Dict[str, Any]] = None
    axe_results: Optional[Dict[str, Any]] = None


class AuditRunner(Protocol):
    """
    Runs Lighthouse and/or Axe-core against a URL.

    Implementations wrap the headless-browser tooling and raise on failure;
    the scan service records the exception message on the scan.
    """

    def run(self, url: str, scan_type: str) -> AuditPayload:
        ...
