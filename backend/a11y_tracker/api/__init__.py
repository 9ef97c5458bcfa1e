"""
API package.

Routers are thin: they parse the request, call a service or orchestrator,
and translate service exceptions into HTTP errors.
"""

from fastapi import APIRouter

from a11y_tracker.api.comparisons import router as comparisons_router
from a11y_tracker.api.reports import router as reports_router
from a11y_tracker.api.scans import router as scans_router

api_router = APIRouter(prefix="/api")
api_router.include_router(scans_router)
api_router.include_router(comparisons_router)
api_router.include_router(reports_router)


@api_router.get("/health", tags=["health"])
def health():
    return {"status": "OK", "message": "Server is running"}


__all__ = ["api_router"]
