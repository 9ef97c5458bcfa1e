"""
FastAPI application factory.

Running this module directly (``python -m a11y_tracker.main``) serves the
API without an audit runner: scans are created and stay pending until
their results are recorded externally. To run audits, build the app in
your own entry point and pass a runner::

    app = create_app(audit_runner=MyRunner())
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from a11y_tracker.api import api_router
from a11y_tracker.config import settings
from a11y_tracker.database import Base, SessionLocal, engine, get_db
from a11y_tracker.services.audit_runner import AuditRunner

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    session_factory: Optional[sessionmaker] = None,
    audit_runner: Optional[AuditRunner] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        session_factory: Session factory to use instead of the configured
            database (tables are then managed by the caller)
        audit_runner: Runs the audit tools for new scans; without one,
            scans stay pending until results are recorded externally
    """
    configure_logging()

    app = FastAPI(title="Accessibility Scan Tracker")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if session_factory is None:
        Base.metadata.create_all(bind=engine)
        session_factory = SessionLocal
    else:
        def _override_get_db():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _override_get_db

    app.state.session_factory = session_factory
    app.state.audit_runner = audit_runner

    app.include_router(api_router)

    if audit_runner is None:
        logger.warning("No audit runner configured; new scans will remain pending")

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
