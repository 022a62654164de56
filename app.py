"""
ASGI application for the housekeeping assignment API.

`create_app()` owns all wiring: one repository, one workflow service holding
the per-date drafts, and the assignments router. uvicorn imports the
module-level `app`:

    python main.py
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request

from backend.controllers.assignment_controller import router as assignment_router
from backend.repository.data_repository import DataRepository
from backend.services.workflow_service import AssignmentWorkflowService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Wire repository and workflow service onto ``app.state``."""
    resolved = settings or get_settings()
    repository = DataRepository(resolved)
    workflow_service = AssignmentWorkflowService(
        repository=repository,
        settings=resolved,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup(app)
        yield

    app = FastAPI(
        title=resolved.app_name,
        version=resolved.app_version,
        lifespan=lifespan,
    )
    app.include_router(assignment_router)

    @app.get("/health", tags=["health"])
    async def health(request: Request) -> dict[str, Any]:
        """Report the hotel and today's cleaning backlog."""
        state_repository: DataRepository = request.app.state.repository
        today = date.today().isoformat()
        return {
            "status": "ok",
            "hotel_name": resolved.hotel_name,
            "date": today,
            "rooms_needing_cleaning": len(state_repository.list_rooms_needing_cleaning(today)),
            "staff_count": len(state_repository.list_staff()),
        }

    app.state.settings = resolved
    app.state.repository = repository
    app.state.workflow_service = workflow_service
    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent; safe on every restart.

    The schema has to exist before the demo hotel is seeded, and seeding is
    skipped once any room is stored.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema | path=%s", repository.database_path)
    repository.initialize_database()

    logger.info("Startup: seeding demo hotel when empty")
    repository.seed_synthetic_data()

    logger.info("Startup complete | hotel=%s", app.state.settings.hotel_name)


app = create_app()
