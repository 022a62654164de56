"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from backend.services.workflow_service import AssignmentWorkflowService
from backend.utils.config import get_settings


def get_workflow_service(request: Request) -> AssignmentWorkflowService:
    service = getattr(request.app.state, "workflow_service", None)
    if service is None:
        repository = getattr(request.app.state, "repository", None)
        if repository is not None:
            service = AssignmentWorkflowService(
                repository=repository,
                settings=getattr(request.app.state, "settings", None) or get_settings(),
            )
            request.app.state.workflow_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assignment workflow service is not initialized",
        )
    return service
