"""HTTP controller layer for housekeeping room assignment."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_workflow_service
from backend.domain.models import AssignmentRecord, Room, WorkloadBin
from backend.services.weight_model import format_minutes, room_weight
from backend.services.workflow_service import (
    AssignmentDraftNotFoundError,
    AssignmentValidationError,
    AssignmentWorkflowService,
    NothingToUndoError,
    OverAllocationError,
    RoomNotInBinError,
    UnknownStaffError,
)
from backend.services.workload_report import summarize_workload
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


class PreviewRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    assignment_date: date
    staff_ids: list[str] = Field(min_length=1)

    @field_validator("staff_ids")
    @classmethod
    def validate_staff_ids(cls, value: list[str]) -> list[str]:
        if any(not item.strip() for item in value):
            raise ValueError("staff_ids must be non-empty strings")
        return value


class MoveRoomRequest(BaseModel):
    assignment_date: date
    room_id: str = Field(min_length=1)
    from_staff_id: str = Field(min_length=1)
    to_staff_id: str = Field(min_length=1)


class DraftRequest(BaseModel):
    assignment_date: date


class ConfirmRequest(BaseModel):
    assignment_date: date
    allow_overage: bool = False


class RoomResponse(BaseModel):
    room_id: str
    room_number: str
    floor_number: int | None
    wing: str | None
    is_checkout_room: bool
    estimated_minutes: int = Field(ge=0)


class WorkloadBinResponse(BaseModel):
    staff_id: str
    staff_name: str
    rooms: list[RoomResponse]
    total_weight: int = Field(ge=0)
    total_with_break: int = Field(ge=0)
    exceeds_shift: bool
    overage_minutes: int = Field(ge=0)
    checkout_count: int = Field(ge=0)
    daily_count: int = Field(ge=0)
    total_label: str


class PreviewResponse(BaseModel):
    assignment_date: date
    bins: list[WorkloadBinResponse]
    can_undo: bool = False
    can_redo: bool = False


class OverAllocatedStaffResponse(BaseModel):
    staff_id: str
    staff_name: str
    overage_minutes: int = Field(ge=0)
    overage_label: str


class WorkloadSummaryResponse(BaseModel):
    total_rooms: int = Field(ge=0)
    total_checkouts: int = Field(ge=0)
    total_dailies: int = Field(ge=0)
    staff_count: int = Field(ge=0)
    active_staff_count: int = Field(ge=0)
    total_minutes: int = Field(ge=0)
    mean_minutes: float = Field(ge=0.0)
    min_minutes: float = Field(ge=0.0)
    max_minutes: float = Field(ge=0.0)
    spread_minutes: float = Field(ge=0.0)
    over_allocated_count: int = Field(ge=0)
    over_allocated: list[OverAllocatedStaffResponse]


class AssignmentRecordResponse(BaseModel):
    room_id: str
    staff_id: str
    assignment_date: date
    assignment_type: str
    priority: int = Field(gt=0)
    ready_to_clean: bool


class ConfirmResponse(BaseModel):
    assignments: list[AssignmentRecordResponse]
    rooms_assigned: int = Field(ge=0)
    staff_assigned: int = Field(ge=0)


def _room_response(room: Room, service: AssignmentWorkflowService) -> RoomResponse:
    return RoomResponse(
        room_id=room.room_id,
        room_number=room.room_number,
        floor_number=room.floor_number,
        wing=room.wing,
        is_checkout_room=room.is_checkout_room,
        estimated_minutes=room_weight(room, service.config),
    )


def _bin_response(item: WorkloadBin, service: AssignmentWorkflowService) -> WorkloadBinResponse:
    return WorkloadBinResponse(
        staff_id=item.staff_id,
        staff_name=item.staff_name,
        rooms=[_room_response(room, service) for room in item.rooms],
        total_weight=item.total_weight,
        total_with_break=item.total_with_break,
        exceeds_shift=item.exceeds_shift,
        overage_minutes=item.overage_minutes,
        checkout_count=item.checkout_count,
        daily_count=item.daily_count,
        total_label=format_minutes(item.total_with_break),
    )


def _preview_response(
    assignment_date: date,
    bins: list[WorkloadBin],
    service: AssignmentWorkflowService,
) -> PreviewResponse:
    can_undo, can_redo = service.history_state(assignment_date.isoformat())
    return PreviewResponse(
        assignment_date=assignment_date,
        bins=[_bin_response(item, service) for item in bins],
        can_undo=can_undo,
        can_redo=can_redo,
    )


def _record_response(record: AssignmentRecord) -> AssignmentRecordResponse:
    return AssignmentRecordResponse(
        room_id=record.room_id,
        staff_id=record.staff_id,
        assignment_date=date.fromisoformat(record.assignment_date),
        assignment_type=record.assignment_type,
        priority=record.priority,
        ready_to_clean=record.ready_to_clean,
    )


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, AssignmentValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, AssignmentDraftNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (RoomNotInBinError, UnknownStaffError, NothingToUndoError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, OverAllocationError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "over_allocated": [
                    {
                        "staff_id": item.staff_id,
                        "staff_name": item.staff_name,
                        "overage_minutes": item.overage_minutes,
                    }
                    for item in exc.bins
                ],
            },
        )
    raise TypeError(f"Unmapped workflow error: {type(exc).__name__}")


_HANDLED = (
    AssignmentValidationError,
    AssignmentDraftNotFoundError,
    RoomNotInBinError,
    UnknownStaffError,
    NothingToUndoError,
    OverAllocationError,
)


@router.post(
    "/preview",
    response_model=PreviewResponse,
    status_code=status.HTTP_200_OK,
)
async def generate_preview(
    payload: PreviewRequest,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> PreviewResponse:
    """Run the workload solver over today's dirty rooms and selected staff."""
    try:
        bins = service.generate_preview(
            assignment_date=payload.assignment_date.isoformat(),
            staff_ids=payload.staff_ids,
        )
        return _preview_response(payload.assignment_date, bins, service)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected preview failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate assignment preview",
        ) from exc


@router.get(
    "/preview/{assignment_date}",
    response_model=PreviewResponse,
    status_code=status.HTTP_200_OK,
)
async def get_preview(
    assignment_date: date,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> PreviewResponse:
    try:
        bins = service.get_preview(assignment_date.isoformat())
        return _preview_response(assignment_date, bins, service)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post(
    "/move",
    response_model=PreviewResponse,
    status_code=status.HTTP_200_OK,
)
async def move_room(
    payload: MoveRoomRequest,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> PreviewResponse:
    """Apply one drag-and-drop move to the current draft."""
    try:
        bins = service.move_room(
            assignment_date=payload.assignment_date.isoformat(),
            room_id=payload.room_id,
            from_staff_id=payload.from_staff_id,
            to_staff_id=payload.to_staff_id,
        )
        return _preview_response(payload.assignment_date, bins, service)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected move failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to move room",
        ) from exc


@router.post(
    "/undo",
    response_model=PreviewResponse,
    status_code=status.HTTP_200_OK,
)
async def undo_move(
    payload: DraftRequest,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> PreviewResponse:
    try:
        bins = service.undo(payload.assignment_date.isoformat())
        return _preview_response(payload.assignment_date, bins, service)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post(
    "/redo",
    response_model=PreviewResponse,
    status_code=status.HTTP_200_OK,
)
async def redo_move(
    payload: DraftRequest,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> PreviewResponse:
    try:
        bins = service.redo(payload.assignment_date.isoformat())
        return _preview_response(payload.assignment_date, bins, service)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.get(
    "/summary/{assignment_date}",
    response_model=WorkloadSummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def workload_summary(
    assignment_date: date,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> WorkloadSummaryResponse:
    try:
        bins = service.get_preview(assignment_date.isoformat())
        return WorkloadSummaryResponse(**summarize_workload(bins))
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post(
    "/confirm",
    response_model=ConfirmResponse,
    status_code=status.HTTP_200_OK,
)
async def confirm_assignments(
    payload: ConfirmRequest,
    service: AssignmentWorkflowService = Depends(get_workflow_service),
) -> ConfirmResponse:
    """Persist the draft; over-shift drafts need ``allow_overage``."""
    try:
        records = service.confirm(
            assignment_date=payload.assignment_date.isoformat(),
            allow_overage=payload.allow_overage,
        )
        return ConfirmResponse(
            assignments=[_record_response(record) for record in records],
            rooms_assigned=len(records),
            staff_assigned=len({record.staff_id for record in records}),
        )
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected confirmation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to confirm assignments",
        ) from exc
