"""Preview -> adjust -> confirm orchestration for daily room assignment."""

from __future__ import annotations

from datetime import datetime
from threading import RLock
from typing import Optional, Sequence

from backend.domain.constraints import AssignmentConfig, validate_assignment_config
from backend.domain.models import (
    CHECKOUT_CLEANING,
    DAILY_CLEANING,
    AssignmentRecord,
    MoveRoomCommand,
    WorkloadBin,
)
from backend.repository.data_repository import DataRepository
from backend.services.affinity_index import build_affinity_map, co_assigned_pairs
from backend.services.assignment_solver import auto_assign_rooms
from backend.services.reassignment_service import MoveError, MoveResult, ReassignmentHistory
from backend.services.topology_index import build_wing_proximity_map
from backend.services.weight_model import format_minutes
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AssignmentWorkflowError(Exception):
    """Base class for assignment workflow failures."""


class AssignmentValidationError(AssignmentWorkflowError):
    """Raised when workflow inputs are invalid."""


class AssignmentDraftNotFoundError(AssignmentWorkflowError):
    """Raised when a draft operation is called before a preview exists."""


class RoomNotInBinError(AssignmentWorkflowError):
    """Raised when a moved room is not in the claimed source bin."""


class UnknownStaffError(AssignmentWorkflowError):
    """Raised when a move names a staff member without a bin."""


class NothingToUndoError(AssignmentWorkflowError):
    """Raised when undo/redo history is exhausted."""


class OverAllocationError(AssignmentWorkflowError):
    """Raised when confirming bins that exceed the shift without acknowledgement."""

    def __init__(self, bins: Sequence[WorkloadBin]) -> None:
        self.bins = list(bins)
        details = ", ".join(
            f"{item.staff_name} (+{format_minutes(item.overage_minutes)})" for item in self.bins
        )
        super().__init__(f"Assignments exceed the standard shift for: {details}")


def _validate_date(value: str) -> None:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise AssignmentValidationError("assignment_date must follow YYYY-MM-DD format") from exc


def over_allocated_bins(bins: Sequence[WorkloadBin]) -> list[WorkloadBin]:
    return [item for item in bins if item.rooms and item.exceeds_shift]


def build_assignment_records(
    bins: Sequence[WorkloadBin],
    assignment_date: str,
) -> list[AssignmentRecord]:
    """Translate bins into persisted assignments.

    Priority is the 1-based position in each staff member's list, so
    checkout rooms always carry smaller numbers than daily rooms.
    """
    records: list[AssignmentRecord] = []
    for item in bins:
        for position, room in enumerate(item.rooms, start=1):
            records.append(
                AssignmentRecord(
                    room_id=room.room_id,
                    staff_id=item.staff_id,
                    assignment_date=assignment_date,
                    assignment_type=CHECKOUT_CLEANING if room.is_checkout_room else DAILY_CLEANING,
                    priority=position,
                    ready_to_clean=not room.is_checkout_room,
                )
            )
    return records


class AssignmentWorkflowService:
    """Holds one editable draft per assignment date until it is confirmed."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        config: Optional[AssignmentConfig] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._config = config or AssignmentConfig.from_settings(self._settings)
        validate_assignment_config(self._config)
        self._lock = RLock()
        self._drafts: dict[str, ReassignmentHistory] = {}

    @property
    def config(self) -> AssignmentConfig:
        return self._config

    def generate_preview(
        self,
        *,
        assignment_date: str,
        staff_ids: Sequence[str],
    ) -> list[WorkloadBin]:
        _validate_date(assignment_date)
        unique_ids = list(dict.fromkeys(staff_ids))
        if not unique_ids:
            raise AssignmentValidationError("Select at least one staff member")

        known = {member.staff_id: member for member in self._repository.list_staff(unique_ids)}
        unknown = [staff_id for staff_id in unique_ids if staff_id not in known]
        if unknown:
            raise AssignmentValidationError(f"Unknown staff ids: {', '.join(unknown)}")
        # Bins follow the order in which staff were selected.
        staff = [known[staff_id] for staff_id in unique_ids]

        rooms = self._repository.list_rooms_needing_cleaning(assignment_date)
        wing_proximity = build_wing_proximity_map(self._repository.list_layout_records())
        room_affinity = build_affinity_map(self._repository.list_pattern_records())

        bins = auto_assign_rooms(
            rooms,
            staff,
            wing_proximity=wing_proximity,
            room_affinity=room_affinity,
            config=self._config,
        )
        with self._lock:
            self._drafts[assignment_date] = ReassignmentHistory(bins, self._config)
        logger.info(
            "Preview generated | date=%s | rooms=%s | staff=%s | over_shift=%s",
            assignment_date,
            len(rooms),
            len(staff),
            len(over_allocated_bins(bins)),
        )
        return bins

    def _draft(self, assignment_date: str) -> ReassignmentHistory:
        draft = self._drafts.get(assignment_date)
        if draft is None:
            raise AssignmentDraftNotFoundError(
                f"No assignment preview exists for {assignment_date}; generate one first"
            )
        return draft

    def get_preview(self, assignment_date: str) -> list[WorkloadBin]:
        with self._lock:
            return self._draft(assignment_date).bins

    def history_state(self, assignment_date: str) -> tuple[bool, bool]:
        with self._lock:
            draft = self._draft(assignment_date)
            return draft.can_undo, draft.can_redo

    def move_room(
        self,
        *,
        assignment_date: str,
        room_id: str,
        from_staff_id: str,
        to_staff_id: str,
    ) -> list[WorkloadBin]:
        command = MoveRoomCommand(
            room_id=room_id,
            from_staff_id=from_staff_id,
            to_staff_id=to_staff_id,
        )
        with self._lock:
            result = self._draft(assignment_date).apply(command)
        self._raise_for_move(result, command)
        return result.bins

    def undo(self, assignment_date: str) -> list[WorkloadBin]:
        with self._lock:
            result = self._draft(assignment_date).undo()
        if result is None:
            raise NothingToUndoError("Nothing to undo")
        return result.bins

    def redo(self, assignment_date: str) -> list[WorkloadBin]:
        with self._lock:
            result = self._draft(assignment_date).redo()
        if result is None:
            raise NothingToUndoError("Nothing to redo")
        return result.bins

    @staticmethod
    def _raise_for_move(result: MoveResult, command: MoveRoomCommand) -> None:
        if result.error is MoveError.ROOM_NOT_IN_BIN:
            raise RoomNotInBinError(
                f"Room {command.room_id} is not assigned to staff {command.from_staff_id}"
            )
        if result.error is MoveError.UNKNOWN_STAFF:
            raise UnknownStaffError(
                f"No bin for staff {command.from_staff_id} or {command.to_staff_id}"
            )

    def over_allocated(self, assignment_date: str) -> list[WorkloadBin]:
        return over_allocated_bins(self.get_preview(assignment_date))

    def confirm(
        self,
        *,
        assignment_date: str,
        allow_overage: bool = False,
    ) -> list[AssignmentRecord]:
        with self._lock:
            bins = self._draft(assignment_date).bins
            overloaded = over_allocated_bins(bins)
            if overloaded and not allow_overage:
                raise OverAllocationError(overloaded)

            records = build_assignment_records(bins, assignment_date)
            if not records:
                raise AssignmentValidationError("No rooms to assign")

            self._repository.save_assignments(records)
            pairs = [
                pair
                for item in bins
                for pair in co_assigned_pairs(room.room_number for room in item.rooms)
            ]
            self._repository.record_assignment_patterns(pairs)
            del self._drafts[assignment_date]

        logger.info(
            "Assignments confirmed | date=%s | rooms=%s | staff=%s | over_shift_acknowledged=%s",
            assignment_date,
            len(records),
            sum(1 for item in bins if item.rooms),
            len(overloaded),
        )
        return records
