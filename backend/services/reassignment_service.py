"""Manual room moves between workload bins.

A move touches exactly two bins and re-derives their aggregates from the
weight model; every other bin in the returned list is the same object that
was passed in. Input lists are never mutated, which keeps undo/redo a matter
of holding on to earlier lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from backend.domain.constraints import AssignmentConfig
from backend.domain.models import MoveRoomCommand, WorkloadBin
from backend.services.assignment_solver import make_bin
from backend.services.topology_index import priority_sort_key
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class MoveError(str, Enum):
    ROOM_NOT_IN_BIN = "room_not_in_bin"
    UNKNOWN_STAFF = "unknown_staff"


@dataclass(frozen=True)
class MoveResult:
    bins: list[WorkloadBin]
    error: Optional[MoveError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _index_of(bins: Sequence[WorkloadBin], staff_id: str) -> Optional[int]:
    for index, item in enumerate(bins):
        if item.staff_id == staff_id:
            return index
    return None


def move_room(
    bins: list[WorkloadBin],
    room_id: str,
    from_staff_id: str,
    to_staff_id: str,
    config: Optional[AssignmentConfig] = None,
) -> MoveResult:
    """Move ``room_id`` from one staff member's bin to another's.

    On failure the very list that was passed in comes back together with a
    :class:`MoveError`; nothing is raised.
    """
    from_index = _index_of(bins, from_staff_id)
    to_index = _index_of(bins, to_staff_id)
    if from_index is None or to_index is None:
        logger.warning(
            "Move rejected: unknown staff | from=%s | to=%s",
            from_staff_id,
            to_staff_id,
        )
        return MoveResult(bins=bins, error=MoveError.UNKNOWN_STAFF)

    if from_index == to_index:
        return MoveResult(bins=list(bins))

    source = bins[from_index]
    position = next(
        (index for index, room in enumerate(source.rooms) if room.room_id == room_id),
        None,
    )
    if position is None:
        logger.warning(
            "Move rejected: room not in bin | room_id=%s | staff_id=%s",
            room_id,
            from_staff_id,
        )
        return MoveResult(bins=bins, error=MoveError.ROOM_NOT_IN_BIN)

    target = bins[to_index]
    room = source.rooms[position]
    remaining = source.rooms[:position] + source.rooms[position + 1:]
    # Appended then restored to checkout-first walking order.
    extended = sorted((*target.rooms, room), key=priority_sort_key)

    updated = list(bins)
    updated[from_index] = make_bin(source.staff_id, source.staff_name, remaining, config)
    updated[to_index] = make_bin(target.staff_id, target.staff_name, extended, config)
    logger.info(
        "Room moved | room_number=%s | from=%s | to=%s | from_minutes=%s | to_minutes=%s",
        room.room_number,
        from_staff_id,
        to_staff_id,
        updated[from_index].total_with_break,
        updated[to_index].total_with_break,
    )
    return MoveResult(bins=updated)


def apply_command(
    bins: list[WorkloadBin],
    command: MoveRoomCommand,
    config: Optional[AssignmentConfig] = None,
) -> MoveResult:
    return move_room(
        bins,
        command.room_id,
        command.from_staff_id,
        command.to_staff_id,
        config,
    )


class ReassignmentHistory:
    """Undo/redo over a sequence of successfully applied moves."""

    def __init__(
        self,
        bins: list[WorkloadBin],
        config: Optional[AssignmentConfig] = None,
    ) -> None:
        self._bins = list(bins)
        self._config = config
        self._undo: list[MoveRoomCommand] = []
        self._redo: list[MoveRoomCommand] = []

    @property
    def bins(self) -> list[WorkloadBin]:
        return list(self._bins)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def apply(self, command: MoveRoomCommand) -> MoveResult:
        result = apply_command(self._bins, command, self._config)
        if result.ok:
            self._bins = result.bins
            if command.from_staff_id != command.to_staff_id:
                self._undo.append(command)
                self._redo.clear()
        return result

    def undo(self) -> Optional[MoveResult]:
        if not self._undo:
            return None
        command = self._undo.pop()
        result = apply_command(self._bins, command.inverted(), self._config)
        if result.ok:
            self._bins = result.bins
            self._redo.append(command)
        return result

    def redo(self) -> Optional[MoveResult]:
        if not self._redo:
            return None
        command = self._redo.pop()
        result = apply_command(self._bins, command, self._config)
        if result.ok:
            self._bins = result.bins
            self._undo.append(command)
        return result
