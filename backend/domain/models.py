"""Domain models for housekeeping workload assignment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


CHECKOUT_CLEANING = "checkout_cleaning"
DAILY_CLEANING = "daily_cleaning"


@dataclass(frozen=True)
class Room:
    room_id: str
    room_number: str
    is_checkout_room: bool
    floor_number: Optional[int] = None
    wing: Optional[str] = None
    room_size_sqm: Optional[float] = None
    room_capacity: Optional[int] = None
    status: str = "dirty"
    towel_change_required: bool = False
    linen_change_required: bool = False
    room_category: Optional[str] = None


@dataclass(frozen=True)
class Staff:
    staff_id: str
    full_name: str
    nickname: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.full_name


@dataclass(frozen=True)
class LayoutRecord:
    floor_number: int
    wing: str
    x: float
    y: float


@dataclass(frozen=True)
class PatternRecord:
    room_number_a: str
    room_number_b: str
    pair_count: int


@dataclass(frozen=True)
class WorkloadBin:
    """Rooms and aggregate minutes assigned to one staff member for a day.

    Aggregates are always derived from ``rooms`` by the weight model; a bin is
    never edited in place, moves produce replacement bins instead.
    """

    staff_id: str
    staff_name: str
    rooms: tuple[Room, ...]
    total_weight: int
    total_with_break: int
    exceeds_shift: bool
    overage_minutes: int
    checkout_count: int
    daily_count: int

    @property
    def room_ids(self) -> list[str]:
        return [room.room_id for room in self.rooms]

    @property
    def is_empty(self) -> bool:
        return not self.rooms


@dataclass(frozen=True)
class MoveRoomCommand:
    room_id: str
    from_staff_id: str
    to_staff_id: str

    def inverted(self) -> "MoveRoomCommand":
        return MoveRoomCommand(
            room_id=self.room_id,
            from_staff_id=self.to_staff_id,
            to_staff_id=self.from_staff_id,
        )


@dataclass(frozen=True)
class AssignmentRecord:
    room_id: str
    staff_id: str
    assignment_date: str
    assignment_type: str
    priority: int
    ready_to_clean: bool
