"""Estimated cleaning minutes per room and per workload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from backend.domain.constraints import (
    AVAILABLE_WORK_MINUTES,
    BREAK_TIME_MINUTES,
    CHECKOUT_MINUTES,
    DAILY_MINUTES,
    LINEN_CHANGE_MINUTES,
    SHIFT_MINUTES,
    TOWEL_CHANGE_MINUTES,
    AssignmentConfig,
)
from backend.domain.models import Room


__all__ = [
    "AVAILABLE_WORK_MINUTES",
    "BREAK_TIME_MINUTES",
    "CHECKOUT_MINUTES",
    "DAILY_MINUTES",
    "LINEN_CHANGE_MINUTES",
    "SHIFT_MINUTES",
    "TOWEL_CHANGE_MINUTES",
    "TimeEstimate",
    "estimate_time",
    "format_minutes",
    "room_weight",
    "size_surcharge",
]

_DEFAULT_CONFIG = AssignmentConfig()


@dataclass(frozen=True)
class TimeEstimate:
    total_weight: int
    total_with_break: int
    exceeds_shift: bool
    overage_minutes: int


def size_surcharge(room_size_sqm: Optional[float], config: AssignmentConfig) -> int:
    size = room_size_sqm if room_size_sqm else config.default_room_size_sqm
    for threshold, extra_minutes in config.size_surcharge_tiers:
        if size >= threshold:
            return extra_minutes
    return 0


def room_weight(room: Room, config: Optional[AssignmentConfig] = None) -> int:
    """Return the estimated cleaning time of ``room`` in minutes.

    Checkout rooms start from the full departure clean, occupied rooms from
    the lighter stay-over service. Towel and linen changes and large floor
    areas add fixed surcharges. The result depends on the room fields only,
    so bins can be re-aggregated after a move without re-running the solver.
    """
    resolved = config or _DEFAULT_CONFIG
    minutes = resolved.checkout_minutes if room.is_checkout_room else resolved.daily_minutes
    if room.towel_change_required:
        minutes += resolved.towel_change_minutes
    if room.linen_change_required:
        minutes += resolved.linen_change_minutes
    minutes += size_surcharge(room.room_size_sqm, resolved)
    return minutes


def estimate_time(
    rooms: Iterable[Room],
    config: Optional[AssignmentConfig] = None,
) -> TimeEstimate:
    resolved = config or _DEFAULT_CONFIG
    room_list = list(rooms)
    total_weight = sum(room_weight(room, resolved) for room in room_list)
    total_with_break = total_weight + resolved.break_time_minutes if room_list else total_weight
    overage = max(0, total_with_break - resolved.shift_minutes)
    return TimeEstimate(
        total_weight=total_weight,
        total_with_break=total_with_break,
        exceeds_shift=total_with_break > resolved.shift_minutes,
        overage_minutes=overage,
    )


def format_minutes(minutes: int) -> str:
    """Render minutes as ``45m``, ``8h`` or ``8h 15m``."""
    hours, remainder = divmod(int(minutes), 60)
    if hours == 0:
        return f"{remainder}m"
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}m"
