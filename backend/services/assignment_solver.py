"""Greedy workload balancer that splits dirty rooms across housekeepers.

The general balanced-partition problem is NP-hard, so this is a heuristic in
the longest-processing-time family rather than an exact optimizer:

1. Checkout rooms are queued before daily rooms; each queue is kept in
   walking order (floor, then room number).
2. Each room goes to the bin with the lowest effective load, where
   ``effective = total_weight - balance_tolerance_minutes * bonus`` and the
   bonus is the weighted mean of wing locality and historical pairing in
   [0, 1]. Only bins within the tolerance of the lightest are considered, so
   the bonuses break near-ties but never pull a room onto a clearly heavier
   bin.
3. Optional rebalancing passes move daily rooms: first from the heaviest to
   the lightest bin while that strictly narrows the weight gap, then from the
   bin with the most rooms to the one with the fewest while the count gap is
   too wide and the receiving load stays near the mean.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from backend.domain.constraints import AssignmentConfig, validate_assignment_config
from backend.domain.models import Room, Staff, WorkloadBin
from backend.services.affinity_index import RoomAffinityMap, affinity_count, affinity_score
from backend.services.topology_index import (
    WingProximityMap,
    locality_score,
    priority_sort_key,
    room_sort_key,
    unknown_wings,
)
from backend.services.weight_model import estimate_time, room_weight
from backend.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass
class _WorkingBin:
    staff: Staff
    rooms: list[Room] = field(default_factory=list)
    total_weight: int = 0


def make_bin(
    staff_id: str,
    staff_name: str,
    rooms: Iterable[Room],
    config: Optional[AssignmentConfig] = None,
) -> WorkloadBin:
    """Freeze ``rooms`` into a bin with aggregates derived by the weight model."""
    ordered = tuple(rooms)
    estimate = estimate_time(ordered, config)
    checkout_count = sum(1 for room in ordered if room.is_checkout_room)
    return WorkloadBin(
        staff_id=staff_id,
        staff_name=staff_name,
        rooms=ordered,
        total_weight=estimate.total_weight,
        total_with_break=estimate.total_with_break,
        exceeds_shift=estimate.exceeds_shift,
        overage_minutes=estimate.overage_minutes,
        checkout_count=checkout_count,
        daily_count=len(ordered) - checkout_count,
    )


def placement_bonus(
    room: Room,
    assigned: Sequence[Room],
    wing_proximity: Optional[WingProximityMap],
    room_affinity: Optional[RoomAffinityMap],
    config: AssignmentConfig,
) -> float:
    """Weighted mean of locality and affinity scores, in [0, 1]."""
    total_weight = config.locality_weight + config.affinity_weight
    if not assigned or total_weight <= 0:
        return 0.0
    bonus = 0.0
    if wing_proximity and config.locality_weight > 0:
        bonus += config.locality_weight * locality_score(wing_proximity, room, assigned)
    if room_affinity and config.affinity_weight > 0:
        count = affinity_count(room_affinity, room.room_number, assigned)
        bonus += config.affinity_weight * affinity_score(count, config.affinity_half_saturation)
    return bonus / total_weight


def _choose_bin(
    working: Sequence[_WorkingBin],
    room: Room,
    wing_proximity: Optional[WingProximityMap],
    room_affinity: Optional[RoomAffinityMap],
    config: AssignmentConfig,
) -> _WorkingBin:
    tolerance = config.balance_tolerance_minutes
    limit = min(item.total_weight for item in working) + tolerance

    ranked = []
    for index, candidate in enumerate(working):
        if candidate.total_weight > limit:
            continue
        bonus = placement_bonus(room, candidate.rooms, wing_proximity, room_affinity, config)
        # A full bonus offsets at most `tolerance` minutes of extra load.
        effective = candidate.total_weight - tolerance * bonus
        ranked.append(((effective, candidate.total_weight, index), candidate))
    # The lightest bin is always within the limit, so `ranked` is never empty.
    return min(ranked, key=lambda entry: entry[0])[1]


def _rebalance(working: list[_WorkingBin], config: AssignmentConfig) -> int:
    """Move daily rooms from the heaviest to the lightest bin; return moves made."""
    if len(working) < 2:
        return 0
    mean_weight = sum(item.total_weight for item in working) / len(working)
    threshold = mean_weight * config.rebalance_threshold_ratio

    moves = 0
    while moves < config.rebalance_max_iterations:
        heaviest = max(working, key=lambda item: item.total_weight)
        lightest = min(working, key=lambda item: item.total_weight)
        gap = heaviest.total_weight - lightest.total_weight
        if gap <= threshold:
            break

        best_index: Optional[int] = None
        best_gap = gap
        for index, room in enumerate(heaviest.rooms):
            if room.is_checkout_room:
                continue
            weight = room_weight(room, config)
            new_gap = abs((heaviest.total_weight - weight) - (lightest.total_weight + weight))
            if new_gap < best_gap:
                best_index, best_gap = index, new_gap
        if best_index is None:
            break

        room = heaviest.rooms.pop(best_index)
        weight = room_weight(room, config)
        heaviest.total_weight -= weight
        lightest.rooms.append(room)
        lightest.total_weight += weight
        moves += 1
        logger.debug(
            "Rebalanced room | room_number=%s | from=%s | to=%s | gap=%s",
            room.room_number,
            heaviest.staff.staff_id,
            lightest.staff.staff_id,
            best_gap,
        )
    return moves


def _rebalance_counts(working: list[_WorkingBin], config: AssignmentConfig) -> int:
    """Even out room counts once weights are balanced; return moves made.

    While the busiest bin (by room count) holds more than
    ``count_rebalance_max_gap`` rooms over the emptiest, its lightest daily
    room moves across, provided the receiving bin stays within
    ``count_rebalance_weight_ratio`` of the mean load.
    """
    if len(working) < 2:
        return 0
    mean_weight = sum(item.total_weight for item in working) / len(working)
    allowed_deviation = mean_weight * config.count_rebalance_weight_ratio

    moves = 0
    while moves < config.count_rebalance_max_iterations:
        by_count = sorted(working, key=lambda item: len(item.rooms), reverse=True)
        most, least = by_count[0], by_count[-1]
        if len(most.rooms) - len(least.rooms) <= config.count_rebalance_max_gap:
            break

        dailies = [room for room in most.rooms if not room.is_checkout_room]
        if not dailies:
            break
        room = min(dailies, key=lambda item: room_weight(item, config))
        weight = room_weight(room, config)
        if abs(least.total_weight + weight - mean_weight) > allowed_deviation:
            break

        most.rooms.remove(room)
        most.total_weight -= weight
        least.rooms.append(room)
        least.total_weight += weight
        moves += 1
        logger.debug(
            "Count rebalanced room | room_number=%s | from=%s | to=%s | counts=%s/%s",
            room.room_number,
            most.staff.staff_id,
            least.staff.staff_id,
            len(most.rooms),
            len(least.rooms),
        )
    return moves


def auto_assign_rooms(
    rooms: Sequence[Room],
    staff: Sequence[Staff],
    wing_proximity: Optional[WingProximityMap] = None,
    room_affinity: Optional[RoomAffinityMap] = None,
    config: Optional[AssignmentConfig] = None,
) -> list[WorkloadBin]:
    """Return exactly one workload bin per staff member, in roster order.

    Callers must not pass an empty roster together with rooms; in that case
    nothing can be assigned and an empty list is returned.
    """
    resolved = config or AssignmentConfig()
    validate_assignment_config(resolved)

    if not staff:
        if rooms:
            logger.warning(
                "Assignment skipped: no staff selected | rooms=%s",
                len(rooms),
            )
        return []

    checkout_queue = sorted((room for room in rooms if room.is_checkout_room), key=room_sort_key)
    daily_queue = sorted((room for room in rooms if not room.is_checkout_room), key=room_sort_key)

    missing = unknown_wings(wing_proximity, rooms)
    if missing:
        logger.debug("Locality bonus skipped for wings missing from layout | wings=%s", sorted(missing))
    if not wing_proximity:
        logger.debug("No floor layout supplied; locality bonus disabled")
    if not room_affinity:
        logger.debug("No assignment patterns supplied; affinity bonus disabled")

    working = [_WorkingBin(staff=member) for member in staff]
    for room in (*checkout_queue, *daily_queue):
        target = _choose_bin(working, room, wing_proximity, room_affinity, resolved)
        target.rooms.append(room)
        target.total_weight += room_weight(room, resolved)

    moves = count_moves = 0
    if resolved.rebalance_enabled:
        moves = _rebalance(working, resolved)
        count_moves = _rebalance_counts(working, resolved)

    bins = [
        make_bin(
            item.staff.staff_id,
            item.staff.full_name,
            sorted(item.rooms, key=priority_sort_key),
            resolved,
        )
        for item in working
    ]

    active = [item.total_weight for item in bins if item.rooms]
    spread = max(active) - min(active) if active else 0
    logger.info(
        (
            "Auto assignment completed | rooms=%s | staff=%s | checkouts=%s | "
            "rebalance_moves=%s | count_moves=%s | spread_minutes=%s | mean_minutes=%.1f | over_shift=%s"
        ),
        len(rooms),
        len(staff),
        len(checkout_queue),
        moves,
        count_moves,
        spread,
        statistics.fmean(item.total_weight for item in bins),
        sum(1 for item in bins if item.exceeds_shift),
    )
    return bins
