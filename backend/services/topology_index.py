"""Floor/wing layout lookup used for walking-distance tie-breaks."""

from __future__ import annotations

import math
import re
from typing import Iterable, Mapping, Optional

from backend.domain.models import LayoutRecord, Room
from backend.utils.logger import get_logger


logger = get_logger(__name__)

WingKey = tuple[int, str]
WingProximityMap = Mapping[WingKey, tuple[float, float]]

_DIGITS = re.compile(r"\d+")


def build_wing_proximity_map(layout_records: Iterable[LayoutRecord]) -> dict[WingKey, tuple[float, float]]:
    """Index layout coordinates by ``(floor_number, wing)``."""
    proximity: dict[WingKey, tuple[float, float]] = {}
    for record in layout_records:
        wing = (record.wing or "").strip()
        if not wing:
            logger.debug("Layout row without wing skipped | floor=%s", record.floor_number)
            continue
        key = (int(record.floor_number), wing)
        if key in proximity:
            logger.debug("Duplicate layout row replaces earlier coordinates | key=%s", key)
        proximity[key] = (float(record.x), float(record.y))
    return proximity


def _numeric_part(room_number: str) -> Optional[str]:
    match = _DIGITS.search(room_number or "")
    return match.group(0) if match else None


def floor_of(room_number: str, explicit_floor: Optional[int] = None) -> int:
    """Return the floor of a room.

    An explicit floor always wins. Otherwise the first run of digits in the
    room number is read as ``<floor><two-digit door>``: ``"305"`` is on floor
    3, ``"1204"`` on floor 12 and ``"A305"`` on floor 3. Numbers with fewer
    than three digits, or none, are placed on floor 0.
    """
    if explicit_floor is not None:
        return int(explicit_floor)
    digits = _numeric_part(room_number)
    if digits is None or len(digits) < 3:
        return 0
    return int(digits) // 100


def room_floor(room: Room) -> int:
    return floor_of(room.room_number, room.floor_number)


def room_number_key(room_number: str) -> tuple[int, float, str]:
    digits = _numeric_part(room_number)
    if digits is None:
        return (1, math.inf, room_number)
    return (0, float(int(digits)), room_number)


def room_sort_key(room: Room) -> tuple[int, tuple[int, float, str]]:
    """Walkable order: by floor, then by room number."""
    return (room_floor(room), room_number_key(room.room_number))


def priority_sort_key(room: Room) -> tuple[int, int, tuple[int, float, str]]:
    """Checkout rooms first, then walkable order."""
    return (0 if room.is_checkout_room else 1, *room_sort_key(room))


def wing_distance(
    proximity: Optional[WingProximityMap],
    floor_a: int,
    wing_a: Optional[str],
    floor_b: int,
    wing_b: Optional[str],
) -> Optional[float]:
    if not proximity or not wing_a or not wing_b:
        return None
    first = proximity.get((floor_a, wing_a.strip()))
    second = proximity.get((floor_b, wing_b.strip()))
    if first is None or second is None:
        return None
    return math.hypot(first[0] - second[0], first[1] - second[1])


def locality_score(
    proximity: Optional[WingProximityMap],
    room: Room,
    others: Iterable[Room],
) -> float:
    """Best ``1 / (1 + distance)`` between ``room`` and any of ``others``.

    Rooms whose wing is unknown to the layout contribute nothing.
    """
    if not proximity or not room.wing:
        return 0.0
    floor = room_floor(room)
    best = 0.0
    for other in others:
        distance = wing_distance(proximity, floor, room.wing, room_floor(other), other.wing)
        if distance is None:
            continue
        best = max(best, 1.0 / (1.0 + distance))
    return best


def unknown_wings(proximity: Optional[WingProximityMap], rooms: Iterable[Room]) -> set[WingKey]:
    """Return ``(floor, wing)`` pairs of ``rooms`` that the layout does not cover."""
    if not proximity:
        return set()
    missing: set[WingKey] = set()
    for room in rooms:
        if not room.wing:
            continue
        key = (room_floor(room), room.wing.strip())
        if key not in proximity:
            missing.add(key)
    return missing
