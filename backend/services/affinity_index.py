"""Historical co-assignment counts between room pairs."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping, Optional

from backend.domain.models import PatternRecord, Room
from backend.services.topology_index import room_number_key
from backend.utils.logger import get_logger


logger = get_logger(__name__)

PairKey = tuple[str, str]
RoomAffinityMap = Mapping[PairKey, int]


def pair_key(room_number_a: str, room_number_b: str) -> PairKey:
    """Order-independent key, smaller room number first."""
    first, second = sorted((room_number_a, room_number_b), key=room_number_key)
    return (first, second)


def build_affinity_map(pattern_records: Iterable[PatternRecord]) -> dict[PairKey, int]:
    counts: dict[PairKey, int] = defaultdict(int)
    skipped = 0
    for record in pattern_records:
        if record.room_number_a == record.room_number_b or record.pair_count <= 0:
            skipped += 1
            continue
        counts[pair_key(record.room_number_a, record.room_number_b)] += int(record.pair_count)
    if skipped:
        logger.debug("Affinity rows skipped | count=%s", skipped)
    return dict(counts)


def affinity_count(
    affinity: Optional[RoomAffinityMap],
    room_number: str,
    others: Iterable[Room],
) -> int:
    if not affinity:
        return 0
    return sum(
        affinity.get(pair_key(room_number, other.room_number), 0)
        for other in others
        if other.room_number != room_number
    )


def affinity_score(count: int, half_saturation: float) -> float:
    """Map a raw pair count onto [0, 1); ``half_saturation`` scores 0.5."""
    if count <= 0:
        return 0.0
    return count / (count + half_saturation)


def co_assigned_pairs(room_numbers: Iterable[str]) -> list[PairKey]:
    """All unordered pairs among rooms cleaned by the same person."""
    unique = sorted(set(room_numbers), key=room_number_key)
    return [
        (unique[i], unique[j])
        for i in range(len(unique))
        for j in range(i + 1, len(unique))
    ]
