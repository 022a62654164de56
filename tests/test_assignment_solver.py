from __future__ import annotations

import random
from collections import Counter

import pytest

from backend.domain.constraints import AssignmentConfig
from backend.domain.models import Room, Staff
from backend.services.assignment_solver import auto_assign_rooms, placement_bonus
from backend.services.topology_index import priority_sort_key
from backend.services.weight_model import (
    BREAK_TIME_MINUTES,
    CHECKOUT_MINUTES,
    DAILY_MINUTES,
    SHIFT_MINUTES,
    estimate_time,
    room_weight,
)


def _room(number: str, checkout: bool = False, wing: str | None = None, **extra) -> Room:
    return Room(
        room_id=f"r-{number}",
        room_number=number,
        is_checkout_room=checkout,
        wing=wing,
        **extra,
    )


def _staff(count: int) -> list[Staff]:
    return [Staff(staff_id=f"s{index}", full_name=f"Staff {index}") for index in range(1, count + 1)]


def _numbers(item) -> list[str]:
    return [room.room_number for room in item.rooms]


# --- Reference scenarios ---

def test_checkouts_split_evenly_between_two_staff() -> None:
    rooms = [_room(str(number), checkout=True) for number in range(101, 111)]
    bins = auto_assign_rooms(rooms, _staff(2))

    assert [len(item.rooms) for item in bins] == [5, 5]
    assert [item.total_weight for item in bins] == [5 * CHECKOUT_MINUTES] * 2
    assert all(item.total_with_break == 225 + BREAK_TIME_MINUTES for item in bins)
    assert not any(item.exceeds_shift for item in bins)


def test_single_room_single_staff() -> None:
    rooms = [Room(room_id="r1", room_number="101", is_checkout_room=True)]
    bins = auto_assign_rooms(rooms, [Staff(staff_id="s1", full_name="A")])

    assert len(bins) == 1
    (only,) = bins
    assert only.staff_id == "s1"
    assert only.staff_name == "A"
    assert only.room_ids == ["r1"]
    assert only.checkout_count == 1
    assert only.daily_count == 0
    assert only.total_weight == CHECKOUT_MINUTES
    assert only.total_with_break == CHECKOUT_MINUTES + BREAK_TIME_MINUTES


def test_surplus_staff_get_empty_bins() -> None:
    rooms = [_room("101"), _room("102"), _room("103")]
    bins = auto_assign_rooms(rooms, _staff(5))

    assert len(bins) == 5
    assert sorted(len(item.rooms) for item in bins) == [0, 0, 1, 1, 1]
    for item in bins:
        if item.is_empty:
            assert item.total_weight == 0
            assert item.total_with_break == 0
            assert item.exceeds_shift is False
            assert item.overage_minutes == 0


# --- Edge cases ---

def test_no_rooms_yields_one_empty_bin_per_staff() -> None:
    bins = auto_assign_rooms([], _staff(3))
    assert [item.staff_id for item in bins] == ["s1", "s2", "s3"]
    assert all(item.is_empty and item.total_with_break == 0 for item in bins)


def test_no_staff_returns_no_bins() -> None:
    assert auto_assign_rooms([_room("101")], []) == []
    assert auto_assign_rooms([], []) == []


def test_single_staff_receives_everything_and_reports_overage() -> None:
    rooms = [_room(str(number), checkout=True) for number in range(101, 113)]
    (only,) = auto_assign_rooms(rooms, _staff(1))

    assert len(only.rooms) == 12
    assert only.total_with_break == 12 * CHECKOUT_MINUTES + BREAK_TIME_MINUTES
    assert only.exceeds_shift is True
    assert only.overage_minutes == only.total_with_break - SHIFT_MINUTES == 90


def test_invalid_config_is_rejected() -> None:
    with pytest.raises(ValueError):
        auto_assign_rooms([_room("101")], _staff(1), config=AssignmentConfig(shift_minutes=0))


# --- Invariants over a realistic hotel ---

def _random_hotel(seed: int) -> tuple[list[Room], dict, dict]:
    rng = random.Random(seed)
    rooms = []
    for floor in range(1, 4):
        for door in range(1, 15):
            number = f"{floor}{door:02d}"
            rooms.append(
                _room(
                    number,
                    checkout=rng.random() < 0.4,
                    wing="A" if door <= 7 else "B",
                    room_size_sqm=rng.choice([None, 18.0, 24.0, 30.0, 45.0]),
                    towel_change_required=rng.random() < 0.5,
                    linen_change_required=rng.random() < 0.3,
                )
            )
    rng.shuffle(rooms)
    proximity = {
        (floor, wing): (0.0 if wing == "A" else 20.0, float(floor * 10))
        for floor in range(1, 4)
        for wing in ("A", "B")
    }
    affinity = {("101", "102"): 5, ("203", "204"): 2, ("305", "306"): 9}
    return rooms, proximity, affinity


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_every_room_is_assigned_exactly_once(seed) -> None:
    rooms, proximity, affinity = _random_hotel(seed)
    staff = _staff(4)
    bins = auto_assign_rooms(rooms, staff, wing_proximity=proximity, room_affinity=affinity)

    assert [item.staff_id for item in bins] == [member.staff_id for member in staff]
    assigned = Counter(room_id for item in bins for room_id in item.room_ids)
    assert assigned == Counter(room.room_id for room in rooms)
    assert sum(item.total_weight for item in bins) == sum(room_weight(room) for room in rooms)


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_bin_aggregates_match_weight_model(seed) -> None:
    rooms, proximity, affinity = _random_hotel(seed)
    bins = auto_assign_rooms(rooms, _staff(3), wing_proximity=proximity, room_affinity=affinity)

    for item in bins:
        estimate = estimate_time(item.rooms)
        assert item.total_weight == estimate.total_weight
        assert item.total_with_break == estimate.total_with_break
        assert item.exceeds_shift == (item.total_with_break > SHIFT_MINUTES)
        assert item.overage_minutes == max(0, item.total_with_break - SHIFT_MINUTES)
        assert item.checkout_count == sum(1 for room in item.rooms if room.is_checkout_room)
        assert item.checkout_count + item.daily_count == len(item.rooms)


def test_checkout_rooms_are_listed_first_in_every_bin() -> None:
    rooms, proximity, affinity = _random_hotel(3)
    bins = auto_assign_rooms(rooms, _staff(4), wing_proximity=proximity, room_affinity=affinity)

    for item in bins:
        assert list(item.rooms) == sorted(item.rooms, key=priority_sort_key)
        flags = [room.is_checkout_room for room in item.rooms]
        assert flags == sorted(flags, reverse=True)


def test_assignment_is_deterministic() -> None:
    rooms, proximity, affinity = _random_hotel(11)
    first = auto_assign_rooms(rooms, _staff(4), wing_proximity=proximity, room_affinity=affinity)
    second = auto_assign_rooms(
        list(reversed(rooms)), _staff(4), wing_proximity=proximity, room_affinity=affinity
    )
    assert first == second


def test_load_stays_balanced_without_tie_break_data() -> None:
    rooms, _, _ = _random_hotel(5)
    # Count evening trades weight balance for room counts, so it is off here.
    bins = auto_assign_rooms(rooms, _staff(4), config=AssignmentConfig(count_rebalance_max_iterations=0))
    totals = [item.total_weight for item in bins]
    heaviest_room = max(room_weight(room) for room in rooms)
    assert max(totals) - min(totals) <= heaviest_room


# --- Tie-breaks ---

def test_locality_keeps_wings_together() -> None:
    config = AssignmentConfig(
        locality_weight=1.0,
        affinity_weight=0.0,
        balance_tolerance_minutes=30,
        rebalance_enabled=False,
    )
    proximity = {(1, "A"): (0.0, 0.0), (1, "B"): (100.0, 0.0)}
    rooms = [_room("101", wing="A"), _room("102", wing="A"), _room("103", wing="B"), _room("104", wing="B")]

    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity=proximity, config=config)
    assert [_numbers(item) for item in bins] == [["101", "102"], ["103", "104"]]

    without_layout = auto_assign_rooms(rooms, _staff(2), config=config)
    assert [_numbers(item) for item in without_layout] == [["101", "103"], ["102", "104"]]


def test_affinity_keeps_historical_pairs_together() -> None:
    config = AssignmentConfig(
        locality_weight=0.0,
        affinity_weight=1.0,
        affinity_half_saturation=1.0,
        balance_tolerance_minutes=30,
        rebalance_enabled=False,
    )
    affinity = {("101", "102"): 50, ("103", "104"): 50}
    rooms = [_room("101"), _room("102"), _room("103"), _room("104")]

    bins = auto_assign_rooms(rooms, _staff(2), room_affinity=affinity, config=config)
    assert [_numbers(item) for item in bins] == [["101", "102"], ["103", "104"]]


def test_bonus_never_pulls_room_onto_clearly_heavier_bin() -> None:
    proximity = {(1, "A"): (0.0, 0.0)}
    affinity = {("101", "102"): 100}
    rooms = [_room("101", checkout=True, wing="A"), _room("102", wing="A")]

    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity=proximity, room_affinity=affinity)
    assert [_numbers(item) for item in bins] == [["101"], ["102"]]


def test_missing_layout_entries_degrade_without_failing() -> None:
    proximity = {(9, "Z"): (0.0, 0.0)}
    rooms = [_room("101", wing="A"), _room("102", wing="Q"), _room("103")]
    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity=proximity, room_affinity={})
    assert sum(len(item.rooms) for item in bins) == 3


def test_placement_bonus_is_bounded() -> None:
    config = AssignmentConfig()
    proximity = {(1, "A"): (0.0, 0.0)}
    affinity = {("101", "102"): 1000}
    room = _room("101", wing="A")

    assert placement_bonus(room, [], proximity, affinity, config) == 0.0
    bonus = placement_bonus(room, [_room("102", wing="A")], proximity, affinity, config)
    assert 0.0 < bonus <= 1.0
    disabled = AssignmentConfig(locality_weight=0.0, affinity_weight=0.0)
    assert placement_bonus(room, [_room("102", wing="A")], proximity, affinity, disabled) == 0.0


# --- Rebalancing ---

def _clustered_daily_rooms() -> tuple[list[Room], dict]:
    rooms = [_room(str(number), wing="A") for number in range(101, 109)]
    return rooms, {(1, "A"): (0.0, 0.0)}


def test_rebalance_evens_out_daily_rooms() -> None:
    rooms, proximity = _clustered_daily_rooms()
    config = AssignmentConfig(balance_tolerance_minutes=100, affinity_weight=0.0, rebalance_enabled=False)

    skewed = auto_assign_rooms(rooms, _staff(2), wing_proximity=proximity, config=config)
    assert [item.total_weight for item in skewed] == [7 * DAILY_MINUTES, DAILY_MINUTES]

    balanced = auto_assign_rooms(
        rooms,
        _staff(2),
        wing_proximity=proximity,
        config=AssignmentConfig(balance_tolerance_minutes=100, affinity_weight=0.0),
    )
    assert [item.total_weight for item in balanced] == [60, 60]


def test_rebalance_respects_iteration_limit() -> None:
    rooms, proximity = _clustered_daily_rooms()
    config = AssignmentConfig(
        balance_tolerance_minutes=100,
        affinity_weight=0.0,
        rebalance_max_iterations=1,
        count_rebalance_max_iterations=0,
    )
    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity=proximity, config=config)
    assert [item.total_weight for item in bins] == [90, 30]


def test_rebalance_never_moves_checkout_rooms() -> None:
    rooms = [_room(str(number), checkout=True, wing="A") for number in range(101, 105)]
    config = AssignmentConfig(balance_tolerance_minutes=200, affinity_weight=0.0)

    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity={(1, "A"): (0.0, 0.0)}, config=config)
    assert [len(item.rooms) for item in bins] == [4, 0]


def _lopsided_rooms() -> list[Room]:
    # One heavy checkout balances five dailies by weight: counts end up 1 vs 5.
    heavy = _room(
        "101",
        checkout=True,
        room_size_sqm=45.0,
        towel_change_required=True,
        linen_change_required=True,
    )
    return [heavy, *(_room(str(number)) for number in range(102, 107))]


def test_count_rebalance_evens_out_room_counts() -> None:
    rooms = _lopsided_rooms()
    assert room_weight(rooms[0]) == 75

    skewed = auto_assign_rooms(rooms, _staff(2), config=AssignmentConfig(count_rebalance_max_iterations=0))
    assert [len(item.rooms) for item in skewed] == [1, 5]
    assert [item.total_weight for item in skewed] == [75, 75]

    bins = auto_assign_rooms(rooms, _staff(2))
    assert [_numbers(item) for item in bins] == [["101", "102"], ["103", "104", "105", "106"]]
    assert [item.total_weight for item in bins] == [90, 60]
    assert bins[0].rooms[0].is_checkout_room


def test_count_rebalance_respects_weight_ratio() -> None:
    bins = auto_assign_rooms(
        _lopsided_rooms(),
        _staff(2),
        config=AssignmentConfig(count_rebalance_weight_ratio=0.0),
    )
    assert [len(item.rooms) for item in bins] == [1, 5]


def test_count_rebalance_respects_gap() -> None:
    bins = auto_assign_rooms(
        _lopsided_rooms(),
        _staff(2),
        config=AssignmentConfig(count_rebalance_max_gap=4),
    )
    assert [len(item.rooms) for item in bins] == [1, 5]


def test_count_rebalance_never_moves_checkout_rooms() -> None:
    rooms = [_room(str(number), checkout=True, wing="A") for number in range(101, 105)]
    config = AssignmentConfig(
        balance_tolerance_minutes=200,
        affinity_weight=0.0,
        count_rebalance_weight_ratio=1.0,
    )

    bins = auto_assign_rooms(rooms, _staff(2), wing_proximity={(1, "A"): (0.0, 0.0)}, config=config)
    assert [len(item.rooms) for item in bins] == [4, 0]


def test_rebalancing_switch_disables_count_pass() -> None:
    bins = auto_assign_rooms(_lopsided_rooms(), _staff(2), config=AssignmentConfig(rebalance_enabled=False))
    assert [len(item.rooms) for item in bins] == [1, 5]
