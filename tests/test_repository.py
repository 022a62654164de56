from __future__ import annotations

import sqlite3
from dataclasses import replace

import pytest

from backend.domain.models import AssignmentRecord, LayoutRecord, Room
from backend.repository.data_repository import DataRepository
from backend.utils.config import get_settings


def _repository(tmp_path, filename: str = "repository.db") -> DataRepository:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    return repository


def _record(room_id: str, staff_id: str, priority: int = 1) -> AssignmentRecord:
    return AssignmentRecord(
        room_id=room_id,
        staff_id=staff_id,
        assignment_date="2026-03-02",
        assignment_type="daily_cleaning",
        priority=priority,
        ready_to_clean=True,
    )


def test_seed_is_deterministic_and_idempotent(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.initialize_database()
    repository.seed_synthetic_data()
    first = repository.list_rooms_needing_cleaning("2026-03-02")
    repository.seed_synthetic_data()
    second = repository.list_rooms_needing_cleaning("2026-03-02")

    settings = get_settings()
    assert len(first) == settings.synthetic_floors * settings.synthetic_rooms_per_floor
    assert first == second
    assert len(repository.list_staff()) == len(settings.synthetic_staff_names)
    assert len(repository.list_layout_records()) == settings.synthetic_floors * 2
    assert repository.count_patterns() == settings.synthetic_floors * (settings.synthetic_rooms_per_floor - 1)

    other = _repository(tmp_path, "other.db")
    other.seed_synthetic_data()
    assert other.list_rooms_needing_cleaning("2026-03-02") == first


def test_seeded_rooms_carry_floor_and_wing(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.seed_synthetic_data()
    rooms = repository.list_rooms_needing_cleaning("2026-03-02")

    assert all(room.floor_number == int(room.room_number[:-2]) for room in rooms)
    assert {room.wing for room in rooms} == {"A", "B"}
    assert all(room.status == "dirty" for room in rooms)


def test_list_staff_filters_and_orders_by_name(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.create_staff("Zora", staff_id="z")
    repository.create_staff("Adam", nickname="Ad", staff_id="a")
    generated = repository.create_staff("Mila")

    assert [member.staff_id for member in repository.list_staff()] == ["a", generated, "z"]
    assert [member.display_name for member in repository.list_staff(["z", "a"])] == ["Ad", "Zora"]
    assert repository.list_staff([]) == []
    assert repository.list_staff(["missing"]) == []


def test_only_dirty_unassigned_rooms_need_cleaning(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.create_staff("Ana", staff_id="s1")
    repository.create_room(Room(room_id="r1", room_number="101", is_checkout_room=True, room_size_sqm=30.0))
    repository.create_room(Room(room_id="r2", room_number="102", is_checkout_room=False))
    repository.create_room(Room(room_id="r3", room_number="103", is_checkout_room=False, status="clean"))

    rooms = repository.list_rooms_needing_cleaning("2026-03-02")
    assert [room.room_id for room in rooms] == ["r1", "r2"]
    assert rooms[0].room_size_sqm == 30.0
    assert rooms[0].is_checkout_room is True

    assert repository.save_assignments([_record("r2", "s1")]) == 1
    assert [room.room_id for room in repository.list_rooms_needing_cleaning("2026-03-02")] == ["r1"]
    assert len(repository.list_rooms_needing_cleaning("2026-03-03")) == 2
    assert repository.list_assignments("2026-03-02") == [_record("r2", "s1")]


def test_room_cannot_be_assigned_twice_on_same_date(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.create_staff("Ana", staff_id="s1")
    repository.create_room(Room(room_id="r1", room_number="101", is_checkout_room=False))
    repository.save_assignments([_record("r1", "s1")])

    with pytest.raises(sqlite3.IntegrityError):
        repository.save_assignments([_record("r1", "s1", priority=2)])
    assert repository.count_assignments() == 1


def test_save_assignments_with_no_records(tmp_path) -> None:
    repository = _repository(tmp_path)
    assert repository.save_assignments([]) == 0
    assert repository.count_assignments() == 0


def test_save_layout_replaces_coordinates(tmp_path) -> None:
    repository = _repository(tmp_path)
    repository.save_layout(LayoutRecord(floor_number=1, wing="A", x=0.0, y=0.0))
    repository.save_layout(LayoutRecord(floor_number=1, wing="A", x=5.0, y=7.5))
    repository.save_layout(LayoutRecord(floor_number=1, wing="B", x=20.0, y=0.0))

    assert repository.list_layout_records() == [
        LayoutRecord(floor_number=1, wing="A", x=5.0, y=7.5),
        LayoutRecord(floor_number=1, wing="B", x=20.0, y=0.0),
    ]


def test_record_assignment_patterns_increments_counts(tmp_path) -> None:
    repository = _repository(tmp_path)
    assert repository.record_assignment_patterns([]) == 0
    repository.record_assignment_patterns([("101", "102"), ("101", "103")], seen_at="2026-03-01T08:00:00+00:00")
    repository.record_assignment_patterns([("101", "102")])

    counts = {
        (record.room_number_a, record.room_number_b): record.pair_count
        for record in repository.list_pattern_records()
    }
    assert counts == {("101", "102"): 2, ("101", "103"): 1}
    assert repository.count_patterns() == 2


def test_initialize_database_wraps_sqlite_errors(tmp_path) -> None:
    get_settings.cache_clear()
    directory = tmp_path / "as-directory.db"
    directory.mkdir()
    repository = DataRepository(replace(get_settings(), database_path=directory))

    with pytest.raises(RuntimeError, match="Database initialization failed"):
        repository.initialize_database()
