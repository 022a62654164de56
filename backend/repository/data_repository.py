"""Repository layer responsible for all database access."""

from __future__ import annotations

import random
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from uuid import uuid4

from backend.domain.models import AssignmentRecord, LayoutRecord, PatternRecord, Room, Staff
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=str(row["id"]),
        room_number=str(row["room_number"]),
        floor_number=None if row["floor_number"] is None else int(row["floor_number"]),
        wing=row["wing"],
        room_size_sqm=None if row["room_size_sqm"] is None else float(row["room_size_sqm"]),
        room_capacity=None if row["room_capacity"] is None else int(row["room_capacity"]),
        is_checkout_room=bool(row["is_checkout_room"]),
        status=str(row["status"]),
        towel_change_required=bool(row["towel_change_required"]),
        linen_change_required=bool(row["linen_change_required"]),
        room_category=row["room_category"],
    )


class DataRepository:
    """Encapsulates SQLite access so the assignment engine stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        room_number TEXT NOT NULL UNIQUE,
                        floor_number INTEGER,
                        wing TEXT,
                        room_size_sqm REAL,
                        room_capacity INTEGER,
                        is_checkout_room INTEGER NOT NULL DEFAULT 0
                            CHECK (is_checkout_room IN (0,1)),
                        status TEXT NOT NULL DEFAULT 'dirty',
                        towel_change_required INTEGER NOT NULL DEFAULT 0,
                        linen_change_required INTEGER NOT NULL DEFAULT 0,
                        room_category TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Staff (
                        id TEXT PRIMARY KEY,
                        full_name TEXT NOT NULL,
                        nickname TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS FloorLayouts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        floor_number INTEGER NOT NULL,
                        wing TEXT NOT NULL,
                        x REAL NOT NULL,
                        y REAL NOT NULL,
                        UNIQUE (floor_number, wing)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS AssignmentPatterns (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        room_number_a TEXT NOT NULL,
                        room_number_b TEXT NOT NULL,
                        pair_count INTEGER NOT NULL DEFAULT 1 CHECK (pair_count > 0),
                        last_seen_at DATETIME NOT NULL,
                        UNIQUE (room_number_a, room_number_b)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RoomAssignments (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        room_id TEXT NOT NULL,
                        staff_id TEXT NOT NULL,
                        assignment_date TEXT NOT NULL,
                        assignment_type TEXT NOT NULL
                            CHECK (assignment_type IN ('checkout_cleaning', 'daily_cleaning')),
                        priority INTEGER NOT NULL CHECK (priority > 0),
                        ready_to_clean INTEGER NOT NULL CHECK (ready_to_clean IN (0,1)),
                        status TEXT NOT NULL DEFAULT 'assigned',
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (room_id, assignment_date),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id),
                        FOREIGN KEY (staff_id) REFERENCES Staff(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_assignments_date_staff
                    ON RoomAssignments(assignment_date, staff_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_rooms_status
                    ON Rooms(status);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> None:
        """Seed a deterministic demo hotel only when the Rooms table is empty."""
        rng = random.Random(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                room_count = int(cursor.fetchone()["count"])
                if room_count > 0:
                    logger.info("Synthetic data already present; skipping seed")
                    return

                per_floor = self._settings.synthetic_rooms_per_floor
                rooms = []
                layouts = []
                patterns = []
                for floor in range(1, self._settings.synthetic_floors + 1):
                    layouts.append((floor, "A", 0.0, float(floor * 10)))
                    layouts.append((floor, "B", 25.0, float(floor * 10)))
                    floor_numbers = []
                    for door in range(1, per_floor + 1):
                        room_number = f"{floor}{door:02d}"
                        floor_numbers.append(room_number)
                        rooms.append(
                            (
                                f"room-{room_number}",
                                room_number,
                                floor,
                                "A" if door <= per_floor // 2 else "B",
                                rng.choice([18.0, 20.0, 24.0, 30.0, 42.0]),
                                rng.choice([1, 2, 2, 3, 4]),
                                1 if rng.random() < self._settings.synthetic_checkout_probability else 0,
                                "dirty",
                                1 if rng.random() < 0.5 else 0,
                                1 if rng.random() < 0.3 else 0,
                                rng.choice(["standard", "superior", "suite"]),
                            )
                        )
                    for first, second in zip(floor_numbers, floor_numbers[1:]):
                        patterns.append((first, second, rng.randint(1, 6), _utc_now()))

                cursor.executemany(
                    """
                    INSERT INTO Rooms (
                        id, room_number, floor_number, wing, room_size_sqm, room_capacity,
                        is_checkout_room, status, towel_change_required,
                        linen_change_required, room_category
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    rooms,
                )
                cursor.executemany(
                    """
                    INSERT OR IGNORE INTO Staff (id, full_name, nickname)
                    VALUES (?, ?, NULL);
                    """,
                    [
                        (f"staff-{index}", name)
                        for index, name in enumerate(self._settings.synthetic_staff_names, start=1)
                    ],
                )
                cursor.executemany(
                    """
                    INSERT OR REPLACE INTO FloorLayouts (floor_number, wing, x, y)
                    VALUES (?, ?, ?, ?);
                    """,
                    layouts,
                )
                cursor.executemany(
                    """
                    INSERT OR IGNORE INTO AssignmentPatterns (
                        room_number_a, room_number_b, pair_count, last_seen_at
                    )
                    VALUES (?, ?, ?, ?);
                    """,
                    patterns,
                )
                conn.commit()
            logger.info(
                "Synthetic seed completed | rooms=%s | layouts=%s | patterns=%s",
                len(rooms),
                len(layouts),
                len(patterns),
            )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc

    def create_room(self, room: Room) -> str:
        room_id = room.room_id or str(uuid4())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO Rooms (
                    id, room_number, floor_number, wing, room_size_sqm, room_capacity,
                    is_checkout_room, status, towel_change_required,
                    linen_change_required, room_category
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    room_id,
                    room.room_number,
                    room.floor_number,
                    room.wing,
                    room.room_size_sqm,
                    room.room_capacity,
                    int(room.is_checkout_room),
                    room.status,
                    int(room.towel_change_required),
                    int(room.linen_change_required),
                    room.room_category,
                ),
            )
            conn.commit()
        return room_id

    def create_staff(self, full_name: str, nickname: Optional[str] = None, staff_id: Optional[str] = None) -> str:
        resolved_id = staff_id or str(uuid4())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO Staff (id, full_name, nickname) VALUES (?, ?, ?);",
                (resolved_id, full_name, nickname),
            )
            conn.commit()
        return resolved_id

    def save_layout(self, record: LayoutRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO FloorLayouts (floor_number, wing, x, y)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (floor_number, wing) DO UPDATE SET x = excluded.x, y = excluded.y;
                """,
                (record.floor_number, record.wing, record.x, record.y),
            )
            conn.commit()

    def list_rooms_needing_cleaning(self, assignment_date: str) -> List[Room]:
        """Dirty rooms without an assignment on ``assignment_date``."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT r.*
                FROM Rooms AS r
                WHERE r.status = 'dirty'
                  AND NOT EXISTS (
                      SELECT 1
                      FROM RoomAssignments AS ra
                      WHERE ra.room_id = r.id AND ra.assignment_date = ?
                  )
                ORDER BY r.room_number ASC;
                """,
                (assignment_date,),
            )
            return [_row_to_room(row) for row in cursor.fetchall()]

    def list_staff(self, staff_ids: Optional[Sequence[str]] = None) -> List[Staff]:
        """Return staff ordered by name, optionally restricted to ``staff_ids``."""
        with self._connect() as conn:
            cursor = conn.cursor()
            if staff_ids is None:
                cursor.execute("SELECT id, full_name, nickname FROM Staff ORDER BY full_name ASC;")
            else:
                if not staff_ids:
                    return []
                placeholders = ", ".join("?" for _ in staff_ids)
                cursor.execute(
                    f"""
                    SELECT id, full_name, nickname
                    FROM Staff
                    WHERE id IN ({placeholders})
                    ORDER BY full_name ASC;
                    """,
                    tuple(staff_ids),
                )
            return [
                Staff(
                    staff_id=str(row["id"]),
                    full_name=str(row["full_name"]),
                    nickname=row["nickname"],
                )
                for row in cursor.fetchall()
            ]

    def list_layout_records(self) -> List[LayoutRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT floor_number, wing, x, y FROM FloorLayouts ORDER BY floor_number, wing;"
            )
            return [
                LayoutRecord(
                    floor_number=int(row["floor_number"]),
                    wing=str(row["wing"]),
                    x=float(row["x"]),
                    y=float(row["y"]),
                )
                for row in cursor.fetchall()
            ]

    def list_pattern_records(self) -> List[PatternRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT room_number_a, room_number_b, pair_count FROM AssignmentPatterns;"
            )
            return [
                PatternRecord(
                    room_number_a=str(row["room_number_a"]),
                    room_number_b=str(row["room_number_b"]),
                    pair_count=int(row["pair_count"]),
                )
                for row in cursor.fetchall()
            ]

    def save_assignments(self, records: Iterable[AssignmentRecord]) -> int:
        rows = [
            (
                record.room_id,
                record.staff_id,
                record.assignment_date,
                record.assignment_type,
                record.priority,
                int(record.ready_to_clean),
            )
            for record in records
        ]
        if not rows:
            return 0
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO RoomAssignments (
                    room_id, staff_id, assignment_date, assignment_type, priority, ready_to_clean
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                rows,
            )
            conn.commit()
        logger.info("Room assignments saved | count=%s", len(rows))
        return len(rows)

    def list_assignments(self, assignment_date: str) -> List[AssignmentRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT room_id, staff_id, assignment_date, assignment_type, priority, ready_to_clean
                FROM RoomAssignments
                WHERE assignment_date = ?
                ORDER BY staff_id ASC, priority ASC;
                """,
                (assignment_date,),
            )
            return [
                AssignmentRecord(
                    room_id=str(row["room_id"]),
                    staff_id=str(row["staff_id"]),
                    assignment_date=str(row["assignment_date"]),
                    assignment_type=str(row["assignment_type"]),
                    priority=int(row["priority"]),
                    ready_to_clean=bool(row["ready_to_clean"]),
                )
                for row in cursor.fetchall()
            ]

    def record_assignment_patterns(
        self,
        pairs: Iterable[tuple[str, str]],
        seen_at: Optional[str] = None,
    ) -> int:
        """Increment the co-assignment count of every ``(room_a, room_b)`` pair.

        Pairs must already be in pair-key order so each pair maps to one row.
        """
        timestamp = seen_at or _utc_now()
        rows = [(first, second, timestamp) for first, second in pairs]
        if not rows:
            return 0
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO AssignmentPatterns (room_number_a, room_number_b, pair_count, last_seen_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT (room_number_a, room_number_b) DO UPDATE SET
                    pair_count = pair_count + 1,
                    last_seen_at = excluded.last_seen_at;
                """,
                rows,
            )
            conn.commit()
        return len(rows)

    def count_assignments(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM RoomAssignments;")
            return int(cursor.fetchone()["count"])

    def count_patterns(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM AssignmentPatterns;")
            return int(cursor.fetchone()["count"])
