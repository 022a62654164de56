#!/usr/bin/env python3
"""Validate local housekeeping assignment environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sqlite3
import sys
import tempfile
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.repository.data_repository import DataRepository
from backend.services.workflow_service import AssignmentWorkflowService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="housekeeping-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        temp_db_path = Path(temp_dir) / "housekeeping_validation.db"
        validation_settings = replace(get_settings(), database_path=temp_db_path)
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo hotel seeding
        expected_rooms = validation_settings.synthetic_floors * validation_settings.synthetic_rooms_per_floor
        try:
            repository.seed_synthetic_data()
            with sqlite3.connect(temp_db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM Rooms;")
                seeded_rooms = int(cursor.fetchone()[0])
            if seeded_rooms != expected_rooms:
                raise RuntimeError(f"expected {expected_rooms} rooms, got {seeded_rooms}")
            ok, line = _print_result(f"Demo hotel: {seeded_rooms} rooms", True)
        except (RuntimeError, sqlite3.Error) as exc:
            ok, line = _print_result("Demo hotel", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Solver smoke run
        try:
            service = AssignmentWorkflowService(repository=repository, settings=validation_settings)
            staff_ids = [member.staff_id for member in repository.list_staff()]
            bins = service.generate_preview(assignment_date="2026-02-23", staff_ids=staff_ids)
            assigned = sum(len(item.rooms) for item in bins)
            if assigned != expected_rooms:
                raise RuntimeError(f"expected {expected_rooms} assigned rooms, got {assigned}")
            ok, line = _print_result(
                "Assignment preview",
                True,
                f": {assigned} rooms across {len(bins)} staff",
            )
        except Exception as exc:
            ok, line = _print_result("Assignment preview", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Housekeeping Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
