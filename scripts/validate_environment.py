#!/usr/bin/env python3
"""Validate local EventStay environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eventstay.repository.data_repository import DataRepository
from eventstay.services.room_service import RoomService
from eventstay.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="eventstay-env-")

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

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("openpyxl", "openpyxl"),
        ("multipart", "python-multipart"),
        ("requests", "requests"),
        ("streamlit", "streamlit"),
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
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "eventstay_validation.db",
            demo_participant_count=40,
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo seeding
        event_id = None
        try:
            event_id = repository.seed_demo_data()
            if event_id is None:
                raise RuntimeError("demo seed skipped on an empty database")
            participants = repository.list_participants(event_id)
            if len(participants) != validation_settings.demo_participant_count:
                raise RuntimeError(f"expected 40 participants, got {len(participants)}")
            ok, line = _print_result("Demo seeding", True, f": {len(participants)} participants")
        except Exception as exc:
            ok, line = _print_result("Demo seeding", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Seeded rooms never exceed capacity on any day
        try:
            if event_id is None:
                raise RuntimeError("no demo event")
            room_service = RoomService(repository=repository, settings=validation_settings)
            overfull = [
                row.name
                for row in room_service.get_room_occupancy(event_id)
                if row.peak_occupancy > row.capacity
            ]
            if overfull:
                raise RuntimeError("over capacity: " + ", ".join(overfull))
            ok, line = _print_result("Room capacity check", True)
        except Exception as exc:
            ok, line = _print_result("Room capacity check", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Event lookup by year
        try:
            event = repository.get_event_by_year(validation_settings.demo_event_year)
            if event is None or event.start_date > event.end_date:
                raise RuntimeError("demo event missing or has inverted dates")
            ok, line = _print_result(
                "Event lookup",
                True,
                f": {event.name} from {event.start_date:%d.%m.} to {event.end_date:%d.%m.%Y}",
            )
        except Exception as exc:
            ok, line = _print_result("Event lookup", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" EventStay Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(f" All checks passed on {date.today():%Y-%m-%d}. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
