"""Room assignment against a real SQLite database."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

import pytest

from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import EventService
from eventstay.services.participant_service import ParticipantService, StayConflictError
from eventstay.services.room_service import (
    CapacityBelowOccupancyError,
    DuplicateRoomNameError,
    RoomCapacityExceededError,
    RoomService,
    RoomValidationError,
)
from eventstay.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / filename, seed_demo_data=False)


def _build_services(tmp_path, filename: str = "rooms.db"):
    settings = _build_test_settings(tmp_path, filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    event = EventService(repository, settings).create_event(
        name="Winter Camp 2025",
        year=2025,
        start_date=date(2025, 12, 21),
        end_date=date(2025, 12, 27),
        location="Oberwesel",
    )
    participants = ParticipantService(repository, settings)
    rooms = RoomService(repository, settings)
    return event, participants, rooms, repository


def _guest(participants: ParticipantService, event_id: int, name: str, arrival=None, departure=None):
    return participants.create_participant(
        event_id,
        {
            "first_name": name,
            "last_name": "Test",
            "arrival_date": arrival,
            "departure_date": departure,
        },
    )


def test_guests_with_disjoint_stays_share_a_bed(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S101", "capacity": 1})
    early = _guest(participants, event.event_id, "Early", date(2025, 12, 21), date(2025, 12, 23))
    late = _guest(participants, event.event_id, "Late", date(2025, 12, 24), date(2025, 12, 27))

    rooms.assign_room(early.participant_id, room.room.room_id)
    assigned = rooms.assign_room(late.participant_id, room.room.room_id)

    assert assigned.room_id == room.room.room_id
    assert assigned.room_name == "S101"
    assert len(rooms.get_room(room.room.room_id).occupants) == 2


def test_overlapping_guest_is_rejected_when_room_is_full(tmp_path) -> None:
    event, participants, rooms, repository = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S102", "capacity": 2})
    first = _guest(participants, event.event_id, "A", date(2025, 12, 22), date(2025, 12, 24))
    second = _guest(participants, event.event_id, "B", date(2025, 12, 25), date(2025, 12, 27))
    spanning = _guest(participants, event.event_id, "C", date(2025, 12, 23), date(2025, 12, 26))
    rooms.assign_room(first.participant_id, room.room.room_id)
    rooms.assign_room(second.participant_id, room.room.room_id)

    with pytest.raises(RoomCapacityExceededError) as excinfo:
        rooms.assign_room(spanning.participant_id, room.room.room_id)

    assert excinfo.value.availability.overlapping_count == 2
    assert repository.get_participant(spanning.participant_id).room_id is None


def test_reassigning_to_current_room_does_not_count_self(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S103", "capacity": 1})
    guest = _guest(participants, event.event_id, "Solo")
    rooms.assign_room(guest.participant_id, room.room.room_id)

    again = rooms.assign_room(guest.participant_id, room.room.room_id)

    assert again.room_id == room.room.room_id


def test_move_and_unassign(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    first_room = rooms.create_room(event.event_id, {"name": "N101", "capacity": 2})
    second_room = rooms.create_room(event.event_id, {"name": "N102", "capacity": 2})
    guest = _guest(participants, event.event_id, "Mover")

    rooms.assign_room(guest.participant_id, first_room.room.room_id)
    moved = rooms.move_to_room(guest.participant_id, second_room.room.room_id)
    assert moved.room_id == second_room.room.room_id
    assert rooms.get_room(first_room.room.room_id).occupants == []

    cleared = rooms.assign_room(guest.participant_id, None)
    assert cleared.room_id is None


def test_room_options_report_period_aware_availability(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "W201", "capacity": 1})
    occupant = _guest(participants, event.event_id, "Occupant", date(2025, 12, 21), date(2025, 12, 23))
    rooms.assign_room(occupant.participant_id, room.room.room_id)
    later = _guest(participants, event.event_id, "Later", date(2025, 12, 24), None)
    overlapping = _guest(participants, event.event_id, "Overlap", None, date(2025, 12, 22))

    later_option = rooms.list_room_options(later.participant_id)[0]
    overlapping_option = rooms.list_room_options(overlapping.participant_id)[0]
    occupant_option = rooms.list_room_options(occupant.participant_id)[0]

    assert later_option.availability.has_space
    assert not overlapping_option.availability.has_space
    assert occupant_option.is_current_room
    assert occupant_option.availability.overlapping_count == 0


def test_stay_change_that_overfills_room_is_rejected(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S201", "capacity": 1})
    early = _guest(participants, event.event_id, "Early", date(2025, 12, 21), date(2025, 12, 23))
    late = _guest(participants, event.event_id, "Late", date(2025, 12, 24), date(2025, 12, 27))
    rooms.assign_room(early.participant_id, room.room.room_id)
    rooms.assign_room(late.participant_id, room.room.room_id)

    with pytest.raises(StayConflictError):
        participants.update_participant(early.participant_id, {"departure_date": date(2025, 12, 25)})

    unchanged = participants.get_participant(early.participant_id)
    assert unchanged.departure_date == date(2025, 12, 23)


def test_capacity_cannot_drop_below_peak(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S301", "capacity": 3})
    for name in ("A", "B"):
        guest = _guest(participants, event.event_id, name)
        rooms.assign_room(guest.participant_id, room.room.room_id)

    with pytest.raises(CapacityBelowOccupancyError):
        rooms.update_room(room.room.room_id, {"capacity": 1})
    assert rooms.update_room(room.room.room_id, {"capacity": 2}).room.capacity == 2


def test_room_creation_rules(tmp_path) -> None:
    event, _, rooms, _ = _build_services(tmp_path)
    created = rooms.create_room(event.event_id, {"name": "W302", "capacity": 4})
    assert created.room.floor == 3
    assert created.room.building == "W"

    with pytest.raises(DuplicateRoomNameError):
        rooms.create_room(event.event_id, {"name": "W302", "capacity": 2})
    with pytest.raises(RoomValidationError):
        rooms.create_room(event.event_id, {"name": "W303", "capacity": 0})


def test_catalog_import_skips_offline_and_duplicates(tmp_path) -> None:
    event, _, rooms, _ = _build_services(tmp_path)
    rooms.create_room(event.event_id, {"name": "S101", "capacity": 2})

    result = rooms.create_rooms_from_catalog(
        event.event_id,
        [
            {"name": "S101", "category": "2BN", "location": "South"},
            {"name": "S102", "category": "3+1BNB", "location": "South"},
            {"name": "W302", "category": "offline", "location": "West"},
        ],
    )

    assert result.created == 1
    assert result.skipped == ["S101", "W302"]
    capacities = {item.room.name: item.room.capacity for item in rooms.list_rooms(event.event_id)}
    assert capacities == {"S101": 2, "S102": 4}


def test_deleting_room_unassigns_occupants(tmp_path) -> None:
    event, participants, rooms, _ = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "N201", "capacity": 2})
    guest = _guest(participants, event.event_id, "Guest")
    rooms.assign_room(guest.participant_id, room.room.room_id)

    rooms.delete_room(room.room.room_id)

    assert participants.get_participant(guest.participant_id).room_id is None


def test_concurrent_assignments_cannot_both_take_last_bed(tmp_path) -> None:
    event, participants, rooms, repository = _build_services(tmp_path)
    room = rooms.create_room(event.event_id, {"name": "S401", "capacity": 1})
    guests = [_guest(participants, event.event_id, f"Racer{index}") for index in range(4)]
    outcomes: list[bool] = []
    lock = threading.Lock()

    def attempt(participant_id: int) -> None:
        try:
            rooms.assign_room(participant_id, room.room.room_id)
            result = True
        except RoomCapacityExceededError:
            result = False
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(guest.participant_id,)) for guest in guests]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count(True) == 1
    assert len(repository.list_room_occupants(room.room.room_id)) == 1
