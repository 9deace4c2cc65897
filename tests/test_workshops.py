"""Tests for workshops, their leaders, members and rooms."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import EventService
from eventstay.services.participant_service import ParticipantService
from eventstay.services.workshop_service import (
    WorkshopConflictError,
    WorkshopNotFoundError,
    WorkshopService,
    WorkshopValidationError,
)
from eventstay.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / filename,
        seed_demo_data=False,
        workshop_room_seed_count=3,
    )


def _build_services(tmp_path):
    settings = _build_test_settings(tmp_path, "workshops.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    event = EventService(repository, settings).create_event(
        name="Winter Camp 2025",
        year=2025,
        start_date=date(2025, 12, 21),
        end_date=date(2025, 12, 27),
        location="Oberwesel",
    )
    return event, ParticipantService(repository, settings), WorkshopService(repository, settings)


def _person(participants: ParticipantService, event_id: int, first_name: str, role: str = "REGULAR"):
    return participants.create_participant(
        event_id, {"first_name": first_name, "last_name": "Doe", "role": role}
    )


def test_create_workshop_uses_default_capacity(tmp_path) -> None:
    event, _, workshops = _build_services(tmp_path)
    created = workshops.create_workshop(event.event_id, {"name": "Calligraphy"})

    assert created.workshop.max_participants == 30
    assert created.leaders == [] and created.members == []
    assert not created.is_full


def test_only_abi_guests_lead(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    workshop = workshops.create_workshop(event.event_id, {"name": "Football"})
    abi = _person(participants, event.event_id, "Omar", "ABI")
    regular = _person(participants, event.event_id, "Lena")

    with pytest.raises(WorkshopValidationError):
        workshops.add_leader(workshop.workshop.workshop_id, regular.participant_id)

    details = workshops.add_leader(workshop.workshop.workshop_id, abi.participant_id)
    assert [item.participant_id for item in details.leaders] == [abi.participant_id]
    assert workshops.list_available_leaders(workshop.workshop.workshop_id) == []

    with pytest.raises(WorkshopConflictError):
        workshops.add_leader(workshop.workshop.workshop_id, abi.participant_id)


def test_full_workshop_rejects_members(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    workshop = workshops.create_workshop(event.event_id, {"name": "Chess", "max_participants": 1})
    first = _person(participants, event.event_id, "Ali")
    second = _person(participants, event.event_id, "Ben")

    details = workshops.add_participant(workshop.workshop.workshop_id, first.participant_id)
    assert details.is_full
    with pytest.raises(WorkshopConflictError):
        workshops.add_participant(workshop.workshop.workshop_id, second.participant_id)


def test_bulk_enrolment_skips_duplicates_and_overflow(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    workshop = workshops.create_workshop(event.event_id, {"name": "Theatre", "max_participants": 2})
    people = [_person(participants, event.event_id, name) for name in ("A", "B", "C")]
    workshops.add_participant(workshop.workshop.workshop_id, people[0].participant_id)

    result = workshops.add_participants(
        workshop.workshop.workshop_id,
        [people[0].participant_id, people[1].participant_id, people[2].participant_id, 999],
    )

    assert result.added == 1
    assert result.skipped == 3
    assert len(workshops.get_workshop(workshop.workshop.workshop_id).members) == 2


def test_helper_flag_and_removal(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    workshop = workshops.create_workshop(event.event_id, {"name": "Cooking"})
    member = _person(participants, event.event_id, "Cem")
    workshops.add_participant(workshop.workshop.workshop_id, member.participant_id)

    details = workshops.set_participant_helper(workshop.workshop.workshop_id, member.participant_id, True)
    assert details.members[0].is_helper

    details = workshops.remove_participant(workshop.workshop.workshop_id, member.participant_id)
    assert details.members == []
    available = workshops.list_available_participants(workshop.workshop.workshop_id)
    assert [item.participant_id for item in available] == [member.participant_id]

    with pytest.raises(WorkshopNotFoundError):
        workshops.set_participant_helper(workshop.workshop.workshop_id, member.participant_id, False)


def test_seed_workshop_rooms_is_idempotent(tmp_path) -> None:
    event, _, workshops = _build_services(tmp_path)
    workshops.create_workshop_room(event.event_id, {"name": "WS2"})

    result = workshops.seed_workshop_rooms(event.event_id)
    assert (result.created, result.skipped) == (2, 1)
    again = workshops.seed_workshop_rooms(event.event_id)
    assert (again.created, again.skipped) == (0, 3)
    assert [room.name for room in workshops.list_workshop_rooms(event.event_id)] == ["WS1", "WS2", "WS3"]


def test_workshop_room_hosts_one_workshop(tmp_path) -> None:
    event, _, workshops = _build_services(tmp_path)
    room = workshops.create_workshop_room(event.event_id, {"name": "Library"})
    first = workshops.create_workshop(
        event.event_id, {"name": "Poetry", "workshop_room_id": room.workshop_room_id}
    )
    assert first.workshop.workshop_room_name == "Library"

    with pytest.raises(WorkshopConflictError):
        workshops.create_workshop(
            event.event_id, {"name": "Drawing", "workshop_room_id": room.workshop_room_id}
        )
    assert workshops.list_available_workshop_rooms(event.event_id) == []
    editing = workshops.list_available_workshop_rooms(event.event_id, first.workshop.workshop_id)
    assert [item.name for item in editing] == ["Library"]

    # keeping its own room is not a conflict
    kept = workshops.update_workshop(
        first.workshop.workshop_id, {"workshop_room_id": room.workshop_room_id}
    )
    assert kept.workshop.workshop_room_id == room.workshop_room_id


def test_workshop_statistics(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    leader = _person(participants, event.event_id, "Aylin", "ABI")
    member = _person(participants, event.event_id, "Paul")
    first = workshops.create_workshop(event.event_id, {"name": "Archery", "max_participants": 1})
    workshops.create_workshop(event.event_id, {"name": "Bouldering"})
    workshops.add_leader(first.workshop.workshop_id, leader.participant_id)
    workshops.add_participant(first.workshop.workshop_id, member.participant_id)

    stats = workshops.get_statistics(event.event_id)

    assert stats.total_workshops == 2
    assert stats.total_leaders == 1
    assert stats.total_participants == 1
    assert [item.is_full for item in stats.workshops] == [True, False]


def test_deleting_participant_removes_workshop_links(tmp_path) -> None:
    event, participants, workshops = _build_services(tmp_path)
    workshop = workshops.create_workshop(event.event_id, {"name": "Drums"})
    member = _person(participants, event.event_id, "Nils")
    workshops.add_participant(workshop.workshop.workshop_id, member.participant_id)

    participants.delete_participant(member.participant_id)

    assert workshops.get_workshop(workshop.workshop.workshop_id).members == []
