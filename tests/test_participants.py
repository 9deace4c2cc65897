"""Tests for events and participant registration, payment and check-in."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from eventstay.domain.models import Participant
from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import (
    DuplicateEventYearError,
    EventNotFoundError,
    EventService,
    EventValidationError,
)
from eventstay.services.participant_service import (
    ParticipantNotFoundError,
    ParticipantService,
    ParticipantValidationError,
)
from eventstay.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / filename, seed_demo_data=False)


def _build_services(tmp_path):
    settings = _build_test_settings(tmp_path, "participants.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    return EventService(repository, settings), ParticipantService(repository, settings)


def _create_event(events: EventService, year: int = 2025):
    return events.create_event(
        name=f"Winter Camp {year}",
        year=year,
        start_date=date(year, 12, 21),
        end_date=date(year, 12, 27),
        location="Oberwesel",
    )


# --- events ---

def test_event_lifecycle(tmp_path) -> None:
    events, _ = _build_services(tmp_path)
    event = _create_event(events)

    assert events.get_event_by_year(2025) == event
    updated = events.update_event(event.event_id, {"location": "Bacharach"})
    assert updated.location == "Bacharach"

    events.delete_event(event.event_id)
    with pytest.raises(EventNotFoundError):
        events.get_event(event.event_id)


def test_one_event_per_year(tmp_path) -> None:
    events, _ = _build_services(tmp_path)
    _create_event(events)
    with pytest.raises(DuplicateEventYearError):
        _create_event(events)


def test_inverted_event_dates_rejected(tmp_path) -> None:
    events, _ = _build_services(tmp_path)
    with pytest.raises(EventValidationError):
        events.create_event(
            name="Broken",
            year=2026,
            start_date=date(2026, 12, 27),
            end_date=date(2026, 12, 21),
            location="Oberwesel",
        )


def test_current_event_falls_back_to_latest(tmp_path) -> None:
    events, _ = _build_services(tmp_path)
    _create_event(events, 2023)
    latest = _create_event(events, 2024)

    assert events.get_current_or_latest_event(today=date(2030, 1, 1)) == latest
    assert events.get_current_or_latest_event(today=date(2023, 6, 1)).year == 2023


def test_current_event_without_events_raises(tmp_path) -> None:
    events, _ = _build_services(tmp_path)
    with pytest.raises(EventNotFoundError):
        events.get_current_or_latest_event()


# --- participants ---

def test_register_and_search_participants(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)
    participants.create_participant(
        event.event_id, {"first_name": "Lea", "last_name": "Becker", "city": "Koblenz"}
    )
    participants.create_participant(
        event.event_id, {"first_name": "Emre", "last_name": "Aydin", "role": "ABI"}
    )

    everyone = participants.list_participants(event.event_id)
    assert [item.last_name for item in everyone] == ["Aydin", "Becker"]
    assert [item.first_name for item in participants.list_participants(event.event_id, search="koblenz")] == ["Lea"]
    assert [item.first_name for item in participants.list_participants(event.event_id, role="ABI")] == ["Emre"]


def test_registration_validation(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)

    with pytest.raises(ParticipantValidationError):
        participants.create_participant(event.event_id, {"first_name": " ", "last_name": "X"})
    with pytest.raises(ParticipantValidationError):
        participants.create_participant(
            event.event_id,
            {
                "first_name": "Late",
                "last_name": "Bird",
                "arrival_date": date(2025, 12, 26),
                "departure_date": date(2025, 12, 22),
            },
        )
    with pytest.raises(ParticipantValidationError):
        participants.create_participant(
            event.event_id, {"first_name": "A", "last_name": "B", "role": "GUEST"}
        )
    with pytest.raises(EventNotFoundError):
        participants.create_participant(999, {"first_name": "A", "last_name": "B"})


def test_payment_and_check_in_cycle(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)
    guest = participants.create_participant(event.event_id, {"first_name": "Mia", "last_name": "Roth"})

    paid = participants.mark_as_paid(guest.participant_id, amount=80.0, method="TRANSFER")
    assert paid.has_paid
    assert paid.paid_amount == 80.0
    assert paid.payment_method == "TRANSFER"
    assert paid.paid_at is not None

    unpaid = participants.mark_as_unpaid(guest.participant_id)
    assert not unpaid.has_paid
    assert unpaid.paid_amount is None
    assert unpaid.payment_method is None

    checked_in = participants.check_in(guest.participant_id)
    assert checked_in.checked_in and checked_in.checked_in_at is not None
    checked_out = participants.check_out(guest.participant_id)
    assert not checked_out.checked_in and checked_out.checked_in_at is None

    with pytest.raises(ParticipantValidationError):
        participants.mark_as_paid(guest.participant_id, amount=-5)
    with pytest.raises(ParticipantValidationError):
        participants.mark_as_paid(guest.participant_id, method="CARD")


def test_update_ignores_room_and_payment_fields(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)
    guest = participants.create_participant(event.event_id, {"first_name": "Jan", "last_name": "Kurz"})

    updated = participants.update_participant(
        guest.participant_id, {"city": "Mainz", "has_paid": True, "room_id": 42}
    )

    assert updated.city == "Mainz"
    assert not updated.has_paid
    assert updated.room_id is None


def test_delete_participant(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)
    guest = participants.create_participant(event.event_id, {"first_name": "Tim", "last_name": "Berg"})

    participants.delete_participant(guest.participant_id)
    with pytest.raises(ParticipantNotFoundError):
        participants.get_participant(guest.participant_id)


def test_age_prefers_birth_date() -> None:
    guest = Participant(
        participant_id=1,
        event_id=1,
        first_name="Ada",
        last_name="Lang",
        age=40,
        birth_date=date(2007, 12, 24),
    )
    assert guest.age_on(date(2025, 12, 23)) == 17
    assert guest.age_on(date(2025, 12, 24)) == 18
    assert replace(guest, birth_date=None).age_on(date(2025, 12, 24)) == 40


def test_age_is_derived_from_birth_date_on_event_start(tmp_path) -> None:
    events, participants = _build_services(tmp_path)
    event = _create_event(events)
    born = participants.create_participant(
        event.event_id,
        {"first_name": "Ada", "last_name": "Lang", "birth_date": date(2007, 12, 24)},
    )
    stated = participants.create_participant(
        event.event_id,
        {"first_name": "Ben", "last_name": "Ott", "age": 19},
    )

    assert born.age == 17
    assert participants.get_participant(born.participant_id).age == 17
    ages = {item.first_name: item.age for item in participants.list_participants(event.event_id)}
    assert ages == {"Ada": 17, "Ben": 19}
    assert stated.age == 19
