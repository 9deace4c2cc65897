"""Tests for daily reports, statistics and the CSV export."""

from __future__ import annotations

import io
from dataclasses import replace
from datetime import date

import pandas as pd
import pytest

from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import EventNotFoundError, EventService
from eventstay.services.participant_service import ParticipantService
from eventstay.services.report_service import EXPORT_COLUMNS, ReportService
from eventstay.services.room_service import RoomService
from eventstay.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / filename,
        seed_demo_data=False,
        full_payment_threshold=80.0,
    )


@pytest.fixture
def camp(tmp_path):
    settings = _build_test_settings(tmp_path, "reports.db")
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

    room = rooms.create_room(event.event_id, {"name": "S101", "capacity": 2})
    rooms.create_room(event.event_id, {"name": "N101", "capacity": 3})

    early = participants.create_participant(
        event.event_id,
        {
            "first_name": "Anna",
            "last_name": "Weber",
            "city": "Koblenz",
            "postal_code": "56068",
            "arrival_date": date(2025, 12, 21),
            "departure_date": date(2025, 12, 23),
        },
    )
    late = participants.create_participant(
        event.event_id,
        {
            "first_name": "Can",
            "last_name": "Demir",
            "city": "Istanbul",
            "postal_code": "34000",
            "role": "ABI",
            "arrival_date": date(2025, 12, 24),
        },
    )
    helper = participants.create_participant(
        event.event_id,
        {"first_name": "Bea", "last_name": "Arnold", "city": "Koblenz", "role": "HELPER"},
    )
    rooms.assign_room(early.participant_id, room.room.room_id)
    rooms.assign_room(late.participant_id, room.room.room_id)

    participants.mark_as_paid(early.participant_id, amount=80.0, method="CASH")
    participants.mark_as_paid(late.participant_id, amount=40.0, method="TRANSFER")
    participants.check_in(early.participant_id)

    return {
        "event": event,
        "participants": participants,
        "reports": ReportService(repository, settings),
        "early": early,
        "late": late,
        "helper": helper,
    }


def test_daily_report_lists_present_guests_per_room(camp) -> None:
    report = camp["reports"].get_daily_report(camp["event"].event_id, date(2025, 12, 22))

    assert [entry.room.name for entry in report.rooms] == ["N101", "S101"]
    s101 = report.rooms[1]
    assert [item.first_name for item in s101.occupants] == ["Anna"]
    assert [item.first_name for item in report.present] == ["Anna"]
    assert report.arrivals == []
    assert report.departures == []


def test_daily_report_arrivals_and_departures(camp) -> None:
    reports = camp["reports"]
    event_id = camp["event"].event_id

    on_departure = reports.get_daily_report(event_id, date(2025, 12, 23))
    assert [item.first_name for item in on_departure.departures] == ["Anna"]
    assert [item.first_name for item in on_departure.present] == ["Anna"]

    on_arrival = reports.get_daily_report(event_id, date(2025, 12, 24))
    assert [item.first_name for item in on_arrival.arrivals] == ["Can"]
    assert [item.first_name for item in on_arrival.present] == ["Can"]


def test_event_statistics(camp) -> None:
    stats = camp["reports"].get_event_statistics(camp["event"].event_id)

    assert stats.total_participants == 3
    assert stats.checked_in == 1
    assert (stats.paid, stats.unpaid) == (2, 1)
    assert stats.total_rooms == 2
    assert stats.total_beds == 5
    assert stats.occupied_beds == 2
    assert (stats.helpers, stats.abi_guests) == (1, 1)


def test_city_and_country_shares(camp) -> None:
    reports = camp["reports"]
    event_id = camp["event"].event_id

    cities = reports.get_city_statistics(event_id)
    assert [(item.label, item.count) for item in cities] == [("Koblenz", 2), ("Istanbul", 1)]
    assert cities[0].percentage == pytest.approx(66.7)

    countries = {item.label: item.count for item in reports.get_country_statistics(event_id)}
    assert countries == {"Germany": 1, "Turkey": 1, "Unknown": 1}


def test_payment_and_role_statistics(camp) -> None:
    reports = camp["reports"]
    event_id = camp["event"].event_id

    payments = reports.get_payment_statistics(event_id)
    assert (payments.paid, payments.unpaid) == (2, 1)
    assert payments.total_amount == pytest.approx(120.0)

    roles = reports.get_role_statistics(event_id)
    assert (roles.regular, roles.helper, roles.abi) == (1, 1, 1)


def test_finance_splits_full_and_partial_payments(camp) -> None:
    finance = camp["reports"].get_finance_statistics(camp["event"].event_id)

    assert finance.full_payment_threshold == 80.0
    assert finance.fully_paid == 1
    assert finance.partially_paid == 1
    assert [item.first_name for item in finance.partially_paid_participants] == ["Can"]
    assert [item.first_name for item in finance.unpaid_participants] == ["Bea"]
    assert finance.percentage_paid == pytest.approx(66.7)
    assert finance.amount_by_method == {"CASH": 80.0, "TRANSFER": 40.0}
    assert finance.by_role["ABI"].paid == 1
    assert finance.by_role["HELPER"].unpaid == 1


def test_csv_export_has_one_row_per_participant(camp) -> None:
    content = camp["reports"].export_participants_csv(camp["event"].event_id)

    frame = pd.read_csv(io.StringIO(content))
    assert list(frame.columns) == list(EXPORT_COLUMNS)
    assert list(frame["last_name"]) == ["Arnold", "Demir", "Weber"]
    assert list(frame["room_name"].fillna("")) == ["", "S101", "S101"]


def test_csv_export_takes_age_from_birth_date(camp) -> None:
    camp["participants"].update_participant(
        camp["helper"].participant_id,
        {"birth_date": date(2007, 12, 22), "age": 30},
    )

    content = camp["reports"].export_participants_csv(camp["event"].event_id)

    frame = pd.read_csv(io.StringIO(content))
    ages = dict(zip(frame["first_name"], frame["age"]))
    # the event starts one day before the 18th birthday
    assert ages["Bea"] == 17


def test_reports_for_unknown_event_raise(camp) -> None:
    with pytest.raises(EventNotFoundError):
        camp["reports"].get_finance_statistics(999)
