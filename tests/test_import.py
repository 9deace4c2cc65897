"""Tests for participant import from CSV and Excel uploads."""

from __future__ import annotations

import io
from dataclasses import replace
from datetime import date

import pandas as pd
import pytest

from eventstay.domain.models import Event
from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import EventService
from eventstay.services.import_service import (
    ImportService,
    ImportValidationError,
    detect_columns,
    parse_role_label,
    parse_stay_text,
)
from eventstay.services.participant_service import ParticipantService
from eventstay.utils.config import get_settings


WINTER_CAMP = Event(
    event_id=1,
    name="Winter Camp 2025",
    year=2025,
    start_date=date(2025, 12, 21),
    end_date=date(2025, 12, 27),
    location="Oberwesel",
)
NEW_YEAR_CAMP = replace(WINTER_CAMP, start_date=date(2025, 12, 28), end_date=date(2026, 1, 3))


def _build_test_settings(tmp_path, filename: str, **overrides):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / filename,
        seed_demo_data=False,
        **overrides,
    )


def _build_services(tmp_path, **overrides):
    settings = _build_test_settings(tmp_path, "import.db", **overrides)
    repository = DataRepository(settings)
    repository.initialize_database()
    event = EventService(repository, settings).create_event(
        name="Winter Camp 2025",
        year=2025,
        start_date=date(2025, 12, 21),
        end_date=date(2025, 12, 27),
        location="Oberwesel",
    )
    return event, ImportService(repository, settings), ParticipantService(repository, settings)


def _by_first_name(participants, event_id: int) -> dict:
    return {item.first_name: item for item in participants.list_participants(event_id)}


# --- parsing helpers ---

@pytest.mark.parametrize(
    "text, expected",
    [
        ("22.12-26.12", (date(2025, 12, 22), date(2025, 12, 26))),
        ("22.12.2025 - 26.12.2025", (date(2025, 12, 22), date(2025, 12, 26))),
        ("2025-12-23 bis 2025-12-25", (date(2025, 12, 23), date(2025, 12, 25))),
        ("ab 24.12", (date(2025, 12, 24), None)),
        ("24.12.", (date(2025, 12, 24), None)),
        ("bis 23.12", (None, date(2025, 12, 23))),
        ("", (None, None)),
        (None, (None, None)),
    ],
)
def test_parse_stay_text(text, expected) -> None:
    assert parse_stay_text(text, WINTER_CAMP) == expected


def test_stay_without_year_rolls_over_new_year() -> None:
    assert parse_stay_text("30.12-02.01", NEW_YEAR_CAMP) == (date(2025, 12, 30), date(2026, 1, 2))


def test_unreadable_stay_raises() -> None:
    with pytest.raises(ValueError):
        parse_stay_text("whole week", WINTER_CAMP)


@pytest.mark.parametrize(
    "label, role",
    [("", "REGULAR"), ("Teilnehmer", "REGULAR"), ("Katılımcı", "REGULAR"), ("Helfer", "HELPER"), ("abi", "ABI")],
)
def test_parse_role_label(label: str, role: str) -> None:
    assert parse_role_label(label) == role


def test_parse_role_label_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        parse_role_label("Gast")


def test_detect_columns_in_german_and_turkish_headers() -> None:
    german = detect_columns(["Vorname", "Nachname", "Alter", "Wohnort", "PLZ", "Aufenthalt", "Rolle"])
    assert german == {
        "first_name": 0,
        "last_name": 1,
        "age": 2,
        "city": 3,
        "postal_code": 4,
        "stay": 5,
        "role": 6,
    }

    turkish = detect_columns(["Soyisminiz", "İsminiz", "Yaşınız", "Şehir", "Rol"])
    assert turkish == {"last_name": 0, "first_name": 1, "age": 2, "city": 3, "role": 4}


# --- imports ---

def test_import_german_csv_with_semicolons(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    content = (
        "Vorname;Nachname;Alter;Wohnort;Aufenthalt;Rolle\n"
        "Lea;Becker;17;Koblenz;22.12-26.12;Teilnehmer\n"
        "Omar;Yilmaz;25;Köln;ab 24.12;Abi\n"
        "Mia;Roth;;Mainz;bis 23.12;Helfer\n"
    ).encode("utf-8")

    result = importer.import_participants(event.event_id, content, "anmeldungen.csv")

    assert (result.added, result.skipped, result.errors) == (3, 0, [])
    imported = _by_first_name(participants, event.event_id)
    assert imported["Lea"].age == 17
    assert imported["Lea"].stay.arrival == date(2025, 12, 22)
    assert imported["Lea"].stay.departure == date(2025, 12, 26)
    assert imported["Omar"].role == "ABI"
    assert imported["Omar"].arrival_date == date(2025, 12, 24)
    assert imported["Omar"].departure_date is None
    assert imported["Mia"].role == "HELPER"
    assert imported["Mia"].arrival_date is None
    assert imported["Mia"].departure_date == date(2025, 12, 23)
    assert imported["Mia"].age is None


def test_import_turkish_headers_with_bom(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    content = (
        "Soyisminiz,İsminiz,Yaşınız,Şehir,Rol\n"
        "Yılmaz,Ayşe,16,Istanbul,katılımcı\n"
    ).encode("utf-8-sig")

    result = importer.import_participants(event.event_id, content, "kayit.csv")

    assert result.added == 1
    imported = _by_first_name(participants, event.event_id)["Ayşe"]
    assert imported.last_name == "Yılmaz"
    assert imported.age == 16
    assert imported.city == "Istanbul"


def test_import_without_header_uses_positional_layout(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    content = (
        "Ali;Kaya;16;Bonn;22.12-25.12;ABI\n"
        "Ela;Sahin;15;Bonn;;\n"
    ).encode("utf-8")

    result = importer.import_participants(event.event_id, content, "list.csv")

    assert result.added == 2
    imported = _by_first_name(participants, event.event_id)
    assert imported["Ali"].role == "ABI"
    assert imported["Ali"].departure_date == date(2025, 12, 25)
    assert imported["Ela"].role == "REGULAR"
    assert imported["Ela"].arrival_date is None


def test_bad_rows_are_reported_with_line_numbers(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    content = (
        "Vorname;Nachname;Aufenthalt;Rolle\n"
        "Lea;Becker;22.12-26.12;Gast\n"
        ";Nobody;;\n"
        "Tom;Huber;26.12-22.12;\n"
        "Eva;Klein;;\n"
    ).encode("utf-8")

    result = importer.import_participants(event.event_id, content, "list.csv")

    assert result.added == 1
    assert len(result.errors) == 3
    assert result.errors[0].startswith("Row 2:")
    assert result.errors[1].startswith("Row 3:")
    assert result.errors[2].startswith("Row 4:")
    assert list(_by_first_name(participants, event.event_id)) == ["Eva"]


def test_duplicate_names_are_skipped(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    participants.create_participant(event.event_id, {"first_name": "Lea", "last_name": "Becker"})
    content = (
        "Vorname;Nachname\n"
        "lea;BECKER\n"
        "Tim;Berg\n"
        "Tim;Berg\n"
    ).encode("utf-8")

    result = importer.import_participants(event.event_id, content, "list.csv")

    assert (result.added, result.skipped) == (1, 2)
    assert len(participants.list_participants(event.event_id)) == 2


def test_replace_mode_clears_existing_participants(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    participants.create_participant(event.event_id, {"first_name": "Old", "last_name": "Guest"})
    content = "Vorname;Nachname\nNew;Guest\n".encode("utf-8")

    result = importer.import_participants(event.event_id, content, "list.csv", mode="replace")

    assert result.added == 1
    assert list(_by_first_name(participants, event.event_id)) == ["New"]


def test_replace_mode_keeps_participants_when_no_row_is_valid(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    participants.create_participant(event.event_id, {"first_name": "Old", "last_name": "Guest"})
    content = "Vorname;Nachname;Rolle\nNew;Guest;Gast\n".encode("utf-8")

    result = importer.import_participants(event.event_id, content, "list.csv", mode="replace")

    assert result.added == 0
    assert result.errors[0].startswith("Row 2:")
    assert list(_by_first_name(participants, event.event_id)) == ["Old"]


def test_import_excel_sheet(tmp_path) -> None:
    event, importer, participants = _build_services(tmp_path)
    frame = pd.DataFrame(
        {
            "Vorname": ["Lea"],
            "Nachname": ["Becker"],
            "PLZ": [56068],
            "Anreise": [pd.Timestamp("2025-12-22")],
            "Abreise": ["26.12"],
        }
    )
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl")

    result = importer.import_participants(event.event_id, buffer.getvalue(), "Teilnehmer.xlsx")

    assert result.added == 1
    imported = _by_first_name(participants, event.event_id)["Lea"]
    assert imported.postal_code == "56068"
    assert imported.arrival_date == date(2025, 12, 22)
    assert imported.departure_date == date(2025, 12, 26)


def test_unreadable_uploads_are_rejected(tmp_path) -> None:
    event, importer, _ = _build_services(tmp_path, import_max_rows=2)

    with pytest.raises(ImportValidationError):
        importer.import_participants(event.event_id, b"\xff\xfe\x00bad", "list.csv")
    with pytest.raises(ImportValidationError):
        importer.import_participants(event.event_id, b"Vorname;Nachname\nA;B\n", "list.csv", mode="merge")
    with pytest.raises(ImportValidationError):
        importer.import_participants(event.event_id, b"Vorname;Nachname\nA;B\nC;D\n", "list.csv")


@pytest.mark.parametrize(
    ("content", "filename"),
    [
        (b"", "list.csv"),
        (b"\n\n", "list.csv"),
        (b"\xef\xbb\xbf  \r\n", "list.csv"),
        (b"", "list.xlsx"),
    ],
)
def test_empty_uploads_are_rejected(tmp_path, content: bytes, filename: str) -> None:
    event, importer, _ = _build_services(tmp_path)

    with pytest.raises(ImportValidationError):
        importer.import_participants(event.event_id, content, filename)
