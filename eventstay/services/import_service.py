"""Bulk participant import from CSV files and Excel sheets.

Registration lists arrive in German, Turkish or English with loosely named
columns. Headers are normalized and matched against keywords; files
without a recognizable header fall back to the fixed layout
``first name, last name, age, city, stay, role``.
"""

from __future__ import annotations

import csv
import io
import re
import unicodedata
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from eventstay.domain.models import ROLE_ABI, ROLE_HELPER, ROLE_REGULAR, Event
from eventstay.domain.stay import InvalidStayError, Stay
from eventstay.repository.data_repository import DataRepository
from eventstay.services.errors import ServiceValidationError
from eventstay.services.event_service import EventNotFoundError
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

IMPORT_MODE_ADD = "add"
IMPORT_MODE_REPLACE = "replace"
IMPORT_MODES = (IMPORT_MODE_ADD, IMPORT_MODE_REPLACE)

POSITIONAL_LAYOUT = ("first_name", "last_name", "age", "city", "stay", "role")

# Order matters: "soyisminiz" contains "isminiz".
_FIELD_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("last_name", ("nachname", "soyisminiz", "soyisim", "soyadi", "soyad", "last name", "lastname", "surname")),
    ("first_name", ("vorname", "isminiz", "adiniz", "isim", "adi", "ad", "first name", "firstname")),
    ("birth_date", ("geburtsdatum", "dogum tarihi", "birth")),
    ("age", ("alter", "yasiniz", "yas", "age")),
    ("email", ("e-mail", "email", "eposta", "e-posta")),
    ("postal_code", ("postleitzahl", "posta kodu", "postal", "plz")),
    ("phone", ("telefon", "phone", "tel")),
    ("city", ("wohnort", "stadt", "sehir", "city", "ort")),
    ("arrival_date", ("ankunft", "anreise", "gelis", "arrival")),
    ("departure_date", ("abreise", "abfahrt", "donus", "departure")),
    ("stay", ("aufenthalt", "zeitraum", "stay")),
    ("role", ("rolle", "role", "rol")),
    ("notes", ("bemerkung", "notiz", "notes")),
)
# Short keywords only match a whole header cell.
_MIN_SUBSTRING_KEYWORD = 4

_ROLE_LABELS = {
    "regular": ROLE_REGULAR,
    "teilnehmer": ROLE_REGULAR,
    "katilimci": ROLE_REGULAR,
    "helper": ROLE_HELPER,
    "helfer": ROLE_HELPER,
    "gorevli": ROLE_HELPER,
    "yardimci": ROLE_HELPER,
    "abi": ROLE_ABI,
    "abi-gast": ROLE_ABI,
    "abi gast": ROLE_ABI,
}

_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
_DOTTED_DATE_RE = re.compile(r"(\d{1,2})\.(\d{1,2})\.?(\d{4}|\d{2})?")
_UNTIL_PREFIXES = ("bis", "until")


class ImportValidationError(ServiceValidationError):
    """Raised when an upload cannot be read at all."""


@dataclass
class ImportResult:
    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def normalize_text(value: Any) -> str:
    """Lowercase, fold diacritics and Turkish letters, collapse whitespace."""
    text = str(value or "").lower().replace("ı", "i")
    text = unicodedata.normalize("NFD", text)
    text = "".join(char for char in text if not unicodedata.combining(char))
    return " ".join(text.split())


def detect_columns(header: list[Any]) -> dict[str, int]:
    """Map field names to column indexes for a header row."""
    columns: dict[str, int] = {}
    for index, cell in enumerate(header):
        label = normalize_text(cell)
        if not label:
            continue
        for field_name, keywords in _FIELD_KEYWORDS:
            if field_name in columns:
                continue
            if any(
                label == keyword or (len(keyword) >= _MIN_SUBSTRING_KEYWORD and keyword in label)
                for keyword in keywords
            ):
                columns[field_name] = index
                break
    return columns


def parse_role_label(value: Any) -> str:
    label = normalize_text(value)
    if not label:
        return ROLE_REGULAR
    if label.upper() in (ROLE_REGULAR, ROLE_HELPER, ROLE_ABI):
        return label.upper()
    role = _ROLE_LABELS.get(label)
    if role is None:
        raise ValueError(f"Unknown role '{value}'")
    return role


def _resolve_year(day: int, month: int, event: Event) -> int:
    start = event.start_date
    if event.end_date.year > start.year and (month, day) < (start.month, start.day):
        return event.end_date.year
    return start.year


def parse_date_value(value: Any, event: Event) -> Optional[date]:
    """Parse one date cell: spreadsheet dates, ISO strings or ``dd.mm[.yyyy]``."""
    value = _clean_cell(value)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    parsed = _find_dates(text, event)
    if len(parsed) != 1:
        raise ValueError(f"Unrecognized date '{text}'")
    return parsed[0]


def _find_dates(text: str, event: Event) -> list[date]:
    found: list[tuple[int, date]] = []
    for match in _ISO_DATE_RE.finditer(text):
        year, month, day = (int(part) for part in match.groups())
        found.append((match.start(), date(year, month, day)))
    remainder = _ISO_DATE_RE.sub(lambda match: " " * len(match.group(0)), text)
    for match in _DOTTED_DATE_RE.finditer(remainder):
        day, month = int(match.group(1)), int(match.group(2))
        year_text = match.group(3)
        if year_text is None:
            year = _resolve_year(day, month, event)
        else:
            year = int(year_text) if len(year_text) == 4 else 2000 + int(year_text)
        found.append((match.start(), date(year, month, day)))
    return [day for _, day in sorted(found)]


def parse_stay_text(value: Any, event: Event) -> tuple[Optional[date], Optional[date]]:
    """Parse a free-text stay like ``22.12-26.12``, ``ab 24.12`` or ``bis 26.12``.

    An empty cell means the whole event. A single date without ``bis`` is
    read as the arrival day.
    """
    if isinstance(value, (datetime, date)):
        return parse_date_value(value, event), None
    text = normalize_text(value)
    if not text:
        return None, None
    try:
        dates = _find_dates(text, event)
    except ValueError as exc:
        raise ValueError(f"Invalid date in stay '{value}'") from exc
    if len(dates) == 2:
        return dates[0], dates[1]
    if len(dates) == 1:
        if text.startswith(_UNTIL_PREFIXES):
            return None, dates[0]
        return dates[0], None
    raise ValueError(f"Unrecognized stay '{value}'")


def _name_key(first_name: str, last_name: str) -> tuple[str, str]:
    return normalize_text(first_name), normalize_text(last_name)


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    if value is None or pd.isna(value):
        return None
    return value


def _cell(row: list[Any], columns: dict[str, int], name: str) -> Any:
    index = columns.get(name)
    if index is None or index >= len(row):
        return None
    return _clean_cell(row[index])


def _is_blank(row: list[Any]) -> bool:
    return all(_clean_cell(value) is None for value in row)


class ImportService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def import_participants(
        self,
        event_id: int,
        content: bytes,
        filename: str = "participants.csv",
        mode: str = IMPORT_MODE_ADD,
    ) -> ImportResult:
        """Import rows into an event; bad rows are reported, not fatal."""
        event = self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        if mode not in IMPORT_MODES:
            raise ImportValidationError(f"mode must be one of {', '.join(IMPORT_MODES)}")

        rows = self._read_rows(content, filename)
        if not rows:
            raise ImportValidationError("The file contains no rows")
        if len(rows) > self._settings.import_max_rows:
            raise ImportValidationError(
                f"The file has {len(rows)} rows; at most {self._settings.import_max_rows} are allowed"
            )

        columns = detect_columns(rows[0])
        first_data_row = 1
        if "first_name" not in columns or "last_name" not in columns:
            columns = {name: index for index, name in enumerate(POSITIONAL_LAYOUT)}
            first_data_row = 0
            logger.info("No header recognized; using positional layout")

        replacing = mode == IMPORT_MODE_REPLACE
        seen = set()
        if not replacing:
            seen = {
                _name_key(item.first_name, item.last_name)
                for item in self._repository.list_participants(event_id)
            }
        result = ImportResult()
        pending: list[dict[str, Any]] = []
        for offset, row in enumerate(rows[first_data_row:]):
            # 1-based line number as shown in a spreadsheet
            line_number = first_data_row + offset + 1
            if _is_blank(row):
                continue
            try:
                values = self._parse_row(row, columns, event)
            except ValueError as exc:
                result.errors.append(f"Row {line_number}: {exc}")
                continue
            key = _name_key(values["first_name"], values["last_name"])
            if key in seen:
                result.skipped += 1
                continue
            seen.add(key)
            pending.append(values)

        if replacing and pending:
            removed, result.added = self._repository.replace_participants(event_id, pending)
            logger.info("Replace import: removed %s participants of event %s", removed, event_id)
        elif replacing:
            logger.warning(
                "Replace import for event %s has no valid rows; keeping existing participants",
                event_id,
            )
        else:
            result.added = self._repository.create_participants(event_id, pending)
        logger.info(
            "Import into event %s: %s added, %s skipped, %s errors",
            event_id,
            result.added,
            result.skipped,
            len(result.errors),
        )
        return result

    def _parse_row(self, row: list[Any], columns: dict[str, int], event: Event) -> dict[str, Any]:
        first_name = _cell(row, columns, "first_name")
        last_name = _cell(row, columns, "last_name")
        if not first_name or not last_name:
            raise ValueError("first and last name are required")

        values: dict[str, Any] = {
            "first_name": str(first_name),
            "last_name": str(last_name),
            "role": parse_role_label(_cell(row, columns, "role")),
        }
        for text_field in ("city", "email", "phone", "postal_code", "notes"):
            value = _cell(row, columns, text_field)
            if value is not None:
                values[text_field] = str(value)
        if "postal_code" in values and values["postal_code"].endswith(".0"):
            # numeric spreadsheet cells
            values["postal_code"] = values["postal_code"][:-2]

        age = _cell(row, columns, "age")
        if age is not None:
            try:
                values["age"] = int(float(str(age).replace(",", ".")))
            except ValueError as exc:
                raise ValueError(f"Invalid age '{age}'") from exc
            if values["age"] < 0:
                raise ValueError(f"Invalid age '{age}'")

        birth_date = _cell(row, columns, "birth_date")
        if birth_date is not None:
            values["birth_date"] = parse_date_value(birth_date, event)

        arrival, departure = parse_stay_text(_cell(row, columns, "stay"), event)
        explicit_arrival = _cell(row, columns, "arrival_date")
        explicit_departure = _cell(row, columns, "departure_date")
        if explicit_arrival is not None:
            arrival = parse_date_value(explicit_arrival, event)
        if explicit_departure is not None:
            departure = parse_date_value(explicit_departure, event)
        try:
            Stay(arrival, departure)
        except InvalidStayError as exc:
            raise ValueError(str(exc)) from exc
        values["arrival_date"] = arrival
        values["departure_date"] = departure
        return values

    @staticmethod
    def _read_rows(content: bytes, filename: str) -> list[list[Any]]:
        if not content.strip():
            return []
        try:
            if filename.lower().endswith((".xlsx", ".xlsm")):
                frame = pd.read_excel(io.BytesIO(content), header=None, engine="openpyxl")
            else:
                text = content.decode("utf-8-sig")
                if not text.strip():
                    return []
                frame = pd.read_csv(
                    io.StringIO(text),
                    sep=None,
                    engine="python",
                    dtype=str,
                    keep_default_na=False,
                    header=None,
                    skip_blank_lines=True,
                )
        except UnicodeDecodeError as exc:
            raise ImportValidationError("CSV files must be UTF-8 encoded") from exc
        except (ValueError, csv.Error, zipfile.BadZipFile) as exc:
            raise ImportValidationError(f"Could not read {filename}: {exc}") from exc
        return frame.astype(object).values.tolist()
