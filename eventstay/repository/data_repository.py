"""Repository layer responsible for all database access."""

from __future__ import annotations

import random
import sqlite3
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from eventstay.domain.constraints import (
    parse_room_building,
    parse_room_category,
    parse_room_floor,
)
from eventstay.domain.models import (
    Event,
    Participant,
    Room,
    RoomWithOccupants,
    Workshop,
    WorkshopMember,
    WorkshopRoom,
)
from eventstay.domain.stay import RoomAvailability, Stay, evaluate_room_availability
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)


EVENT_COLUMNS = ("name", "year", "start_date", "end_date", "location")
ROOM_COLUMNS = (
    "name",
    "floor",
    "building",
    "category",
    "location",
    "capacity",
    "description",
)
PARTICIPANT_COLUMNS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "street",
    "house_number",
    "postal_code",
    "city",
    "notes",
    "role",
    "has_paid",
    "paid_amount",
    "paid_at",
    "payment_method",
    "checked_in",
    "checked_in_at",
    "birth_date",
    "age",
    "arrival_date",
    "departure_date",
    "room_id",
)
WORKSHOP_ROOM_COLUMNS = ("name", "description", "capacity")
WORKSHOP_COLUMNS = ("name", "description", "max_participants", "workshop_room_id")

_PARTICIPANT_SELECT = """
    SELECT p.*, r.name AS room_name, e.start_date AS event_start_date
    FROM Participants AS p
    INNER JOIN Events AS e ON e.id = p.event_id
    LEFT JOIN Rooms AS r ON r.id = p.room_id
"""

_PARTICIPANT_INSERT_COLUMNS = ("event_id", *PARTICIPANT_COLUMNS)
_PARTICIPANT_INSERT = (
    f"INSERT INTO Participants ({', '.join(_PARTICIPANT_INSERT_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _PARTICIPANT_INSERT_COLUMNS)});"
)
_PARTICIPANT_DEFAULTS = {"role": "REGULAR", "has_paid": False, "checked_in": False}

_DEMO_ROOMS = (
    ("S314", "6BN", "ST"),
    ("S315", "4BN", "RH"),
    ("S316", "4BN", "ST"),
    ("S317", "4BN", "RH"),
    ("S318", "4BN", "ST"),
    ("S205", "3BNB", "RH"),
    ("S206", "3BNB", "ST"),
    ("S208", "3+1BNB", "ST"),
    ("S209", "3+1BNB", "RH"),
    ("S114", "4BN", "RH"),
    ("S115", "4BN", "RH"),
    ("W300", "1BN", "SCH"),
    ("W302", "offline", "SCH"),
    ("W303", "6BN", "SCH"),
    ("W304", "4BN", "H"),
    ("W201", "3+1BNB", "H"),
    ("W202", "3+1BNB", "H"),
    ("W100", "2BN", "SCH"),
    ("W101", "4BN", "SCH"),
    ("N108", "3BN", "P"),
    ("N109", "4BN", "P"),
    ("N111", "2BN", "RH"),
)
_DEMO_FIRST_NAMES = (
    "Ahmet", "Mehmet", "Mustafa", "Ali", "Hasan", "Yusuf", "Emre", "Burak",
    "Murat", "Kemal", "Selim", "Cem", "Deniz", "Kaan", "Enes", "Furkan",
    "Yasin", "Eren", "Taha", "Can", "Efe", "Hamza", "Kerem", "Umut",
)
_DEMO_LAST_NAMES = (
    "Yılmaz", "Kaya", "Demir", "Çelik", "Şahin", "Yıldız", "Öztürk", "Aydın",
    "Arslan", "Doğan", "Kılıç", "Aslan", "Koç", "Kurt", "Polat", "Korkmaz",
    "Erdem", "Bulut", "Keskin", "Kaplan", "Güneş", "Aksoy", "Tekin", "Acar",
)
_DEMO_CITIES = (
    ("Düsseldorf", "40210"),
    ("Köln", "50667"),
    ("Duisburg", "47051"),
    ("Essen", "45127"),
    ("Frankfurt", "60311"),
    ("Mannheim", "68159"),
    ("Berlin", "10115"),
    ("Hamburg", "20095"),
    ("Düsseldorf", "40210"),
    ("Köln", "50667"),
    ("Eindhoven", "5611"),
    ("Hasselt", "3500"),
    ("Istanbul", "34110"),
    ("Wien", "1010"),
    ("Zürich", "8001"),
)
_DEMO_ROLES = ("REGULAR", "REGULAR", "REGULAR", "REGULAR", "HELPER", "ABI")


def _to_db_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    return date.fromisoformat(str(value)[:10])


def _participant_records(
    event_id: int,
    rows: Iterable[Mapping[str, Any]],
) -> list[tuple[Any, ...]]:
    records = []
    for item in rows:
        row = {**_PARTICIPANT_DEFAULTS, **item, "event_id": event_id}
        records.append(
            tuple(_to_db_value(row.get(column)) for column in _PARTICIPANT_INSERT_COLUMNS)
        )
    return records


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _row_to_event(row: sqlite3.Row) -> Event:
    return Event(
        event_id=int(row["id"]),
        name=str(row["name"]),
        year=int(row["year"]),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
        location=str(row["location"]),
    )


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=int(row["id"]),
        event_id=int(row["event_id"]),
        name=str(row["name"]),
        capacity=int(row["capacity"]),
        floor=_optional_int(row["floor"]),
        building=_optional_str(row["building"]),
        category=_optional_str(row["category"]),
        location=_optional_str(row["location"]),
        description=_optional_str(row["description"]),
    )


def _row_to_participant(row: sqlite3.Row) -> Participant:
    keys = row.keys()
    participant = Participant(
        participant_id=int(row["id"]),
        event_id=int(row["event_id"]),
        first_name=str(row["first_name"]),
        last_name=str(row["last_name"]),
        role=str(row["role"]),
        email=_optional_str(row["email"]),
        phone=_optional_str(row["phone"]),
        street=_optional_str(row["street"]),
        house_number=_optional_str(row["house_number"]),
        postal_code=_optional_str(row["postal_code"]),
        city=_optional_str(row["city"]),
        notes=_optional_str(row["notes"]),
        has_paid=bool(row["has_paid"]),
        paid_amount=None if row["paid_amount"] is None else float(row["paid_amount"]),
        paid_at=_optional_str(row["paid_at"]),
        payment_method=_optional_str(row["payment_method"]),
        checked_in=bool(row["checked_in"]),
        checked_in_at=_optional_str(row["checked_in_at"]),
        birth_date=_parse_date(row["birth_date"]),
        age=_optional_int(row["age"]),
        arrival_date=_parse_date(row["arrival_date"]),
        departure_date=_parse_date(row["departure_date"]),
        room_id=_optional_int(row["room_id"]),
        room_name=_optional_str(row["room_name"]) if "room_name" in keys else None,
        created_at=_optional_str(row["created_at"]),
    )
    if participant.birth_date is not None and "event_start_date" in keys:
        # age as of the first event day
        participant = replace(
            participant,
            age=participant.age_on(_parse_date(row["event_start_date"])),
        )
    return participant


def _row_to_workshop_room(row: sqlite3.Row) -> WorkshopRoom:
    return WorkshopRoom(
        workshop_room_id=int(row["id"]),
        event_id=int(row["event_id"]),
        name=str(row["name"]),
        description=_optional_str(row["description"]),
        capacity=_optional_int(row["capacity"]),
    )


def _row_to_workshop(row: sqlite3.Row) -> Workshop:
    return Workshop(
        workshop_id=int(row["id"]),
        event_id=int(row["event_id"]),
        name=str(row["name"]),
        max_participants=int(row["max_participants"]),
        description=_optional_str(row["description"]),
        workshop_room_id=_optional_int(row["workshop_room_id"]),
        workshop_room_name=_optional_str(row["workshop_room_name"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

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
                    CREATE TABLE IF NOT EXISTS Events (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        year INTEGER NOT NULL UNIQUE,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        location TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        event_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        floor INTEGER,
                        building TEXT,
                        category TEXT,
                        location TEXT,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        description TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (event_id, name),
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Participants (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        event_id INTEGER NOT NULL,
                        first_name TEXT NOT NULL,
                        last_name TEXT NOT NULL,
                        email TEXT,
                        phone TEXT,
                        street TEXT,
                        house_number TEXT,
                        postal_code TEXT,
                        city TEXT,
                        notes TEXT,
                        role TEXT NOT NULL DEFAULT 'REGULAR'
                            CHECK (role IN ('REGULAR', 'HELPER', 'ABI')),
                        has_paid INTEGER NOT NULL DEFAULT 0 CHECK (has_paid IN (0,1)),
                        paid_amount REAL,
                        paid_at TEXT,
                        payment_method TEXT
                            CHECK (payment_method IS NULL OR payment_method IN ('CASH', 'TRANSFER')),
                        checked_in INTEGER NOT NULL DEFAULT 0 CHECK (checked_in IN (0,1)),
                        checked_in_at TEXT,
                        birth_date TEXT,
                        age INTEGER,
                        arrival_date TEXT,
                        departure_date TEXT,
                        room_id INTEGER,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE,
                        FOREIGN KEY (room_id) REFERENCES Rooms(id) ON DELETE SET NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WorkshopRooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        event_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        description TEXT,
                        capacity INTEGER CHECK (capacity IS NULL OR capacity > 0),
                        UNIQUE (event_id, name),
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Workshops (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        event_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        description TEXT,
                        max_participants INTEGER NOT NULL CHECK (max_participants > 0),
                        workshop_room_id INTEGER UNIQUE,
                        FOREIGN KEY (event_id) REFERENCES Events(id) ON DELETE CASCADE,
                        FOREIGN KEY (workshop_room_id) REFERENCES WorkshopRooms(id)
                            ON DELETE SET NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WorkshopLeaders (
                        workshop_id INTEGER NOT NULL,
                        participant_id INTEGER NOT NULL,
                        PRIMARY KEY (workshop_id, participant_id),
                        FOREIGN KEY (workshop_id) REFERENCES Workshops(id) ON DELETE CASCADE,
                        FOREIGN KEY (participant_id) REFERENCES Participants(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WorkshopParticipants (
                        workshop_id INTEGER NOT NULL,
                        participant_id INTEGER NOT NULL,
                        is_helper INTEGER NOT NULL DEFAULT 0 CHECK (is_helper IN (0,1)),
                        PRIMARY KEY (workshop_id, participant_id),
                        FOREIGN KEY (workshop_id) REFERENCES Workshops(id) ON DELETE CASCADE,
                        FOREIGN KEY (participant_id) REFERENCES Participants(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_participants_event_last_name
                    ON Participants(event_id, last_name);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_participants_room
                    ON Participants(room_id);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def _insert(self, table: str, columns: Iterable[str], values: Mapping[str, Any]) -> int:
        names = [column for column in columns if column in values]
        placeholders = ", ".join("?" for _ in names)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders});",
                tuple(_to_db_value(values[name]) for name in names),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def _update(
        self,
        table: str,
        row_id: int,
        columns: Iterable[str],
        values: Mapping[str, Any],
    ) -> bool:
        names = [column for column in columns if column in values]
        if not names:
            return self._exists(table, row_id)
        assignments = ", ".join(f"{name} = ?" for name in names)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?;",
                (*[_to_db_value(values[name]) for name in names], row_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _delete(self, table: str, row_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(f"DELETE FROM {table} WHERE id = ?;", (row_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _exists(self, table: str, row_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT 1 FROM {table} WHERE id = ?;", (row_id,))
            return cursor.fetchone() is not None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def create_event(self, values: Mapping[str, Any]) -> int:
        return self._insert("Events", EVENT_COLUMNS, values)

    def update_event(self, event_id: int, values: Mapping[str, Any]) -> bool:
        return self._update("Events", event_id, EVENT_COLUMNS, values)

    def delete_event(self, event_id: int) -> bool:
        return self._delete("Events", event_id)

    def get_event(self, event_id: int) -> Optional[Event]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Events WHERE id = ?;", (event_id,))
            row = cursor.fetchone()
            return None if row is None else _row_to_event(row)

    def get_event_by_year(self, year: int) -> Optional[Event]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Events WHERE year = ?;", (year,))
            row = cursor.fetchone()
            return None if row is None else _row_to_event(row)

    def list_events(self) -> list[Event]:
        """Return events newest year first."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Events ORDER BY year DESC;")
            return [_row_to_event(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def create_room(self, event_id: int, values: Mapping[str, Any]) -> int:
        return self._insert(
            "Rooms",
            ("event_id", *ROOM_COLUMNS),
            {**values, "event_id": event_id},
        )

    def update_room(self, room_id: int, values: Mapping[str, Any]) -> bool:
        return self._update("Rooms", room_id, ROOM_COLUMNS, values)

    def delete_room(self, room_id: int) -> bool:
        """Unassign occupants, then delete the room, in one transaction."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE Participants SET room_id = NULL WHERE room_id = ?;",
                (room_id,),
            )
            cursor.execute("DELETE FROM Rooms WHERE id = ?;", (room_id,))
            conn.commit()
            return cursor.rowcount > 0

    def get_room(self, room_id: int) -> Optional[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms WHERE id = ?;", (room_id,))
            row = cursor.fetchone()
            return None if row is None else _row_to_room(row)

    def list_rooms(self, event_id: int) -> list[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM Rooms WHERE event_id = ? ORDER BY name ASC;",
                (event_id,),
            )
            return [_row_to_room(row) for row in cursor.fetchall()]

    def list_room_occupants(self, room_id: int) -> list[Participant]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                _PARTICIPANT_SELECT
                + " WHERE p.room_id = ? ORDER BY p.last_name ASC, p.first_name ASC;",
                (room_id,),
            )
            return [_row_to_participant(row) for row in cursor.fetchall()]

    def list_rooms_with_occupants(self, event_id: int) -> list[RoomWithOccupants]:
        rooms = self.list_rooms(event_id)
        occupants_by_room: dict[int, list[Participant]] = {room.room_id: [] for room in rooms}
        for participant in self.list_participants(event_id):
            if participant.room_id in occupants_by_room:
                occupants_by_room[participant.room_id].append(participant)
        return [
            RoomWithOccupants(room=room, occupants=occupants_by_room[room.room_id])
            for room in rooms
        ]

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def create_participant(self, event_id: int, values: Mapping[str, Any]) -> int:
        return self._insert(
            "Participants",
            ("event_id", *PARTICIPANT_COLUMNS),
            {**values, "event_id": event_id},
        )

    def create_participants(
        self,
        event_id: int,
        rows: Iterable[Mapping[str, Any]],
    ) -> int:
        """Bulk insert participants in a single transaction."""
        records = _participant_records(event_id, rows)
        if not records:
            return 0
        with self._connect() as conn:
            conn.executemany(_PARTICIPANT_INSERT, records)
            conn.commit()
        return len(records)

    def replace_participants(
        self,
        event_id: int,
        rows: Iterable[Mapping[str, Any]],
    ) -> tuple[int, int]:
        """Swap an event's participant list; returns (removed, added)."""
        records = _participant_records(event_id, rows)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Participants WHERE event_id = ?;", (event_id,))
            removed = int(cursor.rowcount)
            cursor.executemany(_PARTICIPANT_INSERT, records)
            conn.commit()
        return removed, len(records)

    def update_participant(self, participant_id: int, values: Mapping[str, Any]) -> bool:
        return self._update("Participants", participant_id, PARTICIPANT_COLUMNS, values)

    def delete_participant(self, participant_id: int) -> bool:
        return self._delete("Participants", participant_id)

    def get_participant(self, participant_id: int) -> Optional[Participant]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(_PARTICIPANT_SELECT + " WHERE p.id = ?;", (participant_id,))
            row = cursor.fetchone()
            return None if row is None else _row_to_participant(row)

    def list_participants(self, event_id: int) -> list[Participant]:
        """Return an event's participants sorted by last name."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                _PARTICIPANT_SELECT
                + " WHERE p.event_id = ? ORDER BY p.last_name ASC, p.first_name ASC;",
                (event_id,),
            )
            return [_row_to_participant(row) for row in cursor.fetchall()]

    def assign_room_atomically(
        self,
        participant_id: int,
        room_id: int,
    ) -> Optional[RoomAvailability]:
        """Check the room for the participant's stay and assign if it has space.

        The occupant read and the update share one write transaction, so two
        concurrent assignments cannot both take the last free bed. Returns
        ``None`` when the participant or the room does not exist.
        """
        conn = self._connect()
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE;")
            participant_row = conn.execute(
                "SELECT arrival_date, departure_date FROM Participants WHERE id = ?;",
                (participant_id,),
            ).fetchone()
            room_row = conn.execute(
                "SELECT capacity FROM Rooms WHERE id = ?;",
                (room_id,),
            ).fetchone()
            if participant_row is None or room_row is None:
                conn.execute("ROLLBACK;")
                return None

            occupant_rows = conn.execute(
                """
                SELECT arrival_date, departure_date
                FROM Participants
                WHERE room_id = ? AND id != ?;
                """,
                (room_id, participant_id),
            ).fetchall()
            availability = evaluate_room_availability(
                capacity=int(room_row["capacity"]),
                occupant_stays=[
                    Stay(_parse_date(row["arrival_date"]), _parse_date(row["departure_date"]))
                    for row in occupant_rows
                ],
                candidate_stay=Stay(
                    _parse_date(participant_row["arrival_date"]),
                    _parse_date(participant_row["departure_date"]),
                ),
            )
            if availability.has_space:
                conn.execute(
                    "UPDATE Participants SET room_id = ? WHERE id = ?;",
                    (room_id, participant_id),
                )
            conn.execute("COMMIT;")
            return availability
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK;")
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Workshop rooms
    # ------------------------------------------------------------------

    def create_workshop_room(self, event_id: int, values: Mapping[str, Any]) -> int:
        return self._insert(
            "WorkshopRooms",
            ("event_id", *WORKSHOP_ROOM_COLUMNS),
            {**values, "event_id": event_id},
        )

    def update_workshop_room(self, workshop_room_id: int, values: Mapping[str, Any]) -> bool:
        return self._update("WorkshopRooms", workshop_room_id, WORKSHOP_ROOM_COLUMNS, values)

    def delete_workshop_room(self, workshop_room_id: int) -> bool:
        return self._delete("WorkshopRooms", workshop_room_id)

    def get_workshop_room(self, workshop_room_id: int) -> Optional[WorkshopRoom]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM WorkshopRooms WHERE id = ?;", (workshop_room_id,))
            row = cursor.fetchone()
            return None if row is None else _row_to_workshop_room(row)

    def list_workshop_rooms(self, event_id: int) -> list[WorkshopRoom]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM WorkshopRooms WHERE event_id = ? ORDER BY name ASC;",
                (event_id,),
            )
            return [_row_to_workshop_room(row) for row in cursor.fetchall()]

    def list_unassigned_workshop_rooms(
        self,
        event_id: int,
        keep_workshop_id: Optional[int] = None,
    ) -> list[WorkshopRoom]:
        """Rooms not hosting a workshop, plus the room of ``keep_workshop_id``."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT wr.*
                FROM WorkshopRooms AS wr
                LEFT JOIN Workshops AS w ON w.workshop_room_id = wr.id
                WHERE wr.event_id = ?
                  AND (w.id IS NULL OR w.id = ?)
                ORDER BY wr.name ASC;
                """,
                (event_id, keep_workshop_id),
            )
            return [_row_to_workshop_room(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Workshops
    # ------------------------------------------------------------------

    def create_workshop(self, event_id: int, values: Mapping[str, Any]) -> int:
        return self._insert(
            "Workshops",
            ("event_id", *WORKSHOP_COLUMNS),
            {**values, "event_id": event_id},
        )

    def update_workshop(self, workshop_id: int, values: Mapping[str, Any]) -> bool:
        return self._update("Workshops", workshop_id, WORKSHOP_COLUMNS, values)

    def delete_workshop(self, workshop_id: int) -> bool:
        return self._delete("Workshops", workshop_id)

    def get_workshop(self, workshop_id: int) -> Optional[Workshop]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT w.*, wr.name AS workshop_room_name
                FROM Workshops AS w
                LEFT JOIN WorkshopRooms AS wr ON wr.id = w.workshop_room_id
                WHERE w.id = ?;
                """,
                (workshop_id,),
            )
            row = cursor.fetchone()
            return None if row is None else _row_to_workshop(row)

    def list_workshops(self, event_id: int) -> list[Workshop]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT w.*, wr.name AS workshop_room_name
                FROM Workshops AS w
                LEFT JOIN WorkshopRooms AS wr ON wr.id = w.workshop_room_id
                WHERE w.event_id = ?
                ORDER BY w.name ASC;
                """,
                (event_id,),
            )
            return [_row_to_workshop(row) for row in cursor.fetchall()]

    def find_workshop_by_room(self, workshop_room_id: int) -> Optional[Workshop]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT w.*, wr.name AS workshop_room_name
                FROM Workshops AS w
                LEFT JOIN WorkshopRooms AS wr ON wr.id = w.workshop_room_id
                WHERE w.workshop_room_id = ?;
                """,
                (workshop_room_id,),
            )
            row = cursor.fetchone()
            return None if row is None else _row_to_workshop(row)

    def add_workshop_leader(self, workshop_id: int, participant_id: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO WorkshopLeaders (workshop_id, participant_id) VALUES (?, ?);",
                (workshop_id, participant_id),
            )
            conn.commit()

    def remove_workshop_leader(self, workshop_id: int, participant_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM WorkshopLeaders WHERE workshop_id = ? AND participant_id = ?;",
                (workshop_id, participant_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def list_workshop_leaders(self, workshop_id: int) -> list[Participant]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                _PARTICIPANT_SELECT
                + """
                INNER JOIN WorkshopLeaders AS wl ON wl.participant_id = p.id
                WHERE wl.workshop_id = ?
                ORDER BY p.last_name ASC, p.first_name ASC;
                """,
                (workshop_id,),
            )
            return [_row_to_participant(row) for row in cursor.fetchall()]

    def add_workshop_member(
        self,
        workshop_id: int,
        participant_id: int,
        is_helper: bool = False,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO WorkshopParticipants (workshop_id, participant_id, is_helper)
                VALUES (?, ?, ?);
                """,
                (workshop_id, participant_id, int(is_helper)),
            )
            conn.commit()

    def remove_workshop_member(self, workshop_id: int, participant_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM WorkshopParticipants WHERE workshop_id = ? AND participant_id = ?;",
                (workshop_id, participant_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def set_workshop_member_helper(
        self,
        workshop_id: int,
        participant_id: int,
        is_helper: bool,
    ) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE WorkshopParticipants
                SET is_helper = ?
                WHERE workshop_id = ? AND participant_id = ?;
                """,
                (int(is_helper), workshop_id, participant_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def list_workshop_members(self, workshop_id: int) -> list[WorkshopMember]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT p.*, r.name AS room_name, e.start_date AS event_start_date, wp.is_helper
                FROM Participants AS p
                INNER JOIN Events AS e ON e.id = p.event_id
                LEFT JOIN Rooms AS r ON r.id = p.room_id
                INNER JOIN WorkshopParticipants AS wp ON wp.participant_id = p.id
                WHERE wp.workshop_id = ?
                ORDER BY p.last_name ASC, p.first_name ASC;
                """,
                (workshop_id,),
            )
            return [
                WorkshopMember(
                    participant=_row_to_participant(row),
                    is_helper=bool(row["is_helper"]),
                )
                for row in cursor.fetchall()
            ]

    # ------------------------------------------------------------------
    # Demo data
    # ------------------------------------------------------------------

    def seed_demo_data(self) -> Optional[int]:
        """Seed a deterministic demo event only when no event exists.

        Returns the demo event id, or ``None`` when seeding was skipped.
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Events;")
            if int(cursor.fetchone()["count"]) > 0:
                logger.info("Events already present; skipping demo seed")
                return None

        rng = random.Random(self._settings.demo_random_seed)
        year = self._settings.demo_event_year
        event_id = self.create_event(
            {
                "name": f"Winter Camp {year}",
                "year": year,
                "start_date": date(year, 12, 21),
                "end_date": date(year, 12, 27),
                "location": "Oberwesel",
            }
        )

        room_capacity: dict[int, int] = {}
        for name, category, location in _DEMO_ROOMS:
            capacity = parse_room_category(category)
            if capacity == 0:
                logger.info("Skipping room %s (no capacity)", name)
                continue
            room_id = self.create_room(
                event_id,
                {
                    "name": name,
                    "capacity": capacity,
                    "category": category,
                    "location": location,
                    "floor": parse_room_floor(name),
                    "building": parse_room_building(name),
                },
            )
            room_capacity[room_id] = capacity

        arrival_options = (
            date(year, 12, 21),
            date(year, 12, 21),
            date(year, 12, 22),
            date(year, 12, 24),
            None,
        )
        departure_options = (
            date(year, 12, 24),
            date(year, 12, 26),
            date(year, 12, 27),
            date(year, 12, 27),
            None,
        )
        occupants: dict[int, list[Stay]] = {room_id: [] for room_id in room_capacity}

        rows: list[dict[str, Any]] = []
        for _ in range(self._settings.demo_participant_count):
            first_name = rng.choice(_DEMO_FIRST_NAMES)
            last_name = rng.choice(_DEMO_LAST_NAMES)
            city, postal_code = rng.choice(_DEMO_CITIES)
            role = rng.choice(_DEMO_ROLES)
            stay = Stay(rng.choice(arrival_options), rng.choice(departure_options))

            open_rooms = [
                room_id
                for room_id, capacity in room_capacity.items()
                if evaluate_room_availability(capacity, occupants[room_id], stay).has_space
            ]
            room_id = rng.choice(open_rooms) if open_rooms else None
            if room_id is not None:
                occupants[room_id].append(stay)

            has_paid = rng.random() > 0.3
            paid_amount = {"HELPER": 0.0, "ABI": 50.0}.get(role, 80.0)
            rows.append(
                {
                    "first_name": first_name,
                    "last_name": last_name,
                    "city": city,
                    "postal_code": postal_code,
                    "role": role,
                    "has_paid": has_paid,
                    "paid_amount": paid_amount if has_paid else None,
                    "payment_method": rng.choice(("CASH", "TRANSFER")) if has_paid else None,
                    "paid_at": datetime.now(timezone.utc).isoformat() if has_paid else None,
                    "age": rng.randint(16, 30),
                    "arrival_date": stay.arrival,
                    "departure_date": stay.departure,
                    "room_id": room_id,
                }
            )
        created = self.create_participants(event_id, rows)
        logger.info(
            "Demo seed completed: %s rooms, %s participants",
            len(room_capacity),
            created,
        )
        return event_id
