"""Room management and period-aware room assignment."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from eventstay.domain.constraints import (
    parse_room_building,
    parse_room_category,
    parse_room_floor,
    validate_capacity,
)
from eventstay.domain.models import Participant, RoomWithOccupants
from eventstay.domain.stay import (
    RoomAvailability,
    evaluate_room_availability,
    peak_concurrent_occupancy,
)
from eventstay.repository.data_repository import DataRepository
from eventstay.services.errors import (
    ResourceConflictError,
    ResourceNotFoundError,
    ServiceValidationError,
)
from eventstay.services.event_service import EventNotFoundError
from eventstay.services.participant_service import ParticipantNotFoundError
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)


class RoomValidationError(ServiceValidationError):
    """Raised when room fields or an assignment request are invalid."""


class RoomNotFoundError(ResourceNotFoundError):
    """Raised when a room id is unknown."""


class DuplicateRoomNameError(ResourceConflictError):
    """Raised when a room name is already used in the event."""


class RoomCapacityExceededError(ResourceConflictError):
    """Raised when a room has no free bed for the requested stay period."""

    def __init__(self, message: str, availability: RoomAvailability) -> None:
        super().__init__(message)
        self.availability = availability


class CapacityBelowOccupancyError(ResourceConflictError):
    """Raised when a capacity change would leave guests without a bed."""


@dataclass(frozen=True)
class RoomOccupancy:
    room_id: int
    name: str
    floor: Optional[int]
    capacity: int
    occupied: int
    available: int
    is_full: bool
    peak_occupancy: int


@dataclass(frozen=True)
class RoomOption:
    """One row of the room picker shown when assigning a participant."""

    room_id: int
    name: str
    capacity: int
    occupied: int
    is_current_room: bool
    availability: RoomAvailability


@dataclass(frozen=True)
class CatalogImportResult:
    created: int
    skipped: list[str]


class RoomService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    # --- CRUD ---

    def list_rooms(self, event_id: int) -> list[RoomWithOccupants]:
        return self._repository.list_rooms_with_occupants(event_id)

    def get_room(self, room_id: int) -> RoomWithOccupants:
        room = self._repository.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        return RoomWithOccupants(
            room=room,
            occupants=self._repository.list_room_occupants(room_id),
        )

    def create_room(self, event_id: int, data: Mapping[str, Any]) -> RoomWithOccupants:
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        values = dict(data)
        name = (values.get("name") or "").strip()
        if not name:
            raise RoomValidationError("name must not be empty")
        values["name"] = name
        self._validate_capacity(values.get("capacity", 0))
        values.setdefault("floor", parse_room_floor(name))
        values.setdefault("building", parse_room_building(name))
        try:
            room_id = self._repository.create_room(event_id, values)
        except sqlite3.IntegrityError as exc:
            raise DuplicateRoomNameError(f"Room {name} already exists") from exc
        logger.info("Created room %s (%s beds) for event %s", name, values["capacity"], event_id)
        return self.get_room(room_id)

    def create_rooms_from_catalog(
        self,
        event_id: int,
        entries: Iterable[Mapping[str, Optional[str]]],
    ) -> CatalogImportResult:
        """Create rooms from ``{name, category, location}`` entries.

        Bed counts come from the category code; rooms without beds and names
        already taken are skipped.
        """
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        existing = {room.name for room in self._repository.list_rooms(event_id)}
        created = 0
        skipped: list[str] = []
        for entry in entries:
            name = (entry.get("name") or "").strip()
            capacity = parse_room_category(entry.get("category"))
            if not name or capacity == 0 or name in existing:
                skipped.append(name)
                continue
            self._repository.create_room(
                event_id,
                {
                    "name": name,
                    "capacity": capacity,
                    "category": entry.get("category"),
                    "location": entry.get("location"),
                    "floor": parse_room_floor(name),
                    "building": parse_room_building(name),
                },
            )
            existing.add(name)
            created += 1
        logger.info("Room catalog import: %s created, %s skipped", created, len(skipped))
        return CatalogImportResult(created=created, skipped=skipped)

    def update_room(self, room_id: int, changes: Mapping[str, Any]) -> RoomWithOccupants:
        current = self.get_room(room_id)
        values = dict(changes)
        if "name" in values:
            values["name"] = (values["name"] or "").strip()
            if not values["name"]:
                raise RoomValidationError("name must not be empty")
        if "capacity" in values:
            self._validate_capacity(values["capacity"])
            peak = peak_concurrent_occupancy(
                occupant.stay for occupant in current.occupants
            )
            if values["capacity"] < peak:
                raise CapacityBelowOccupancyError(
                    f"Room {current.room.name} holds {peak} guests at the same time; "
                    f"capacity cannot drop to {values['capacity']}"
                )
        try:
            self._repository.update_room(room_id, values)
        except sqlite3.IntegrityError as exc:
            raise DuplicateRoomNameError(f"Room {values.get('name')} already exists") from exc
        return self.get_room(room_id)

    def delete_room(self, room_id: int) -> None:
        if not self._repository.delete_room(room_id):
            raise RoomNotFoundError(f"Room {room_id} not found")
        logger.info("Deleted room %s; occupants unassigned", room_id)

    # --- Occupancy ---

    def get_room_occupancy(self, event_id: int) -> list[RoomOccupancy]:
        rows: list[RoomOccupancy] = []
        for item in self._repository.list_rooms_with_occupants(event_id):
            occupied = len(item.occupants)
            rows.append(
                RoomOccupancy(
                    room_id=item.room.room_id,
                    name=item.room.name,
                    floor=item.room.floor,
                    capacity=item.room.capacity,
                    occupied=occupied,
                    available=item.room.capacity - occupied,
                    is_full=occupied >= item.room.capacity,
                    peak_occupancy=peak_concurrent_occupancy(
                        occupant.stay for occupant in item.occupants
                    ),
                )
            )
        return rows

    def get_available_rooms(self, event_id: int) -> list[RoomOccupancy]:
        """Rooms with fewer assigned guests than beds, by headcount."""
        return [row for row in self.get_room_occupancy(event_id) if not row.is_full]

    def list_room_options(self, participant_id: int) -> list[RoomOption]:
        participant = self._get_participant(participant_id)
        options: list[RoomOption] = []
        for item in self._repository.list_rooms_with_occupants(participant.event_id):
            others = [
                occupant.stay
                for occupant in item.occupants
                if occupant.participant_id != participant.participant_id
            ]
            options.append(
                RoomOption(
                    room_id=item.room.room_id,
                    name=item.room.name,
                    capacity=item.room.capacity,
                    occupied=len(item.occupants),
                    is_current_room=participant.room_id == item.room.room_id,
                    availability=evaluate_room_availability(
                        item.room.capacity,
                        others,
                        participant.stay,
                    ),
                )
            )
        return options

    # --- Assignment ---

    def assign_room(self, participant_id: int, room_id: Optional[int]) -> Participant:
        """Assign a participant to a room, or unassign with ``room_id=None``.

        The room must have a free bed for every day of the participant's
        stay; guests whose stays do not overlap can share a bed over the
        event.
        """
        participant = self._get_participant(participant_id)
        if room_id is None:
            self._repository.update_participant(participant_id, {"room_id": None})
            logger.info("Participant %s removed from room", participant_id)
            return self._get_participant(participant_id)

        room = self._repository.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        if room.event_id != participant.event_id:
            raise RoomValidationError("Room and participant belong to different events")

        availability = self._repository.assign_room_atomically(participant_id, room_id)
        if availability is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        if not availability.has_space:
            logger.warning(
                "Room %s full for participant %s (%s overlapping of %s beds)",
                room.name,
                participant_id,
                availability.overlapping_count,
                availability.capacity,
            )
            raise RoomCapacityExceededError(
                f"Room {room.name} has no free bed during {participant.full_name}'s stay",
                availability,
            )
        logger.info("Participant %s assigned to room %s", participant_id, room.name)
        return self._get_participant(participant_id)

    def move_to_room(self, participant_id: int, new_room_id: int) -> Participant:
        return self.assign_room(participant_id, new_room_id)

    def _get_participant(self, participant_id: int) -> Participant:
        participant = self._repository.get_participant(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        return participant

    @staticmethod
    def _validate_capacity(capacity: int) -> None:
        try:
            validate_capacity(int(capacity))
        except (TypeError, ValueError) as exc:
            raise RoomValidationError(str(exc)) from exc
