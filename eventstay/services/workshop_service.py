"""Workshops, their leaders and members, and the rooms they use."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from eventstay.domain.models import (
    ROLE_ABI,
    Participant,
    Workshop,
    WorkshopDetails,
    WorkshopRoom,
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


class WorkshopValidationError(ServiceValidationError):
    """Raised when workshop input is invalid."""


class WorkshopNotFoundError(ResourceNotFoundError):
    """Raised when a workshop or workshop room id is unknown."""


class WorkshopConflictError(ResourceConflictError):
    """Raised on duplicate enrolment, full workshops or taken rooms."""


@dataclass(frozen=True)
class BulkEnrolmentResult:
    added: int
    skipped: int


@dataclass(frozen=True)
class SeedResult:
    created: int
    skipped: int


@dataclass(frozen=True)
class WorkshopSummary:
    workshop_id: int
    name: str
    leader_count: int
    participant_count: int
    max_participants: int
    is_full: bool


@dataclass(frozen=True)
class WorkshopStatistics:
    total_workshops: int
    total_participants: int
    total_leaders: int
    workshops: list[WorkshopSummary]


def _sort_by_name(participants: Iterable[Participant]) -> list[Participant]:
    return sorted(participants, key=lambda item: (item.last_name, item.first_name))


class WorkshopService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    # --- Workshops ---

    def list_workshops(self, event_id: int) -> list[WorkshopDetails]:
        return [self._details(workshop) for workshop in self._repository.list_workshops(event_id)]

    def get_workshop(self, workshop_id: int) -> WorkshopDetails:
        return self._details(self._get(workshop_id))

    def create_workshop(self, event_id: int, data: Mapping[str, Any]) -> WorkshopDetails:
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        values = self._clean(data)
        if "name" not in values:
            raise WorkshopValidationError("name must not be empty")
        values["max_participants"] = (
            values.get("max_participants") or self._settings.default_workshop_capacity
        )
        if values.get("workshop_room_id") is not None:
            self._ensure_room_free(event_id, values["workshop_room_id"], keep_workshop_id=None)
        workshop_id = self._repository.create_workshop(event_id, values)
        logger.info("Created workshop %s for event %s", values["name"], event_id)
        return self.get_workshop(workshop_id)

    def update_workshop(self, workshop_id: int, changes: Mapping[str, Any]) -> WorkshopDetails:
        current = self._get(workshop_id)
        values = self._clean(changes)
        if values.get("workshop_room_id") is not None:
            self._ensure_room_free(
                current.event_id,
                values["workshop_room_id"],
                keep_workshop_id=workshop_id,
            )
        self._repository.update_workshop(workshop_id, values)
        return self.get_workshop(workshop_id)

    def delete_workshop(self, workshop_id: int) -> None:
        if not self._repository.delete_workshop(workshop_id):
            raise WorkshopNotFoundError(f"Workshop {workshop_id} not found")

    # --- Leaders ---

    def add_leader(self, workshop_id: int, participant_id: int) -> WorkshopDetails:
        workshop = self._get(workshop_id)
        participant = self._get_participant(participant_id, workshop.event_id)
        if participant.role != ROLE_ABI:
            raise WorkshopValidationError("Only ABI guests can lead a workshop")
        try:
            self._repository.add_workshop_leader(workshop_id, participant_id)
        except sqlite3.IntegrityError as exc:
            raise WorkshopConflictError(
                f"{participant.full_name} already leads {workshop.name}"
            ) from exc
        return self.get_workshop(workshop_id)

    def remove_leader(self, workshop_id: int, participant_id: int) -> WorkshopDetails:
        self._get(workshop_id)
        self._repository.remove_workshop_leader(workshop_id, participant_id)
        return self.get_workshop(workshop_id)

    def list_available_leaders(self, workshop_id: int) -> list[Participant]:
        workshop = self._get(workshop_id)
        taken = {item.participant_id for item in self._repository.list_workshop_leaders(workshop_id)}
        return _sort_by_name(
            participant
            for participant in self._repository.list_participants(workshop.event_id)
            if participant.role == ROLE_ABI and participant.participant_id not in taken
        )

    # --- Members ---

    def add_participant(self, workshop_id: int, participant_id: int) -> WorkshopDetails:
        details = self.get_workshop(workshop_id)
        participant = self._get_participant(participant_id, details.workshop.event_id)
        if details.is_full:
            raise WorkshopConflictError(f"Workshop {details.workshop.name} is full")
        try:
            self._repository.add_workshop_member(workshop_id, participant_id)
        except sqlite3.IntegrityError as exc:
            raise WorkshopConflictError(
                f"{participant.full_name} already takes part in {details.workshop.name}"
            ) from exc
        return self.get_workshop(workshop_id)

    def add_participants(
        self,
        workshop_id: int,
        participant_ids: Iterable[int],
    ) -> BulkEnrolmentResult:
        """Enrol several participants; duplicates and overflow are skipped."""
        details = self.get_workshop(workshop_id)
        enrolled = {member.participant.participant_id for member in details.members}
        free_places = details.workshop.max_participants - len(enrolled)
        added = 0
        skipped = 0
        for participant_id in participant_ids:
            participant = self._repository.get_participant(participant_id)
            if (
                participant is None
                or participant.event_id != details.workshop.event_id
                or participant_id in enrolled
                or added >= free_places
            ):
                skipped += 1
                continue
            self._repository.add_workshop_member(workshop_id, participant_id)
            enrolled.add(participant_id)
            added += 1
        logger.info(
            "Workshop %s enrolment: %s added, %s skipped",
            details.workshop.name,
            added,
            skipped,
        )
        return BulkEnrolmentResult(added=added, skipped=skipped)

    def remove_participant(self, workshop_id: int, participant_id: int) -> WorkshopDetails:
        self._get(workshop_id)
        self._repository.remove_workshop_member(workshop_id, participant_id)
        return self.get_workshop(workshop_id)

    def set_participant_helper(
        self,
        workshop_id: int,
        participant_id: int,
        is_helper: bool,
    ) -> WorkshopDetails:
        self._get(workshop_id)
        if not self._repository.set_workshop_member_helper(workshop_id, participant_id, is_helper):
            raise WorkshopNotFoundError(
                f"Participant {participant_id} is not enrolled in workshop {workshop_id}"
            )
        return self.get_workshop(workshop_id)

    def list_available_participants(self, workshop_id: int) -> list[Participant]:
        workshop = self._get(workshop_id)
        enrolled = {
            member.participant.participant_id
            for member in self._repository.list_workshop_members(workshop_id)
        }
        return _sort_by_name(
            participant
            for participant in self._repository.list_participants(workshop.event_id)
            if participant.participant_id not in enrolled
        )

    def get_statistics(self, event_id: int) -> WorkshopStatistics:
        summaries = [
            WorkshopSummary(
                workshop_id=details.workshop.workshop_id,
                name=details.workshop.name,
                leader_count=len(details.leaders),
                participant_count=len(details.members),
                max_participants=details.workshop.max_participants,
                is_full=details.is_full,
            )
            for details in self.list_workshops(event_id)
        ]
        return WorkshopStatistics(
            total_workshops=len(summaries),
            total_participants=sum(item.participant_count for item in summaries),
            total_leaders=sum(item.leader_count for item in summaries),
            workshops=summaries,
        )

    # --- Workshop rooms ---

    def list_workshop_rooms(self, event_id: int) -> list[WorkshopRoom]:
        return self._repository.list_workshop_rooms(event_id)

    def list_available_workshop_rooms(
        self,
        event_id: int,
        editing_workshop_id: Optional[int] = None,
    ) -> list[WorkshopRoom]:
        return self._repository.list_unassigned_workshop_rooms(event_id, editing_workshop_id)

    def create_workshop_room(self, event_id: int, data: Mapping[str, Any]) -> WorkshopRoom:
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        name = (data.get("name") or "").strip()
        if not name:
            raise WorkshopValidationError("name must not be empty")
        try:
            room_id = self._repository.create_workshop_room(event_id, {**data, "name": name})
        except sqlite3.IntegrityError as exc:
            raise WorkshopConflictError(f"Workshop room {name} already exists") from exc
        return self._get_room(room_id)

    def update_workshop_room(self, workshop_room_id: int, changes: Mapping[str, Any]) -> WorkshopRoom:
        self._get_room(workshop_room_id)
        try:
            self._repository.update_workshop_room(workshop_room_id, changes)
        except sqlite3.IntegrityError as exc:
            raise WorkshopConflictError(
                f"Workshop room {changes.get('name')} already exists"
            ) from exc
        return self._get_room(workshop_room_id)

    def delete_workshop_room(self, workshop_room_id: int) -> None:
        if not self._repository.delete_workshop_room(workshop_room_id):
            raise WorkshopNotFoundError(f"Workshop room {workshop_room_id} not found")

    def seed_workshop_rooms(self, event_id: int) -> SeedResult:
        """Create the standard rooms WS1..WSn, skipping names that exist."""
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        existing = {room.name for room in self._repository.list_workshop_rooms(event_id)}
        created = 0
        skipped = 0
        for index in range(1, self._settings.workshop_room_seed_count + 1):
            name = f"WS{index}"
            if name in existing:
                skipped += 1
                continue
            self._repository.create_workshop_room(
                event_id,
                {"name": name, "description": f"Workshop room {index}"},
            )
            created += 1
        return SeedResult(created=created, skipped=skipped)

    # --- helpers ---

    def _details(self, workshop: Workshop) -> WorkshopDetails:
        return WorkshopDetails(
            workshop=workshop,
            leaders=self._repository.list_workshop_leaders(workshop.workshop_id),
            members=self._repository.list_workshop_members(workshop.workshop_id),
        )

    def _get(self, workshop_id: int) -> Workshop:
        workshop = self._repository.get_workshop(workshop_id)
        if workshop is None:
            raise WorkshopNotFoundError(f"Workshop {workshop_id} not found")
        return workshop

    def _get_room(self, workshop_room_id: int) -> WorkshopRoom:
        room = self._repository.get_workshop_room(workshop_room_id)
        if room is None:
            raise WorkshopNotFoundError(f"Workshop room {workshop_room_id} not found")
        return room

    def _get_participant(self, participant_id: int, event_id: int) -> Participant:
        participant = self._repository.get_participant(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        if participant.event_id != event_id:
            raise WorkshopValidationError("Participant belongs to a different event")
        return participant

    def _ensure_room_free(
        self,
        event_id: int,
        workshop_room_id: int,
        keep_workshop_id: Optional[int],
    ) -> None:
        room = self._get_room(workshop_room_id)
        if room.event_id != event_id:
            raise WorkshopValidationError("Workshop room belongs to a different event")
        holder = self._repository.find_workshop_by_room(workshop_room_id)
        if holder is not None and holder.workshop_id != keep_workshop_id:
            raise WorkshopConflictError(f"{room.name} already hosts {holder.name}")

    @staticmethod
    def _clean(data: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(data)
        if "name" in values:
            name = (values["name"] or "").strip()
            if not name:
                raise WorkshopValidationError("name must not be empty")
            values["name"] = name
        if "max_participants" in values and values["max_participants"] is None:
            del values["max_participants"]
        if values.get("max_participants") is not None and values["max_participants"] < 1:
            raise WorkshopValidationError("max_participants must be >= 1")
        return values
