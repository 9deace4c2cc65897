"""Participant registration, payments and check-in."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from eventstay.domain.constraints import validate_payment_method, validate_role
from eventstay.domain.models import Participant
from eventstay.domain.stay import InvalidStayError, Stay, evaluate_room_availability
from eventstay.repository.data_repository import PARTICIPANT_COLUMNS, DataRepository
from eventstay.services.event_service import EventNotFoundError
from eventstay.services.errors import (
    ResourceConflictError,
    ResourceNotFoundError,
    ServiceValidationError,
)
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

# Room changes go through RoomService so the capacity check stays atomic;
# payment and check-in fields have their own operations.
EDITABLE_FIELDS = tuple(
    column
    for column in PARTICIPANT_COLUMNS
    if column
    not in {
        "room_id",
        "has_paid",
        "paid_amount",
        "paid_at",
        "payment_method",
        "checked_in",
        "checked_in_at",
    }
)


class ParticipantValidationError(ServiceValidationError):
    """Raised when participant fields are invalid."""


class ParticipantNotFoundError(ResourceNotFoundError):
    """Raised when a participant id is unknown."""


class StayConflictError(ResourceConflictError):
    """Raised when a new stay would overfill the participant's room."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ParticipantService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def list_participants(
        self,
        event_id: int,
        *,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> list[Participant]:
        participants = self._repository.list_participants(event_id)
        if role:
            participants = [item for item in participants if item.role == role]
        if search:
            needle = search.strip().casefold()
            participants = [
                item
                for item in participants
                if needle in item.full_name.casefold()
                or needle in (item.city or "").casefold()
            ]
        return participants

    def get_participant(self, participant_id: int) -> Participant:
        participant = self._repository.get_participant(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        return participant

    def create_participant(self, event_id: int, data: Mapping[str, Any]) -> Participant:
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        values = self._clean(data, require_names=True)
        values.setdefault("role", "REGULAR")
        self._build_stay(values.get("arrival_date"), values.get("departure_date"))
        participant_id = self._repository.create_participant(event_id, values)
        logger.info("Registered participant %s for event %s", participant_id, event_id)
        return self.get_participant(participant_id)

    def update_participant(
        self,
        participant_id: int,
        changes: Mapping[str, Any],
    ) -> Participant:
        current = self.get_participant(participant_id)
        values = self._clean(changes, require_names=False)

        new_stay = self._build_stay(
            values.get("arrival_date", current.arrival_date),
            values.get("departure_date", current.departure_date),
        )
        if current.room_id is not None and new_stay != current.stay:
            self._ensure_room_fits(current, new_stay)

        self._repository.update_participant(participant_id, values)
        return self.get_participant(participant_id)

    def delete_participant(self, participant_id: int) -> None:
        if not self._repository.delete_participant(participant_id):
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        logger.info("Deleted participant %s", participant_id)

    def mark_as_paid(
        self,
        participant_id: int,
        amount: Optional[float] = None,
        method: str = "CASH",
    ) -> Participant:
        self.get_participant(participant_id)
        if amount is not None and amount < 0:
            raise ParticipantValidationError("amount must be >= 0")
        try:
            validate_payment_method(method)
        except ValueError as exc:
            raise ParticipantValidationError(str(exc)) from exc
        self._repository.update_participant(
            participant_id,
            {
                "has_paid": True,
                "paid_amount": amount,
                "payment_method": method,
                "paid_at": _now(),
            },
        )
        logger.info("Payment recorded for participant %s (%s, %s)", participant_id, amount, method)
        return self.get_participant(participant_id)

    def mark_as_unpaid(self, participant_id: int) -> Participant:
        self.get_participant(participant_id)
        self._repository.update_participant(
            participant_id,
            {
                "has_paid": False,
                "paid_amount": None,
                "payment_method": None,
                "paid_at": None,
            },
        )
        return self.get_participant(participant_id)

    def check_in(self, participant_id: int) -> Participant:
        self.get_participant(participant_id)
        self._repository.update_participant(
            participant_id,
            {"checked_in": True, "checked_in_at": _now()},
        )
        return self.get_participant(participant_id)

    def check_out(self, participant_id: int) -> Participant:
        self.get_participant(participant_id)
        self._repository.update_participant(
            participant_id,
            {"checked_in": False, "checked_in_at": None},
        )
        return self.get_participant(participant_id)

    def _ensure_room_fits(self, participant: Participant, new_stay: Stay) -> None:
        room = self._repository.get_room(participant.room_id)
        if room is None:
            return
        others = [
            occupant.stay
            for occupant in self._repository.list_room_occupants(room.room_id)
            if occupant.participant_id != participant.participant_id
        ]
        availability = evaluate_room_availability(room.capacity, others, new_stay)
        if not availability.has_space:
            logger.warning(
                "Rejected stay change for participant %s: room %s would be over capacity",
                participant.participant_id,
                room.name,
            )
            raise StayConflictError(
                f"Room {room.name} has no free bed for the new stay period"
            )

    @staticmethod
    def _build_stay(arrival: Any, departure: Any) -> Stay:
        try:
            return Stay(arrival, departure)
        except InvalidStayError as exc:
            raise ParticipantValidationError(str(exc)) from exc

    @staticmethod
    def _clean(data: Mapping[str, Any], *, require_names: bool) -> dict[str, Any]:
        values = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
        for name_field in ("first_name", "last_name"):
            if name_field in values or require_names:
                value = (values.get(name_field) or "").strip()
                if not value:
                    raise ParticipantValidationError(f"{name_field} must not be empty")
                values[name_field] = value
        if "role" in values:
            try:
                validate_role(values["role"])
            except ValueError as exc:
                raise ParticipantValidationError(str(exc)) from exc
        if values.get("age") is not None and values["age"] < 0:
            raise ParticipantValidationError("age must be >= 0")
        return values
