"""Domain records for events, rooms, participants and workshops."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from eventstay.domain.stay import Stay


ROLE_REGULAR = "REGULAR"
ROLE_HELPER = "HELPER"
ROLE_ABI = "ABI"
PARTICIPANT_ROLES = (ROLE_REGULAR, ROLE_HELPER, ROLE_ABI)

PAYMENT_CASH = "CASH"
PAYMENT_TRANSFER = "TRANSFER"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_TRANSFER)


@dataclass(frozen=True)
class Event:
    event_id: int
    name: str
    year: int
    start_date: date
    end_date: date
    location: str


@dataclass(frozen=True)
class Room:
    room_id: int
    event_id: int
    name: str
    capacity: int
    floor: Optional[int] = None
    building: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Participant:
    participant_id: int
    event_id: int
    first_name: str
    last_name: str
    role: str = ROLE_REGULAR
    email: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    house_number: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None
    has_paid: bool = False
    paid_amount: Optional[float] = None
    paid_at: Optional[str] = None
    payment_method: Optional[str] = None
    checked_in: bool = False
    checked_in_at: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[int] = None
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None
    room_id: Optional[int] = None
    room_name: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def stay(self) -> Stay:
        return Stay(self.arrival_date, self.departure_date)

    def age_on(self, reference: date) -> Optional[int]:
        """Age at ``reference`` from the birth date, else the recorded age."""
        if self.birth_date is None:
            return self.age
        years = reference.year - self.birth_date.year
        if (reference.month, reference.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years


@dataclass(frozen=True)
class RoomWithOccupants:
    room: Room
    occupants: list[Participant] = field(default_factory=list)


@dataclass(frozen=True)
class WorkshopRoom:
    workshop_room_id: int
    event_id: int
    name: str
    description: Optional[str] = None
    capacity: Optional[int] = None


@dataclass(frozen=True)
class WorkshopMember:
    participant: Participant
    is_helper: bool = False


@dataclass(frozen=True)
class Workshop:
    workshop_id: int
    event_id: int
    name: str
    max_participants: int
    description: Optional[str] = None
    workshop_room_id: Optional[int] = None
    workshop_room_name: Optional[str] = None


@dataclass(frozen=True)
class WorkshopDetails:
    workshop: Workshop
    leaders: list[Participant] = field(default_factory=list)
    members: list[WorkshopMember] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.workshop.max_participants
