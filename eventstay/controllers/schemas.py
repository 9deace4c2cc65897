"""Response DTOs shared by several routers."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from eventstay.domain.models import RoomWithOccupants


class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class EventResponse(ApiModel):
    event_id: int = Field(gt=0)
    name: str
    year: int
    start_date: date
    end_date: date
    location: str


class ParticipantResponse(ApiModel):
    participant_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    first_name: str
    last_name: str
    full_name: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    house_number: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None
    has_paid: bool
    paid_amount: Optional[float] = None
    paid_at: Optional[str] = None
    payment_method: Optional[str] = None
    checked_in: bool
    checked_in_at: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[int] = None
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None
    room_id: Optional[int] = None
    room_name: Optional[str] = None
    created_at: Optional[str] = None


class RoomResponse(ApiModel):
    room_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    name: str
    capacity: int = Field(ge=1)
    floor: Optional[int] = None
    building: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    occupants: list[ParticipantResponse] = Field(default_factory=list)


class AvailabilityResponse(ApiModel):
    capacity: int
    overlapping_count: int = Field(ge=0)
    has_space: bool
    free_slots: int = Field(ge=0)


def room_response(item: RoomWithOccupants) -> RoomResponse:
    return RoomResponse(
        room_id=item.room.room_id,
        event_id=item.room.event_id,
        name=item.room.name,
        capacity=item.room.capacity,
        floor=item.room.floor,
        building=item.room.building,
        category=item.room.category,
        location=item.room.location,
        description=item.room.description,
        occupants=[ParticipantResponse.model_validate(occupant) for occupant in item.occupants],
    )
