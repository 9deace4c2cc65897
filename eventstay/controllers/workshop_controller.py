"""HTTP endpoints for workshops, their members and workshop rooms."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from eventstay.controllers.dependencies import (
    get_workshop_service,
    require_admin,
    to_http_exception,
)
from eventstay.controllers.schemas import ApiModel, ParticipantResponse
from eventstay.domain.models import WorkshopDetails
from eventstay.services.errors import ServiceError
from eventstay.services.workshop_service import WorkshopService
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["workshops"], dependencies=[Depends(require_admin)])


class WorkshopCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1, le=500)
    workshop_room_id: Optional[int] = Field(default=None, gt=0)


class WorkshopUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1, le=500)
    workshop_room_id: Optional[int] = Field(default=None, gt=0)


class ParticipantRef(BaseModel):
    participant_id: int = Field(gt=0)


class BulkParticipantsRequest(BaseModel):
    participant_ids: list[int]

    @field_validator("participant_ids")
    @classmethod
    def validate_participant_ids(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("participant_ids must contain at least one id")
        if any(item <= 0 for item in value):
            raise ValueError("participant_ids values must be positive integers")
        return value


class HelperFlagRequest(BaseModel):
    is_helper: bool


class WorkshopMemberResponse(ApiModel):
    participant: ParticipantResponse
    is_helper: bool


class WorkshopResponse(BaseModel):
    workshop_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    name: str
    description: Optional[str] = None
    max_participants: int = Field(ge=1)
    workshop_room_id: Optional[int] = None
    workshop_room_name: Optional[str] = None
    is_full: bool
    leaders: list[ParticipantResponse]
    members: list[WorkshopMemberResponse]


class BulkEnrolmentResponse(BaseModel):
    added: int = Field(ge=0)
    skipped: int = Field(ge=0)


class WorkshopSummaryResponse(ApiModel):
    workshop_id: int
    name: str
    leader_count: int = Field(ge=0)
    participant_count: int = Field(ge=0)
    max_participants: int
    is_full: bool


class WorkshopStatisticsResponse(ApiModel):
    total_workshops: int = Field(ge=0)
    total_participants: int = Field(ge=0)
    total_leaders: int = Field(ge=0)
    workshops: list[WorkshopSummaryResponse]


class WorkshopRoomRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)


class WorkshopRoomUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)


class WorkshopRoomResponse(ApiModel):
    workshop_room_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    name: str
    description: Optional[str] = None
    capacity: Optional[int] = None


class SeedResponse(BaseModel):
    created: int = Field(ge=0)
    skipped: int = Field(ge=0)


def _workshop_response(details: WorkshopDetails) -> WorkshopResponse:
    workshop = details.workshop
    return WorkshopResponse(
        workshop_id=workshop.workshop_id,
        event_id=workshop.event_id,
        name=workshop.name,
        description=workshop.description,
        max_participants=workshop.max_participants,
        workshop_room_id=workshop.workshop_room_id,
        workshop_room_name=workshop.workshop_room_name,
        is_full=details.is_full,
        leaders=[ParticipantResponse.model_validate(item) for item in details.leaders],
        members=[WorkshopMemberResponse.model_validate(item) for item in details.members],
    )


# --- Workshops ---


@router.get("/events/{event_id}/workshops", response_model=list[WorkshopResponse])
async def list_workshops(
    event_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> list[WorkshopResponse]:
    return [_workshop_response(item) for item in workshop_service.list_workshops(event_id)]


@router.post(
    "/events/{event_id}/workshops",
    response_model=WorkshopResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_workshop(
    event_id: int,
    payload: WorkshopCreateRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        details = workshop_service.create_workshop(event_id, payload.model_dump(exclude_none=True))
        return _workshop_response(details)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected workshop creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create workshop",
        ) from exc


@router.get("/events/{event_id}/workshops/stats", response_model=WorkshopStatisticsResponse)
async def get_workshop_statistics(
    event_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopStatisticsResponse:
    return WorkshopStatisticsResponse.model_validate(workshop_service.get_statistics(event_id))


@router.get("/workshops/{workshop_id}", response_model=WorkshopResponse)
async def get_workshop(
    workshop_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        return _workshop_response(workshop_service.get_workshop(workshop_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/workshops/{workshop_id}", response_model=WorkshopResponse)
async def update_workshop(
    workshop_id: int,
    payload: WorkshopUpdateRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        details = workshop_service.update_workshop(
            workshop_id, payload.model_dump(exclude_unset=True)
        )
        return _workshop_response(details)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected workshop update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update workshop",
        ) from exc


@router.delete("/workshops/{workshop_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workshop(
    workshop_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> Response:
    try:
        workshop_service.delete_workshop(workshop_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Leaders ---


@router.get("/workshops/{workshop_id}/leaders/available", response_model=list[ParticipantResponse])
async def list_available_leaders(
    workshop_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> list[ParticipantResponse]:
    try:
        candidates = workshop_service.list_available_leaders(workshop_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return [ParticipantResponse.model_validate(item) for item in candidates]


@router.post("/workshops/{workshop_id}/leaders", response_model=WorkshopResponse)
async def add_leader(
    workshop_id: int,
    payload: ParticipantRef,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        return _workshop_response(workshop_service.add_leader(workshop_id, payload.participant_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/workshops/{workshop_id}/leaders/{participant_id}",
    response_model=WorkshopResponse,
)
async def remove_leader(
    workshop_id: int,
    participant_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        return _workshop_response(workshop_service.remove_leader(workshop_id, participant_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


# --- Members ---


@router.get(
    "/workshops/{workshop_id}/participants/available",
    response_model=list[ParticipantResponse],
)
async def list_available_participants(
    workshop_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> list[ParticipantResponse]:
    try:
        candidates = workshop_service.list_available_participants(workshop_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return [ParticipantResponse.model_validate(item) for item in candidates]


@router.post("/workshops/{workshop_id}/participants", response_model=WorkshopResponse)
async def add_participant(
    workshop_id: int,
    payload: ParticipantRef,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        return _workshop_response(
            workshop_service.add_participant(workshop_id, payload.participant_id)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/workshops/{workshop_id}/participants/bulk", response_model=BulkEnrolmentResponse)
async def add_participants(
    workshop_id: int,
    payload: BulkParticipantsRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> BulkEnrolmentResponse:
    try:
        result = workshop_service.add_participants(workshop_id, payload.participant_ids)
        return BulkEnrolmentResponse(added=result.added, skipped=result.skipped)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch(
    "/workshops/{workshop_id}/participants/{participant_id}",
    response_model=WorkshopResponse,
)
async def set_participant_helper(
    workshop_id: int,
    participant_id: int,
    payload: HelperFlagRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        details = workshop_service.set_participant_helper(
            workshop_id, participant_id, payload.is_helper
        )
        return _workshop_response(details)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/workshops/{workshop_id}/participants/{participant_id}",
    response_model=WorkshopResponse,
)
async def remove_participant(
    workshop_id: int,
    participant_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopResponse:
    try:
        return _workshop_response(workshop_service.remove_participant(workshop_id, participant_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


# --- Workshop rooms ---


@router.get("/events/{event_id}/workshop-rooms", response_model=list[WorkshopRoomResponse])
async def list_workshop_rooms(
    event_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> list[WorkshopRoomResponse]:
    return [
        WorkshopRoomResponse.model_validate(room)
        for room in workshop_service.list_workshop_rooms(event_id)
    ]


@router.get(
    "/events/{event_id}/workshop-rooms/available",
    response_model=list[WorkshopRoomResponse],
)
async def list_available_workshop_rooms(
    event_id: int,
    editing_workshop_id: Optional[int] = None,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> list[WorkshopRoomResponse]:
    rooms = workshop_service.list_available_workshop_rooms(event_id, editing_workshop_id)
    return [WorkshopRoomResponse.model_validate(room) for room in rooms]


@router.post(
    "/events/{event_id}/workshop-rooms",
    response_model=WorkshopRoomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_workshop_room(
    event_id: int,
    payload: WorkshopRoomRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopRoomResponse:
    try:
        room = workshop_service.create_workshop_room(event_id, payload.model_dump(exclude_none=True))
        return WorkshopRoomResponse.model_validate(room)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/events/{event_id}/workshop-rooms/seed", response_model=SeedResponse)
async def seed_workshop_rooms(
    event_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> SeedResponse:
    try:
        result = workshop_service.seed_workshop_rooms(event_id)
        return SeedResponse(created=result.created, skipped=result.skipped)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/workshop-rooms/{workshop_room_id}", response_model=WorkshopRoomResponse)
async def update_workshop_room(
    workshop_room_id: int,
    payload: WorkshopRoomUpdateRequest,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> WorkshopRoomResponse:
    try:
        room = workshop_service.update_workshop_room(
            workshop_room_id, payload.model_dump(exclude_unset=True)
        )
        return WorkshopRoomResponse.model_validate(room)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/workshop-rooms/{workshop_room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workshop_room(
    workshop_room_id: int,
    workshop_service: WorkshopService = Depends(get_workshop_service),
) -> Response:
    try:
        workshop_service.delete_workshop_room(workshop_room_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
