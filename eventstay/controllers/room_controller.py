"""HTTP endpoints for sleeping rooms and their occupancy."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from eventstay.controllers.dependencies import get_room_service, require_admin, to_http_exception
from eventstay.controllers.schemas import RoomResponse, room_response
from eventstay.services.errors import ServiceError
from eventstay.services.room_service import RoomService
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["rooms"], dependencies=[Depends(require_admin)])


class RoomCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    capacity: int = Field(ge=1, le=50)
    floor: Optional[int] = None
    building: Optional[str] = Field(default=None, max_length=10)
    category: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class RoomUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    capacity: Optional[int] = Field(default=None, ge=1, le=50)
    floor: Optional[int] = None
    building: Optional[str] = Field(default=None, max_length=10)
    category: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class CatalogEntry(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    category: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=100)


class CatalogRequest(BaseModel):
    rooms: list[CatalogEntry]

    @field_validator("rooms")
    @classmethod
    def validate_rooms(cls, value: list[CatalogEntry]) -> list[CatalogEntry]:
        if not value:
            raise ValueError("rooms must contain at least one entry")
        return value


class CatalogResponse(BaseModel):
    created: int = Field(ge=0)
    skipped: list[str]


class RoomOccupancyResponse(BaseModel):
    room_id: int = Field(gt=0)
    name: str
    floor: Optional[int] = None
    capacity: int
    occupied: int = Field(ge=0)
    available: int
    is_full: bool
    peak_occupancy: int = Field(ge=0)


@router.get("/events/{event_id}/rooms", response_model=list[RoomResponse])
async def list_rooms(
    event_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    return [room_response(item) for item in room_service.list_rooms(event_id)]


@router.post(
    "/events/{event_id}/rooms",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    event_id: int,
    payload: RoomCreateRequest,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return room_response(room_service.create_room(event_id, payload.model_dump(exclude_none=True)))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create room",
        ) from exc


@router.post(
    "/events/{event_id}/rooms/catalog",
    response_model=CatalogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_room_catalog(
    event_id: int,
    payload: CatalogRequest,
    room_service: RoomService = Depends(get_room_service),
) -> CatalogResponse:
    try:
        result = room_service.create_rooms_from_catalog(
            event_id, [entry.model_dump() for entry in payload.rooms]
        )
        return CatalogResponse(created=result.created, skipped=result.skipped)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/events/{event_id}/rooms/occupancy", response_model=list[RoomOccupancyResponse])
async def get_room_occupancy(
    event_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> list[RoomOccupancyResponse]:
    return [
        RoomOccupancyResponse(**asdict(row)) for row in room_service.get_room_occupancy(event_id)
    ]


@router.get("/events/{event_id}/rooms/available", response_model=list[RoomOccupancyResponse])
async def get_available_rooms(
    event_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> list[RoomOccupancyResponse]:
    return [
        RoomOccupancyResponse(**asdict(row)) for row in room_service.get_available_rooms(event_id)
    ]


@router.get("/rooms/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return room_response(room_service.get_room(room_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/rooms/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: int,
    payload: RoomUpdateRequest,
    room_service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return room_response(room_service.update_room(room_id, payload.model_dump(exclude_unset=True)))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update room",
        ) from exc


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> Response:
    try:
        room_service.delete_room(room_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
