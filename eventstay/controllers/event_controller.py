"""HTTP endpoints for events."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, model_validator

from eventstay.controllers.dependencies import get_event_service, require_admin, to_http_exception
from eventstay.controllers.schemas import EventResponse
from eventstay.services.errors import ServiceError
from eventstay.services.event_service import EventService
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["events"], dependencies=[Depends(require_admin)])


class EventCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    year: int = Field(ge=2000, le=2100)
    start_date: date
    end_date: date
    location: str = Field(min_length=1, max_length=200)

    @model_validator(mode="after")
    def validate_date_order(self) -> "EventCreateRequest":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class EventUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    event_service: EventService = Depends(get_event_service),
) -> list[EventResponse]:
    return [EventResponse.model_validate(event) for event in event_service.list_events()]


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreateRequest,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.create_event(**payload.model_dump())
        return EventResponse.model_validate(event)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected event creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event",
        ) from exc


@router.get("/events/current", response_model=EventResponse)
async def get_current_event(
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return EventResponse.model_validate(event_service.get_current_or_latest_event())
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/events/year/{year}", response_model=EventResponse)
async def get_event_by_year(
    year: int,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return EventResponse.model_validate(event_service.get_event_by_year(year))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        return EventResponse.model_validate(event_service.get_event(event_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    payload: EventUpdateRequest,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.update_event(event_id, payload.model_dump(exclude_unset=True))
        return EventResponse.model_validate(event)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected event update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event",
        ) from exc


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int,
    event_service: EventService = Depends(get_event_service),
) -> Response:
    try:
        event_service.delete_event(event_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
