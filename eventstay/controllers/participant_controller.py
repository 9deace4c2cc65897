"""HTTP endpoints for participants, payments, check-in and room assignment."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from pydantic import BaseModel, Field, field_validator, model_validator

from eventstay.controllers.dependencies import (
    get_import_service,
    get_participant_service,
    get_report_service,
    get_room_service,
    require_admin,
    to_http_exception,
)
from eventstay.controllers.schemas import AvailabilityResponse, ParticipantResponse
from eventstay.services.errors import ServiceError
from eventstay.services.import_service import IMPORT_MODES, ImportService
from eventstay.services.participant_service import ParticipantService
from eventstay.services.report_service import ReportService
from eventstay.services.room_service import RoomCapacityExceededError, RoomService
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["participants"], dependencies=[Depends(require_admin)])

Role = Literal["REGULAR", "HELPER", "ABI"]


class ParticipantFields(BaseModel):
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    street: Optional[str] = Field(default=None, max_length=200)
    house_number: Optional[str] = Field(default=None, max_length=20)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    city: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None
    birth_date: Optional[date] = None
    age: Optional[int] = Field(default=None, ge=0, le=120)
    arrival_date: Optional[date] = None
    departure_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_stay_order(self) -> "ParticipantFields":
        if (
            self.arrival_date is not None
            and self.departure_date is not None
            and self.arrival_date > self.departure_date
        ):
            raise ValueError("arrival_date must not be after departure_date")
        return self


class ParticipantCreateRequest(ParticipantFields):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Role = "REGULAR"


class ParticipantUpdateRequest(ParticipantFields):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[Role] = None


class PaymentRequest(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0.0)
    method: Literal["CASH", "TRANSFER"] = "CASH"


class RoomAssignmentRequest(BaseModel):
    room_id: Optional[int] = None

    @field_validator("room_id")
    @classmethod
    def validate_room_id(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("room_id must be a positive integer")
        return value


class RoomOptionResponse(BaseModel):
    room_id: int = Field(gt=0)
    name: str
    capacity: int
    occupied: int = Field(ge=0)
    is_current_room: bool
    availability: AvailabilityResponse


class ImportResponse(BaseModel):
    added: int = Field(ge=0)
    skipped: int = Field(ge=0)
    errors: list[str]


@router.get("/events/{event_id}/participants", response_model=list[ParticipantResponse])
async def list_participants(
    event_id: int,
    search: Optional[str] = Query(default=None, max_length=100),
    role: Optional[Role] = None,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> list[ParticipantResponse]:
    participants = participant_service.list_participants(event_id, search=search, role=role)
    return [ParticipantResponse.model_validate(item) for item in participants]


@router.post(
    "/events/{event_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_participant(
    event_id: int,
    payload: ParticipantCreateRequest,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        participant = participant_service.create_participant(
            event_id, payload.model_dump(exclude_none=True)
        )
        return ParticipantResponse.model_validate(participant)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected participant registration failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register participant",
        ) from exc


@router.post("/events/{event_id}/participants/import", response_model=ImportResponse)
async def import_participants(
    event_id: int,
    file: UploadFile = File(...),
    mode: str = Query(default="add", pattern="^(" + "|".join(IMPORT_MODES) + ")$"),
    import_service: ImportService = Depends(get_import_service),
) -> ImportResponse:
    content = await file.read()
    try:
        result = import_service.import_participants(
            event_id,
            content,
            filename=file.filename or "participants.csv",
            mode=mode,
        )
        return ImportResponse(added=result.added, skipped=result.skipped, errors=result.errors)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected participant import failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import participants",
        ) from exc


@router.get("/events/{event_id}/participants/export")
async def export_participants(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> Response:
    try:
        content = report_service.export_participants_csv(event_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="participants-{event_id}.csv"'},
    )


@router.get("/participants/{participant_id}", response_model=ParticipantResponse)
async def get_participant(
    participant_id: int,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        return ParticipantResponse.model_validate(
            participant_service.get_participant(participant_id)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/participants/{participant_id}", response_model=ParticipantResponse)
async def update_participant(
    participant_id: int,
    payload: ParticipantUpdateRequest,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        participant = participant_service.update_participant(
            participant_id, payload.model_dump(exclude_unset=True)
        )
        return ParticipantResponse.model_validate(participant)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected participant update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update participant",
        ) from exc


@router.delete("/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant(
    participant_id: int,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> Response:
    try:
        participant_service.delete_participant(participant_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/participants/{participant_id}/payment", response_model=ParticipantResponse)
async def record_payment(
    participant_id: int,
    payload: PaymentRequest,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        participant = participant_service.mark_as_paid(
            participant_id, amount=payload.amount, method=payload.method
        )
        return ParticipantResponse.model_validate(participant)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/participants/{participant_id}/payment", response_model=ParticipantResponse)
async def clear_payment(
    participant_id: int,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        return ParticipantResponse.model_validate(
            participant_service.mark_as_unpaid(participant_id)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/participants/{participant_id}/check-in", response_model=ParticipantResponse)
async def check_in(
    participant_id: int,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        return ParticipantResponse.model_validate(participant_service.check_in(participant_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/participants/{participant_id}/check-out", response_model=ParticipantResponse)
async def check_out(
    participant_id: int,
    participant_service: ParticipantService = Depends(get_participant_service),
) -> ParticipantResponse:
    try:
        return ParticipantResponse.model_validate(participant_service.check_out(participant_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/participants/{participant_id}/room", response_model=ParticipantResponse)
async def assign_room(
    participant_id: int,
    payload: RoomAssignmentRequest,
    room_service: RoomService = Depends(get_room_service),
) -> ParticipantResponse:
    try:
        participant = room_service.assign_room(participant_id, payload.room_id)
        return ParticipantResponse.model_validate(participant)
    except RoomCapacityExceededError as exc:
        availability = exc.availability
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "capacity": availability.capacity,
                "overlapping_count": availability.overlapping_count,
            },
        ) from exc
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room assignment failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign room",
        ) from exc


@router.get(
    "/participants/{participant_id}/room-options",
    response_model=list[RoomOptionResponse],
)
async def list_room_options(
    participant_id: int,
    room_service: RoomService = Depends(get_room_service),
) -> list[RoomOptionResponse]:
    try:
        options = room_service.list_room_options(participant_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return [
        RoomOptionResponse(
            room_id=option.room_id,
            name=option.name,
            capacity=option.capacity,
            occupied=option.occupied,
            is_current_room=option.is_current_room,
            availability=AvailabilityResponse.model_validate(option.availability),
        )
        for option in options
    ]
