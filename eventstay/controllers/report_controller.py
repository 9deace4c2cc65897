"""HTTP endpoints for the daily report, statistics and finances."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from eventstay.controllers.dependencies import get_report_service, require_admin, to_http_exception
from eventstay.controllers.schemas import ApiModel, ParticipantResponse
from eventstay.services.errors import ServiceError
from eventstay.services.report_service import ReportService


router = APIRouter(tags=["reports"], dependencies=[Depends(require_admin)])


class DailyRoomResponse(BaseModel):
    room_id: int = Field(gt=0)
    name: str
    capacity: int
    floor: Optional[int] = None
    occupants: list[ParticipantResponse]


class DailyReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_date: date = Field(alias="date")
    rooms: list[DailyRoomResponse]
    present: list[ParticipantResponse]
    arrivals: list[ParticipantResponse]
    departures: list[ParticipantResponse]


class EventStatisticsResponse(ApiModel):
    total_participants: int = Field(ge=0)
    checked_in: int = Field(ge=0)
    paid: int = Field(ge=0)
    unpaid: int = Field(ge=0)
    total_rooms: int = Field(ge=0)
    occupied_beds: int = Field(ge=0)
    total_beds: int = Field(ge=0)
    helpers: int = Field(ge=0)
    abi_guests: int = Field(ge=0)


class CountShareResponse(ApiModel):
    label: str
    count: int = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0)


class PaymentStatisticsResponse(ApiModel):
    paid: int = Field(ge=0)
    unpaid: int = Field(ge=0)
    total_amount: float = Field(ge=0.0)


class RoleStatisticsResponse(ApiModel):
    regular: int = Field(ge=0)
    helper: int = Field(ge=0)
    abi: int = Field(ge=0)


class RolePaymentResponse(ApiModel):
    paid: int = Field(ge=0)
    unpaid: int = Field(ge=0)


class FinanceStatisticsResponse(ApiModel):
    total_participants: int = Field(ge=0)
    paid: int = Field(ge=0)
    unpaid: int = Field(ge=0)
    percentage_paid: float = Field(ge=0.0, le=100.0)
    total_amount: float = Field(ge=0.0)
    full_payment_threshold: float
    fully_paid: int = Field(ge=0)
    partially_paid: int = Field(ge=0)
    paid_without_amount: int = Field(ge=0)
    amount_by_method: dict[str, float]
    by_role: dict[str, RolePaymentResponse]
    unpaid_participants: list[ParticipantResponse]
    partially_paid_participants: list[ParticipantResponse]


@router.get("/events/{event_id}/report", response_model=DailyReportResponse)
async def get_daily_report(
    event_id: int,
    report_date: Optional[date] = Query(default=None, alias="date"),
    report_service: ReportService = Depends(get_report_service),
) -> DailyReportResponse:
    day = report_date or date.today()
    try:
        report = report_service.get_daily_report(event_id, day)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return DailyReportResponse(
        report_date=report.day,
        rooms=[
            DailyRoomResponse(
                room_id=entry.room.room_id,
                name=entry.room.name,
                capacity=entry.room.capacity,
                floor=entry.room.floor,
                occupants=[ParticipantResponse.model_validate(item) for item in entry.occupants],
            )
            for entry in report.rooms
        ],
        present=[ParticipantResponse.model_validate(item) for item in report.present],
        arrivals=[ParticipantResponse.model_validate(item) for item in report.arrivals],
        departures=[ParticipantResponse.model_validate(item) for item in report.departures],
    )


@router.get("/events/{event_id}/statistics", response_model=EventStatisticsResponse)
async def get_event_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> EventStatisticsResponse:
    try:
        return EventStatisticsResponse.model_validate(report_service.get_event_statistics(event_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/events/{event_id}/statistics/cities", response_model=list[CountShareResponse])
async def get_city_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> list[CountShareResponse]:
    try:
        rows = report_service.get_city_statistics(event_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return [CountShareResponse.model_validate(row) for row in rows]


@router.get("/events/{event_id}/statistics/countries", response_model=list[CountShareResponse])
async def get_country_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> list[CountShareResponse]:
    try:
        rows = report_service.get_country_statistics(event_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return [CountShareResponse.model_validate(row) for row in rows]


@router.get("/events/{event_id}/statistics/payments", response_model=PaymentStatisticsResponse)
async def get_payment_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> PaymentStatisticsResponse:
    try:
        return PaymentStatisticsResponse.model_validate(
            report_service.get_payment_statistics(event_id)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/events/{event_id}/statistics/roles", response_model=RoleStatisticsResponse)
async def get_role_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> RoleStatisticsResponse:
    try:
        return RoleStatisticsResponse.model_validate(report_service.get_role_statistics(event_id))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/events/{event_id}/finance",
    response_model=FinanceStatisticsResponse,
    status_code=status.HTTP_200_OK,
)
async def get_finance_statistics(
    event_id: int,
    report_service: ReportService = Depends(get_report_service),
) -> FinanceStatisticsResponse:
    try:
        return FinanceStatisticsResponse.model_validate(
            report_service.get_finance_statistics(event_id)
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
