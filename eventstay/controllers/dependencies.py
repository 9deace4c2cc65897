"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eventstay.repository.data_repository import DataRepository
from eventstay.services.auth_service import AuthenticationError, AuthService
from eventstay.services.errors import (
    ResourceConflictError,
    ResourceNotFoundError,
    ServiceError,
    ServiceValidationError,
)
from eventstay.services.event_service import EventService
from eventstay.services.import_service import ImportService
from eventstay.services.participant_service import ParticipantService
from eventstay.services.report_service import ReportService
from eventstay.services.room_service import RoomService
from eventstay.services.workshop_service import WorkshopService
from eventstay.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)


def _state_service(request: Request, name: str, factory: Callable[..., Any]) -> Any:
    """Return the service stored on app.state, building it on first use."""
    service = getattr(request.app.state, name, None)
    if service is None:
        settings = get_settings()
        repository = getattr(request.app.state, "repository", None) or DataRepository(settings)
        service = factory(repository=repository, settings=settings)
        setattr(request.app.state, name, service)
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_event_service(request: Request) -> EventService:
    return _state_service(request, "event_service", EventService)


def get_participant_service(request: Request) -> ParticipantService:
    return _state_service(request, "participant_service", ParticipantService)


def get_room_service(request: Request) -> RoomService:
    return _state_service(request, "room_service", RoomService)


def get_workshop_service(request: Request) -> WorkshopService:
    return _state_service(request, "workshop_service", WorkshopService)


def get_report_service(request: Request) -> ReportService:
    return _state_service(request, "report_service", ReportService)


def get_import_service(request: Request) -> ImportService:
    return _state_service(request, "import_service", ImportService)


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Map a service failure category onto its HTTP status."""
    if isinstance(exc, ServiceValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ResourceNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ResourceConflictError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status_code, detail=str(exc))


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
