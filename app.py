"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from eventstay.controllers.auth_controller import router as auth_router
from eventstay.controllers.event_controller import router as event_router
from eventstay.controllers.participant_controller import router as participant_router
from eventstay.controllers.report_controller import router as report_router
from eventstay.controllers.room_controller import router as room_router
from eventstay.controllers.workshop_controller import router as workshop_router
from eventstay.repository.data_repository import DataRepository
from eventstay.services.auth_service import AuthService
from eventstay.services.event_service import EventService
from eventstay.services.import_service import ImportService
from eventstay.services.participant_service import ParticipantService
from eventstay.services.report_service import ReportService
from eventstay.services.room_service import RoomService
from eventstay.services.workshop_service import WorkshopService
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    Every dependency is traceable from this function.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    repository = DataRepository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(auth_router)
    app.include_router(event_router)
    app.include_router(participant_router)
    app.include_router(room_router)
    app.include_router(workshop_router)
    app.include_router(report_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": settings.app_version}

    app.state.settings = settings
    app.state.repository = repository
    app.state.auth_service = AuthService(settings=settings)
    app.state.event_service = EventService(repository=repository, settings=settings)
    app.state.participant_service = ParticipantService(repository=repository, settings=settings)
    app.state.room_service = RoomService(repository=repository, settings=settings)
    app.state.workshop_service = WorkshopService(repository=repository, settings=settings)
    app.state.report_service = ReportService(repository=repository, settings=settings)
    app.state.import_service = ImportService(repository=repository, settings=settings)

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema must exist before seeding; the demo event is only created
    when the database holds no event yet.
    """
    settings: Settings = app.state.settings
    repository: DataRepository = app.state.repository
    workshop_service: WorkshopService = app.state.workshop_service

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo event (skipped if events exist)")
        event_id = repository.seed_demo_data()
        if event_id is not None:
            result = workshop_service.seed_workshop_rooms(event_id)
            logger.info("Startup: %s workshop rooms created", result.created)

    logger.info("Startup complete - system ready")


# Module-level app object for uvicorn
app = create_app()
