"""Event lifecycle: create, edit and look up the yearly camp."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Mapping, Optional

from eventstay.domain.constraints import validate_event_dates
from eventstay.domain.models import Event
from eventstay.repository.data_repository import DataRepository
from eventstay.services.errors import (
    ResourceConflictError,
    ResourceNotFoundError,
    ServiceValidationError,
)
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)


class EventValidationError(ServiceValidationError):
    """Raised when event fields are inconsistent."""


class EventNotFoundError(ResourceNotFoundError):
    """Raised when an event id or year is unknown."""


class DuplicateEventYearError(ResourceConflictError):
    """Raised when a second event is created for the same year."""


class EventService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def list_events(self) -> list[Event]:
        return self._repository.list_events()

    def get_event(self, event_id: int) -> Event:
        event = self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    def get_event_by_year(self, year: int) -> Event:
        event = self._repository.get_event_by_year(year)
        if event is None:
            raise EventNotFoundError(f"No event for year {year}")
        return event

    def get_current_or_latest_event(self, today: Optional[date] = None) -> Event:
        """Return this year's event, falling back to the most recent one."""
        current_year = (today or date.today()).year
        event = self._repository.get_event_by_year(current_year)
        if event is not None:
            return event
        events = self._repository.list_events()
        if not events:
            raise EventNotFoundError("No event has been created yet")
        return events[0]

    def create_event(
        self,
        *,
        name: str,
        year: int,
        start_date: date,
        end_date: date,
        location: str,
    ) -> Event:
        self._validate(start_date, end_date)
        if self._repository.get_event_by_year(year) is not None:
            raise DuplicateEventYearError(f"An event for {year} already exists")
        event_id = self._repository.create_event(
            {
                "name": name.strip(),
                "year": year,
                "start_date": start_date,
                "end_date": end_date,
                "location": location.strip(),
            }
        )
        logger.info("Created event %s (%s)", event_id, year)
        return self.get_event(event_id)

    def update_event(self, event_id: int, changes: Mapping[str, Any]) -> Event:
        current = self.get_event(event_id)
        self._validate(
            changes.get("start_date") or current.start_date,
            changes.get("end_date") or current.end_date,
        )
        try:
            self._repository.update_event(event_id, changes)
        except sqlite3.IntegrityError as exc:
            raise DuplicateEventYearError(
                f"An event for {changes.get('year')} already exists"
            ) from exc
        return self.get_event(event_id)

    def delete_event(self, event_id: int) -> None:
        if not self._repository.delete_event(event_id):
            raise EventNotFoundError(f"Event {event_id} not found")
        logger.info("Deleted event %s with all its rooms and participants", event_id)

    @staticmethod
    def _validate(start_date: date, end_date: date) -> None:
        try:
            validate_event_dates(start_date, end_date)
        except ValueError as exc:
            raise EventValidationError(str(exc)) from exc
