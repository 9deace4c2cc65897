"""Read-only reporting over an event: daily presence, statistics, finance."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import pandas as pd

from eventstay.domain.constraints import UNKNOWN_LABEL, country_from_postal_code
from eventstay.domain.models import (
    PAYMENT_METHODS,
    PARTICIPANT_ROLES,
    ROLE_ABI,
    ROLE_HELPER,
    ROLE_REGULAR,
    Participant,
    Room,
)
from eventstay.domain.stay import is_present_on
from eventstay.repository.data_repository import DataRepository
from eventstay.services.event_service import EventNotFoundError
from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)

EXPORT_COLUMNS = (
    "last_name",
    "first_name",
    "role",
    "age",
    "city",
    "postal_code",
    "email",
    "phone",
    "arrival_date",
    "departure_date",
    "room_name",
    "has_paid",
    "paid_amount",
    "payment_method",
    "checked_in",
)


@dataclass(frozen=True)
class DailyRoomEntry:
    room: Room
    occupants: list[Participant]


@dataclass(frozen=True)
class DailyReport:
    day: date
    rooms: list[DailyRoomEntry]
    present: list[Participant]
    arrivals: list[Participant]
    departures: list[Participant]


@dataclass(frozen=True)
class EventStatistics:
    total_participants: int
    checked_in: int
    paid: int
    unpaid: int
    total_rooms: int
    occupied_beds: int
    total_beds: int
    helpers: int
    abi_guests: int


@dataclass(frozen=True)
class CountShare:
    label: str
    count: int
    percentage: float


@dataclass(frozen=True)
class PaymentStatistics:
    paid: int
    unpaid: int
    total_amount: float


@dataclass(frozen=True)
class RoleStatistics:
    regular: int
    helper: int
    abi: int


@dataclass(frozen=True)
class RolePaymentBreakdown:
    paid: int
    unpaid: int


@dataclass(frozen=True)
class FinanceStatistics:
    total_participants: int
    paid: int
    unpaid: int
    percentage_paid: float
    total_amount: float
    full_payment_threshold: float
    fully_paid: int
    partially_paid: int
    paid_without_amount: int
    amount_by_method: dict[str, float] = field(default_factory=dict)
    by_role: dict[str, RolePaymentBreakdown] = field(default_factory=dict)
    unpaid_participants: list[Participant] = field(default_factory=list)
    partially_paid_participants: list[Participant] = field(default_factory=list)


def _by_last_name(participants: list[Participant]) -> list[Participant]:
    return sorted(participants, key=lambda item: (item.last_name, item.first_name))


def _count_shares(labels: list[str]) -> list[CountShare]:
    total = len(labels)
    counts = Counter(labels)
    # ties keep the label order stable
    ordered = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
    return [
        CountShare(
            label=label,
            count=count,
            percentage=round(count / total * 100, 1) if total else 0.0,
        )
        for label, count in ordered
    ]


class ReportService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_daily_report(self, event_id: int, day: date) -> DailyReport:
        """Who sleeps where on ``day``, plus the day's arrivals and departures."""
        self._ensure_event(event_id)
        rooms: list[DailyRoomEntry] = []
        present: list[Participant] = []
        for item in self._repository.list_rooms_with_occupants(event_id):
            occupants = _by_last_name(
                [occupant for occupant in item.occupants if is_present_on(occupant.stay, day)]
            )
            rooms.append(DailyRoomEntry(room=item.room, occupants=occupants))
            present.extend(occupants)
        rooms.sort(key=lambda entry: entry.room.name)

        participants = self._repository.list_participants(event_id)
        return DailyReport(
            day=day,
            rooms=rooms,
            present=_by_last_name(present),
            arrivals=[item for item in participants if item.arrival_date == day],
            departures=[item for item in participants if item.departure_date == day],
        )

    def get_event_statistics(self, event_id: int) -> EventStatistics:
        self._ensure_event(event_id)
        participants = self._repository.list_participants(event_id)
        rooms = self._repository.list_rooms(event_id)
        paid = sum(1 for item in participants if item.has_paid)
        return EventStatistics(
            total_participants=len(participants),
            checked_in=sum(1 for item in participants if item.checked_in),
            paid=paid,
            unpaid=len(participants) - paid,
            total_rooms=len(rooms),
            occupied_beds=sum(1 for item in participants if item.room_id is not None),
            total_beds=sum(room.capacity for room in rooms),
            helpers=sum(1 for item in participants if item.role == ROLE_HELPER),
            abi_guests=sum(1 for item in participants if item.role == ROLE_ABI),
        )

    def get_city_statistics(self, event_id: int) -> list[CountShare]:
        participants = self._participants(event_id)
        return _count_shares([(item.city or "").strip() or UNKNOWN_LABEL for item in participants])

    def get_country_statistics(self, event_id: int) -> list[CountShare]:
        participants = self._participants(event_id)
        return _count_shares(
            [country_from_postal_code(item.postal_code, item.city) for item in participants]
        )

    def get_payment_statistics(self, event_id: int) -> PaymentStatistics:
        participants = self._participants(event_id)
        paid = [item for item in participants if item.has_paid]
        return PaymentStatistics(
            paid=len(paid),
            unpaid=len(participants) - len(paid),
            total_amount=sum(item.paid_amount or 0.0 for item in paid),
        )

    def get_role_statistics(self, event_id: int) -> RoleStatistics:
        counts = Counter(item.role for item in self._participants(event_id))
        return RoleStatistics(
            regular=counts[ROLE_REGULAR],
            helper=counts[ROLE_HELPER],
            abi=counts[ROLE_ABI],
        )

    def get_finance_statistics(self, event_id: int) -> FinanceStatistics:
        """Payment overview split by completeness, method and role.

        A payment counts as full when its amount reaches the configured
        threshold; smaller positive amounts are partial.
        """
        participants = self._participants(event_id)
        threshold = self._settings.full_payment_threshold
        paid = [item for item in participants if item.has_paid]
        unpaid = [item for item in participants if not item.has_paid]
        partial = [
            item for item in paid if item.paid_amount and 0 < item.paid_amount < threshold
        ]

        amount_by_method = {method: 0.0 for method in PAYMENT_METHODS}
        for item in paid:
            if item.payment_method in amount_by_method:
                amount_by_method[item.payment_method] += item.paid_amount or 0.0

        by_role = {}
        for role in PARTICIPANT_ROLES:
            members = [item for item in participants if item.role == role]
            role_paid = sum(1 for item in members if item.has_paid)
            by_role[role] = RolePaymentBreakdown(paid=role_paid, unpaid=len(members) - role_paid)

        return FinanceStatistics(
            total_participants=len(participants),
            paid=len(paid),
            unpaid=len(unpaid),
            percentage_paid=round(len(paid) / len(participants) * 100, 1) if participants else 0.0,
            total_amount=sum(item.paid_amount or 0.0 for item in paid),
            full_payment_threshold=threshold,
            fully_paid=sum(
                1 for item in paid if item.paid_amount is not None and item.paid_amount >= threshold
            ),
            partially_paid=len(partial),
            paid_without_amount=sum(1 for item in paid if not item.paid_amount),
            amount_by_method=amount_by_method,
            by_role=by_role,
            unpaid_participants=unpaid,
            partially_paid_participants=partial,
        )

    def export_participants_csv(self, event_id: int) -> str:
        """Participant list as CSV; ages are taken on the first event day."""
        participants = self._participants(event_id)
        start_date = self._repository.get_event(event_id).start_date
        records = []
        for item in participants:
            record = {column: getattr(item, column) for column in EXPORT_COLUMNS}
            record["age"] = item.age_on(start_date)
            records.append(record)
        frame = pd.DataFrame(records, columns=list(EXPORT_COLUMNS))
        logger.info("Exported %s participants of event %s", len(frame), event_id)
        return frame.to_csv(index=False)

    def _participants(self, event_id: int) -> list[Participant]:
        self._ensure_event(event_id)
        return self._repository.list_participants(event_id)

    def _ensure_event(self, event_id: int) -> None:
        if self._repository.get_event(event_id) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
