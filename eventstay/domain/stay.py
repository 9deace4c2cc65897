"""Stay periods and period-aware room capacity checks.

A stay is a participant's arrival/departure pair. Either bound may be
missing, which means the stay is unbounded in that direction (the guest is
there from the start, or until the end, of the event). Bounds are
inclusive: a guest leaving on the 24th and another arriving on the 24th
share that day.

Room capacity is the number of guests a room holds at the same time, not
the number of distinct guests over the whole event.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional


OPEN_START = date.min
OPEN_END = date.max


class InvalidStayError(ValueError):
    """Raised when a stay ends before it starts."""


@dataclass(frozen=True)
class Stay:
    arrival: Optional[date] = None
    departure: Optional[date] = None

    def __post_init__(self) -> None:
        if (
            self.arrival is not None
            and self.departure is not None
            and self.arrival > self.departure
        ):
            raise InvalidStayError(
                f"arrival {self.arrival.isoformat()} is after "
                f"departure {self.departure.isoformat()}"
            )

    @property
    def start(self) -> date:
        return self.arrival if self.arrival is not None else OPEN_START

    @property
    def end(self) -> date:
        return self.departure if self.departure is not None else OPEN_END

    @property
    def is_open_ended(self) -> bool:
        return self.arrival is None or self.departure is None


@dataclass(frozen=True)
class RoomAvailability:
    capacity: int
    overlapping_count: int
    has_space: bool
    free_slots: int


def periods_overlap(stay_a: Stay, stay_b: Stay) -> bool:
    return stay_a.start <= stay_b.end and stay_b.start <= stay_a.end


def max_occupancy_during_period(
    occupant_stays: Iterable[Stay],
    candidate_stay: Stay,
) -> int:
    """Count occupants whose stay overlaps the candidate's.

    The candidate must not be part of ``occupant_stays``.
    """
    return sum(1 for stay in occupant_stays if periods_overlap(stay, candidate_stay))


def evaluate_room_availability(
    capacity: int,
    occupant_stays: Iterable[Stay],
    candidate_stay: Stay,
) -> RoomAvailability:
    overlapping = max_occupancy_during_period(occupant_stays, candidate_stay)
    return RoomAvailability(
        capacity=capacity,
        overlapping_count=overlapping,
        has_space=overlapping + 1 <= capacity,
        free_slots=max(capacity - overlapping, 0),
    )


def peak_concurrent_occupancy(stays: Iterable[Stay]) -> int:
    """Return the largest number of stays sharing a single day."""
    boundaries: list[tuple[date, int]] = []
    for stay in stays:
        # a start sorts before an end on the same day; touching stays share it
        boundaries.append((stay.start, 0))
        boundaries.append((stay.end, 1))
    boundaries.sort()

    current = 0
    peak = 0
    for _, kind in boundaries:
        if kind == 0:
            current += 1
            peak = max(peak, current)
        else:
            current -= 1
    return peak


def is_present_on(stay: Stay, day: date) -> bool:
    return periods_overlap(stay, Stay(day, day))
