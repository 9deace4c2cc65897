"""Tests for stay-period overlap and period-aware room capacity."""

from __future__ import annotations

from datetime import date

import pytest

from eventstay.domain.stay import (
    InvalidStayError,
    Stay,
    evaluate_room_availability,
    is_present_on,
    max_occupancy_during_period,
    peak_concurrent_occupancy,
    periods_overlap,
)


def d(day: int, month: int = 12, year: int = 2025) -> date:
    return date(year, month, day)


# --- periods_overlap ---

@pytest.mark.parametrize(
    "stay_a, stay_b",
    [
        (Stay(d(22), d(24)), Stay(d(23), d(26))),
        (Stay(d(22), d(24)), Stay(d(25), d(27))),
        (Stay(None, d(24)), Stay(d(25), None)),
        (Stay(), Stay(d(22), d(23))),
        (Stay(d(24), None), Stay(None, d(24))),
    ],
)
def test_overlap_is_symmetric(stay_a: Stay, stay_b: Stay) -> None:
    assert periods_overlap(stay_a, stay_b) == periods_overlap(stay_b, stay_a)


def test_fully_open_stays_always_overlap() -> None:
    assert periods_overlap(Stay(), Stay())
    assert periods_overlap(Stay(), Stay(d(1, 1, 2026), d(1, 1, 2026)))


def test_strictly_disjoint_stays_do_not_overlap() -> None:
    assert not periods_overlap(Stay(d(22), d(24)), Stay(d(25), d(27)))


def test_touching_boundaries_overlap() -> None:
    """Departure and arrival on the same day share that day."""
    assert periods_overlap(Stay(d(22), d(24)), Stay(d(24), d(27)))


def test_open_start_uses_departure_bound() -> None:
    early = Stay(None, d(24))
    assert not periods_overlap(early, Stay(d(25), None))
    assert periods_overlap(early, Stay(d(24), None))


def test_inverted_stay_is_rejected() -> None:
    with pytest.raises(InvalidStayError):
        Stay(d(26), d(22))


def test_same_day_stay_is_valid() -> None:
    stay = Stay(d(24), d(24))
    assert not stay.is_open_ended
    assert is_present_on(stay, d(24))
    assert not is_present_on(stay, d(25))


# --- room availability scenarios ---

def test_open_ended_occupants_fill_room_for_open_candidate() -> None:
    occupants = [Stay(), Stay(), Stay()]
    result = evaluate_room_availability(4, occupants, Stay())
    assert max_occupancy_during_period(occupants, Stay()) == 3
    assert result.has_space
    assert result.free_slots == 1


@pytest.fixture
def split_room() -> list[Stay]:
    return [Stay(d(22), d(24)), Stay(d(25), d(27))]


def test_candidate_overlapping_first_occupant_fits(split_room: list[Stay]) -> None:
    result = evaluate_room_availability(2, split_room, Stay(d(22), d(23)))
    assert result.overlapping_count == 1
    assert result.has_space


def test_candidate_overlapping_second_occupant_fits(split_room: list[Stay]) -> None:
    result = evaluate_room_availability(2, split_room, Stay(d(26), d(27)))
    assert result.overlapping_count == 1
    assert result.has_space


def test_candidate_spanning_both_occupants_does_not_fit(split_room: list[Stay]) -> None:
    result = evaluate_room_availability(2, split_room, Stay(d(23), d(26)))
    assert result.overlapping_count == 2
    assert not result.has_space
    assert result.free_slots == 0


def test_open_bounds_compare_departure_against_arrival() -> None:
    result = evaluate_room_availability(1, [Stay(None, d(24))], Stay(d(25), None))
    assert result.overlapping_count == 0
    assert result.has_space


def test_free_slots_never_negative() -> None:
    result = evaluate_room_availability(1, [Stay(), Stay()], Stay())
    assert result.free_slots == 0
    assert not result.has_space


# --- peak_concurrent_occupancy ---

def test_peak_counts_simultaneous_guests_only() -> None:
    stays = [Stay(d(22), d(24)), Stay(d(25), d(27)), Stay(d(22), d(23))]
    assert peak_concurrent_occupancy(stays) == 2


def test_peak_counts_touching_stays_together() -> None:
    assert peak_concurrent_occupancy([Stay(d(22), d(24)), Stay(d(24), d(27))]) == 2


def test_peak_of_empty_room_is_zero() -> None:
    assert peak_concurrent_occupancy([]) == 0


def test_peak_with_open_bounds() -> None:
    stays = [Stay(), Stay(None, d(23)), Stay(d(26), None)]
    assert peak_concurrent_occupancy(stays) == 2
