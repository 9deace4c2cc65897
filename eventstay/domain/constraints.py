"""Domain-level validation rules and small parsing helpers."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from eventstay.domain.models import PARTICIPANT_ROLES, PAYMENT_METHODS


_CATEGORY_SPLIT_RE = re.compile(r"(\d+)\+(\d+)")
_CATEGORY_LEADING_RE = re.compile(r"^(\d+)")
_ROOM_FLOOR_RE = re.compile(r"[A-Z](\d)")
_ROOM_BUILDING_RE = re.compile(r"^([A-Z])")

_GERMAN_POSTAL_RE = re.compile(r"^\d{5}$")
_DUTCH_POSTAL_RE = re.compile(r"^\d{4}[A-Z]{0,2}$")
_FOUR_DIGIT_POSTAL_RE = re.compile(r"^\d{4}$")
_TURKISH_CITIES = {"Istanbul", "Ankara", "Izmir"}

UNKNOWN_LABEL = "Unknown"


def validate_event_dates(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValueError("event start_date must not be after end_date")


def validate_capacity(capacity: int) -> None:
    if capacity < 1:
        raise ValueError("capacity must be >= 1")


def validate_role(role: str) -> None:
    if role not in PARTICIPANT_ROLES:
        raise ValueError(f"role must be one of {', '.join(PARTICIPANT_ROLES)}")


def validate_payment_method(method: str) -> None:
    if method not in PAYMENT_METHODS:
        raise ValueError(f"payment method must be one of {', '.join(PAYMENT_METHODS)}")


def parse_room_category(category: Optional[str]) -> int:
    """Return bed count from a category code ("4BN" -> 4, "3+1BNB" -> 4).

    Offline rooms and unreadable codes have no beds.
    """
    if not category:
        return 0
    category = category.strip()
    if category == "offline":
        return 0
    if "+" in category:
        parts = _CATEGORY_SPLIT_RE.search(category)
        if parts:
            return int(parts.group(1)) + int(parts.group(2))
    match = _CATEGORY_LEADING_RE.match(category)
    if match:
        return int(match.group(1))
    return 0


def parse_room_floor(room_name: str) -> Optional[int]:
    """S314 -> 3, W200 -> 2, N108 -> 1."""
    match = _ROOM_FLOOR_RE.search(room_name)
    return int(match.group(1)) if match else None


def parse_room_building(room_name: str) -> Optional[str]:
    match = _ROOM_BUILDING_RE.match(room_name)
    return match.group(1) if match else None


def country_from_postal_code(postal_code: Optional[str], city: Optional[str]) -> str:
    if not postal_code:
        return UNKNOWN_LABEL
    postal_code = postal_code.replace(" ", "").upper()

    if _GERMAN_POSTAL_RE.match(postal_code):
        # Turkish postal codes are five digits as well
        if city in _TURKISH_CITIES:
            return "Turkey"
        return "Germany"
    if _FOUR_DIGIT_POSTAL_RE.match(postal_code):
        if city and "Hasselt" in city:
            return "Belgium"
        if city == "Wien":
            return "Austria"
        if city == "Zürich":
            return "Switzerland"
        return "Netherlands"
    if _DUTCH_POSTAL_RE.match(postal_code):
        return "Netherlands"
    return UNKNOWN_LABEL
