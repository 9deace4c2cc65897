"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration.

    Tests derive variants with ``dataclasses.replace`` instead of mutating
    the cached instance.
    """

    app_name: str = "EventStay"
    app_version: str = "1.0.0"
    database_path: Path = PROJECT_ROOT / "data" / "eventstay.db"
    log_level: str = "INFO"

    admin_token: str | None = None
    session_ttl_minutes: int = 12 * 60

    # Fee of a regular participant; smaller amounts count as partial payments.
    full_payment_threshold: float = 80.0
    default_workshop_capacity: int = 30
    workshop_room_seed_count: int = 9

    seed_demo_data: bool = True
    demo_random_seed: int = 42
    demo_event_year: int = 2025
    demo_participant_count: int = 120

    import_max_rows: int = 2000
    dashboard_api_base_url: str = "http://127.0.0.1:8000"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    defaults = Settings()
    return Settings(
        database_path=Path(
            os.getenv("EVENTSTAY_DATABASE_PATH", str(defaults.database_path))
        ),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        session_ttl_minutes=_env_int(
            "EVENTSTAY_SESSION_TTL_MINUTES",
            defaults.session_ttl_minutes,
        ),
        full_payment_threshold=_env_float(
            "EVENTSTAY_FULL_PAYMENT_THRESHOLD",
            defaults.full_payment_threshold,
        ),
        seed_demo_data=_env_bool("EVENTSTAY_SEED_DEMO_DATA", defaults.seed_demo_data),
        dashboard_api_base_url=os.getenv(
            "EVENTSTAY_API_BASE_URL",
            defaults.dashboard_api_base_url,
        ),
    )
