"""Admin token authentication with expiring bearer sessions."""

from __future__ import annotations

import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from eventstay.utils.config import Settings, get_settings
from eventstay.utils.logger import get_logger


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


class SessionExpiredError(AuthenticationError):
    """Raised when a bearer token outlived its session."""


class AuthService:
    """Validates login credentials and bearer tokens.

    Several operators can be logged in at once; each login gets its own
    session token that expires after ``session_ttl_minutes``.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: dict[str, datetime] = {}
        self._lock = threading.Lock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, provided_admin_token: str, now: Optional[datetime] = None) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            logger.warning("Rejected login with invalid admin token")
            raise InvalidAdminTokenError("Invalid admin token")
        issued_at = now or datetime.now(timezone.utc)
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._purge_expired(issued_at)
            self._sessions[token] = issued_at + timedelta(
                minutes=self._settings.session_ttl_minutes
            )
        return token

    def logout(self, bearer_token: str) -> bool:
        with self._lock:
            return self._sessions.pop(bearer_token, None) is not None

    def validate_bearer_token(self, bearer_token: str, now: Optional[datetime] = None) -> None:
        if not self.auth_enabled:
            return
        current = now or datetime.now(timezone.utc)
        with self._lock:
            if not self._sessions:
                raise InvalidAdminTokenError("No active session. Login first.")
            expires_at = next(
                (
                    expiry
                    for token, expiry in self._sessions.items()
                    if secrets.compare_digest(bearer_token, token)
                ),
                None,
            )
            if expires_at is None:
                raise InvalidAdminTokenError("Invalid bearer token")
            if expires_at <= current:
                self._sessions.pop(bearer_token, None)
                raise SessionExpiredError("Session expired. Login again.")

    def _purge_expired(self, now: datetime) -> None:
        for token in [token for token, expiry in self._sessions.items() if expiry <= now]:
            del self._sessions[token]
