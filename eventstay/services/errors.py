"""Exception categories shared by the service layer.

Each service subclasses these so controllers can map them to HTTP status
codes without knowing every concrete error.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for expected business failures."""


class ServiceValidationError(ServiceError):
    """Input violates a business rule (HTTP 400)."""


class ResourceNotFoundError(ServiceError):
    """Referenced record does not exist (HTTP 404)."""


class ResourceConflictError(ServiceError):
    """Request conflicts with current state (HTTP 409)."""
