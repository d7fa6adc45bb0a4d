"""Domain errors raised by the stores and services.

Each error carries the HTTP status it maps to so the application-level
exception handler can render it without a lookup table.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AdminError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_body(self) -> Dict[str, Any]:
        """Return the JSON body sent to the client."""
        return {"error": self.message, **self.details}


class InvalidInput(AdminError):
    status_code = 400


class UnsupportedMediaType(AdminError):
    status_code = 400


class PayloadTooLarge(AdminError):
    status_code = 413


class NotFound(AdminError):
    status_code = 404


class Conflict(AdminError):
    status_code = 409


class ProcessingError(AdminError):
    status_code = 500


class UpstreamUnavailable(AdminError):
    status_code = 500


class DeployError(AdminError):
    status_code = 500
