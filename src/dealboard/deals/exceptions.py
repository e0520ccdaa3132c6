"""Error taxonomy for the deal pipeline boundary.

Each error carries the HTTP status it maps to and a fixed, client-facing
message. The application renders any DealboardError as {"error": message}.
"""

from __future__ import annotations


class DealboardError(Exception):
    """Base error with an HTTP status code and a client-facing message."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RequestValidationFailed(DealboardError):
    """Malformed, mistyped or out-of-enum request input."""

    status_code = 400


class InvalidStageTransition(RequestValidationFailed):
    """A stage step was requested past either end of the pipeline."""


class EntityNotFound(DealboardError):
    """The targeted organization, account or deal does not exist."""

    status_code = 404


class StoreFailure(DealboardError):
    """Persistence layer failure, surfaced with a generic message."""

    status_code = 500
