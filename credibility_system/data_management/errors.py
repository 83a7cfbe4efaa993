"""Persistence error types shared by every store implementation."""

from typing import Any, Optional


class StoreError(Exception):
    """A store operation failed.

    Attributes:
        code: Backend error code when one is available (PostgREST/Postgres).
        details: Backend-provided detail payload.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details


class StoreUnavailableError(StoreError):
    """The backend could not be reached or timed out."""


class RecordNotFoundError(StoreError):
    """An update targeted a row that does not exist."""


class ReportValidationError(ValueError):
    """A report submission payload was rejected."""

    def __init__(self, message: str, errors: Optional[list] = None) -> None:
        super().__init__(message)
        self.errors = errors or []
