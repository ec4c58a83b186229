"""Domain errors raised by services; `status_code` is the HTTP status the API answers with."""

from __future__ import annotations


class LeadFlowException(Exception):
    status_code = 500


class ConfigurationError(LeadFlowException):
    """Environment settings that cannot produce a working process."""


class ServiceError(LeadFlowException):
    pass


class ValidationError(LeadFlowException):
    """Payload rejected before anything was written."""

    status_code = 422


class ImportValidationError(ValidationError):
    """A CSV batch with at least one bad row; no lead from the batch is persisted."""

    def __init__(self, message: str, invalid_rows: int = 0, row_numbers: list[int] | None = None) -> None:
        super().__init__(message)
        self.invalid_rows = invalid_rows
        self.row_numbers = list(row_numbers or [])


class InvalidTransitionError(LeadFlowException):
    """Status change outside the allowed graph, including any move out of archived."""

    status_code = 409


class NotFoundError(LeadFlowException):
    """Missing, or present but outside the caller's visibility."""

    status_code = 404


class AuthenticationError(LeadFlowException):
    status_code = 401


class AuthorizationError(LeadFlowException):
    status_code = 403
