"""
Business and infrastructure errors raised by the service layer.

Business rejections (not found, conflict, invalid state) are returned to the
caller as-is and never retried. Infrastructure errors surface synchronously on
the request path; inside the worker they are retried by the task queue.
"""
from __future__ import annotations

from typing import Any


class MarketplaceError(Exception):
    """Base exception for all service-layer failures."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(MarketplaceError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any, code: str | None = None):
        super().__init__(
            f"{resource} not found",
            code=code,
            details={"resource": resource, "identifier": str(identifier)},
        )


class ConflictError(MarketplaceError):
    status_code = 409
    code = "CONFLICT"


class AlreadyScheduledError(ConflictError):
    code = "ALREADY_SCHEDULED"


class InvalidStateError(MarketplaceError):
    status_code = 400
    code = "INVALID_STATE"


class InvalidScheduleTimeError(InvalidStateError):
    code = "INVALID_SCHEDULE_TIME"


class InvalidQueryError(MarketplaceError):
    """Listing parameters the API refuses before building a pipeline."""

    status_code = 400
    code = "INVALID_SORT_FIELD"


class InfrastructureError(MarketplaceError):
    status_code = 503
    code = "INFRASTRUCTURE_ERROR"


class BrokerUnavailableError(InfrastructureError):
    code = "BROKER_UNAVAILABLE"
