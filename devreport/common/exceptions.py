import logging
from typing import Any
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# Exceptions
class DevReportException(Exception):
    """Base class for every error raised by the fetch pipeline."""


class TransportError(DevReportException):
    """Network level failure: connection refused, reset, timeout."""

    def __init__(self, url: str, cause: Exception | None = None):
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Request to {url} failed{detail}")


class RateLimitedError(DevReportException):
    def __init__(self, url: str, retry_after: str | None = None):
        self.url = url
        self.status = 429
        self.retry_after = retry_after
        super().__init__(f"Rate limited by {url}")


class ServerError(DevReportException):
    def __init__(self, url: str, status: int, body: str = ""):
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"Server error {status} from {url}")


class RetriesExhausted(DevReportException):
    def __init__(self, url: str, attempts: int, last_error: Exception | None):
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Exhausted retries for {url} after {attempts} attempts: "
            f"last error: {last_error}"
        )


class RequestCancelled(DevReportException):
    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class FetchError(DevReportException):
    def __init__(self, status: int, body: str, list_id: str | None = None):
        self.status = status
        self.body = body
        self.list_id = list_id
        target = f" for list '{list_id}'" if list_id else ""
        super().__init__(f"API error {status}{target}: {body}")


class SourceUnavailable(DevReportException):
    def __init__(self, source_name: str, reason: str):
        self.source_name = source_name
        self.reason = reason
        super().__init__(f"{source_name} is unavailable: {reason}")


class AggregateError(DevReportException):
    def __init__(self, errors: dict[str, Exception]):
        self.errors = dict(errors)
        details = "; ".join(f"{name}: {error}" for name, error in self.errors.items())
        super().__init__(f"Failed to fetch from all sources: {details}")


class KnownException(DevReportException):
    def __init__(self, message: str):
        super().__init__(message)


# Exception handlers
def known_exception_handler(request: Request, exc: KnownException):
    logger.error(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


def aggregate_error_handler(request: Request, exc: AggregateError):
    logger.error(exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": "Failed to fetch from all sources",
            "errors": {name: str(error) for name, error in exc.errors.items()},
        },
    )


def request_cancelled_handler(request: Request, exc: RequestCancelled):
    logger.warning(exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


def unexpected_exception_handler(request: Request, exc: Exception):
    logger.error(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )


# Response definitions for OpenAPI documentation
ResponseDict = dict[int | str, dict[str, Any]]


bad_request_response: ResponseDict = {
    400: {
        "description": "Invalid report request",
        "content": {
            "application/json": {"example": {"detail": "Unknown period: 'fortnight'"}}
        },
    }
}

all_sources_failed_response: ResponseDict = {
    502: {
        "description": "Every source failed and no tasks were fetched",
        "content": {
            "application/json": {
                "example": {
                    "detail": "Failed to fetch from all sources",
                    "errors": {"ClickUp": "ClickUp is unavailable: status 401"},
                }
            }
        },
    }
}

internal_error_response: ResponseDict = {
    500: {
        "description": "Internal server error",
        "content": {
            "application/json": {"example": {"detail": "An unexpected error occurred"}}
        },
    }
}
