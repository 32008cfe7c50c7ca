import logging
from fastapi import FastAPI

from devreport.common.exceptions import (
    AggregateError,
    KnownException,
    RequestCancelled,
    aggregate_error_handler,
    internal_error_response,
    known_exception_handler,
    request_cancelled_handler,
    unexpected_exception_handler,
)
from devreport.config import get_settings
from devreport.healthcheck.router import router as health_router
from devreport.report.router import router as report_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
)

logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.API_NAME,
    summary=settings.API_SUMMARY,
    responses={**internal_error_response},
    version=settings.DEVREPORT_VERSION,
)

app.exception_handler(KnownException)(known_exception_handler)
app.exception_handler(AggregateError)(aggregate_error_handler)
app.exception_handler(RequestCancelled)(request_cancelled_handler)
app.exception_handler(Exception)(unexpected_exception_handler)


app.include_router(health_router)
app.include_router(report_router)
