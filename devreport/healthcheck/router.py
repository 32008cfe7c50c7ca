from typing import Any
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from devreport.report.base import ActivitySource
from devreport.report.dependencies import get_sources

router = APIRouter()


@router.get(
    "/healthcheck",
    tags=["Healthcheck"],
    status_code=status.HTTP_200_OK,
    responses={
        200: {
            "description": "Healthcheck status",
            "content": {
                "application/json": {
                    "example": {
                        "api": {"status": "ok"},
                        "ClickUp": {"status": "ok"},
                    }
                }
            },
        },
        503: {
            "description": "Source unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "api": {"status": "ok"},
                        "ClickUp": {
                            "status": "error",
                            "message": "ClickUp is unavailable: health check failed with status 401",
                        },
                    }
                }
            },
        },
    },
)
async def healthcheck(
    sources: list[ActivitySource] = Depends(get_sources),
) -> JSONResponse:
    health_status: dict[str, Any] = {"api": {"status": "ok"}}
    has_error = False

    for source in sources:
        try:
            await source.health_check()
            health_status[source.name] = {"status": "ok"}
        except Exception as e:
            health_status[source.name] = {"status": "error", "message": str(e)}
            has_error = True

    if has_error:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status
        )

    return JSONResponse(status_code=status.HTTP_200_OK, content=health_status)
