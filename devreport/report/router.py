from datetime import date, datetime, time, timezone
from fastapi import APIRouter, Depends, Query

from devreport.common.current_datetime import get_current_datetime
from devreport.common.exceptions import (
    all_sources_failed_response,
    bad_request_response,
)
from devreport.report.annotations import apply_annotations
from devreport.report.dependencies import get_report_generator
from devreport.report.generator import ReportGenerator
from devreport.report.periods import resolve_window
from devreport.report.schemas import ReportErrors, ReportResponse


router = APIRouter(
    prefix="/report",
    tags=["Report"],
)


def _start_of(value: date | None) -> datetime | None:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


@router.get(
    "",
    responses={**bad_request_response, **all_sources_failed_response},
)
async def generate_report(
    user: str = Query(..., min_length=1),
    start: date | None = None,
    end: date | None = None,
    period: str | None = None,
    challenges: str | None = None,
    support_required: str | None = None,
    support_from: str | None = None,
    follow_up: str | None = None,
    generator: ReportGenerator = Depends(get_report_generator),
) -> ReportResponse:
    window_start, window_end = resolve_window(
        now=get_current_datetime(),
        start=_start_of(start),
        end=_start_of(end),
        period=period,
    )

    tasks = await generator.generate(user, window_start, window_end)
    tasks = apply_annotations(
        tasks,
        challenges=challenges,
        support_required=support_required,
        support_from=support_from,
        follow_up=follow_up,
    )

    return ReportResponse(
        user=user,
        start=window_start,
        end=window_end,
        tasks=tasks,
        statistics=generator.statistics(tasks),
        errors=ReportErrors(
            sources={name: str(e) for name, e in generator.source_errors.items()},
            collections={
                name: str(e) for name, e in generator.collection_errors.items()
            },
        ),
    )
