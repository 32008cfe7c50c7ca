from datetime import datetime
from pydantic import BaseModel


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    status: str = ""
    url: str = ""
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None  # Set only when the source considers it closed
    source: str
    type: str = "Task"
    labels: list[str] = []
    assignee: str = ""
    achievements: str = ""
    # Filled in by the caller after fetching
    challenges: str = ""
    support_required: str = ""
    support_from: str = ""
    follow_up: str = ""
    attachment_url: str = ""


class ReportStatistics(BaseModel):
    total: int = 0
    completed: int = 0
    by_source: dict[str, int] = {}
    by_status: dict[str, int] = {}
    by_type: dict[str, int] = {}


class ReportErrors(BaseModel):
    sources: dict[str, str] = {}
    collections: dict[str, str] = {}


class ReportResponse(BaseModel):
    user: str
    start: datetime | None
    end: datetime | None
    tasks: list[Task]
    statistics: ReportStatistics
    errors: ReportErrors
