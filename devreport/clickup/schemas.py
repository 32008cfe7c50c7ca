from datetime import datetime, timezone
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_millis(value: Any) -> datetime | None:
    """Parse a ClickUp millisecond timestamp (sent as a string) into UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        millis = int(value)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


class ClickUpStatus(BaseModel):
    status: str = ""


class Assignee(BaseModel):
    id: int
    username: str | None = None


class ListInfo(BaseModel):
    id: str
    name: str = ""


class FolderInfo(BaseModel):
    id: str = ""
    name: str = ""


class SpaceInfo(BaseModel):
    id: str = ""
    name: str = ""


class ClickUpTask(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    description: str | None = ""
    status: ClickUpStatus = Field(default_factory=ClickUpStatus)
    url: str = ""
    date_created: datetime | None = None
    date_updated: datetime | None = None
    date_closed: datetime | None = None
    assignees: list[Assignee] = []
    list_info: ListInfo = Field(alias="list")

    @field_validator("date_created", "date_updated", "date_closed", mode="before")
    def validate_millis(cls, v: Any):
        return parse_millis(v)

    @property
    def is_closed(self) -> bool:
        return self.date_closed is not None


class TasksResponse(BaseModel):
    tasks: list[ClickUpTask] = []


class ListDetails(BaseModel):
    id: str
    name: str
    folder: FolderInfo = Field(default_factory=FolderInfo)
    space: SpaceInfo = Field(default_factory=SpaceInfo)


class FolderList(BaseModel):
    id: str
    name: str = ""


class FolderListsResponse(BaseModel):
    lists: list[FolderList] = []
