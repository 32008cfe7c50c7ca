from datetime import datetime, timezone
from pydantic import BaseModel, field_validator, model_validator


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_millis(value: datetime) -> int:
    return int(to_utc(value).timestamp() * 1000)


class TimeWindow(BaseModel):
    """Report window. A missing bound means unbounded on that side."""

    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end", mode="after")
    def normalize_timezone(cls, v: datetime | None):
        if v is None:
            return v
        return to_utc(v)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("'start' must not be after 'end'")
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None
