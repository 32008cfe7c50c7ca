from typing import Literal
from pydantic import BaseModel, Field

from devreport.config import Settings


class ClickUpSourceConfig(BaseModel):
    api_token: str
    base_url: str = "https://api.clickup.com/api/v2"
    list_ids: list[str] = []
    folder_id: str | None = None
    assignee_ids: list[str] = []
    category: str = ""
    mode: Literal["per_record", "rollup"] = "per_record"
    open_rollup_sentinel: bool = True
    max_workers: int = Field(default=5, ge=1)
    requests_per_minute: int = 100
    burst: int = 10
    max_retries: int = 5
    retry_backoff: float = 2.0  # Seconds
    request_timeout: float = 30.0
    user_agent: str = "DevReport"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClickUpSourceConfig":
        if not settings.CLICKUP_API_TOKEN:
            raise ValueError("CLICKUP_API_TOKEN is not set")
        return cls(
            api_token=settings.CLICKUP_API_TOKEN,
            base_url=settings.CLICKUP_BASE_URL,
            list_ids=settings.CLICKUP_LIST_IDS,
            folder_id=settings.CLICKUP_FOLDER_ID,
            assignee_ids=settings.CLICKUP_ASSIGNEE_IDS,
            category=settings.CLICKUP_CATEGORY,
            mode="rollup" if settings.CLICKUP_ROLLUP else "per_record",
            open_rollup_sentinel=settings.CLICKUP_ROLLUP_OPEN_SENTINEL,
            max_workers=settings.MAX_WORKERS,
            requests_per_minute=settings.REQUESTS_PER_MINUTE,
            burst=settings.RATE_LIMIT_BURST,
            max_retries=settings.MAX_RETRIES,
            retry_backoff=settings.RETRY_BACKOFF_BASE,
            request_timeout=settings.REQUEST_TIMEOUT,
            user_agent=settings.USER_AGENT,
        )
