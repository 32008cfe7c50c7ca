from typing import Any, AsyncGenerator, Callable

import pytest

from devreport.clickup.client import ClickUpClient
from devreport.clickup.config import ClickUpSourceConfig
from devreport.clickup.schemas import ClickUpTask
from devreport.common.rate_limiter import TokenBucketLimiter


@pytest.fixture
def clickup_config() -> ClickUpSourceConfig:
    return ClickUpSourceConfig(
        api_token="test-token",
        base_url="https://api.clickup.test/api/v2",
        list_ids=["list-a", "list-b"],
        assignee_ids=["11", "22"],
        max_retries=0,
        retry_backoff=0,
    )


@pytest.fixture
def limiter() -> TokenBucketLimiter:
    return TokenBucketLimiter(requests_per_minute=6000, burst=100)


@pytest.fixture
async def clickup_client(
    clickup_config: ClickUpSourceConfig, limiter: TokenBucketLimiter
) -> AsyncGenerator[ClickUpClient, None]:
    async with ClickUpClient(config=clickup_config, limiter=limiter) as client:
        yield client


@pytest.fixture
def make_record() -> Callable[..., ClickUpTask]:
    def _make_record(
        task_id: str,
        list_id: str = "list-a",
        *,
        name: str | None = None,
        list_name: str = "Embedded List",
        created: int = 1_700_000_000_000,
        updated: int | None = None,
        closed: int | None = None,
        status: str = "open",
        assignees: list[dict[str, Any]] | None = None,
    ) -> ClickUpTask:
        return ClickUpTask.model_validate(
            {
                "id": task_id,
                "name": name or f"Task {task_id}",
                "description": f"Description {task_id}",
                "status": {"status": status},
                "url": f"https://app.clickup.com/t/{task_id}",
                "date_created": str(created),
                "date_updated": str(updated or created),
                "date_closed": str(closed) if closed is not None else None,
                "assignees": assignees or [],
                "list": {"id": list_id, "name": list_name},
            }
        )

    return _make_record
