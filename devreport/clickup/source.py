import asyncio
import logging
from datetime import datetime, timezone
from pydantic import ValidationError

from devreport.clickup.client import ClickUpClient
from devreport.clickup.config import ClickUpSourceConfig
from devreport.clickup.fetcher import ClickUpTasksFetcher
from devreport.clickup.schemas import ClickUpTask
from devreport.common.current_datetime import get_current_datetime
from devreport.common.exceptions import (
    AggregateError,
    DevReportException,
    FetchError,
    SourceUnavailable,
)
from devreport.common.rate_limiter import TokenBucketLimiter
from devreport.common.schemas import TimeWindow
from devreport.rephrase.base import PassthroughRewriter, TextRewriter
from devreport.report.base import ActivitySource, SourceFetchResult
from devreport.report.schemas import Task

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

STATUS_COMPLETED = "completed"
STATUS_IN_PROGRESS = "in progress"


class ClickUpSource(ActivitySource):
    """Adapts ClickUp lists into normalized tasks.

    In ``per_record`` mode every ClickUp task becomes one Task. In ``rollup``
    mode every list becomes one "Project" Task summarizing its records. In both
    modes ``Task.source`` is the display name of the list the task came from.
    """

    def __init__(
        self,
        *,
        config: ClickUpSourceConfig,
        rewriter: TextRewriter | None = None,
        limiter: TokenBucketLimiter | None = None,
        list_names: dict[str, str] | None = None,
    ):
        self.config = config
        self.rewriter = rewriter or PassthroughRewriter()
        self.limiter = limiter or TokenBucketLimiter(
            requests_per_minute=config.requests_per_minute,
            burst=config.burst,
        )
        self.list_ids: list[str] = list(config.list_ids)
        self.list_names: dict[str, str] = dict(list_names or {})

    @property
    def name(self) -> str:
        return "ClickUp"

    def open_client(self) -> ClickUpClient:
        return ClickUpClient(config=self.config, limiter=self.limiter)

    async def health_check(self) -> None:
        try:
            async with self.open_client() as client:
                await client.health_check()
        except FetchError as e:
            raise SourceUnavailable(
                self.name, f"health check failed with status {e.status}"
            ) from e
        except DevReportException as e:
            raise SourceUnavailable(self.name, str(e)) from e

    async def resolve_list_ids(self, client: ClickUpClient) -> list[str]:
        if self.list_ids or not self.config.folder_id:
            return self.list_ids

        list_ids, list_names = await client.get_list_ids_and_names_from_folder(
            self.config.folder_id
        )
        self.list_ids = list_ids
        self.list_names.update(list_names)
        return self.list_ids

    async def fetch_tasks(
        self,
        user: str,
        start: datetime | None,
        end: datetime | None,
        cancel_event: asyncio.Event | None = None,
    ) -> SourceFetchResult:
        window = TimeWindow(start=start, end=end)

        async with self.open_client() as client:
            list_ids = await self.resolve_list_ids(client)
            if not list_ids:
                logger.warning(f"No ClickUp lists configured for {self.name}")
                return SourceFetchResult()

            logger.info(
                f"Fetching ClickUp tasks for '{user}' from {len(list_ids)} lists"
            )
            fetcher = ClickUpTasksFetcher(
                client=client, assignee_ids=self.config.assignee_ids
            )
            result = await fetcher.fetch_many(
                list_ids,
                window,
                max_workers=self.config.max_workers,
                cancel_event=cancel_event,
            )

            if result.failed and len(result.errors) == len(set(list_ids)):
                raise AggregateError(result.errors)

            if self.config.mode == "rollup":
                tasks = await self.rollup(client, result.records, window)
            else:
                tasks = [self.to_task(record) for record in result.records]

        return SourceFetchResult(tasks=tasks, collection_errors=dict(result.errors))

    def display_name(self, record: ClickUpTask) -> str:
        list_id = record.list_info.id
        return self.list_names.get(list_id) or record.list_info.name or list_id

    def join_assignees(self, records: list[ClickUpTask]) -> str:
        names: list[str] = []
        for record in records:
            for assignee in record.assignees:
                name = assignee.username or str(assignee.id)
                if name not in names:
                    names.append(name)
        return ", ".join(names)

    def to_task(self, record: ClickUpTask) -> Task:
        created_at = record.date_created or EPOCH
        return Task(
            id=record.id,
            title=record.name,
            description=record.description or "",
            status=record.status.status,
            url=record.url,
            created_at=created_at,
            updated_at=record.date_updated or created_at,
            completed_at=record.date_closed,
            source=self.display_name(record),
            type="Task",
            assignee=self.join_assignees([record]),
        )

    async def resolve_list_name(
        self, client: ClickUpClient, list_id: str, records: list[ClickUpTask]
    ) -> str:
        if list_id in self.list_names:
            return self.list_names[list_id]

        try:
            details = await client.fetch_list_details(list_id)
        except (DevReportException, ValidationError) as e:
            fallback = self.display_name(records[0])
            logger.warning(
                f"Could not fetch details for list {list_id}, using '{fallback}': {e}"
            )
            return fallback

        self.list_names[list_id] = details.name
        return details.name

    async def rollup(
        self, client: ClickUpClient, records: list[ClickUpTask], window: TimeWindow
    ) -> list[Task]:
        records_by_list: dict[str, list[ClickUpTask]] = {}
        for record in records:
            records_by_list.setdefault(record.list_info.id, []).append(record)

        tasks: list[Task] = []
        for list_id, list_records in records_by_list.items():
            tasks.append(
                await self.rollup_list(client, list_id, list_records, window)
            )
        return tasks

    async def rollup_list(
        self,
        client: ClickUpClient,
        list_id: str,
        records: list[ClickUpTask],
        window: TimeWindow,
    ) -> Task:
        list_name = await self.resolve_list_name(client, list_id, records)
        title = f"{list_name} {self.config.category}" if self.config.category else list_name

        achievements = await self.rewriter.rewrite([f"• {r.name}" for r in records])

        normalized = [self.to_task(record) for record in records]
        latest_update = max(task.updated_at for task in normalized)
        created_at = window.start or min(task.created_at for task in normalized)

        if all(record.is_closed for record in records):
            status = STATUS_COMPLETED
            completed_at = max(
                task.completed_at for task in normalized if task.completed_at
            )
        else:
            status = STATUS_IN_PROGRESS
            # Open roll-ups are stamped with the aggregation time unless disabled
            completed_at = (
                get_current_datetime() if self.config.open_rollup_sentinel else None
            )

        return Task(
            id=list_id,
            title=title,
            achievements="\n".join(achievements),
            status=status,
            created_at=created_at,
            updated_at=latest_update,
            completed_at=completed_at,
            source=list_name,
            type="Project",
            assignee=self.join_assignees(records),
        )
