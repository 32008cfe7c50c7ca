import asyncio
import logging
from dataclasses import dataclass, field

from devreport.clickup.client import ClickUpClient
from devreport.clickup.schemas import ClickUpTask, TasksResponse
from devreport.common.exceptions import FetchError
from devreport.common.schemas import TimeWindow, to_millis

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 5


@dataclass
class ListFetchResult:
    list_id: str
    records: list[ClickUpTask] = field(default_factory=list)
    error: Exception | None = None


@dataclass
class FanOutResult:
    records: list[ClickUpTask] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


class ClickUpTasksFetcher:
    def __init__(self, *, client: ClickUpClient, assignee_ids: list[str] | None = None):
        self.client = client
        self.assignee_ids = assignee_ids or []

    def build_page_params(
        self, page: int, window: TimeWindow
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [
            ("subtasks", "true"),
            ("include_timl", "true"),
            ("order_by", "created"),
            ("include_closed", "true"),
            ("page", str(page)),
        ]
        for assignee_id in self.assignee_ids:
            params.append(("assignees[]", assignee_id))
        if window.start:
            params.append(("date_created_gt", str(to_millis(window.start))))
        if window.end:
            params.append(("date_created_lt", str(to_millis(window.end))))
        return params

    async def fetch_all(
        self,
        list_id: str,
        window: TimeWindow,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ClickUpTask]:
        """Fetch every task of one list, following pages until an empty one.

        A page that fails after retries aborts the whole list.
        """
        tasks: list[ClickUpTask] = []
        page = 0
        if window.is_unbounded:
            logger.info(f"List {list_id}: no time window, fetching full history")

        while True:
            response = await self.client.request(
                "GET",
                f"/list/{list_id}/task",
                params=self.build_page_params(page, window),
                cancel_event=cancel_event,
            )
            if not response.ok:
                raise FetchError(response.status, response.body, list_id=list_id)

            page_tasks = TasksResponse.model_validate(response.json()).tasks
            if not page_tasks:
                break

            tasks.extend(page_tasks)
            logger.info(
                f"List {list_id}: fetched page {page} -> {len(page_tasks)} tasks "
                f"(total: {len(tasks)})"
            )
            page += 1

        return tasks

    async def fetch_many(
        self,
        list_ids: list[str],
        window: TimeWindow,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: asyncio.Event | None = None,
    ) -> FanOutResult:
        """Fetch many lists with a fixed pool of workers.

        Every list yields exactly one result. Failed lists contribute no records
        and are reported in ``errors`` keyed by list ID; the order of the merged
        records across lists is not deterministic.
        """
        max_workers = max(1, max_workers)
        work_queue: asyncio.Queue[str] = asyncio.Queue()
        results: asyncio.Queue[ListFetchResult] = asyncio.Queue()

        for list_id in list_ids:
            work_queue.put_nowait(list_id)

        async def worker() -> None:
            while True:
                try:
                    list_id = work_queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    records = await self.fetch_all(list_id, window, cancel_event)
                    results.put_nowait(ListFetchResult(list_id=list_id, records=records))
                except Exception as e:
                    logger.warning(f"Failed to fetch tasks for list {list_id}: {e}")
                    results.put_nowait(ListFetchResult(list_id=list_id, error=e))

        workers = [
            asyncio.create_task(worker())
            for _ in range(min(max_workers, len(list_ids)))
        ]
        await asyncio.gather(*workers)

        fan_out = FanOutResult()
        while not results.empty():
            result = results.get_nowait()
            if result.error is not None:
                fan_out.errors[result.list_id] = result.error
            else:
                fan_out.records.extend(result.records)

        logger.info(
            f"Fetched {len(fan_out.records)} tasks from "
            f"{len(list_ids) - len(fan_out.errors)}/{len(list_ids)} lists"
        )
        return fan_out
