import asyncio
import logging
from collections import Counter
from datetime import datetime

from devreport.common.exceptions import AggregateError, RequestCancelled
from devreport.report.base import ActivitySource
from devreport.report.schemas import ReportStatistics, Task

logger = logging.getLogger(__name__)


class ReportGenerator:
    def __init__(self, sources: list[ActivitySource]):
        self.sources = list(sources)
        # Source name -> error for every source skipped during the latest run
        self.source_errors: dict[str, Exception] = {}
        # "<source>/<collection>" -> error absorbed inside a source
        self.collection_errors: dict[str, Exception] = {}

    async def generate(
        self,
        user: str,
        start: datetime | None = None,
        end: datetime | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Task]:
        """Fetch tasks from every source, newest first.

        A failing source is skipped; the run only fails when no source produced
        any task and at least one of them failed.
        """
        all_tasks: list[Task] = []
        self.source_errors = {}
        self.collection_errors = {}

        for source in self.sources:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelled("Report generation cancelled")

            logger.info(f"Fetching tasks from {source.name}...")

            try:
                await source.health_check()
            except Exception as e:
                logger.warning(f"{source.name} is unavailable: {e}")
                self.source_errors[source.name] = e
                continue

            try:
                result = await source.fetch_tasks(user, start, end, cancel_event)
            except Exception as e:
                logger.warning(f"Error fetching from {source.name}: {e}")
                self.source_errors[source.name] = e
                continue

            for collection_id, error in result.collection_errors.items():
                logger.warning(
                    f"{source.name}: collection {collection_id} was skipped: {error}"
                )
                self.collection_errors[f"{source.name}/{collection_id}"] = error

            logger.info(f"Fetched {len(result.tasks)} tasks from {source.name}")
            all_tasks.extend(result.tasks)

        # list.sort is stable, so equal creation times keep their fetch order
        all_tasks.sort(key=lambda task: task.created_at, reverse=True)

        if not all_tasks and self.source_errors:
            raise AggregateError(self.source_errors)

        return all_tasks

    def statistics(self, tasks: list[Task]) -> ReportStatistics:
        return ReportStatistics(
            total=len(tasks),
            completed=sum(1 for task in tasks if task.completed_at is not None),
            by_source=dict(Counter(task.source for task in tasks)),
            by_status=dict(Counter(task.status for task in tasks)),
            by_type=dict(Counter(task.type for task in tasks)),
        )
