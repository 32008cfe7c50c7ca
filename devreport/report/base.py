import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from devreport.report.schemas import Task


@dataclass
class SourceFetchResult:
    tasks: list[Task] = field(default_factory=list)
    # Collection ID -> error absorbed while fetching these tasks
    collection_errors: dict[str, Exception] = field(default_factory=dict)


class ActivitySource(ABC):
    """Base class for every source of activity records

    Sources are shared between concurrent report runs, so per-run results are
    returned from ``fetch_tasks`` and never kept on the instance.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def health_check(self) -> None:
        """Raise SourceUnavailable when the source cannot be reached"""
        pass

    @abstractmethod
    async def fetch_tasks(
        self,
        user: str,
        start: datetime | None,
        end: datetime | None,
        cancel_event: asyncio.Event | None = None,
    ) -> SourceFetchResult:
        """Fetch and normalize the tasks of one report window"""
        pass
