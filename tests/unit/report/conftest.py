from datetime import datetime, timezone
from typing import Callable
import pytest

from devreport.report.schemas import Task


@pytest.fixture
def make_task() -> Callable[..., Task]:
    def _make_task(
        task_id: str,
        *,
        day: int = 1,
        source: str = "Fake",
        status: str = "open",
        type: str = "Task",
        completed: bool = False,
    ) -> Task:
        created_at = datetime(2024, 1, day, tzinfo=timezone.utc)
        return Task(
            id=task_id,
            title=f"Task {task_id}",
            status=status,
            created_at=created_at,
            updated_at=created_at,
            completed_at=created_at if completed else None,
            source=source,
            type=type,
        )

    return _make_task
