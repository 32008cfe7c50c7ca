import asyncio
from datetime import datetime, timezone
from typing import Callable
import pytest

from devreport.common.exceptions import (
    AggregateError,
    FetchError,
    RequestCancelled,
    SourceUnavailable,
)
from devreport.report.generator import ReportGenerator
from devreport.report.schemas import Task
from tests.unit.report.fake_sources import FakeSource

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
END = datetime(2024, 1, 31, tzinfo=timezone.utc)

MakeTask = Callable[..., Task]


async def test_generate_sorts_newest_first(make_task: MakeTask) -> None:
    first = FakeSource("One", [make_task("a", day=3), make_task("b", day=10)])
    second = FakeSource("Two", [make_task("c", day=7)])
    generator = ReportGenerator([first, second])

    tasks = await generator.generate("ana", START, END)

    assert [task.id for task in tasks] == ["b", "c", "a"]
    assert first.fetch_calls == [("ana", START, END)]
    assert generator.source_errors == {}


async def test_generate_keeps_fetch_order_for_equal_timestamps(
    make_task: MakeTask,
) -> None:
    first = FakeSource("One", [make_task("a", day=5), make_task("b", day=5)])
    second = FakeSource("Two", [make_task("c", day=5)])
    generator = ReportGenerator([first, second])

    tasks = await generator.generate("ana", START, END)

    assert [task.id for task in tasks] == ["a", "b", "c"]


async def test_generate_skips_failing_sources(make_task: MakeTask) -> None:
    healthy = FakeSource("Healthy", [make_task("a")])
    unreachable = FakeSource(
        "Down", health_error=SourceUnavailable("Down", "status 401")
    )
    broken = FakeSource("Broken", fetch_error=FetchError(500, "boom"))
    generator = ReportGenerator([unreachable, healthy, broken])

    tasks = await generator.generate("ana", START, END)

    assert [task.id for task in tasks] == ["a"]
    assert set(generator.source_errors) == {"Down", "Broken"}
    # An unhealthy source is never asked for tasks
    assert unreachable.fetch_calls == []


async def test_generate_all_sources_failed(make_task: MakeTask) -> None:
    generator = ReportGenerator(
        [
            FakeSource("One", fetch_error=FetchError(500, "boom")),
            FakeSource("Two", health_error=SourceUnavailable("Two", "timeout")),
        ]
    )

    with pytest.raises(AggregateError) as exc_info:
        await generator.generate("ana", START, END)

    assert set(exc_info.value.errors) == {"One", "Two"}
    assert "Failed to fetch from all sources" in str(exc_info.value)


async def test_generate_empty_without_failures() -> None:
    generator = ReportGenerator([FakeSource("One"), FakeSource("Two")])

    assert await generator.generate("ana", START, END) == []


async def test_generate_empty_with_one_failure_raises() -> None:
    generator = ReportGenerator(
        [FakeSource("Empty"), FakeSource("Broken", fetch_error=FetchError(503, "x"))]
    )

    with pytest.raises(AggregateError) as exc_info:
        await generator.generate("ana", START, END)

    assert list(exc_info.value.errors) == ["Broken"]


async def test_generate_with_no_sources() -> None:
    assert await ReportGenerator([]).generate("ana") == []


async def test_generate_collects_collection_errors(make_task: MakeTask) -> None:
    error = FetchError(404, "Not found", "list-b")
    source = FakeSource(
        "ClickUp", [make_task("a")], collection_errors={"list-b": error}
    )
    generator = ReportGenerator([source])

    tasks = await generator.generate("ana", START, END)

    assert len(tasks) == 1
    assert generator.collection_errors == {"ClickUp/list-b": error}
    assert generator.source_errors == {}


async def test_generate_resets_errors_between_runs(make_task: MakeTask) -> None:
    source = FakeSource("One", [make_task("a")], fetch_error=FetchError(500, "x"))
    other = FakeSource("Two", [make_task("b")])
    generator = ReportGenerator([source, other])

    await generator.generate("ana", START, END)
    assert set(generator.source_errors) == {"One"}

    source.fetch_error = None
    await generator.generate("ana", START, END)
    assert generator.source_errors == {}


async def test_generate_cancelled_before_start(make_task: MakeTask) -> None:
    source = FakeSource("One", [make_task("a")])
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(RequestCancelled):
        await ReportGenerator([source]).generate("ana", START, END, cancel_event)

    assert source.fetch_calls == []


def test_statistics_empty() -> None:
    stats = ReportGenerator([]).statistics([])

    assert stats.total == 0
    assert stats.completed == 0
    assert stats.by_source == {}
    assert stats.by_status == {}
    assert stats.by_type == {}


def test_statistics_counts(make_task: MakeTask) -> None:
    tasks = [
        make_task("a", source="Backend", status="complete", completed=True),
        make_task("b", source="Backend", status="open"),
        make_task("c", source="ClickUp", status="in progress", type="Project"),
        make_task("d", source="ClickUp", status="completed", type="Project", completed=True),
    ]

    stats = ReportGenerator([]).statistics(tasks)

    assert stats.total == 4
    assert stats.completed == 2
    assert stats.by_source == {"Backend": 2, "ClickUp": 2}
    assert stats.by_status == {
        "complete": 1,
        "open": 1,
        "in progress": 1,
        "completed": 1,
    }
    assert stats.by_type == {"Task": 2, "Project": 2}
    for counts in (stats.by_source, stats.by_status, stats.by_type):
        assert sum(counts.values()) == stats.total
