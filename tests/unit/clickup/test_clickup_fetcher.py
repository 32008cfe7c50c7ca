import asyncio
import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import Mock
import pytest
from pytest_mock import MockerFixture

from devreport.clickup.fetcher import ClickUpTasksFetcher
from devreport.common.exceptions import FetchError, RetriesExhausted
from devreport.common.schemas import TimeWindow
from devreport.common.transport import TransportResponse

WINDOW = TimeWindow(
    start=datetime(2024, 1, 1, tzinfo=timezone.utc),
    end=datetime(2024, 1, 8, tzinfo=timezone.utc),
)


def tasks_page(list_id: str, count: int, offset: int = 0) -> TransportResponse:
    tasks = [
        {"id": f"{list_id}-{offset + i}", "name": f"Task {i}", "list": {"id": list_id}}
        for i in range(count)
    ]
    return TransportResponse(status=200, body=json.dumps({"tasks": tasks}))


def page_of(params: list[tuple[str, str]]) -> int:
    return int(dict(params)["page"])


def list_of(path: str) -> str:
    return path.split("/")[2]


@pytest.fixture
def client(mocker: MockerFixture) -> Mock:
    client = mocker.Mock()
    client.request = mocker.AsyncMock()
    return client


async def test_fetch_all_follows_pages_until_empty(client: Mock) -> None:
    client.request.side_effect = [
        tasks_page("A", 2),
        tasks_page("A", 2, offset=2),
        tasks_page("A", 0),
    ]
    fetcher = ClickUpTasksFetcher(client=client, assignee_ids=["11", "22"])

    tasks = await fetcher.fetch_all("A", WINDOW)

    assert [task.id for task in tasks] == ["A-0", "A-1", "A-2", "A-3"]
    assert client.request.await_count == 3
    assert [page_of(c.kwargs["params"]) for c in client.request.await_args_list] == [
        0,
        1,
        2,
    ]


async def test_fetch_all_sends_filters(client: Mock) -> None:
    client.request.side_effect = [tasks_page("A", 0)]
    fetcher = ClickUpTasksFetcher(client=client, assignee_ids=["11", "22"])

    await fetcher.fetch_all("A", WINDOW)

    call = client.request.await_args
    assert call.args == ("GET", "/list/A/task")
    params = call.kwargs["params"]
    assert ("assignees[]", "11") in params
    assert ("assignees[]", "22") in params
    assert ("subtasks", "true") in params
    assert ("include_closed", "true") in params
    assert ("date_created_gt", "1704067200000") in params
    assert ("date_created_lt", "1704672000000") in params


async def test_unbounded_window_sends_no_date_filters(client: Mock) -> None:
    fetcher = ClickUpTasksFetcher(client=client)

    params = fetcher.build_page_params(0, TimeWindow())

    keys = [key for key, _ in params]
    assert "date_created_gt" not in keys
    assert "date_created_lt" not in keys
    assert "assignees[]" not in keys


async def test_fetch_all_fails_on_error_page(client: Mock) -> None:
    client.request.side_effect = [
        tasks_page("A", 2),
        TransportResponse(status=404, body="Not found"),
    ]
    fetcher = ClickUpTasksFetcher(client=client)

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch_all("A", WINDOW)

    assert exc_info.value.status == 404
    assert exc_info.value.list_id == "A"


async def test_fetch_many_collects_failures_per_list(client: Mock) -> None:
    async def respond(method: str, path: str, **kwargs: Any) -> TransportResponse:
        list_id = list_of(path)
        if list_id == "B":
            raise RetriesExhausted(path, 6, None)
        if page_of(kwargs["params"]) == 0:
            return tasks_page(list_id, 3 if list_id == "A" else 1)
        return tasks_page(list_id, 0)

    client.request.side_effect = respond
    fetcher = ClickUpTasksFetcher(client=client)

    result = await fetcher.fetch_many(["A", "B", "C"], WINDOW, max_workers=2)

    assert result.failed
    assert list(result.errors) == ["B"]
    assert isinstance(result.errors["B"], RetriesExhausted)
    assert sorted(task.id for task in result.records) == ["A-0", "A-1", "A-2", "C-0"]


async def test_fetch_many_bounds_concurrency(client: Mock) -> None:
    in_flight = 0
    peak = 0

    async def respond(method: str, path: str, **kwargs: Any) -> TransportResponse:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return tasks_page(list_of(path), 0)

    client.request.side_effect = respond
    fetcher = ClickUpTasksFetcher(client=client)

    result = await fetcher.fetch_many(
        [f"list-{i}" for i in range(10)], WINDOW, max_workers=3
    )

    assert not result.failed
    assert client.request.await_count == 10
    assert peak == 3


async def test_fetch_many_clamps_worker_count(client: Mock) -> None:
    client.request.side_effect = lambda method, path, **kwargs: tasks_page(
        list_of(path), 0
    )
    fetcher = ClickUpTasksFetcher(client=client)

    result = await fetcher.fetch_many(["A", "B"], WINDOW, max_workers=0)

    assert not result.failed
    assert result.records == []
    assert client.request.await_count == 2


async def test_fetch_many_with_no_lists(client: Mock) -> None:
    fetcher = ClickUpTasksFetcher(client=client)

    result = await fetcher.fetch_many([], WINDOW)

    assert result.records == []
    assert result.errors == {}
    client.request.assert_not_awaited()
