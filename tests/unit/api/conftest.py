from typing import Generator
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from devreport.main import app as main_app
from devreport.report.base import ActivitySource
from devreport.report.dependencies import get_sources


@pytest.fixture
def sources() -> list[ActivitySource]:
    return []


@pytest.fixture
def test_app(sources: list[ActivitySource]) -> Generator[FastAPI, None, None]:
    main_app.dependency_overrides[get_sources] = lambda: sources
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
def test_client(test_app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as client:
        yield client
