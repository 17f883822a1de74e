"""Fixtures for driving the FastAPI app in-process."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from pocket_drive.api.app import app as fastapi_app
from pocket_drive.deps import get_app_config, get_engine_factory


@pytest.fixture(scope="function")
def app(app_config, engine_factory, config_manager) -> FastAPI:
    """Create test FastAPI application."""
    app = fastapi_app
    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_engine_factory] = lambda: engine_factory
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def pocket_url(test_pocket) -> str:
    return f"/items/{test_pocket.id}"
