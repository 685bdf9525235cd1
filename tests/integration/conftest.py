"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from weekplanner.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    group = await create_store_group(str(tmp_path / "test.db"))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, store_group: StoreGroup):
    """集成测试用 FastAPI app，与 store_group fixture 共享连接"""
    os.environ["WEEKPLANNER_DB_PATH"] = str(tmp_path / "test.db")

    from weekplanner.gateway.main import create_app

    app = create_app()
    app.state.store_group = store_group

    yield app

    os.environ.pop("WEEKPLANNER_DB_PATH", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
