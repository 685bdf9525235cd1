"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from weekplanner.core.store import create_store_group


@pytest_asyncio.fixture
async def gateway_tmp_dir(tmp_path: Path) -> Path:
    """Gateway 临时数据目录"""
    db_dir = tmp_path / "sqlite"
    db_dir.mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest_asyncio.fixture
async def app(gateway_tmp_dir: Path):
    """创建测试用 FastAPI app 实例（手动初始化 Store，绕过 lifespan）"""
    db_path = str(gateway_tmp_dir / "sqlite" / "test.db")
    os.environ["WEEKPLANNER_DB_PATH"] = db_path
    os.environ["WEEKPLANNER_TIMEZONE"] = "Europe/Berlin"

    from weekplanner.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(db_path)
    application.state.store_group = store_group

    yield application

    await store_group.conn.close()
    for key in ["WEEKPLANNER_DB_PATH", "WEEKPLANNER_TIMEZONE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
