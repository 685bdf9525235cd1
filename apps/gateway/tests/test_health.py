"""健康检查与生命周期测试

测试内容：
1. GET /health 返回 200 + ok
2. GET /ready 正常时返回 200 + checks 结构
3. GET /ready SQLite 不可用时返回 503
4. lifespan 打开并关闭数据库
"""

import os
from pathlib import Path

from httpx import ASGITransport, AsyncClient


class TestHealthCheck:
    async def test_health_returns_200(self, client: AsyncClient):
        """GET /health 永远返回 200"""
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_ready_returns_200(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["checks"]["sqlite"] == "ok"
        assert isinstance(data["checks"]["disk_space_mb"], int)

    async def test_ready_sqlite_failure(self, app):
        """关闭数据库连接模拟不可用"""
        await app.state.store_group.conn.close()

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            resp = await ac.get("/ready")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["sqlite"] == "unavailable"


class TestLifespan:
    async def test_lifespan_opens_and_closes_store(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "planner.db"
        os.environ["WEEKPLANNER_DB_PATH"] = str(db_path)
        try:
            from weekplanner.gateway.main import create_app, lifespan

            app = create_app()
            async with lifespan(app):
                store_group = app.state.store_group
                cursor = await store_group.conn.execute("SELECT 1")
                assert (await cursor.fetchone())[0] == 1
            assert db_path.exists()
        finally:
            os.environ.pop("WEEKPLANNER_DB_PATH", None)
