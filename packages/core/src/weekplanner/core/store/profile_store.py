"""ProfileStore SQLite 实现 -- 选中周与两个顺序列表

每个用户一行；不自动提交事务。
"""

import json

import aiosqlite
from pydantic import BaseModel, Field


class Profile(BaseModel):
    """profiles 表的一行"""

    user_id: str
    selected_week_start: str
    backlog_order: list[str] = Field(default_factory=list)
    kanban_order: list[str] = Field(default_factory=list)


class SqliteProfileStore:
    """ProfileStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get_profile(self, user_id: str) -> Profile | None:
        cursor = await self._conn.execute(
            """
            SELECT user_id, selected_week_start, backlog_order, kanban_order
            FROM profiles WHERE user_id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Profile(
            user_id=row[0],
            selected_week_start=row[1],
            backlog_order=json.loads(row[2]) if row[2] else [],
            kanban_order=json.loads(row[3]) if row[3] else [],
        )

    async def create_profile(self, profile: Profile) -> None:
        await self._conn.execute(
            """
            INSERT INTO profiles (user_id, selected_week_start, backlog_order, kanban_order)
            VALUES (?, ?, ?, ?)
            """,
            (
                profile.user_id,
                profile.selected_week_start,
                json.dumps(profile.backlog_order),
                json.dumps(profile.kanban_order),
            ),
        )

    async def upsert_selected_week(self, user_id: str, week_key: str) -> None:
        """写入选中周，保留已有顺序列表"""
        await self._conn.execute(
            """
            INSERT INTO profiles (user_id, selected_week_start) VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET selected_week_start = excluded.selected_week_start
            """,
            (user_id, week_key),
        )

    async def upsert_order(
        self,
        user_id: str,
        column: str,
        order: list[str],
        week_key: str,
    ) -> None:
        """整体替换 backlog_order 或 kanban_order，同时写入选中周"""
        if column not in ("backlog_order", "kanban_order"):
            raise ValueError(f"unknown order column: {column}")
        await self._conn.execute(
            f"""
            INSERT INTO profiles (user_id, selected_week_start, {column}) VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                selected_week_start = excluded.selected_week_start,
                {column} = excluded.{column}
            """,
            (user_id, week_key, json.dumps(order)),
        )
