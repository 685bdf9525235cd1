"""PlannerRepository 的 SQLite 实现

每个仓储方法在一个事务内完成：成功提交，失败回滚，
底层 aiosqlite 异常统一包装为 RepositoryError。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite
import structlog

from ..config import TITLE_MAX_LENGTH
from ..exceptions import RepositoryError, TaskNotFoundError
from ..models.enums import DEFAULT_DURATION, TaskStatus
from ..models.planner import PlannerData
from ..models.task import Task, TaskPatch, new_id
from ..weeks import current_week_key
from .profile_store import Profile, SqliteProfileStore
from .task_store import SqliteTaskStore

log = structlog.get_logger()


class SqlitePlannerRepository:
    """基于 aiosqlite 的规划数据仓储"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        # 共享连接上的事务串行执行
        self._lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn)
        self.profile_store = SqliteProfileStore(conn)

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[None]:
        """提交或回滚；aiosqlite.Error 包装为 RepositoryError"""
        async with self._lock:
            try:
                yield
                await self._conn.commit()
            except aiosqlite.Error as e:
                await self._conn.rollback()
                log.error(
                    "repository_operation_failed",
                    operation=operation,
                    error_type=type(e).__name__,
                )
                raise RepositoryError(operation, e) from e
            except Exception:
                await self._conn.rollback()
                raise

    async def load_planner_data(self, user_id: str) -> PlannerData:
        """加载规划数据；首次访问时创建 profile（选中本周）"""
        async with self._transaction("load_planner_data"):
            profile = await self.profile_store.get_profile(user_id)
            if profile is None:
                profile = Profile(
                    user_id=user_id,
                    selected_week_start=current_week_key(),
                )
                await self.profile_store.create_profile(profile)
                log.info("profile_created", user_id=user_id)
            tasks = await self.task_store.list_tasks(user_id)

        return PlannerData(
            selected_week_start=profile.selected_week_start,
            backlog_order=profile.backlog_order,
            kanban_order=profile.kanban_order,
            tasks=tasks,
        )

    async def create_task(self, user_id: str, title: str) -> Task:
        now = datetime.now(UTC)
        task = Task(
            task_id=new_id(),
            user_id=user_id,
            title=title.strip()[:TITLE_MAX_LENGTH],
            duration=DEFAULT_DURATION,
            status=TaskStatus.NOT_STARTED,
            scheduled=None,
            created_at=now,
            updated_at=now,
        )
        async with self._transaction("create_task"):
            await self.task_store.create_task(task)
        return task

    async def update_task(self, user_id: str, task_id: str, patch: TaskPatch) -> Task:
        """合并部分更新并返回权威记录

        Raises:
            TaskNotFoundError: 任务不存在
            pydantic.ValidationError: 合并后的记录违反模型约束
        """
        async with self._transaction("update_task"):
            current = await self.task_store.get_task(user_id, task_id)
            if current is None:
                raise TaskNotFoundError(task_id, operation="update_task")
            updated = current.apply_patch(patch, datetime.now(UTC))
            await self.task_store.save_task(updated)
        return updated

    async def delete_task(self, user_id: str, task_id: str) -> None:
        async with self._transaction("delete_task"):
            await self.task_store.delete_task(user_id, task_id)

    async def update_backlog_order(
        self, user_id: str, order: list[str], week_key: str
    ) -> None:
        async with self._transaction("update_backlog_order"):
            await self.profile_store.upsert_order(user_id, "backlog_order", order, week_key)

    async def update_kanban_order(
        self, user_id: str, order: list[str], week_key: str
    ) -> None:
        async with self._transaction("update_kanban_order"):
            await self.profile_store.upsert_order(user_id, "kanban_order", order, week_key)

    async def update_selected_week_start(self, user_id: str, week_key: str) -> None:
        async with self._transaction("update_selected_week_start"):
            await self.profile_store.upsert_selected_week(user_id, week_key)
