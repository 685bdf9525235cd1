"""TaskStore SQLite 实现

仅提供数据库操作，不自动提交事务，事务由调用方管理。
"""

import json
from datetime import date, datetime

import aiosqlite

from ..models.task import Attachment, Schedule, Task

_TASK_COLUMNS = (
    "task_id, user_id, title, duration, due_date, urgent, important, notes, "
    "links, attachments, status, scheduled, created_at, updated_at"
)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.user_id,
                *self._mutable_values(task),
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def save_task(self, task: Task) -> None:
        """整行覆盖可变字段（created_at 不变）"""
        await self._conn.execute(
            """
            UPDATE tasks
            SET title = ?, duration = ?, due_date = ?, urgent = ?, important = ?,
                notes = ?, links = ?, attachments = ?, status = ?, scheduled = ?,
                updated_at = ?
            WHERE user_id = ? AND task_id = ?
            """,
            (
                *self._mutable_values(task),
                task.updated_at.isoformat(),
                task.user_id,
                task.task_id,
            ),
        )

    async def get_task(self, user_id: str, task_id: str) -> Task | None:
        """根据 task_id 查询任务（限定用户）"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE user_id = ? AND task_id = ?",
            (user_id, task_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, user_id: str) -> list[Task]:
        """查询用户全部任务，按 created_at 倒序"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE user_id = ? "
            "ORDER BY created_at DESC, task_id DESC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def delete_task(self, user_id: str, task_id: str) -> bool:
        """删除任务，返回是否确有记录被删除"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE user_id = ? AND task_id = ?",
            (user_id, task_id),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _mutable_values(task: Task) -> tuple:
        """title .. scheduled 列的参数"""
        return (
            task.title,
            task.duration,
            task.due_date.isoformat() if task.due_date else None,
            int(task.urgent),
            int(task.important),
            task.notes,
            json.dumps(task.links, ensure_ascii=False),
            json.dumps(
                [a.model_dump() for a in task.attachments],
                ensure_ascii=False,
            ),
            task.status.value,
            task.scheduled.model_dump_json() if task.scheduled else None,
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        attachments_data = json.loads(row[9]) if row[9] else []
        scheduled_data = json.loads(row[11]) if row[11] else None
        return Task(
            task_id=row[0],
            user_id=row[1],
            title=row[2],
            duration=row[3],
            due_date=date.fromisoformat(row[4]) if row[4] else None,
            urgent=bool(row[5]),
            important=bool(row[6]),
            notes=row[7],
            links=json.loads(row[8]) if row[8] else [],
            attachments=[Attachment(**a) for a in attachments_data],
            status=row[10],
            scheduled=Schedule(**scheduled_data) if scheduled_data else None,
            created_at=datetime.fromisoformat(row[12]),
            updated_at=datetime.fromisoformat(row[13]),
        )
