"""全局 pytest 配置 -- 任务构造工具"""

from datetime import UTC, datetime, timedelta

import pytest
from weekplanner.core.models import Schedule, Task, TaskStatus

WEEK = "2026-03-02"


@pytest.fixture
def make_task():
    """构造 Task；slot 为 None 表示未排期，created_at 按 seq 递增"""
    base = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)

    def _make(
        task_id: str,
        slot: int | None = None,
        duration: int = 30,
        day_index: int = 0,
        week_key: str = WEEK,
        status: TaskStatus = TaskStatus.NOT_STARTED,
        seq: int = 0,
        user_id: str = "owner",
    ) -> Task:
        scheduled = None
        if slot is not None:
            scheduled = Schedule(week_key=week_key, day_index=day_index, slot=slot)
        created = base + timedelta(minutes=seq)
        return Task(
            task_id=task_id,
            user_id=user_id,
            title=f"Task {task_id}",
            duration=duration,
            status=status,
            scheduled=scheduled,
            created_at=created,
            updated_at=created,
        )

    return _make
