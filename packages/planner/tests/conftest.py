"""packages/planner 测试配置 -- 内存仓储 + Service fixture"""

from datetime import UTC, datetime

import pytest
import pytest_asyncio
from weekplanner.core.exceptions import RepositoryError, TaskNotFoundError
from weekplanner.core.models import PlannerData, Task, TaskPatch, new_id
from weekplanner.planner import PlannerService

WEEK = "2026-03-02"


class InMemoryRepository:
    """PlannerRepository 的内存实现

    fail_update_ids 中的任务在 update_task 时抛出 RepositoryError，
    用于模拟部分写入失败。
    """

    def __init__(self, tasks: list[Task] | None = None, week: str = WEEK) -> None:
        self.tasks: dict[str, Task] = {t.task_id: t for t in tasks or []}
        self.selected_week_start = week
        self.backlog_order: list[str] = []
        self.kanban_order: list[str] = []
        self.fail_update_ids: set[str] = set()
        self.update_calls: list[str] = []

    async def load_planner_data(self, user_id: str) -> PlannerData:
        tasks = sorted(self.tasks.values(), key=lambda t: t.created_at, reverse=True)
        return PlannerData(
            selected_week_start=self.selected_week_start,
            backlog_order=list(self.backlog_order),
            kanban_order=list(self.kanban_order),
            tasks=tasks,
        )

    async def create_task(self, user_id: str, title: str) -> Task:
        now = datetime.now(UTC)
        task = Task(
            task_id=new_id(),
            user_id=user_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        self.tasks[task.task_id] = task
        return task

    async def update_task(self, user_id: str, task_id: str, patch: TaskPatch) -> Task:
        self.update_calls.append(task_id)
        if task_id in self.fail_update_ids:
            raise RepositoryError("update_task", message=f"write rejected for {task_id}")
        current = self.tasks.get(task_id)
        if current is None:
            raise TaskNotFoundError(task_id, operation="update_task")
        updated = current.apply_patch(patch, datetime.now(UTC))
        self.tasks[task_id] = updated
        return updated

    async def delete_task(self, user_id: str, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    async def update_backlog_order(self, user_id: str, order: list[str], week_key: str) -> None:
        self.backlog_order = list(order)

    async def update_kanban_order(self, user_id: str, order: list[str], week_key: str) -> None:
        self.kanban_order = list(order)

    async def update_selected_week_start(self, user_id: str, week_key: str) -> None:
        self.selected_week_start = week_key


@pytest.fixture
def make_repo():
    def _make(*tasks: Task) -> InMemoryRepository:
        return InMemoryRepository(list(tasks))

    return _make


@pytest_asyncio.fixture
async def make_service(make_repo):
    """构造已加载的 PlannerService 与其内存仓储"""

    async def _make(*tasks: Task) -> tuple[PlannerService, InMemoryRepository]:
        repo = make_repo(*tasks)
        service = PlannerService(repo, "owner", timezone="UTC")
        await service.load()
        return service, repo

    return _make
