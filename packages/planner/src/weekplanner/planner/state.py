"""PlannerState -- 单个用户、单个选中周的内存快照

规划引擎只读取这里的数据；所有修改都先落库，再通过 apply_updates 一次性写回。
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from weekplanner.core.grid import round_half_up
from weekplanner.core.models import PlannerData, Task, TaskStatus

from .ordering import kanban_columns, prune_order, sort_by_order


@dataclass(frozen=True)
class WeekProgress:
    """选中周已排期任务的完成情况"""

    completed: int
    scheduled: int

    @property
    def percent(self) -> int:
        if self.scheduled == 0:
            return 0
        return round_half_up(self.completed * 100 / self.scheduled)


@dataclass
class PlannerState:
    selected_week_start: str
    tasks: dict[str, Task] = field(default_factory=dict)
    backlog_order: list[str] = field(default_factory=list)
    kanban_order: list[str] = field(default_factory=list)

    @classmethod
    def from_data(cls, data: PlannerData) -> "PlannerState":
        return cls(
            selected_week_start=data.selected_week_start,
            tasks={t.task_id: t for t in data.tasks},
            backlog_order=list(data.backlog_order),
            kanban_order=list(data.kanban_order),
        )

    def get(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def all_tasks(self) -> list[Task]:
        return list(self.tasks.values())

    def backlog_tasks(self) -> list[Task]:
        """未排期任务，按 backlog 顺序"""
        unscheduled = [t for t in self.tasks.values() if t.scheduled is None]
        return sort_by_order(unscheduled, self.backlog_order)

    def kanban_columns(self) -> dict[TaskStatus, list[Task]]:
        return kanban_columns(self.tasks.values(), self.kanban_order)

    def scheduled_this_week(self) -> list[Task]:
        week = self.selected_week_start
        return [t for t in self.tasks.values() if t.is_scheduled_on(week)]

    def day_tasks(self, day_index: int) -> list[Task]:
        """选中周某一天的任务，按 slot 升序"""
        week = self.selected_week_start
        day = [t for t in self.tasks.values() if t.is_scheduled_on(week, day_index)]
        return sorted(day, key=lambda t: t.scheduled.slot)

    def weekly_progress(self) -> WeekProgress:
        scheduled = self.scheduled_this_week()
        return WeekProgress(
            completed=sum(1 for t in scheduled if t.completed),
            scheduled=len(scheduled),
        )

    def add_task(self, task: Task) -> None:
        self.tasks[task.task_id] = task

    def remove_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)
        self.backlog_order = prune_order(self.backlog_order, self.tasks)
        self.kanban_order = prune_order(self.kanban_order, self.tasks)

    def apply_updates(self, updated: Iterable[Task], expected_ids: Iterable[str]) -> list[Task]:
        """按 id 替换任务记录

        只接受 expected_ids 内、且仍在快照中的任务；其余响应视为过期并忽略。
        返回实际应用的记录。
        """
        expected = set(expected_ids)
        applied: list[Task] = []
        for task in updated:
            if task.task_id not in expected or task.task_id not in self.tasks:
                continue
            self.tasks[task.task_id] = task
            applied.append(task)
        return applied
