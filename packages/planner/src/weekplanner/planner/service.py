"""PlannerService -- 规划操作的提交层

流程：
1. 在内存快照上调用纯函数引擎，得到方案
2. 通过 PlannerRepository 落库（可能挂起、可能失败）
3. 全部成功后一次性写回 PlannerState

本地状态只在落库成功后更新，持久化失败时无需回滚本地状态。
"""

import asyncio

import structlog
from weekplanner.core.config import get_schedule_timezone
from weekplanner.core.grid import day_name
from weekplanner.core.models import (
    Schedule,
    Task,
    TaskPatch,
    TaskStatus,
    is_valid_duration,
)
from weekplanner.core.store.protocols import PlannerRepository
from weekplanner.core.weeks import current_week_key, parse_week_key, shift_week_key

from .exceptions import InfeasiblePlacementError, PartialCommitError
from .ordering import move_in_kanban, prune_order, reorder_to_index
from .placement import DropResolution, ShiftPlan, build_stable_shift_plan, resolve_drop
from .state import PlannerState

log = structlog.get_logger()

_PLACEMENT_FIELDS = ("scheduled", "duration")


class PlannerService:
    """单个用户的规划业务服务"""

    def __init__(
        self,
        repository: PlannerRepository,
        user_id: str,
        timezone: str | None = None,
    ) -> None:
        self._repo = repository
        self._user_id = user_id
        self._timezone = timezone or get_schedule_timezone()
        self._state: PlannerState | None = None

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def state(self) -> PlannerState:
        if self._state is None:
            raise RuntimeError("planner state not loaded, call load() first")
        return self._state

    async def load(self) -> PlannerState:
        """从仓储加载快照"""
        data = await self._repo.load_planner_data(self._user_id)
        self._state = PlannerState.from_data(data)
        log.info(
            "planner_loaded",
            user_id=self._user_id,
            task_count=len(data.tasks),
            week=data.selected_week_start,
        )
        return self._state

    # ------------------------------------------------------------------
    # 任务 CRUD
    # ------------------------------------------------------------------

    async def create_task(self, title: str) -> Task | None:
        """创建任务；空标题忽略"""
        title = title.strip()
        if not title:
            return None
        task = await self._repo.create_task(self._user_id, title)
        self.state.add_task(task)
        log.info("task_created", task_id=task.task_id)
        return task

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        """应用部分更新

        涉及时间轴占用的字段走放置引擎：
        - 已排期任务改时长 -> resize_task
        - 设置新的排期 -> drop_on_timeline
        """
        task = self.state.get(task_id)
        if task is None:
            log.info("stale_task_reference", task_id=task_id, operation="update_task")
            return None

        changes = patch.changes()
        if not changes:
            return task

        if patch.touches_placement():
            patch = await self._apply_placement_changes(task, patch)

        if patch.is_empty():
            return self.state.get(task_id)

        updated = await self._repo.update_task(self._user_id, task_id, patch)
        self.state.apply_updates([updated], [task_id])
        log.info("task_updated", task_id=task_id, fields=sorted(patch.changes()))
        return updated

    async def _apply_placement_changes(self, task: Task, patch: TaskPatch) -> TaskPatch:
        """把排期/时长变更交给放置引擎，返回剩余的普通字段 patch"""
        task_id = task.task_id
        changes = patch.changes()
        schedule = changes.get("scheduled")
        if schedule is not None:
            if "duration" in changes and changes["duration"] != task.duration:
                raise InfeasiblePlacementError(
                    "Change the duration and the placement separately", task_id
                )
            # 调用方显式给出的时区标签优先
            timezone = schedule.timezone if "timezone" in schedule.model_fields_set else None
            await self.drop_on_timeline(
                task_id,
                schedule.day_index,
                schedule.slot,
                week_key=schedule.week_key,
                timezone=timezone,
            )
            return TaskPatch(**{k: v for k, v in changes.items() if k not in _PLACEMENT_FIELDS})

        if (
            task.scheduled is not None
            and "scheduled" not in changes
            and changes.get("duration", task.duration) != task.duration
        ):
            await self.resize_task(task_id, changes["duration"])
            return TaskPatch(**{k: v for k, v in changes.items() if k != "duration"})
        return patch

    async def rename_task(self, task_id: str, title: str) -> Task | None:
        title = title.strip()
        if not title:
            return self.state.get(task_id)
        return await self.update_task(task_id, TaskPatch(title=title))

    async def toggle_complete(self, task_id: str) -> Task | None:
        """勾选/取消完成（status 随之变为 Done / Not Started）"""
        task = self.state.get(task_id)
        if task is None:
            return None
        return await self.update_task(task_id, TaskPatch(completed=not task.completed))

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，并从两个顺序列表中剔除"""
        if self.state.get(task_id) is None:
            log.info("stale_task_reference", task_id=task_id, operation="delete_task")
            return False

        await self._repo.delete_task(self._user_id, task_id)
        in_backlog = task_id in self.state.backlog_order
        in_kanban = task_id in self.state.kanban_order
        self.state.remove_task(task_id)

        week = self.state.selected_week_start
        if in_backlog:
            await self._repo.update_backlog_order(
                self._user_id, self.state.backlog_order, week
            )
        if in_kanban:
            await self._repo.update_kanban_order(
                self._user_id, self.state.kanban_order, week
            )
        log.info("task_deleted", task_id=task_id)
        return True

    # ------------------------------------------------------------------
    # 时间轴放置
    # ------------------------------------------------------------------

    def preview_drop(
        self,
        task_id: str,
        day_index: int,
        slot: int,
        week_key: str | None = None,
    ) -> DropResolution | None:
        """计算落点方案但不提交"""
        week = week_key or self.state.selected_week_start
        return resolve_drop(self.state.all_tasks(), week, task_id, day_index, slot)

    async def drop_on_timeline(
        self,
        task_id: str,
        day_index: int,
        slot: int,
        week_key: str | None = None,
        timezone: str | None = None,
    ) -> list[Task] | None:
        """把任务放到时间轴：顺延方案优先，失败再找最近空位

        timezone 为 None 时沿用任务原有的时区标签，未排期任务用配置的默认值。

        Raises:
            InfeasiblePlacementError: 当天放不下该任务
        """
        task = self.state.get(task_id)
        if task is None:
            log.info("stale_task_reference", task_id=task_id, operation="drop_on_timeline")
            return None

        week = week_key or self.state.selected_week_start
        resolution = self.preview_drop(task_id, day_index, slot, week)
        if resolution is None:
            log.info(
                "placement_infeasible",
                task_id=task_id,
                day_index=day_index,
                slot=slot,
                duration=task.duration,
            )
            raise InfeasiblePlacementError(
                f"No room on {day_name(day_index)} for a {task.duration}-minute task",
                task_id,
            )
        return await self.apply_shift_plan(resolution.plan, timezone=timezone)

    async def resize_task(self, task_id: str, duration: int) -> list[Task] | None:
        """调整时长；已排期任务按原位置重新计算顺延方案

        Raises:
            ValueError: 时长不在可选集合内
            InfeasiblePlacementError: 当天剩余空间不足，时长保持不变
        """
        if not is_valid_duration(duration):
            raise ValueError(f"unsupported duration: {duration}")

        task = self.state.get(task_id)
        if task is None:
            log.info("stale_task_reference", task_id=task_id, operation="resize_task")
            return None
        if duration == task.duration:
            return []

        if task.scheduled is None:
            updated = await self._repo.update_task(
                self._user_id, task_id, TaskPatch(duration=duration)
            )
            return self.state.apply_updates([updated], [task_id])

        schedule = task.scheduled
        plan = build_stable_shift_plan(
            self.state.all_tasks(),
            schedule.week_key,
            task_id,
            schedule.day_index,
            schedule.slot,
            duration_override=duration,
            target_week_override=schedule.week_key,
        )
        if plan is None:
            log.info(
                "resize_infeasible",
                task_id=task_id,
                from_duration=task.duration,
                to_duration=duration,
            )
            raise InfeasiblePlacementError(
                f"Not enough room on {day_name(schedule.day_index)} "
                f"to make this task {duration} minutes",
                task_id,
            )
        return await self.apply_shift_plan(plan)

    async def apply_shift_plan(
        self, plan: ShiftPlan, timezone: str | None = None
    ) -> list[Task]:
        """并发写入方案中的每个 patch，全部成功后一次性写回本地状态

        部分失败时把已成功的任务恢复为原值，本地状态不变，抛出 PartialCommitError；
        全部失败时直接抛出第一个错误。
        """
        originals = {p.task_id: self.state.get(p.task_id) for p in plan.patches}
        patches = self._patches_for_plan(plan, originals, timezone)

        results = await asyncio.gather(
            *(
                self._repo.update_task(self._user_id, task_id, patch)
                for task_id, patch in patches
            ),
            return_exceptions=True,
        )

        succeeded: list[Task] = []
        failed: list[tuple[str, BaseException]] = []
        for (task_id, _), result in zip(patches, results):
            if isinstance(result, BaseException):
                failed.append((task_id, result))
            else:
                succeeded.append(result)

        if failed:
            await self._rollback_partial_plan(plan, succeeded, originals, failed)

        applied = self.state.apply_updates(succeeded, [task_id for task_id, _ in patches])
        log.info(
            "shift_plan_committed",
            task_id=plan.moving_task_id,
            week=plan.week_key,
            day_index=plan.day_index,
            slot=plan.slot,
            displaced=len(plan.displaced),
        )
        return applied

    def _patches_for_plan(
        self,
        plan: ShiftPlan,
        originals: dict[str, Task | None],
        timezone: str | None = None,
    ) -> list[tuple[str, TaskPatch]]:
        patches: list[tuple[str, TaskPatch]] = []
        for slot_patch in plan.patches:
            original = originals[slot_patch.task_id]
            if slot_patch.task_id == plan.moving_task_id:
                tag = timezone
                if tag is None:
                    tag = (
                        original.scheduled.timezone
                        if original is not None and original.scheduled is not None
                        else self._timezone
                    )
                patch = TaskPatch(
                    scheduled=Schedule(
                        week_key=plan.week_key,
                        day_index=plan.day_index,
                        slot=slot_patch.slot,
                        timezone=tag,
                    )
                )
                if original is None or plan.duration != original.duration:
                    patch = TaskPatch(scheduled=patch.scheduled, duration=plan.duration)
            else:
                patch = TaskPatch(
                    scheduled=original.scheduled.model_copy(update={"slot": slot_patch.slot})
                )
            patches.append((slot_patch.task_id, patch))
        return patches

    async def _rollback_partial_plan(
        self,
        plan: ShiftPlan,
        succeeded: list[Task],
        originals: dict[str, Task | None],
        failed: list[tuple[str, BaseException]],
    ) -> None:
        first_error = failed[0][1]
        failed_ids = [task_id for task_id, _ in failed]
        log.error(
            "shift_plan_commit_failed",
            task_id=plan.moving_task_id,
            failed_ids=failed_ids,
            error_type=type(first_error).__name__,
        )
        if not succeeded:
            raise first_error

        restores = [
            (
                task.task_id,
                TaskPatch(
                    scheduled=originals[task.task_id].scheduled,
                    duration=originals[task.task_id].duration,
                ),
            )
            for task in succeeded
            if originals.get(task.task_id) is not None
        ]
        results = await asyncio.gather(
            *(
                self._repo.update_task(self._user_id, task_id, patch)
                for task_id, patch in restores
            ),
            return_exceptions=True,
        )
        rollback_failed = [
            task_id
            for (task_id, _), result in zip(restores, results)
            if isinstance(result, BaseException)
        ]
        log.warning(
            "shift_plan_rollback",
            task_id=plan.moving_task_id,
            restored=len(restores) - len(rollback_failed),
            rollback_failed_ids=rollback_failed,
        )
        error = first_error if isinstance(first_error, Exception) else None
        raise PartialCommitError(failed_ids, rollback_failed, error) from first_error

    # ------------------------------------------------------------------
    # Backlog / 看板
    # ------------------------------------------------------------------

    async def move_to_backlog(self, task_id: str, index: int) -> Task | None:
        """清除排期并插入 backlog 第 index 位"""
        task = self.state.get(task_id)
        if task is None:
            log.info("stale_task_reference", task_id=task_id, operation="move_to_backlog")
            return None

        if task.scheduled is not None:
            updated = await self._repo.update_task(
                self._user_id, task_id, TaskPatch(scheduled=None)
            )
            self.state.apply_updates([updated], [task_id])

        await self.reorder_backlog(task_id, index)
        return self.state.get(task_id)

    async def reorder_backlog(self, task_id: str, index: int) -> list[str]:
        """在 backlog 内移动任务，整体写回 backlog 顺序"""
        visible_ids = [t.task_id for t in self.state.backlog_tasks()]
        new_order = reorder_to_index(visible_ids, task_id, index)
        new_order = prune_order(new_order, self.state.tasks)
        await self._repo.update_backlog_order(
            self._user_id, new_order, self.state.selected_week_start
        )
        self.state.backlog_order = new_order
        return new_order

    async def move_to_kanban(
        self, task_id: str, status: TaskStatus, index: int
    ) -> Task | None:
        """设置状态（completed 随之推导）并插入该列第 index 位"""
        task = self.state.get(task_id)
        if task is None:
            log.info("stale_task_reference", task_id=task_id, operation="move_to_kanban")
            return None

        if task.status != status:
            updated = await self._repo.update_task(
                self._user_id, task_id, TaskPatch(status=status)
            )
            self.state.apply_updates([updated], [task_id])

        new_order = move_in_kanban(
            self.state.all_tasks(), self.state.kanban_order, task_id, status, index
        )
        await self._repo.update_kanban_order(
            self._user_id, new_order, self.state.selected_week_start
        )
        self.state.kanban_order = new_order
        log.info("kanban_moved", task_id=task_id, status=status.value, index=index)
        return self.state.get(task_id)

    # ------------------------------------------------------------------
    # 周选择
    # ------------------------------------------------------------------

    async def select_week(self, week_key: str) -> str:
        """切换选中周

        Raises:
            ValueError: week_key 不是周一的 ISO 日期
        """
        parse_week_key(week_key)
        await self._repo.update_selected_week_start(self._user_id, week_key)
        self.state.selected_week_start = week_key
        return week_key

    async def shift_week(self, delta_weeks: int) -> str:
        return await self.select_week(
            shift_week_key(self.state.selected_week_start, delta_weeks)
        )

    async def go_to_current_week(self) -> str:
        return await self.select_week(current_week_key())
