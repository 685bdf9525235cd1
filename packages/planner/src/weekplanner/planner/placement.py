"""Placement Engine -- 时间轴落点计算与冲突处理

纯函数：输入当前任务快照、目标周与操作参数，输出放置方案或 None。
无法放置时返回 None，从不抛异常。

两种策略：
- build_stable_shift_plan: 左压缩级联，把同日之后的任务依次顺延，
  不改变它们的相对顺序；任何一个放不下则整个方案作废。
- find_nearest_available_slot: 不移动别人，找离期望 slot 最近的空位，
  同距离时优先向后。
"""

from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, Field
from weekplanner.core.grid import TOTAL_SLOTS, slots_needed
from weekplanner.core.models import Task


class SlotPatch(BaseModel):
    """单个任务的 slot 变更"""

    task_id: str
    slot: int = Field(ge=0, description="新的起始 slot")
    original_slot: int | None = Field(
        default=None, description="原起始 slot，原先未排期时为 None"
    )


class ShiftPlan(BaseModel):
    """放置/调整时长的完整方案

    patches[0] 始终是被移动的任务本身，其余为被顺延的同日任务。
    """

    moving_task_id: str
    week_key: str
    day_index: int
    slot: int
    duration: int
    patches: list[SlotPatch]

    @property
    def displaced(self) -> list[SlotPatch]:
        """被顺延的邻居（不含移动任务）"""
        return self.patches[1:]


class DropResolution(BaseModel):
    """一次时间轴落点的解析结果"""

    mode: Literal["shift", "nearest"]
    plan: ShiftPlan


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def find_task(tasks: Iterable[Task], task_id: str) -> Task | None:
    for task in tasks:
        if task.task_id == task_id:
            return task
    return None


def day_neighbors(
    tasks: Iterable[Task],
    week_key: str,
    day_index: int,
    exclude_id: str | None = None,
) -> list[Task]:
    """同周同日的其他已排期任务，按 slot 升序（slot 相同按 id）"""
    same_day = [
        t
        for t in tasks
        if t.task_id != exclude_id and t.is_scheduled_on(week_key, day_index)
    ]
    same_day.sort(key=lambda t: (t.scheduled.slot, t.task_id))
    return same_day


def day_occupancy(
    tasks: Iterable[Task],
    week_key: str,
    day_index: int,
    exclude_id: str | None = None,
) -> list[bool]:
    """当天每个 slot 是否被占用"""
    occupied = [False] * TOTAL_SLOTS
    for task in day_neighbors(tasks, week_key, day_index, exclude_id):
        start = task.scheduled.slot
        for slot in range(start, min(start + task.slot_count, TOTAL_SLOTS)):
            occupied[slot] = True
    return occupied


def find_nearest_available_slot(
    tasks: Iterable[Task],
    week_key: str,
    moving_task_id: str,
    day_index: int,
    desired_slot: int,
) -> int | None:
    """找离 desired_slot 最近、整段空闲且不越界的起始 slot

    从距离 1 开始双向扩展，同一距离先查向后再查向前。
    任务不存在或当天没有空间时返回 None。
    """
    tasks = list(tasks)
    moving = find_task(tasks, moving_task_id)
    if moving is None:
        return None

    needed = moving.slot_count
    max_start = TOTAL_SLOTS - needed
    if max_start < 0:
        return None

    start = _clamp(desired_slot, 0, max_start)
    occupied = day_occupancy(tasks, week_key, day_index, exclude_id=moving_task_id)

    def fits(candidate: int) -> bool:
        if candidate < 0 or candidate > max_start:
            return False
        return not any(occupied[candidate : candidate + needed])

    if fits(start):
        return start

    for distance in range(1, TOTAL_SLOTS + 1):
        for candidate in (start + distance, start - distance):
            if fits(candidate):
                return candidate
    return None


def build_stable_shift_plan(
    tasks: Iterable[Task],
    week_key: str,
    moving_task_id: str,
    day_index: int,
    desired_slot: int,
    duration_override: int | None = None,
    target_week_override: str | None = None,
) -> ShiftPlan | None:
    """把任务放到 desired_slot，并顺延同日之后的任务

    1. 期望 slot 截断到 [0, max_start]
    2. 若落在某个任务的区间内部，推到该任务结束处
    3. 原起点 >= 落点的邻居按原顺序依次顺延，只记录真正变化的 patch
    4. 任何任务越过当天末尾则返回 None（不做部分顺延）
    """
    tasks = list(tasks)
    moving = find_task(tasks, moving_task_id)
    if moving is None:
        return None

    target_week = target_week_override or week_key
    moving_duration = duration_override if duration_override is not None else moving.duration
    moving_slots = slots_needed(moving_duration)
    moving_max_start = TOTAL_SLOTS - moving_slots
    if moving_max_start < 0:
        return None

    neighbors = day_neighbors(tasks, target_week, day_index, exclude_id=moving_task_id)
    moving_start = _clamp(desired_slot, 0, moving_max_start)

    # 不能从别人的区间中间开始
    for neighbor in neighbors:
        start = neighbor.scheduled.slot
        end = start + neighbor.slot_count
        if start < moving_start < end:
            moving_start = end
    if moving_start > moving_max_start:
        return None

    patches = [
        SlotPatch(
            task_id=moving_task_id,
            slot=moving_start,
            original_slot=moving.scheduled.slot if moving.scheduled else None,
        )
    ]

    cursor = moving_start + moving_slots
    for neighbor in neighbors:
        original = neighbor.scheduled.slot
        if original < moving_start:
            continue
        new_start = max(original, cursor)
        if new_start > TOTAL_SLOTS - neighbor.slot_count:
            return None
        if new_start != original:
            patches.append(
                SlotPatch(task_id=neighbor.task_id, slot=new_start, original_slot=original)
            )
        cursor = new_start + neighbor.slot_count

    return ShiftPlan(
        moving_task_id=moving_task_id,
        week_key=target_week,
        day_index=day_index,
        slot=moving_start,
        duration=moving_duration,
        patches=patches,
    )


def resolve_drop(
    tasks: Iterable[Task],
    week_key: str,
    moving_task_id: str,
    day_index: int,
    desired_slot: int,
) -> DropResolution | None:
    """时间轴落点：先尝试顺延方案，失败再找最近空位"""
    tasks = list(tasks)
    plan = build_stable_shift_plan(tasks, week_key, moving_task_id, day_index, desired_slot)
    if plan is not None:
        return DropResolution(mode="shift", plan=plan)

    slot = find_nearest_available_slot(
        tasks, week_key, moving_task_id, day_index, desired_slot
    )
    if slot is None:
        return None

    moving = find_task(tasks, moving_task_id)
    return DropResolution(
        mode="nearest",
        plan=ShiftPlan(
            moving_task_id=moving_task_id,
            week_key=week_key,
            day_index=day_index,
            slot=slot,
            duration=moving.duration,
            patches=[
                SlotPatch(
                    task_id=moving_task_id,
                    slot=slot,
                    original_slot=moving.scheduled.slot if moving.scheduled else None,
                )
            ],
        ),
    )


def find_overlaps(
    tasks: Iterable[Task], week_key: str, day_index: int
) -> list[tuple[str, str]]:
    """返回当天区间重叠的任务对（正常状态下应为空）"""
    same_day = day_neighbors(tasks, week_key, day_index)
    overlaps: list[tuple[str, str]] = []
    for i, first in enumerate(same_day):
        first_end = first.scheduled.slot + first.slot_count
        for second in same_day[i + 1 :]:
            if second.scheduled.slot >= first_end:
                break
            overlaps.append((first.task_id, second.task_id))
    return overlaps
