"""Ordering Store -- backlog 与看板列的显式顺序

顺序只由持久化的 id 列表决定，与任务属性无关。
不在列表中的任务排在后面，彼此按 created_at 倒序。
"""

from collections.abc import Iterable, Mapping, Sequence

from weekplanner.core.models import STATUS_ORDER, Task, TaskStatus


def sort_by_order(tasks: Iterable[Task], order_ids: Sequence[str]) -> list[Task]:
    """按 order_ids 排序

    列表中的任务按位置排序；其余任务排在后面，按 created_at 倒序。
    sorted 是稳定排序，created_at 相同时保持输入顺序。
    """
    position: dict[str, int] = {}
    for index, task_id in enumerate(order_ids):
        position.setdefault(task_id, index)

    ordered = [t for t in tasks if t.task_id in position]
    unordered = [t for t in tasks if t.task_id not in position]

    ordered.sort(key=lambda t: position[t.task_id])
    unordered.sort(key=lambda t: t.created_at, reverse=True)
    return ordered + unordered


def reorder_to_index(all_ids: Sequence[str], moving_id: str, insert_index: int) -> list[str]:
    """将 moving_id 移到 insert_index（先移除，再按 [0, len] 截断插入）"""
    result = [task_id for task_id in all_ids if task_id != moving_id]
    index = max(0, min(insert_index, len(result)))
    result.insert(index, moving_id)
    return result


def prune_order(order_ids: Iterable[str], live_ids: Iterable[str]) -> list[str]:
    """丢弃已删除任务与重复 id，保持原顺序"""
    live = set(live_ids)
    seen: set[str] = set()
    result: list[str] = []
    for task_id in order_ids:
        if task_id in live and task_id not in seen:
            seen.add(task_id)
            result.append(task_id)
    return result


def kanban_columns(
    tasks: Iterable[Task], kanban_order: Sequence[str]
) -> dict[TaskStatus, list[Task]]:
    """按状态分列，每列内部按 kanban_order 排序"""
    tasks = list(tasks)
    return {
        status: sort_by_order([t for t in tasks if t.status == status], kanban_order)
        for status in STATUS_ORDER
    }


def merge_kanban_order(columns: Mapping[TaskStatus, Sequence[str]]) -> list[str]:
    """按 STATUS_ORDER 依次拼接各列的子顺序"""
    merged: list[str] = []
    for status in STATUS_ORDER:
        merged.extend(columns.get(status, ()))
    return merged


def move_in_kanban(
    tasks: Iterable[Task],
    kanban_order: Sequence[str],
    moving_id: str,
    target_status: TaskStatus,
    insert_index: int,
) -> list[str]:
    """计算把 moving_id 放入 target_status 列第 insert_index 位后的合并顺序

    每列先独立计算自己的子顺序，再合并成一个列表。
    """
    columns = kanban_columns(tasks, kanban_order)
    column_ids: dict[TaskStatus, list[str]] = {}
    for status, column in columns.items():
        ids = [t.task_id for t in column if t.task_id != moving_id]
        if status == target_status:
            ids = reorder_to_index(ids, moving_id, insert_index)
        column_ids[status] = ids
    return merge_kanban_order(column_ids)
