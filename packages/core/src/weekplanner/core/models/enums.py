"""枚举与取值集合 -- TaskStatus 看板流水线、Duration 可选时长

TaskStatus 顺序即看板列的显示顺序。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态 -- 看板列"""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    IN_REVIEW = "In Review"
    DONE = "Done"


# 看板列顺序
STATUS_ORDER: tuple[TaskStatus, ...] = (
    TaskStatus.NOT_STARTED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.BLOCKED,
    TaskStatus.IN_REVIEW,
    TaskStatus.DONE,
)

# 可选时长（分钟）
DURATIONS: tuple[int, ...] = (15, 30, 45, 60, 90, 120, 150, 180, 210, 240)

# 拖拽调整会产生 75、105 等非可选值，存储时按 15 分钟粒度校验
DURATION_STEP: int = 15

DEFAULT_DURATION: int = 30


def is_valid_duration(minutes: int) -> bool:
    """判断时长是否可存储：DURATIONS 范围内的 15 分钟整数倍"""
    return DURATIONS[0] <= minutes <= DURATIONS[-1] and minutes % DURATION_STEP == 0


def status_for_completed(completed: bool) -> TaskStatus:
    """勾选完成 -> Done；取消勾选 -> Not Started"""
    return TaskStatus.DONE if completed else TaskStatus.NOT_STARTED
