"""weekplanner Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    DEFAULT_DURATION,
    DURATIONS,
    STATUS_ORDER,
    TaskStatus,
    is_valid_duration,
    status_for_completed,
)
from .planner import PlannerData
from .task import (
    Attachment,
    Schedule,
    Task,
    TaskPatch,
    new_id,
    normalize_link,
    normalize_links,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "STATUS_ORDER",
    "DURATIONS",
    "DEFAULT_DURATION",
    "is_valid_duration",
    "status_for_completed",
    # Task
    "Task",
    "TaskPatch",
    "Schedule",
    "Attachment",
    "new_id",
    "normalize_link",
    "normalize_links",
    # Planner
    "PlannerData",
]
