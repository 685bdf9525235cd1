"""PlannerData -- 单个用户的完整规划快照"""

from pydantic import BaseModel, Field

from .task import Task


class PlannerData(BaseModel):
    """load_planner_data 的返回值

    tasks 按 created_at 倒序。
    """

    selected_week_start: str = Field(description="当前选中周的 week key")
    backlog_order: list[str] = Field(default_factory=list, description="backlog 显示顺序")
    kanban_order: list[str] = Field(default_factory=list, description="看板跨列合并顺序")
    tasks: list[Task] = Field(default_factory=list)
