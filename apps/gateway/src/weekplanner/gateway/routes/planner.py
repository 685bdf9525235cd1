"""规划视图与周选择路由

GET  /api/planner: 选中周的完整视图（backlog、看板列、每日时间轴、进度）
PUT  /api/planner/week: 选择指定周
POST /api/planner/week/shift: 前后翻周
POST /api/planner/week/current: 回到本周
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from weekplanner.core.exceptions import PlannerError
from weekplanner.core.grid import DAYS_PER_WEEK, day_name
from weekplanner.core.models import Task
from weekplanner.core.weeks import day_label, parse_week_key, week_label
from weekplanner.planner import PlannerService, PlannerState

from ..deps import get_planner_service
from ..errors import planner_error_response

router = APIRouter()


class SelectWeekRequest(BaseModel):
    week_start: str = Field(description="周一的 ISO 日期，如 2026-03-02")

    @field_validator("week_start")
    @classmethod
    def _check_week(cls, value: str) -> str:
        parse_week_key(value)
        return value


class ShiftWeekRequest(BaseModel):
    delta: int = Field(description="偏移的周数，可为负")


def task_payload(task: Task) -> dict[str, Any]:
    return task.model_dump(mode="json")


def planner_view(state: PlannerState) -> dict[str, Any]:
    """序列化选中周视图"""
    week = state.selected_week_start
    progress = state.weekly_progress()
    return {
        "selected_week_start": week,
        "week_label": week_label(week),
        "backlog_order": state.backlog_order,
        "kanban_order": state.kanban_order,
        "tasks": [task_payload(t) for t in state.all_tasks()],
        "backlog": [t.task_id for t in state.backlog_tasks()],
        "kanban": {
            status.value: [t.task_id for t in column]
            for status, column in state.kanban_columns().items()
        },
        "days": [
            {
                "day_index": day_index,
                "name": day_name(day_index),
                "date_label": day_label(week, day_index),
                "task_ids": [t.task_id for t in state.day_tasks(day_index)],
            }
            for day_index in range(DAYS_PER_WEEK)
        ],
        "progress": {
            "completed": progress.completed,
            "scheduled": progress.scheduled,
            "percent": progress.percent,
        },
    }


@router.get("/api/planner")
async def get_planner(service: PlannerService = Depends(get_planner_service)):
    return planner_view(service.state)


@router.put("/api/planner/week")
async def select_week(
    body: SelectWeekRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        await service.select_week(body.week_start)
    except PlannerError as e:
        return planner_error_response(e)
    return planner_view(service.state)


@router.post("/api/planner/week/shift")
async def shift_week(
    body: ShiftWeekRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        await service.shift_week(body.delta)
    except PlannerError as e:
        return planner_error_response(e)
    return planner_view(service.state)


@router.post("/api/planner/week/current")
async def go_to_current_week(service: PlannerService = Depends(get_planner_service)):
    try:
        await service.go_to_current_week()
    except PlannerError as e:
        return planner_error_response(e)
    return planner_view(service.state)
