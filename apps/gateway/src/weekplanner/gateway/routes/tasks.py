"""任务路由 -- CRUD 与放置操作

POST   /api/tasks: 创建任务（201）
PATCH  /api/tasks/{task_id}: 部分更新
DELETE /api/tasks/{task_id}: 删除（204）
POST   /api/tasks/{task_id}/toggle: 勾选/取消完成
POST   /api/tasks/{task_id}/preview: 计算时间轴落点方案，不提交
POST   /api/tasks/{task_id}/schedule: 放到时间轴（顺延或最近空位）
POST   /api/tasks/{task_id}/resize: 调整时长
POST   /api/tasks/{task_id}/backlog: 移回 backlog 指定位置
POST   /api/tasks/{task_id}/kanban: 移到看板列指定位置

错误：
- 404 TASK_NOT_FOUND
- 409 PLACEMENT_INFEASIBLE（状态不变）
- 422 INVALID_TASK
- 502 PERSISTENCE_FAILED
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationError, field_validator
from starlette.responses import Response
from weekplanner.core.exceptions import PlannerError
from weekplanner.core.grid import DAYS_PER_WEEK, TOTAL_SLOTS
from weekplanner.core.models import TaskPatch, TaskStatus, is_valid_duration
from weekplanner.core.weeks import parse_week_key
from weekplanner.planner import PlannerService

from ..deps import get_planner_service
from ..errors import error_response, planner_error_response, task_not_found
from .planner import task_payload

router = APIRouter()


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1, description="任务标题")


class ScheduleRequest(BaseModel):
    """时间轴落点；week_start 缺省为选中周"""

    day_index: int = Field(ge=0, lt=DAYS_PER_WEEK)
    slot: int = Field(ge=0, lt=TOTAL_SLOTS)
    week_start: str | None = None

    @field_validator("week_start")
    @classmethod
    def _check_week(cls, value: str | None) -> str | None:
        if value is not None:
            parse_week_key(value)
        return value


class ResizeRequest(BaseModel):
    duration: int

    @field_validator("duration")
    @classmethod
    def _check_duration(cls, value: int) -> int:
        if not is_valid_duration(value):
            raise ValueError("duration must be a multiple of 15 between 15 and 240")
        return value


class BacklogMoveRequest(BaseModel):
    index: int = Field(default=0, ge=0, description="插入位置（不含被移动任务本身）")


class KanbanMoveRequest(BaseModel):
    status: TaskStatus
    index: int = Field(default=0, ge=0, description="该列内的插入位置")


def _tasks_response(tasks) -> dict:
    return {"tasks": [task_payload(t) for t in tasks]}


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: CreateTaskRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        task = await service.create_task(body.title)
    except PlannerError as e:
        return planner_error_response(e)
    if task is None:
        return error_response(422, "INVALID_TASK", "Title must not be blank")
    return task_payload(task)


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    patch: TaskPatch,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        task = await service.update_task(task_id, patch)
    except PlannerError as e:
        return planner_error_response(e)
    except (ValidationError, ValueError) as e:
        return error_response(422, "INVALID_TASK", str(e))
    if task is None:
        return task_not_found(task_id)
    return task_payload(task)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        deleted = await service.delete_task(task_id)
    except PlannerError as e:
        return planner_error_response(e)
    if not deleted:
        return task_not_found(task_id)
    return Response(status_code=204)


@router.post("/api/tasks/{task_id}/toggle")
async def toggle_complete(
    task_id: str,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        task = await service.toggle_complete(task_id)
    except PlannerError as e:
        return planner_error_response(e)
    if task is None:
        return task_not_found(task_id)
    return task_payload(task)


@router.post("/api/tasks/{task_id}/preview")
async def preview_drop(
    task_id: str,
    body: ScheduleRequest,
    service: PlannerService = Depends(get_planner_service),
):
    """只计算方案；无法放置时 feasible 为 false"""
    if service.state.get(task_id) is None:
        return task_not_found(task_id)
    resolution = service.preview_drop(task_id, body.day_index, body.slot, body.week_start)
    if resolution is None:
        return {"feasible": False, "mode": None, "plan": None}
    return {
        "feasible": True,
        "mode": resolution.mode,
        "plan": resolution.plan.model_dump(mode="json"),
    }


@router.post("/api/tasks/{task_id}/schedule")
async def schedule_task(
    task_id: str,
    body: ScheduleRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        tasks = await service.drop_on_timeline(
            task_id, body.day_index, body.slot, week_key=body.week_start
        )
    except PlannerError as e:
        return planner_error_response(e)
    if tasks is None:
        return task_not_found(task_id)
    return _tasks_response(tasks)


@router.post("/api/tasks/{task_id}/resize")
async def resize_task(
    task_id: str,
    body: ResizeRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        tasks = await service.resize_task(task_id, body.duration)
    except PlannerError as e:
        return planner_error_response(e)
    if tasks is None:
        return task_not_found(task_id)
    return _tasks_response(tasks)


@router.post("/api/tasks/{task_id}/backlog")
async def move_to_backlog(
    task_id: str,
    body: BacklogMoveRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        task = await service.move_to_backlog(task_id, body.index)
    except PlannerError as e:
        return planner_error_response(e)
    if task is None:
        return task_not_found(task_id)
    return {"task": task_payload(task), "backlog_order": service.state.backlog_order}


@router.post("/api/tasks/{task_id}/kanban")
async def move_to_kanban(
    task_id: str,
    body: KanbanMoveRequest,
    service: PlannerService = Depends(get_planner_service),
):
    try:
        task = await service.move_to_kanban(task_id, body.status, body.index)
    except PlannerError as e:
        return planner_error_response(e)
    if task is None:
        return task_not_found(task_id)
    return {"task": task_payload(task), "kanban_order": service.state.kanban_order}
