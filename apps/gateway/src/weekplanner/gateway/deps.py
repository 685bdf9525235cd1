"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与 PlannerService

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

import structlog
from fastapi import Depends, Header, Request
from weekplanner.core.config import get_default_user
from weekplanner.core.store import StoreGroup
from weekplanner.planner import PlannerService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def resolve_user_id(header_value: str | None) -> str:
    """X-User-Id 请求头的值，缺省为 WEEKPLANNER_DEFAULT_USER"""
    if header_value and header_value.strip():
        return header_value.strip()
    return get_default_user()


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    return resolve_user_id(x_user_id)


async def get_planner_service(
    store_group: StoreGroup = Depends(get_store_group),
    user_id: str = Depends(get_user_id),
) -> PlannerService:
    """每个请求加载一次该用户的规划快照，并把选中周绑定到日志上下文"""
    service = PlannerService(store_group.repository, user_id)
    await service.load()
    structlog.contextvars.bind_contextvars(week=service.state.selected_week_start)
    return service
