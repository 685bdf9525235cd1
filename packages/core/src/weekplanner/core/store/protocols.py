"""Store Protocol 接口定义

定义规划引擎依赖的持久化接口，使用 Python Protocol 实现结构化子类型（duck typing）。
引擎只调用这些方法，不自行实现持久化。
"""

from typing import Protocol

from ..models.planner import PlannerData
from ..models.task import Task, TaskPatch


class PlannerRepository(Protocol):
    """规划数据仓储接口

    所有方法都可能抛出 RepositoryError（传输/授权/存储失败），
    调用方负责展示错误，不自动重试。
    """

    async def load_planner_data(self, user_id: str) -> PlannerData:
        """加载选中周、两个顺序列表与全部任务"""
        ...

    async def create_task(self, user_id: str, title: str) -> Task:
        """创建任务（30 分钟、Not Started、未排期）"""
        ...

    async def update_task(self, user_id: str, task_id: str, patch: TaskPatch) -> Task:
        """应用部分更新，返回合并后的权威记录"""
        ...

    async def delete_task(self, user_id: str, task_id: str) -> None:
        """删除任务"""
        ...

    async def update_backlog_order(
        self, user_id: str, order: list[str], week_key: str
    ) -> None:
        """整体替换 backlog 顺序"""
        ...

    async def update_kanban_order(
        self, user_id: str, order: list[str], week_key: str
    ) -> None:
        """整体替换看板顺序"""
        ...

    async def update_selected_week_start(self, user_id: str, week_key: str) -> None:
        """更新选中周"""
        ...
