"""InteractionController -- 拖拽/调整时长会话状态机

状态：IDLE -> DRAGGING | RESIZING -> IDLE
- pointer_move 只计算预览，不修改任务
- pointer_up 重新解析落点并提交，无论成败都回到 IDLE
- Escape / cancel 丢弃预览，不提交
- 提交期间 saving 为 True，此时不接受新的交互
"""

from dataclasses import dataclass, field
from enum import StrEnum

import structlog
from weekplanner.core.grid import SLOT_HEIGHT, snap_resize_duration
from weekplanner.core.models import Task

from .exceptions import InfeasiblePlacementError
from .geometry import (
    BacklogTarget,
    DropTarget,
    DropTargetResolver,
    KanbanTarget,
    Rect,
    TimelineTarget,
)
from .placement import DropResolution
from .service import PlannerService

log = structlog.get_logger()


class SessionState(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass
class DragSession:
    """一次拖拽：抓取点相对卡片的偏移 + 当前指针"""

    task_id: str
    pointer_x: float
    pointer_y: float
    grab_offset_x: float = 0.0
    grab_offset_y: float = 0.0
    card_width: float = 0.0
    card_height: float = 0.0
    target: DropTarget | None = None
    resolution: DropResolution | None = None

    @property
    def ghost_rect(self) -> Rect:
        """跟随指针的浮动卡片位置"""
        return Rect(
            x=self.pointer_x - self.grab_offset_x,
            y=self.pointer_y - self.grab_offset_y,
            width=self.card_width,
            height=self.card_height,
        )


@dataclass
class ResizeSession:
    task_id: str
    start_y: float
    start_duration: int
    preview_duration: int


@dataclass(frozen=True)
class DragPreview:
    """拖拽预览

    target 为 None 表示指针不在任何落点上；
    时间轴落点无法放置时 resolution 为 None（预览清空）。
    """

    task_id: str
    target: DropTarget | None
    resolution: DropResolution | None = None

    @property
    def preview_slots(self) -> dict[str, int]:
        """task_id -> 预览 slot（移动任务 + 被顺延的任务）"""
        if self.resolution is None:
            return {}
        return {p.task_id: p.slot for p in self.resolution.plan.patches}


@dataclass(frozen=True)
class ResizePreview:
    task_id: str
    duration: int


@dataclass(frozen=True)
class CommitResult:
    """一次 pointer_up 的提交结果

    ok 为 False 且 message 非空时，message 是给用户看的提示。
    """

    ok: bool
    message: str = ""
    tasks: list[Task] = field(default_factory=list)


class InteractionController:
    """把指针事件翻译为 PlannerService 调用"""

    def __init__(
        self,
        service: PlannerService,
        resolver: DropTargetResolver,
        slot_height: float = SLOT_HEIGHT,
    ) -> None:
        self._service = service
        self._resolver = resolver
        self._slot_height = slot_height
        self._drag: DragSession | None = None
        self._resize: ResizeSession | None = None
        self.saving = False

    @property
    def state(self) -> SessionState:
        if self._drag is not None:
            return SessionState.DRAGGING
        if self._resize is not None:
            return SessionState.RESIZING
        return SessionState.IDLE

    @property
    def drag(self) -> DragSession | None:
        return self._drag

    @property
    def resize(self) -> ResizeSession | None:
        return self._resize

    def _can_begin(self, task_id: str) -> bool:
        if self.saving or self.state is not SessionState.IDLE:
            return False
        return self._service.state.get(task_id) is not None

    def begin_drag(
        self,
        task_id: str,
        pointer_x: float,
        pointer_y: float,
        card: Rect | None = None,
    ) -> bool:
        """开始拖拽；已有会话、正在保存或任务不存在时返回 False"""
        if not self._can_begin(task_id):
            return False
        card = card or Rect(pointer_x, pointer_y, 0.0, 0.0)
        self._drag = DragSession(
            task_id=task_id,
            pointer_x=pointer_x,
            pointer_y=pointer_y,
            grab_offset_x=pointer_x - card.x,
            grab_offset_y=pointer_y - card.y,
            card_width=card.width,
            card_height=card.height,
        )
        log.debug("drag_started", task_id=task_id)
        return True

    def begin_resize(self, task_id: str, pointer_y: float) -> bool:
        """开始调整时长；只允许已排期任务"""
        if not self._can_begin(task_id):
            return False
        task = self._service.state.get(task_id)
        if task.scheduled is None:
            return False
        self._resize = ResizeSession(
            task_id=task_id,
            start_y=pointer_y,
            start_duration=task.duration,
            preview_duration=task.duration,
        )
        log.debug("resize_started", task_id=task_id, duration=task.duration)
        return True

    def pointer_move(self, x: float, y: float) -> DragPreview | ResizePreview | None:
        if self._drag is not None:
            drag = self._drag
            drag.pointer_x, drag.pointer_y = x, y
            drag.target = self._resolver.resolve(x, y, drag.task_id)
            drag.resolution = self._preview_for(drag.task_id, drag.target)
            return DragPreview(drag.task_id, drag.target, drag.resolution)

        if self._resize is not None:
            resize = self._resize
            resize.preview_duration = snap_resize_duration(
                resize.start_duration, y - resize.start_y, self._slot_height
            )
            return ResizePreview(resize.task_id, resize.preview_duration)
        return None

    def _preview_for(
        self, task_id: str, target: DropTarget | None
    ) -> DropResolution | None:
        if not isinstance(target, TimelineTarget):
            return None
        return self._service.preview_drop(task_id, target.day_index, target.slot)

    async def pointer_up(self, x: float, y: float) -> CommitResult | None:
        """结束会话并提交

        仓储错误向上传播（会话已回到 IDLE）；放置不可行时返回 ok=False 的结果。
        """
        if self._drag is not None:
            drag = self._drag
            target = self._resolver.resolve(x, y, drag.task_id)
            try:
                return await self._commit(self._commit_drag(drag.task_id, target))
            finally:
                self._drag = None

        if self._resize is not None:
            resize = self._resize
            duration = snap_resize_duration(
                resize.start_duration, y - resize.start_y, self._slot_height
            )
            try:
                return await self._commit(self._commit_resize(resize.task_id, duration))
            finally:
                self._resize = None
        return None

    async def _commit(self, operation) -> CommitResult:
        self.saving = True
        try:
            return await operation
        except InfeasiblePlacementError as exc:
            return CommitResult(ok=False, message=exc.message)
        finally:
            self.saving = False

    async def _commit_drag(
        self, task_id: str, target: DropTarget | None
    ) -> CommitResult:
        service = self._service
        if target is None:
            return CommitResult(ok=False)

        if isinstance(target, TimelineTarget):
            tasks = await service.drop_on_timeline(task_id, target.day_index, target.slot)
            if tasks is None:
                return CommitResult(ok=False)
            return CommitResult(ok=True, tasks=tasks)

        if isinstance(target, BacklogTarget):
            task = await service.move_to_backlog(task_id, target.index)
        elif isinstance(target, KanbanTarget):
            task = await service.move_to_kanban(task_id, target.status, target.index)
        else:
            return CommitResult(ok=False)
        if task is None:
            return CommitResult(ok=False)
        return CommitResult(ok=True, tasks=[task])

    async def _commit_resize(self, task_id: str, duration: int) -> CommitResult:
        tasks = await self._service.resize_task(task_id, duration)
        if tasks is None:
            return CommitResult(ok=False)
        return CommitResult(ok=True, tasks=tasks)

    def key_down(self, key: str) -> bool:
        """Escape 取消当前会话；返回是否处理了该按键"""
        if key != "Escape" or self.state is SessionState.IDLE:
            return False
        self.cancel()
        return True

    def cancel(self) -> None:
        """丢弃预览，不提交"""
        if self._drag is not None:
            log.debug("drag_cancelled", task_id=self._drag.task_id)
        if self._resize is not None:
            log.debug("resize_cancelled", task_id=self._resize.task_id)
        self._drag = None
        self._resize = None
