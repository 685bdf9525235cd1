"""指针几何 -- 把指针坐标解析为落点

与任何渲染技术无关：调用方提供当前显示的各区域矩形与条目边界，
这里只做纯计算。
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from weekplanner.core.grid import SLOT_HEIGHT, TOTAL_SLOTS
from weekplanner.core.models import TaskStatus


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom


@dataclass(frozen=True)
class ItemBounds:
    """列表中一个已渲染条目的位置"""

    item_id: str
    rect: Rect


@dataclass(frozen=True)
class TimelineTarget:
    day_index: int
    slot: int


@dataclass(frozen=True)
class BacklogTarget:
    index: int


@dataclass(frozen=True)
class KanbanTarget:
    status: TaskStatus
    index: int


DropTarget = TimelineTarget | BacklogTarget | KanbanTarget


def insertion_index(
    bounds: Sequence[ItemBounds],
    pointer_y: float,
    exclude_id: str | None = None,
) -> int:
    """插入位置 = 中线在指针上方的条目数（跳过 exclude_id）

    bounds 需按显示顺序给出；返回的下标基于排除 exclude_id 后的列表。
    """
    index = 0
    for item in bounds:
        if item.item_id == exclude_id:
            continue
        if item.rect.mid_y < pointer_y:
            index += 1
        else:
            break
    return index


class DropTargetResolver(Protocol):
    """把指针坐标解析为落点"""

    def resolve(
        self, x: float, y: float, moving_id: str | None = None
    ) -> DropTarget | None:
        ...


@dataclass
class ListRegion:
    """backlog 或单个看板列：区域矩形 + 条目边界"""

    rect: Rect
    items: list[ItemBounds] = field(default_factory=list)


@dataclass
class PlannerLayout:
    """周视图布局快照

    Attributes:
        day_columns: 7 个日列的矩形（day_index 即下标）
        timeline_top: 时间轴 slot 0 的顶部 y 坐标
        slot_height: 单个 slot 高度
        backlog: backlog 区域（可选）
        kanban: 各看板列区域（可选）
    """

    day_columns: list[Rect] = field(default_factory=list)
    timeline_top: float = 0.0
    slot_height: float = SLOT_HEIGHT
    backlog: ListRegion | None = None
    kanban: dict[TaskStatus, ListRegion] = field(default_factory=dict)

    def resolve(
        self, x: float, y: float, moving_id: str | None = None
    ) -> DropTarget | None:
        if self.backlog is not None and self.backlog.rect.contains(x, y):
            return BacklogTarget(index=insertion_index(self.backlog.items, y, moving_id))

        for status, region in self.kanban.items():
            if region.rect.contains(x, y):
                return KanbanTarget(
                    status=status,
                    index=insertion_index(region.items, y, moving_id),
                )

        for day_index, column in enumerate(self.day_columns):
            if column.contains(x, y):
                slot = int((y - self.timeline_top) // self.slot_height)
                if 0 <= slot < TOTAL_SLOTS:
                    return TimelineTarget(day_index=day_index, slot=slot)
        return None
