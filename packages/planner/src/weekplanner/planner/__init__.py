"""weekplanner Planner -- 排序、放置引擎与交互会话

packages/planner 的公开接口导出。
"""

# 异常
from .exceptions import InfeasiblePlacementError, PartialCommitError

# 指针几何
from .geometry import (
    BacklogTarget,
    DropTarget,
    DropTargetResolver,
    ItemBounds,
    KanbanTarget,
    ListRegion,
    PlannerLayout,
    Rect,
    TimelineTarget,
    insertion_index,
)

# 顺序
from .ordering import (
    kanban_columns,
    merge_kanban_order,
    move_in_kanban,
    prune_order,
    reorder_to_index,
    sort_by_order,
)

# 放置引擎
from .placement import (
    DropResolution,
    ShiftPlan,
    SlotPatch,
    build_stable_shift_plan,
    day_occupancy,
    find_nearest_available_slot,
    find_overlaps,
    resolve_drop,
)
from .service import PlannerService

# 交互会话
from .session import (
    CommitResult,
    DragPreview,
    InteractionController,
    ResizePreview,
    SessionState,
)
from .state import PlannerState, WeekProgress

__all__ = [
    "PlannerService",
    "PlannerState",
    "WeekProgress",
    "InteractionController",
    "SessionState",
    "DragPreview",
    "ResizePreview",
    "CommitResult",
    "ShiftPlan",
    "SlotPatch",
    "DropResolution",
    "build_stable_shift_plan",
    "find_nearest_available_slot",
    "resolve_drop",
    "day_occupancy",
    "find_overlaps",
    "sort_by_order",
    "reorder_to_index",
    "prune_order",
    "kanban_columns",
    "merge_kanban_order",
    "move_in_kanban",
    "Rect",
    "ItemBounds",
    "ListRegion",
    "PlannerLayout",
    "DropTarget",
    "DropTargetResolver",
    "TimelineTarget",
    "BacklogTarget",
    "KanbanTarget",
    "insertion_index",
    "InfeasiblePlacementError",
    "PartialCommitError",
]
