"""InteractionController 测试 -- 拖拽/调整时长状态机"""

import pytest
from weekplanner.core.exceptions import RepositoryError
from weekplanner.core.grid import SLOT_HEIGHT
from weekplanner.core.models import TaskStatus
from weekplanner.planner import (
    CommitResult,
    DragPreview,
    InteractionController,
    ListRegion,
    PlannerLayout,
    Rect,
    ResizePreview,
    SessionState,
    TimelineTarget,
)


def _layout() -> PlannerLayout:
    """backlog 在左上，看板在左下，7 个日列在右侧"""
    return PlannerLayout(
        day_columns=[Rect(300 + i * 100, 0, 100, 38 * SLOT_HEIGHT) for i in range(7)],
        timeline_top=0,
        slot_height=SLOT_HEIGHT,
        backlog=ListRegion(Rect(0, 0, 200, 600)),
        kanban={
            status: ListRegion(Rect(0, 1000 + i * 500, 200, 400))
            for i, status in enumerate(TaskStatus)
        },
    )


def _slot_y(slot: int) -> float:
    return slot * SLOT_HEIGHT + 5


@pytest.fixture
def make_controller(make_service):
    async def _make(*tasks):
        service, repo = await make_service(*tasks)
        return InteractionController(service, _layout()), service, repo

    return _make


class TestDrag:
    async def test_begin_drag(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"))
        assert controller.state is SessionState.IDLE
        assert controller.begin_drag("a", 50, 50, card=Rect(40, 30, 180, 60))
        assert controller.state is SessionState.DRAGGING
        assert controller.drag.grab_offset_x == 10
        assert controller.drag.grab_offset_y == 20

    async def test_only_one_session(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"), make_task("b", slot=3))
        assert controller.begin_drag("a", 0, 0)
        assert not controller.begin_drag("b", 0, 0)
        assert not controller.begin_resize("b", 0)

    async def test_unknown_task(self, make_controller):
        controller, _, _ = await make_controller()
        assert not controller.begin_drag("gone", 0, 0)
        assert controller.state is SessionState.IDLE

    async def test_ghost_follows_pointer(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"))
        controller.begin_drag("a", 50, 50, card=Rect(40, 30, 180, 60))
        controller.pointer_move(120, 90)
        assert controller.drag.ghost_rect == Rect(110, 70, 180, 60)

    async def test_timeline_preview(self, make_controller, make_task):
        controller, _, repo = await make_controller(make_task("a", slot=5), make_task("c"))
        controller.begin_drag("c", 0, 0)
        preview = controller.pointer_move(350, _slot_y(5))
        assert isinstance(preview, DragPreview)
        assert preview.target == TimelineTarget(day_index=0, slot=5)
        assert preview.resolution.mode == "shift"
        assert preview.preview_slots == {"c": 5, "a": 6}
        assert repo.update_calls == []

    async def test_preview_clears_when_infeasible(self, make_controller, make_task):
        tasks = [make_task(f"t{i:02d}", slot=i) for i in range(38)]
        controller, _, _ = await make_controller(*tasks, make_task("new"))
        controller.begin_drag("new", 0, 0)
        preview = controller.pointer_move(350, _slot_y(3))
        assert preview.target is not None
        assert preview.resolution is None
        assert preview.preview_slots == {}

    async def test_preview_nothing_under_pointer(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"))
        controller.begin_drag("a", 0, 0)
        preview = controller.pointer_move(250, 10)
        assert preview.target is None

    async def test_drop_commits_final_position(self, make_controller, make_task):
        """提交使用松开时的坐标，而不是最后一次 move 的预览"""
        controller, service, _ = await make_controller(make_task("a", slot=5), make_task("c"))
        controller.begin_drag("c", 0, 0)
        controller.pointer_move(350, _slot_y(5))
        result = await controller.pointer_up(450, _slot_y(8))
        assert result.ok
        assert controller.state is SessionState.IDLE
        scheduled = service.state.get("c").scheduled
        assert (scheduled.day_index, scheduled.slot) == (1, 8)
        assert service.state.get("a").scheduled.slot == 5

    async def test_infeasible_drop_returns_message(self, make_controller, make_task):
        tasks = [make_task(f"t{i:02d}", slot=i) for i in range(38)]
        controller, service, _ = await make_controller(*tasks, make_task("new"))
        controller.begin_drag("new", 0, 0)
        result = await controller.pointer_up(350, _slot_y(3))
        assert result == CommitResult(ok=False, message=result.message)
        assert "No room" in result.message
        assert controller.state is SessionState.IDLE
        assert service.state.get("new").scheduled is None

    async def test_drop_on_nothing(self, make_controller, make_task):
        controller, _, repo = await make_controller(make_task("a"))
        controller.begin_drag("a", 0, 0)
        result = await controller.pointer_up(250, 10)
        assert result == CommitResult(ok=False)
        assert repo.update_calls == []

    async def test_repository_error_propagates_and_resets(self, make_controller, make_task):
        controller, _, repo = await make_controller(make_task("c"))
        repo.fail_update_ids = {"c"}
        controller.begin_drag("c", 0, 0)
        with pytest.raises(RepositoryError):
            await controller.pointer_up(350, _slot_y(2))
        assert controller.state is SessionState.IDLE
        assert controller.saving is False

    async def test_drop_on_backlog(self, make_controller, make_task):
        controller, service, repo = await make_controller(make_task("s", slot=4))
        controller.begin_drag("s", 350, _slot_y(4))
        result = await controller.pointer_up(50, 50)
        assert result.ok
        assert service.state.get("s").scheduled is None
        assert repo.backlog_order == ["s"]

    async def test_drop_on_kanban_column(self, make_controller, make_task):
        controller, service, repo = await make_controller(make_task("a"))
        controller.begin_drag("a", 50, 50)
        # 第 3 列（Blocked）
        result = await controller.pointer_up(50, 2000 + 10)
        assert result.ok
        assert service.state.get("a").status == TaskStatus.BLOCKED
        assert repo.kanban_order == ["a"]

    async def test_escape_cancels(self, make_controller, make_task):
        controller, service, repo = await make_controller(make_task("c"))
        controller.begin_drag("c", 0, 0)
        controller.pointer_move(350, _slot_y(2))
        assert controller.key_down("Escape") is True
        assert controller.state is SessionState.IDLE
        assert controller.drag is None
        assert await controller.pointer_up(350, _slot_y(2)) is None
        assert repo.update_calls == []
        assert service.state.get("c").scheduled is None

    async def test_other_keys_ignored(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("c"))
        assert controller.key_down("Escape") is False
        controller.begin_drag("c", 0, 0)
        assert controller.key_down("Enter") is False
        assert controller.state is SessionState.DRAGGING

    async def test_saving_blocks_new_sessions(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"))
        controller.saving = True
        assert not controller.begin_drag("a", 0, 0)


class TestResize:
    async def test_only_scheduled_tasks(self, make_controller, make_task):
        controller, _, _ = await make_controller(make_task("a"))
        assert not controller.begin_resize("a", 100)
        assert controller.state is SessionState.IDLE

    async def test_live_preview(self, make_controller, make_task):
        controller, _, repo = await make_controller(make_task("a", slot=5))
        assert controller.begin_resize("a", 400)
        assert controller.state is SessionState.RESIZING
        preview = controller.pointer_move(0, 400 + SLOT_HEIGHT * 2)
        assert preview == ResizePreview("a", 90)
        preview = controller.pointer_move(0, 400 - SLOT_HEIGHT * 3)
        assert preview == ResizePreview("a", 30)
        assert repo.update_calls == []

    async def test_release_commits_shift(self, make_controller, make_task):
        controller, service, _ = await make_controller(
            make_task("a", slot=5), make_task("b", slot=6)
        )
        controller.begin_resize("a", 400)
        result = await controller.pointer_up(0, 400 + SLOT_HEIGHT)
        assert result.ok
        assert controller.state is SessionState.IDLE
        assert service.state.get("a").duration == 60
        assert service.state.get("b").scheduled.slot == 7

    async def test_unchanged_duration_commits_nothing(self, make_controller, make_task):
        controller, _, repo = await make_controller(make_task("a", slot=5))
        controller.begin_resize("a", 400)
        result = await controller.pointer_up(0, 410)
        assert result == CommitResult(ok=True, tasks=[])
        assert repo.update_calls == []

    async def test_release_without_movement_keeps_odd_duration(
        self, make_controller, make_task
    ):
        """45 分钟任务原地松开：时长不变，邻居不动，不写库"""
        controller, service, repo = await make_controller(
            make_task("a", slot=5, duration=45), make_task("b", slot=7)
        )
        controller.begin_resize("a", 400)
        assert controller.pointer_move(0, 400) == ResizePreview("a", 45)
        result = await controller.pointer_up(0, 400)
        assert result == CommitResult(ok=True, tasks=[])
        assert service.state.get("a").duration == 45
        assert service.state.get("b").scheduled.slot == 7
        assert repo.update_calls == []

    async def test_one_slot_adds_half_hour_to_odd_duration(
        self, make_controller, make_task
    ):
        controller, service, _ = await make_controller(
            make_task("a", slot=5, duration=45), make_task("b", slot=7)
        )
        controller.begin_resize("a", 400)
        result = await controller.pointer_up(0, 400 + SLOT_HEIGHT)
        assert result.ok
        assert service.state.get("a").duration == 75
        assert service.state.get("b").scheduled.slot == 8

    async def test_infeasible_resize(self, make_controller, make_task):
        controller, service, _ = await make_controller(
            make_task("a", slot=29), make_task("b", slot=30, duration=240)
        )
        controller.begin_resize("a", 400)
        result = await controller.pointer_up(0, 400 + SLOT_HEIGHT)
        assert not result.ok
        assert result.message
        assert service.state.get("a").duration == 30

    async def test_escape_cancels_resize(self, make_controller, make_task):
        controller, service, _ = await make_controller(make_task("a", slot=5))
        controller.begin_resize("a", 400)
        controller.pointer_move(0, 400 + SLOT_HEIGHT * 4)
        assert controller.key_down("Escape")
        assert controller.resize is None
        assert service.state.get("a").duration == 30
