"""PlannerState 单元测试 -- 派生视图与原子写回"""

from weekplanner.core.models import PlannerData, TaskStatus
from weekplanner.planner.state import PlannerState, WeekProgress

WEEK = "2026-03-02"


def _state(*tasks, backlog=(), kanban=()) -> PlannerState:
    return PlannerState.from_data(
        PlannerData(
            selected_week_start=WEEK,
            backlog_order=list(backlog),
            kanban_order=list(kanban),
            tasks=list(tasks),
        )
    )


class TestViews:
    def test_backlog_is_unscheduled_in_order(self, make_task):
        state = _state(
            make_task("a", seq=1),
            make_task("b", seq=2),
            make_task("s", slot=3),
            backlog=["a", "b"],
        )
        assert [t.task_id for t in state.backlog_tasks()] == ["a", "b"]

    def test_day_tasks_sorted_by_slot(self, make_task):
        state = _state(
            make_task("late", slot=20),
            make_task("early", slot=2),
            make_task("other_day", slot=1, day_index=3),
            make_task("other_week", slot=1, week_key="2026-03-09"),
        )
        assert [t.task_id for t in state.day_tasks(0)] == ["early", "late"]
        assert len(state.scheduled_this_week()) == 3

    def test_weekly_progress(self, make_task):
        state = _state(
            make_task("a", slot=1, status=TaskStatus.DONE),
            make_task("b", slot=2),
            make_task("c", slot=3),
            make_task("backlog", status=TaskStatus.DONE),
        )
        progress = state.weekly_progress()
        assert progress == WeekProgress(completed=1, scheduled=3)
        assert progress.percent == 33

    def test_progress_half_percent_rounds_up(self):
        assert WeekProgress(completed=1, scheduled=8).percent == 13
        assert WeekProgress(completed=3, scheduled=8).percent == 38

    def test_progress_empty_week(self):
        assert _state().weekly_progress().percent == 0

    def test_kanban_columns(self, make_task):
        state = _state(
            make_task("a", status=TaskStatus.BLOCKED, seq=1),
            make_task("b", status=TaskStatus.BLOCKED, seq=2),
            kanban=["a", "b"],
        )
        assert [t.task_id for t in state.kanban_columns()[TaskStatus.BLOCKED]] == ["a", "b"]


class TestMutation:
    def test_remove_prunes_orders(self, make_task):
        state = _state(make_task("a"), make_task("b"), backlog=["a", "b"], kanban=["b", "a"])
        state.remove_task("a")
        assert state.get("a") is None
        assert state.backlog_order == ["b"]
        assert state.kanban_order == ["b"]

    def test_apply_updates_replaces_by_id(self, make_task):
        state = _state(make_task("a"), make_task("b"))
        moved = make_task("a", slot=4)
        applied = state.apply_updates([moved], ["a"])
        assert applied == [moved]
        assert state.get("a").scheduled.slot == 4

    def test_apply_updates_ignores_stale_responses(self, make_task):
        """不在 expected_ids 或已不在快照中的响应被忽略"""
        state = _state(make_task("a"), make_task("b"))
        state.remove_task("b")
        applied = state.apply_updates(
            [make_task("a", slot=1), make_task("b", slot=2), make_task("x", slot=3)],
            ["b", "x"],
        )
        assert applied == []
        assert state.get("a").scheduled is None
        assert state.get("b") is None
        assert state.get("x") is None
