"""Planner 异常"""

from weekplanner.core.exceptions import PlannerError, RepositoryError


class InfeasiblePlacementError(PlannerError):
    """请求的放置/调整无法满足不重叠且不越界的约束

    状态保持操作前的值，不做任何部分修改。
    """

    def __init__(self, message: str, task_id: str | None = None) -> None:
        super().__init__(message, recoverable=True)
        self.task_id = task_id


class PartialCommitError(RepositoryError):
    """顺延方案部分写入失败

    已写入的任务已尽力回滚；failed_ids 为写入失败的任务，
    rollback_failed_ids 为回滚也失败的任务（这些任务可能与本地状态不一致，
    下次加载时以服务端为准）。
    """

    def __init__(
        self,
        failed_ids: list[str],
        rollback_failed_ids: list[str] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            "apply_shift_plan",
            original_error,
            message=f"Could not save the new arrangement ({len(failed_ids)} task(s) failed)",
        )
        self.failed_ids = failed_ids
        self.rollback_failed_ids = rollback_failed_ids or []
