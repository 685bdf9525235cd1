"""异常体系 -- 持久化失败与引用失效"""


class PlannerError(Exception):
    """weekplanner 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述（可直接展示给用户）
            recoverable: 是否可通过重试或重新加载恢复
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class RepositoryError(PlannerError):
    """持久化层调用失败（存储不可用、约束冲突等）

    不自动重试，由调用方决定如何展示。
    """

    def __init__(
        self,
        operation: str,
        original_error: Exception | None = None,
        message: str | None = None,
    ) -> None:
        """
        Args:
            operation: 失败的仓储操作名（如 update_task）
            original_error: 底层异常
            message: 自定义描述，缺省时由 operation 与 original_error 拼出
        """
        if message is None:
            detail = f" -- {original_error}" if original_error is not None else ""
            message = f"{operation} failed{detail}"
        super().__init__(message, recoverable=True)
        self.operation = operation
        self.original_error = original_error


class TaskNotFoundError(RepositoryError):
    """任务不存在或不属于当前用户"""

    def __init__(self, task_id: str, operation: str = "get_task") -> None:
        super().__init__(
            operation,
            message=f"Task with id {task_id} does not exist",
        )
        self.task_id = task_id
