"""错误响应 -- 统一的 {"error": {"code", "message"}} 结构"""

import structlog
from starlette.responses import JSONResponse
from weekplanner.core.exceptions import PlannerError, RepositoryError, TaskNotFoundError
from weekplanner.planner import InfeasiblePlacementError

log = structlog.get_logger()


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def task_not_found(task_id: str) -> JSONResponse:
    return error_response(404, "TASK_NOT_FOUND", f"Task with id {task_id} does not exist")


def planner_error_response(exc: PlannerError) -> JSONResponse:
    """把规划异常映射为 HTTP 错误

    - TaskNotFoundError -> 404
    - InfeasiblePlacementError -> 409
    - RepositoryError -> 502
    """
    if isinstance(exc, TaskNotFoundError):
        return task_not_found(exc.task_id)
    if isinstance(exc, InfeasiblePlacementError):
        return error_response(409, "PLACEMENT_INFEASIBLE", exc.message)
    if isinstance(exc, RepositoryError):
        log.warning("persistence_failed", operation=exc.operation, message=exc.message)
        return error_response(502, "PERSISTENCE_FAILED", exc.message)
    return error_response(400, "PLANNER_ERROR", exc.message)
