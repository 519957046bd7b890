"""TraceMiddleware

请求针对单个任务时（/api/v1/tasks/{task_id}[/...]），
将 task_id 绑定到 structlog context，贯穿该请求的全部日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# 与 task_id 处于同一层级的固定子路由
_RESERVED_SEGMENTS = frozenset({"by-owner", "by-status", "blocked", "meta"})

# ULID 长度
_TASK_ID_LENGTH = 26


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为单任务操作绑定 task_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        parts = request.url.path.strip("/").split("/")

        # api / v1 / tasks / {task_id} ...
        if len(parts) >= 4 and parts[:3] == ["api", "v1", "tasks"]:
            task_id = parts[3]
            if task_id not in _RESERVED_SEGMENTS and len(task_id) == _TASK_ID_LENGTH:
                structlog.contextvars.bind_contextvars(task_id=task_id)

        return await call_next(request)
