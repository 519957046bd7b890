"""统一响应信封

所有 /api/v1 接口与所有错误响应均为：
    {success, data?, error?: {code, message, details?},
     meta: {requestId, timestamp, pagination?}}
requestId 与 X-Request-ID 响应头一致。
"""

from datetime import UTC, datetime
from typing import Any

from missionctl.core.models import Task
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.requests import Request
from starlette.responses import JSONResponse
from ulid import ULID


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class ResponseMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    pagination: Pagination | None = None


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: Any | None = None


def get_request_id(request: Request) -> str:
    """取 LoggingMiddleware 生成的 request_id；中间件未执行时新生成一个"""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = str(ULID())
        request.state.request_id = request_id
    return request_id


def serialize_task(task: Task) -> dict[str, Any]:
    """Task -> camelCase JSON 对象，省略空字段"""
    return task.model_dump(mode="json", by_alias=True, exclude_none=True)


def _meta(request: Request, pagination: Pagination | None) -> dict[str, Any]:
    meta = ResponseMeta(request_id=get_request_id(request), pagination=pagination)
    return meta.model_dump(by_alias=True, exclude_none=True)


def success_response(
    request: Request,
    data: Any,
    status_code: int = 200,
    pagination: Pagination | None = None,
) -> JSONResponse:
    """成功响应"""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "data": data,
            "meta": _meta(request, pagination),
        },
    )


def error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int = 400,
    details: Any | None = None,
) -> JSONResponse:
    """错误响应；details 为空时省略"""
    error = ErrorInfo(code=code, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error.model_dump(mode="json", exclude_none=True),
            "meta": _meta(request, None),
        },
    )
