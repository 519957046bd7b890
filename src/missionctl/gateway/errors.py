"""异常处理器注册

- 请求校验失败 -> 400 INVALID_INPUT（附逐字段 details）
- 路由不存在 -> 404 NOT_FOUND；其它 HTTP 错误保留状态码
- StorageError / 未处理异常 -> 500 INTERNAL_ERROR，记录日志，不暴露内部细节
"""

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from missionctl.core.exceptions import StorageError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from .responses import error_response, get_request_id

log = structlog.get_logger()

_INTERNAL_ERROR_MESSAGE = "Internal server error"


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return error_response(
        request, "INVALID_INPUT", "Validation failed", 400, details=details
    )


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(
            request,
            "NOT_FOUND",
            f"Route {request.method} {request.url.path} not found",
            404,
        )
    response = error_response(request, "HTTP_ERROR", str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    await log.aerror(
        "storage_error_unhandled",
        error=str(exc),
        original_error=repr(exc.original_error),
    )
    return error_response(request, "INTERNAL_ERROR", _INTERNAL_ERROR_MESSAGE, 500)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log.aerror("unhandled_error", error_type=type(exc).__name__, exc_info=exc)
    response = error_response(request, "INTERNAL_ERROR", _INTERNAL_ERROR_MESSAGE, 500)
    # 由最外层 ServerErrorMiddleware 处理，LoggingMiddleware 无法再写响应头
    response.headers["X-Request-ID"] = get_request_id(request)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """注册全部异常处理器"""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
