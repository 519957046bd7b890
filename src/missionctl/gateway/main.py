"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + TaskService 构造 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from missionctl.core.config import get_db_path, get_frontend_url
from missionctl.core.service import TaskService
from missionctl.core.store import create_store_group

from .errors import register_exception_handlers
from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 Store 与 TaskService，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 进程内唯一的服务实例，通过 deps.get_task_service 注入
    app.state.task_service = TaskService(store_group.task_store)
    log.info("task_service_initialized", db_path=db_path)

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Mission Control API",
        version="1.0.0",
        description="Task management API for the Mission Baseline agent team",
        docs_url="/documentation",
        lifespan=lifespan,
    )

    # 注册中间件（后注册者在外层：Logging -> Trace -> CORS）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_frontend_url()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()

    register_exception_handlers(app)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["system"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
