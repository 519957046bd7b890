"""gateway 测试配置 -- FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from missionctl.core.service import TaskService
from missionctl.core.store import create_store_group


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app 实例"""
    db_path = str(tmp_path / "sqlite" / "test.db")
    os.environ["MISSIONCTL_DB_PATH"] = db_path

    from missionctl.gateway.main import create_app

    app = create_app()

    # 手动初始化（绕过 lifespan）
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group
    app.state.task_service = TaskService(store_group.task_store)

    yield app

    await store_group.close()
    os.environ.pop("MISSIONCTL_DB_PATH", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
