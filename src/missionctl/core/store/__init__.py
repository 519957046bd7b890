"""missionctl Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .agent_store import SqliteAgentStore
from .protocols import AgentStore, TaskStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore
from .transaction import storage_guard


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        # 同一连接上的全部 Store 共用一把锁
        self.lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn, self.lock)
        self.agent_store = SqliteAgentStore(conn, self.lock)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "TaskStore",
    "AgentStore",
    "SqliteTaskStore",
    "SqliteAgentStore",
    "init_db",
    "verify_wal_mode",
    "storage_guard",
]
