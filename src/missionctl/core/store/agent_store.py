"""AgentStore SQLite 实现"""

import asyncio
import json

import aiosqlite

from ..models.agent import Agent
from .task_store import format_ts
from .transaction import storage_guard


class SqliteAgentStore:
    """AgentStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._lock = lock or asyncio.Lock()

    async def create_agent(self, agent: Agent) -> None:
        """写入 Agent 记录（role 唯一，冲突时抛出 StorageError）"""
        async with storage_guard(self._conn, self._lock, "create_agent", commit=True):
            await self._conn.execute(
                """
                INSERT INTO agents (agent_id, role, name, capabilities, webhook_url,
                                    is_active, last_seen_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    agent.agent_id,
                    agent.role.value,
                    agent.name,
                    json.dumps(agent.capabilities, ensure_ascii=False),
                    agent.webhook_url,
                    int(agent.is_active),
                    format_ts(agent.last_seen_at) if agent.last_seen_at else None,
                    format_ts(agent.created_at),
                ),
            )

    async def list_agents(self) -> list[Agent]:
        """查询全部 Agent，按 role 排序"""
        async with storage_guard(self._conn, self._lock, "list_agents"):
            cursor = await self._conn.execute(
                "SELECT agent_id, role, name, capabilities, webhook_url, is_active, "
                "last_seen_at, created_at FROM agents ORDER BY role ASC"
            )
            rows = await cursor.fetchall()
        return [self._row_to_agent(row) for row in rows]

    @staticmethod
    def _row_to_agent(row: aiosqlite.Row) -> Agent:
        """将数据库行转换为 Agent 模型"""
        return Agent(
            agent_id=row[0],
            role=row[1],
            name=row[2],
            capabilities=json.loads(row[3]) if row[3] else [],
            webhook_url=row[4],
            is_active=bool(row[5]),
            last_seen_at=row[6],
            created_at=row[7],
        )
