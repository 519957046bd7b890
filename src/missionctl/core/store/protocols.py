"""Store Protocol 接口定义

TaskService 只依赖此处的结构化接口，测试中可替换为内存实现。
"""

from collections.abc import Sequence
from typing import Any, Protocol

from ..models.agent import Agent
from ..models.task import Task, TaskDraft
from ..query import OrderBy, TaskPredicate


class TaskStore(Protocol):
    """Task 存储接口 -- 只做持久化，不含业务规则

    所有存储层失败以 StorageError 抛出，不吞异常。
    """

    async def insert(
        self,
        draft: TaskDraft,
        fields: dict[str, Any] | None = None,
    ) -> Task:
        """写入新任务，生成 task_id，created_at == updated_at == now

        fields 覆盖 draft 中的同名列（服务层计算的状态副作用）。
        """
        ...

    async def get_by_id(self, task_id: str) -> Task | None:
        """按 task_id 查询；不存在返回 None"""
        ...

    async def query(
        self,
        predicate: TaskPredicate,
        order: OrderBy,
        limit: int | None,
        offset: int,
    ) -> tuple[Sequence[Task], int]:
        """返回当前页的行与忽略分页的总数（同一快照）"""
        ...

    async def update(
        self,
        task_id: str,
        fields: dict[str, Any],
        set_if_absent: dict[str, Any] | None = None,
    ) -> Task | None:
        """合并字段并刷新 updated_at；不存在返回 None"""
        ...

    async def delete(self, task_id: str) -> bool:
        """删除任务，返回是否确有行被删除"""
        ...


class AgentStore(Protocol):
    """Agent 存储接口"""

    async def create_agent(self, agent: Agent) -> None:
        ...

    async def list_agents(self) -> list[Agent]:
        ...
