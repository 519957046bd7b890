"""TaskService -- 任务生命周期与查询业务逻辑

唯一承载业务规则的组件：
1. 创建时强制默认状态并应用对应副作用
2. 状态流转副作用（startedAt / completedAt / blockerReason）
3. 列表查询经由 QueryPlan 到达 Store

"未找到" 以 None 返回；存储层失败以 StorageError 原样传播，不重试。
进程启动时构造一次，通过依赖注入交给传输层。
"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel

from .models import (
    Role,
    Task,
    TaskDraft,
    TaskPatch,
    TaskPriority,
    TaskStatus,
    plan_transition,
)
from .query import (
    OrderBy,
    QueryParams,
    QueryPlan,
    SortDirection,
    SortField,
    TaskPredicate,
    build_query_plan,
)
from .store.protocols import TaskStore

log = structlog.get_logger()


class TaskPage(BaseModel):
    """分页查询结果"""

    tasks: list[Task]
    total: int
    page: int
    limit: int


class TaskService:
    """任务业务服务"""

    def __init__(self, task_store: TaskStore) -> None:
        self._store = task_store

    async def create(self, draft: TaskDraft) -> Task:
        """创建任务

        status 缺省时为 todo；显式给出非 todo 状态时，
        应用与流转到该状态相同的副作用。
        """
        status = draft.status or TaskStatus.TODO
        plan = plan_transition(status, datetime.now(UTC), draft.blocker_reason)

        # 新行所有列均为空，set_if_absent 直接写入
        task = await self._store.insert(draft, {**plan.updates, **plan.set_if_absent})
        log.info(
            "task_created",
            task_id=task.task_id,
            owner=task.owner.value,
            status=task.status.value,
        )
        return task

    async def find_by_id(self, task_id: str) -> Task | None:
        return await self._store.get_by_id(task_id)

    async def list_tasks(self, params: QueryParams | None = None) -> TaskPage:
        """按 page/limit/filter/sort 查询任务列表"""
        return await self._run_plan(build_query_plan(params))

    async def find_by_owner(
        self,
        owner: Role,
        params: QueryParams | None = None,
    ) -> TaskPage:
        """按负责角色查询；调用方 filter 中的 owner 被覆盖"""
        return await self._run_plan(build_query_plan(params, forced={"owner": owner}))

    async def find_by_status(
        self,
        status: TaskStatus,
        params: QueryParams | None = None,
    ) -> TaskPage:
        """按状态查询；调用方 filter 中的 status 被覆盖"""
        return await self._run_plan(build_query_plan(params, forced={"status": status}))

    async def find_blocked(self) -> list[Task]:
        """全部 blocked 任务，按 updatedAt 倒序，不分页"""
        plan = QueryPlan(
            predicate=TaskPredicate(status=TaskStatus.BLOCKED),
            order_by=OrderBy(field=SortField.UPDATED_AT, direction=SortDirection.DESC),
            limit=None,
        )
        tasks, _ = await self._store.query(
            plan.predicate, plan.order_by, plan.limit, plan.offset
        )
        return list(tasks)

    async def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        """通用字段合并，不触发状态副作用"""
        task = await self._store.update(task_id, patch.to_fields())
        if task is not None:
            log.info("task_updated", task_id=task_id, fields=sorted(patch.model_fields_set))
        return task

    async def update_status(
        self,
        task_id: str,
        new_status: TaskStatus,
        blocker_reason: str | None = None,
    ) -> Task | None:
        """状态流转

        流转图不受限，副作用只取决于目标状态：
        - doing: startedAt 为空时写入当前时间（Store 内单条条件 UPDATE，原子）
        - done: completedAt 无条件写入当前时间
        - blocked: 给出原因时写入 blockerReason
        - 非 blocked: 清空 blockerReason

        Returns:
            更新后的任务；task_id 不存在时返回 None
        """
        plan = plan_transition(new_status, datetime.now(UTC), blocker_reason)
        task = await self._store.update(task_id, plan.updates, plan.set_if_absent)
        if task is not None:
            log.info(
                "task_status_updated",
                task_id=task_id,
                to_status=new_status.value,
            )
        return task

    async def assign(self, task_id: str, assignee_id: str | None) -> Task | None:
        """指派或取消指派具体 agent"""
        return await self._store.update(task_id, {"assignee_id": assignee_id})

    async def delete(self, task_id: str) -> bool:
        deleted = await self._store.delete(task_id)
        if deleted:
            log.info("task_deleted", task_id=task_id)
        return deleted

    @staticmethod
    def get_valid_statuses() -> list[str]:
        return [s.value for s in TaskStatus]

    @staticmethod
    def get_valid_roles() -> list[str]:
        return [r.value for r in Role]

    @staticmethod
    def get_valid_priorities() -> list[str]:
        return [p.value for p in TaskPriority]

    async def _run_plan(self, plan: QueryPlan) -> TaskPage:
        tasks, total = await self._store.query(
            plan.predicate, plan.order_by, plan.limit, plan.offset
        )
        return TaskPage(tasks=list(tasks), total=total, page=plan.page, limit=plan.limit)
