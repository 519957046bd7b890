"""TaskStore SQLite 实现

仅提供数据库操作，不含业务规则。
谓词取值一律以绑定参数传入；列名与排序表达式来自固定白名单。
"""

import asyncio
import json
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import aiosqlite
from ulid import ULID

from ..models.enums import PRIORITY_RANK
from ..models.task import Task, TaskDraft
from ..query import OrderBy, SortDirection, SortField, TaskPredicate
from .transaction import storage_guard

_COLUMNS: tuple[str, ...] = (
    "task_id",
    "project_id",
    "title",
    "description",
    "owner",
    "assignee_id",
    "status",
    "priority",
    "due_date",
    "started_at",
    "completed_at",
    "artifact_path",
    "blocker_reason",
    "metadata",
    "created_at",
    "updated_at",
)

_SELECT_TASKS = f"SELECT {', '.join(_COLUMNS)} FROM tasks"

# 不可通过 update 修改的列
_IMMUTABLE_COLUMNS = frozenset({"task_id", "created_at", "updated_at"})
_UPDATABLE_COLUMNS = frozenset(_COLUMNS) - _IMMUTABLE_COLUMNS

# 优先级按语义权重排序
_PRIORITY_RANK_SQL = (
    "CASE priority "
    + " ".join(f"WHEN '{p.value}' THEN {rank}" for p, rank in PRIORITY_RANK.items())
    + " END"
)

_ORDER_EXPRESSIONS: dict[SortField, str] = {
    SortField.CREATED_AT: "created_at",
    SortField.UPDATED_AT: "updated_at",
    SortField.PRIORITY: _PRIORITY_RANK_SQL,
}

_PREDICATE_COLUMNS = ("status", "owner", "priority")


def format_ts(value: datetime) -> str:
    """统一为 UTC、微秒精度的 ISO-8601 文本，保证字典序即时间序"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _to_db(column: str, value: Any) -> Any:
    """将模型字段值转换为列值"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return format_ts(value)
    if isinstance(value, Enum):
        return value.value
    if column == "metadata":
        return json.dumps(value, ensure_ascii=False)
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现

    共享同一连接的所有操作在 _lock 内执行，
    因此 query 中的 COUNT 与分页读取看到的是同一份数据。
    """

    def __init__(
        self,
        conn: aiosqlite.Connection,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._lock = lock or asyncio.Lock()

    async def insert(
        self,
        draft: TaskDraft,
        fields: dict[str, Any] | None = None,
    ) -> Task:
        """写入新任务，生成 task_id，created_at == updated_at == now

        fields 覆盖 draft 中的同名列，只接受可更新列。
        """
        fields = fields or {}
        self._check_columns(fields.keys())

        now = datetime.now(UTC)
        data = draft.model_dump()
        data.update(fields)
        if data.get("status") is None:
            data.pop("status", None)
        task = Task(task_id=str(ULID()), created_at=now, updated_at=now, **data)

        values = [_to_db(column, getattr(task, column)) for column in _COLUMNS]
        placeholders = ", ".join("?" for _ in _COLUMNS)
        async with storage_guard(self._conn, self._lock, "insert_task", commit=True):
            await self._conn.execute(
                f"INSERT INTO tasks ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
        return task

    async def get_by_id(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        async with storage_guard(self._conn, self._lock, "get_task"):
            return await self._fetch_one(task_id)

    async def query(
        self,
        predicate: TaskPredicate,
        order: OrderBy,
        limit: int | None,
        offset: int,
    ) -> tuple[list[Task], int]:
        """按谓词查询一页任务，并返回忽略分页的总数

        Args:
            predicate: 结构化谓词
            order: 排序方式
            limit: 每页条数，None 表示不分页
            offset: 偏移量

        Returns:
            (当前页任务列表, 匹配总数)
        """
        where_sql, params = self._where_clause(predicate)
        order_sql = self._order_clause(order)

        page_sql = f"{_SELECT_TASKS}{where_sql} ORDER BY {order_sql}"
        page_params = list(params)
        if limit is not None:
            page_sql += " LIMIT ? OFFSET ?"
            page_params += [limit, offset]

        async with storage_guard(self._conn, self._lock, "query_tasks"):
            cursor = await self._conn.execute(
                f"SELECT COUNT(*) FROM tasks{where_sql}",
                params,
            )
            row = await cursor.fetchone()
            total = row[0] if row else 0

            cursor = await self._conn.execute(page_sql, page_params)
            rows = await cursor.fetchall()

        return [self._row_to_task(r) for r in rows], total

    async def update(
        self,
        task_id: str,
        fields: dict[str, Any],
        set_if_absent: dict[str, Any] | None = None,
    ) -> Task | None:
        """合并字段并刷新 updated_at

        set_if_absent 中的列仅在当前值为 NULL 时写入，
        与其余字段在同一条 UPDATE 中完成。

        Returns:
            更新后的任务；task_id 不存在时返回 None
        """
        set_if_absent = set_if_absent or {}
        self._check_columns(fields.keys())
        self._check_columns(set_if_absent.keys())

        assignments = [f"{column} = ?" for column in fields]
        assignments += [f"{column} = COALESCE({column}, ?)" for column in set_if_absent]
        # updated_at 永不回退
        assignments.append("updated_at = MAX(updated_at, ?)")

        params = [_to_db(column, value) for column, value in fields.items()]
        params += [_to_db(column, value) for column, value in set_if_absent.items()]
        params += [format_ts(datetime.now(UTC)), task_id]

        async with storage_guard(self._conn, self._lock, "update_task", commit=True):
            cursor = await self._conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
                params,
            )
            if cursor.rowcount == 0:
                return None
            return await self._fetch_one(task_id)

    async def delete(self, task_id: str) -> bool:
        """删除任务，返回是否确有行被删除"""
        async with storage_guard(self._conn, self._lock, "delete_task", commit=True):
            cursor = await self._conn.execute(
                "DELETE FROM tasks WHERE task_id = ?",
                (task_id,),
            )
            return cursor.rowcount > 0

    async def _fetch_one(self, task_id: str) -> Task | None:
        cursor = await self._conn.execute(
            f"{_SELECT_TASKS} WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    @staticmethod
    def _check_columns(columns: Iterable[str]) -> None:
        unknown = set(columns) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")

    @staticmethod
    def _where_clause(predicate: TaskPredicate) -> tuple[str, list[Any]]:
        """将谓词转换为 WHERE 子句与绑定参数"""
        if predicate.matches_nothing:
            return " WHERE 0", []

        conditions: list[str] = []
        params: list[Any] = []
        for column in _PREDICATE_COLUMNS:
            value = getattr(predicate, column)
            if value is not None:
                conditions.append(f"{column} = ?")
                params.append(value.value)

        if not conditions:
            return "", []
        return " WHERE " + " AND ".join(conditions), params

    @staticmethod
    def _order_clause(order: OrderBy) -> str:
        direction = "ASC" if order.direction == SortDirection.ASC else "DESC"
        expression = _ORDER_EXPRESSIONS[order.field]
        # 同值时按创建时间、再按 ID 保持稳定顺序
        return f"{expression} {direction}, created_at {direction}, task_id {direction}"

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        data = dict(zip(_COLUMNS, row, strict=True))
        data["metadata"] = json.loads(data["metadata"]) if data["metadata"] else {}
        return Task(**data)
