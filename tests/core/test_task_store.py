"""SqliteTaskStore 测试

测试内容：
1. insert / get_by_id / delete
2. update 合并字段、set_if_absent、updated_at 单调
3. query 谓词、排序、分页与总数
4. 存储层失败转换为 StorageError
"""

import asyncio
from datetime import UTC, datetime

import aiosqlite
import pytest
from missionctl.core.exceptions import StorageError
from missionctl.core.models import Role, TaskDraft, TaskPriority, TaskStatus
from missionctl.core.query import OrderBy, SortDirection, SortField, TaskPredicate
from missionctl.core.store import SqliteTaskStore
from missionctl.core.store.sqlite_init import verify_wal_mode


def _draft(title: str = "task", **kwargs) -> TaskDraft:
    kwargs.setdefault("owner", Role.FORGE)
    return TaskDraft(title=title, **kwargs)


class TestInsertAndGet:
    async def test_wal_mode_enabled(self, db_conn: aiosqlite.Connection):
        assert await verify_wal_mode(db_conn) is True

    async def test_insert_generates_id_and_timestamps(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft("Insert me", metadata={"k": [1, 2]}))

        assert len(task.task_id) == 26
        assert task.created_at == task.updated_at
        assert task.status == TaskStatus.TODO

        loaded = await task_store.get_by_id(task.task_id)
        assert loaded is not None
        assert loaded.title == "Insert me"
        assert loaded.metadata == {"k": [1, 2]}
        assert loaded.created_at == task.created_at

    async def test_insert_generates_unique_ids(self, task_store: SqliteTaskStore):
        first = await task_store.insert(_draft())
        second = await task_store.insert(_draft())
        assert first.task_id != second.task_id

    async def test_insert_applies_field_overrides(self, task_store: SqliteTaskStore):
        task = await task_store.insert(
            _draft(),
            {"status": TaskStatus.DONE, "completed_at": datetime(2026, 3, 1, tzinfo=UTC)},
        )
        loaded = await task_store.get_by_id(task.task_id)
        assert loaded is not None
        assert loaded.status == TaskStatus.DONE
        assert loaded.completed_at == datetime(2026, 3, 1, tzinfo=UTC)

    async def test_insert_rejects_immutable_overrides(self, task_store: SqliteTaskStore):
        with pytest.raises(ValueError):
            await task_store.insert(_draft(), {"task_id": "chosen"})

    async def test_get_missing_returns_none(self, task_store: SqliteTaskStore):
        assert await task_store.get_by_id("01JMISSING0000000000000000") is None


class TestUpdate:
    async def test_update_merges_fields(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft("before", description="keep me"))

        updated = await task_store.update(task.task_id, {"title": "after"})

        assert updated is not None
        assert updated.title == "after"
        assert updated.description == "keep me"
        assert updated.created_at == task.created_at
        assert updated.updated_at >= task.updated_at

    async def test_update_missing_returns_none(self, task_store: SqliteTaskStore):
        assert await task_store.update("01JMISSING0000000000000000", {"title": "x"}) is None

    async def test_set_if_absent_only_writes_null_columns(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft())
        first = await task_store.update(
            task.task_id,
            {"status": TaskStatus.DOING},
            set_if_absent={"started_at": task.created_at},
        )
        assert first is not None
        assert first.started_at == task.created_at

        second = await task_store.update(
            task.task_id,
            {},
            set_if_absent={"started_at": first.updated_at},
        )
        assert second is not None
        assert second.started_at == task.created_at

    async def test_status_only_update_bumps_updated_at(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft())
        await asyncio.sleep(0.001)
        updated = await task_store.update(task.task_id, {"status": TaskStatus.REVIEW})
        assert updated is not None
        assert updated.updated_at > task.updated_at

    async def test_immutable_columns_rejected(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft())
        with pytest.raises(ValueError):
            await task_store.update(task.task_id, {"created_at": task.created_at})


class TestDelete:
    async def test_delete_existing(self, task_store: SqliteTaskStore):
        task = await task_store.insert(_draft())
        assert await task_store.delete(task.task_id) is True
        assert await task_store.get_by_id(task.task_id) is None

    async def test_delete_missing(self, task_store: SqliteTaskStore):
        assert await task_store.delete("01JMISSING0000000000000000") is False


class TestQuery:
    async def _seed(self, store: SqliteTaskStore) -> None:
        await store.insert(_draft("a", owner=Role.FORGE, status=TaskStatus.DONE, priority=TaskPriority.HIGH))
        await store.insert(_draft("b", owner=Role.FORGE, status=TaskStatus.TODO, priority=TaskPriority.LOW))
        await store.insert(_draft("c", owner=Role.QA, status=TaskStatus.DONE, priority=TaskPriority.URGENT))
        await store.insert(_draft("d", owner=Role.QA, status=TaskStatus.TODO, priority=TaskPriority.NORMAL))

    async def test_no_predicate_returns_all(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, total = await task_store.query(TaskPredicate(), OrderBy(), 20, 0)
        assert total == 4
        # 默认 createdAt 倒序
        assert [t.title for t in rows] == ["d", "c", "b", "a"]

    async def test_predicates_combine_with_and(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, total = await task_store.query(
            TaskPredicate(status=TaskStatus.DONE, owner=Role.FORGE), OrderBy(), 20, 0
        )
        assert total == 1
        assert [t.title for t in rows] == ["a"]

    async def test_matches_nothing(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, total = await task_store.query(
            TaskPredicate(matches_nothing=True), OrderBy(), 20, 0
        )
        assert rows == []
        assert total == 0

    async def test_priority_sorted_by_rank(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, _ = await task_store.query(
            TaskPredicate(),
            OrderBy(field=SortField.PRIORITY, direction=SortDirection.ASC),
            20,
            0,
        )
        assert [t.priority for t in rows] == [
            TaskPriority.LOW,
            TaskPriority.NORMAL,
            TaskPriority.HIGH,
            TaskPriority.URGENT,
        ]

    async def test_pagination_total_ignores_limit(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, total = await task_store.query(
            TaskPredicate(),
            OrderBy(field=SortField.CREATED_AT, direction=SortDirection.ASC),
            2,
            2,
        )
        assert total == 4
        assert [t.title for t in rows] == ["c", "d"]

    async def test_unbounded_query(self, task_store: SqliteTaskStore):
        await self._seed(task_store)
        rows, total = await task_store.query(TaskPredicate(), OrderBy(), None, 0)
        assert len(rows) == total == 4

    async def test_updated_at_order(self, task_store: SqliteTaskStore):
        first = await task_store.insert(_draft("first"))
        await task_store.insert(_draft("second"))
        await asyncio.sleep(0.001)
        await task_store.update(first.task_id, {"title": "first-touched"})

        rows, _ = await task_store.query(
            TaskPredicate(),
            OrderBy(field=SortField.UPDATED_AT, direction=SortDirection.DESC),
            20,
            0,
        )
        assert rows[0].title == "first-touched"


class TestStorageErrors:
    """存储层失败必须以 StorageError 抛出"""

    async def test_closed_connection_raises_storage_error(
        self, task_store: SqliteTaskStore, db_conn: aiosqlite.Connection
    ):
        await db_conn.close()
        with pytest.raises(StorageError):
            await task_store.insert(_draft())

    async def test_sql_failure_wrapped(self, tmp_path):
        conn = await aiosqlite.connect(str(tmp_path / "empty.db"))
        try:
            # 未初始化表结构
            store = SqliteTaskStore(conn)
            with pytest.raises(StorageError) as exc_info:
                await store.get_by_id("anything")
            assert isinstance(exc_info.value.original_error, aiosqlite.Error)
        finally:
            await conn.close()
