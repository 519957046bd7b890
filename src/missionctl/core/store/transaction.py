"""事务与错误封装

所有 Store 操作经由 storage_guard 执行：
- 持有 Store 的 asyncio.Lock，保证同一连接上的语句序列不被其它协程插入
- 写操作成功后提交，失败时回滚
- aiosqlite 异常统一转换为 StorageError（保留原始异常）
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from ..exceptions import StorageError

log = structlog.get_logger()

# 连接已关闭时 aiosqlite 抛出 ValueError
_DB_ERRORS: tuple[type[Exception], ...] = (aiosqlite.Error, ValueError)


@asynccontextmanager
async def storage_guard(
    conn: aiosqlite.Connection,
    lock: asyncio.Lock,
    operation: str,
    commit: bool = False,
) -> AsyncIterator[None]:
    """在锁内执行一组语句，失败时回滚并抛出 StorageError

    Args:
        conn: 数据库连接
        lock: 串行化同一连接上操作的锁
        operation: 操作名（写入日志）
        commit: 成功后是否提交

    Raises:
        StorageError: 任何存储层失败
    """
    async with lock:
        try:
            yield
            if commit:
                await conn.commit()
        except _DB_ERRORS as e:
            if commit:
                # 回滚失败不覆盖原始错误
                with contextlib.suppress(*_DB_ERRORS):
                    await conn.rollback()
            log.error(
                "storage_error",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise StorageError(f"{operation} failed", e) from e
