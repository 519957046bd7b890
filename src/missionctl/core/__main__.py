"""CLI 入口模块 -- python -m missionctl.core <command>

支持的命令：
  init-db  按当前配置创建数据库表结构
  seed     写入示例任务与每个角色的 Agent 记录
"""

import asyncio
import sys

import structlog
from ulid import ULID

from .config import get_db_path
from .models import Agent, Role, TaskDraft, TaskPriority, TaskStatus
from .service import TaskService
from .store import StoreGroup, create_store_group

log = structlog.get_logger()

SAMPLE_TASKS: list[TaskDraft] = [
    TaskDraft(
        title="Design system foundation",
        description="Create color palette, typography, and spacing tokens",
        owner=Role.DESIGNER,
        priority=TaskPriority.HIGH,
        status=TaskStatus.DOING,
    ),
    TaskDraft(
        title="API authentication",
        description="Implement JWT auth for API endpoints",
        owner=Role.FORGE,
        priority=TaskPriority.HIGH,
        status=TaskStatus.TODO,
    ),
    TaskDraft(
        title="React component library",
        description="Build reusable task card and list components",
        owner=Role.FRONTEND,
        priority=TaskPriority.NORMAL,
        status=TaskStatus.TODO,
    ),
    TaskDraft(
        title="E2E test suite",
        description="Set up Playwright for critical path testing",
        owner=Role.QA,
        priority=TaskPriority.NORMAL,
        status=TaskStatus.BLOCKED,
        blocker_reason="Waiting for frontend implementation",
    ),
    TaskDraft(
        title="Competitor analysis",
        description="Research Linear, GitHub Projects, Asana workflows",
        owner=Role.MINERVA,
        priority=TaskPriority.LOW,
        status=TaskStatus.DONE,
    ),
]

_USAGE = """用法: python -m missionctl.core <command>
命令:
  init-db  创建数据库表结构
  seed     写入示例数据"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "seed":
        asyncio.run(seed_database())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, seed")
        sys.exit(1)


async def init_database() -> None:
    """创建表结构（create_store_group 内部执行 init_db）"""
    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)
    await store_group.close()
    print("表结构已就绪")


async def seed(store_group: StoreGroup) -> tuple[int, int]:
    """写入示例任务与 Agent

    任务经由 TaskService 创建，状态副作用与正常请求一致。

    Returns:
        (写入任务数, 写入 Agent 数)
    """
    service = TaskService(store_group.task_store)
    for draft in SAMPLE_TASKS:
        await service.create(draft)

    existing_roles = {agent.role for agent in await store_group.agent_store.list_agents()}
    agent_count = 0
    for role in Role:
        if role in existing_roles:
            continue
        await store_group.agent_store.create_agent(
            Agent(agent_id=str(ULID()), role=role, name=role.value.capitalize())
        )
        agent_count += 1

    log.info("seed_completed", task_count=len(SAMPLE_TASKS), agent_count=agent_count)
    return len(SAMPLE_TASKS), agent_count


async def seed_database() -> None:
    """执行示例数据写入"""
    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print("开始写入示例数据...")

    store_group = await create_store_group(db_path)
    try:
        task_count, agent_count = await seed(store_group)
        print(f"写入完成：{task_count} 条任务，{agent_count} 个 Agent")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
