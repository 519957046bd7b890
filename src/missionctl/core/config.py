"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、CORS 来源、监听地址、分页限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("MISSIONCTL_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "MISSIONCTL_DB_PATH",
        str(_get_base_dir() / "sqlite" / "missionctl.db"),
    )


def get_frontend_url() -> str:
    """获取允许跨域访问的前端地址"""
    return os.environ.get("MISSIONCTL_FRONTEND_URL", "http://localhost:5173")


def get_listen_host() -> str:
    return os.environ.get("MISSIONCTL_HOST", "0.0.0.0")


def get_listen_port() -> int:
    return int(os.environ.get("MISSIONCTL_PORT", "3000"))


# 未归属项目的哨兵 project_id
UNASSIGNED_PROJECT_ID: str = "00000000-0000-0000-0000-000000000000"

# 列表分页：默认每页条数与上限
DEFAULT_PAGE_LIMIT: int = 20
MAX_PAGE_LIMIT: int = 100

# page 上限：保证 (page - 1) * MAX_PAGE_LIMIT 不超出 SQLite INTEGER 范围
MAX_PAGE: int = (2**63 - 1) // MAX_PAGE_LIMIT + 1

# 标题/描述长度上限
TITLE_MAX_LENGTH: int = 200
DESCRIPTION_MAX_LENGTH: int = 2000
