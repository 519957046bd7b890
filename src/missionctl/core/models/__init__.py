"""missionctl Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .agent import Agent
from .enums import PRIORITY_RANK, Role, TaskPriority, TaskStatus
from .task import AssigneeUpdate, StatusUpdate, Task, TaskDraft, TaskPatch
from .transition import TransitionPlan, plan_transition

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "Role",
    "PRIORITY_RANK",
    # 状态流转
    "TransitionPlan",
    "plan_transition",
    # Task
    "Task",
    "TaskDraft",
    "TaskPatch",
    "StatusUpdate",
    "AssigneeUpdate",
    # Agent
    "Agent",
]
