"""枚举定义 -- 任务状态、优先级、角色

状态、优先级与负责角色均为封闭集合，非成员值在模型边界即被拒绝，
不会以裸字符串形式落库。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态

    状态流转不受限：任意状态可流转到任意状态（含自身），
    副作用只取决于目标状态，见 transition.plan_transition。
    """

    TODO = "todo"
    DOING = "doing"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"


class TaskPriority(StrEnum):
    """Task 优先级（声明顺序即由低到高）"""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Role(StrEnum):
    """任务负责角色"""

    ATLAS = "atlas"
    FORGE = "forge"
    FRONTEND = "frontend"
    DESIGNER = "designer"
    QA = "qa"
    MINERVA = "minerva"


# 优先级排序权重：按语义排序而非字母序
PRIORITY_RANK: dict[TaskPriority, int] = {
    priority: rank for rank, priority in enumerate(TaskPriority)
}
