"""状态流转副作用

流转图不受限：任意状态都可以到达任意状态，不存在终态与非法流转。
副作用只由目标状态决定，与来源状态无关。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import TaskStatus


class TransitionPlan(BaseModel):
    """一次状态流转需要写入的字段

    updates 无条件写入；set_if_absent 仅在当前列为空时写入
    （由 Store 以单条条件 UPDATE 原子完成）。
    """

    updates: dict[str, Any] = Field(default_factory=dict)
    set_if_absent: dict[str, Any] = Field(default_factory=dict)


def plan_transition(
    new_status: TaskStatus,
    now: datetime,
    blocker_reason: str | None = None,
) -> TransitionPlan:
    """计算流转到 new_status 时的字段变更

    Args:
        new_status: 目标状态
        now: 本次流转的时间戳
        blocker_reason: 阻塞原因，仅当目标为 blocked 时生效

    Returns:
        TransitionPlan
    """
    plan = TransitionPlan(updates={"status": new_status})

    match new_status:
        case TaskStatus.DOING:
            plan.set_if_absent["started_at"] = now
        case TaskStatus.DONE:
            plan.updates["completed_at"] = now
        case TaskStatus.BLOCKED:
            if blocker_reason:
                plan.updates["blocker_reason"] = blocker_reason
        case TaskStatus.TODO | TaskStatus.REVIEW:
            pass

    # 非 blocked 一律清空阻塞原因，即使从未设置过
    if new_status != TaskStatus.BLOCKED:
        plan.updates["blocker_reason"] = None

    return plan
