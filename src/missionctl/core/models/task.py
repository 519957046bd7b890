"""Task Domain Model

对外 JSON 使用 camelCase（projectId、blockerReason ...），Python 侧使用 snake_case。
task_id 对外序列化为 id。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..config import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, UNASSIGNED_PROJECT_ID
from .enums import Role, TaskPriority, TaskStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(_CamelModel):
    """Task 数据模型

    不变量：
    - blocker_reason 仅在 status == blocked 时非空
    - started_at 仅在首次进入 doing 时写入，之后不再变化
    - created_at 创建后不可变；updated_at 每次写入单调不减
    """

    task_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    project_id: str = Field(default=UNASSIGNED_PROJECT_ID, description="项目标识")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    owner: Role = Field(description="负责角色")
    assignee_id: str | None = Field(default=None, description="具体执行 agent 标识")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    priority: TaskPriority = Field(default=TaskPriority.NORMAL, description="优先级")
    due_date: datetime | None = Field(default=None, description="截止时间")
    started_at: datetime | None = Field(default=None, description="首次进入 doing 的时间")
    completed_at: datetime | None = Field(default=None, description="最近一次进入 done 的时间")
    artifact_path: str | None = Field(default=None, description="产出物路径")
    blocker_reason: str | None = Field(default=None, description="阻塞原因")
    metadata: dict[str, Any] = Field(default_factory=dict, description="扩展字段")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")


class TaskDraft(_CamelModel):
    """创建任务的输入

    status 缺省时由服务层强制为 todo。
    """

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    owner: Role
    priority: TaskPriority = TaskPriority.NORMAL
    status: TaskStatus | None = None
    project_id: str = UNASSIGNED_PROJECT_ID
    assignee_id: str | None = None
    due_date: datetime | None = None
    artifact_path: str | None = None
    blocker_reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class TaskPatch(_CamelModel):
    """部分字段更新的输入

    只有显式提供的字段才会写入（model_dump(exclude_unset=True)）。
    status 不在此处：状态变更必须走状态流转以触发副作用。
    """

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    owner: Role | None = None
    priority: TaskPriority | None = None
    project_id: str | None = None
    due_date: datetime | None = None
    artifact_path: str | None = None
    metadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self) -> "TaskPatch":
        # 这些列在存储中不可为空，显式 null 视为非法输入
        for name in ("title", "owner", "priority", "project_id", "metadata"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} may not be null")
        return self

    def to_fields(self) -> dict[str, Any]:
        """仅返回调用方显式设置的字段"""
        return self.model_dump(exclude_unset=True)


class StatusUpdate(_CamelModel):
    """状态流转输入"""

    status: TaskStatus
    blocker_reason: str | None = None


class AssigneeUpdate(_CamelModel):
    """指派输入；assignee_id 为 null 表示取消指派"""

    assignee_id: str | None = None
