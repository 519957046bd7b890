"""Agent Domain Model

面向后续扩展的实体：每个角色一条记录。核心业务逻辑不会修改它。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import Role


class Agent(BaseModel):
    """Agent 数据模型"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    agent_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    role: Role = Field(description="角色（唯一）")
    name: str = Field(max_length=100, description="显示名称")
    capabilities: list[str] = Field(default_factory=list, description="能力列表（有序）")
    webhook_url: str | None = Field(default=None, description="回调地址")
    is_active: bool = Field(default=True)
    last_seen_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
