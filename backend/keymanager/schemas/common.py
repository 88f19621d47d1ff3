"""
通用Pydantic Schemas
"""
from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, ConfigDict


class BaseSchema(BaseModel):
    """基础Schema"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
        from_attributes=True
    )


class TimestampMixin(BaseModel):
    """时间戳混入"""
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")


class UUIDMixin(BaseModel):
    """UUID混入"""
    id: UUID = Field(default_factory=uuid4, description="唯一标识")


__all__ = [
    "BaseSchema",
    "TimestampMixin",
    "UUIDMixin",
]
