"""API密钥 Schemas"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from keymanager.core.keys.models import Credential
from keymanager.core.keys.status import KeyStatus
from keymanager.core.keys.store import SortField, SortOrder
from .common import BaseSchema, TimestampMixin, UUIDMixin


class ApiKeyBase(BaseSchema):
    """密钥基础信息"""

    name: str = Field(..., min_length=1, max_length=100, description="密钥名称")
    description: Optional[str] = Field(None, description="密钥描述")


class ApiKeyCreate(ApiKeyBase):
    owner_id: str = Field(..., min_length=1, max_length=100, description="服务账号ID")
    is_active: bool = Field(default=True, description="创建后是否激活")
    expires_at: Optional[datetime] = Field(
        None, description="过期时间；不传使用默认有效期，显式传null表示永不过期"
    )
    created_by: Optional[str] = Field(None, max_length=100, description="操作者")


class ApiKeyGenerateResponse(BaseSchema):
    """签发结果，api_key 仅在此返回一次"""

    key_id: UUID
    api_key: str = Field(..., description="原始密钥，请妥善保存")
    owner_id: str
    name: str
    key_hint: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    status: KeyStatus


class ApiKeyResponse(UUIDMixin, TimestampMixin, ApiKeyBase):
    owner_id: str
    key_hint: Optional[str] = None
    is_active: bool
    status: KeyStatus
    expires_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    deleted_by: Optional[str] = None

    @classmethod
    def from_record(cls, record: Credential, status: KeyStatus) -> "ApiKeyResponse":
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            owner_id=record.owner_id,
            key_hint=record.key_hint,
            is_active=record.is_active,
            status=status,
            expires_at=record.expiry_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
            deleted_at=record.deleted_at,
            created_by=record.created_by,
            updated_by=record.updated_by,
            deleted_by=record.deleted_by,
        )


class ApiKeyActionRequest(BaseModel):
    actor: Optional[str] = Field(None, max_length=100, description="操作者")


class ApiKeyValidateRequest(BaseModel):
    api_key: str = Field(..., description="待校验的原始密钥")
    client_id: Optional[str] = Field(None, description="调用方声明的服务账号，仅用于审计")


class KeyInfoResponse(BaseModel):
    id: str
    owner_id: str
    expires_at: Optional[datetime] = None
    status: KeyStatus


class ValidationResultResponse(BaseModel):
    is_valid: bool
    reason: Optional[str] = None
    message: str
    status_code: int
    timestamp: str
    key_info: Optional[KeyInfoResponse] = None


class ApiKeyListQuery(BaseModel):
    owner_id: Optional[str] = None
    status: Optional[KeyStatus] = None
    search: Optional[str] = None
    include_deleted: bool = False
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


__all__ = [
    "ApiKeyCreate",
    "ApiKeyGenerateResponse",
    "ApiKeyResponse",
    "ApiKeyActionRequest",
    "ApiKeyValidateRequest",
    "KeyInfoResponse",
    "ValidationResultResponse",
    "ApiKeyListQuery",
]
