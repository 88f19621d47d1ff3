"""
凭证领域模型

与存储技术无关的纯数据记录，由 CredentialStore 负责与持久化模型互相转换。
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """当前UTC时间（带时区）"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """将无时区时间视为UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Credential:
    """API密钥记录"""

    owner_id: str
    key_hash: str
    name: str
    id: UUID = field(default_factory=uuid4)
    key_hint: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    expiry_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    deleted_by: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def copy(self, **changes) -> "Credential":
        """返回修改了指定字段的副本"""
        return replace(self, **changes)


__all__ = ["Credential", "utcnow", "ensure_utc"]
