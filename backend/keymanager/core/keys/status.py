"""
密钥状态推导

状态不落库，每次读取时根据 deleted_at / is_active / expiry_at 计算。
优先级（从高到低）：deleted > revoked > expired > active
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from .models import Credential, ensure_utc, utcnow


class KeyStatus(str, Enum):
    """派生生命周期状态"""
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    DELETED = "deleted"


class StatusResolver:
    """纯函数式状态解析器，无依赖、无I/O"""

    @staticmethod
    def is_expired(expiry_at: Optional[datetime], now: datetime) -> bool:
        """expiry_at 为空表示永不过期；到期时刻本身即视为已过期"""
        if expiry_at is None:
            return False
        return ensure_utc(expiry_at) <= ensure_utc(now)

    @classmethod
    def resolve(cls, record: Credential, now: Optional[datetime] = None) -> KeyStatus:
        """计算记录的权威状态"""
        now = now or utcnow()
        if record.deleted_at is not None:
            return KeyStatus.DELETED
        if not record.is_active:
            return KeyStatus.REVOKED
        if cls.is_expired(record.expiry_at, now):
            return KeyStatus.EXPIRED
        return KeyStatus.ACTIVE

    @classmethod
    def may_authenticate(cls, record: Credential, now: Optional[datetime] = None) -> bool:
        """仅 active 状态允许认证"""
        return cls.resolve(record, now) is KeyStatus.ACTIVE


__all__ = ["KeyStatus", "StatusResolver"]
