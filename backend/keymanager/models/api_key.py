"""
API密钥 ORM 模型
"""
from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from .base import SCHEMA, AuditMixin, Base, SoftDeleteMixin, UUIDMixin

# key_hash 唯一索引名，与迁移保持一致
KEY_HASH_INDEX = "ix_keymanager_api_keys_key_hash"


class ApiKey(Base, UUIDMixin, AuditMixin, SoftDeleteMixin):
    """服务账号API密钥，只保存密钥哈希"""

    __tablename__ = "api_keys"
    __table_args__ = (
        Index("ix_api_keys_owner_created", "owner_id", "created_at"),
        Index(KEY_HASH_INDEX, "key_hash", unique=True),
        {"schema": SCHEMA},
    )

    owner_id = Column(String(100), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    key_hash = Column(String(128), nullable=False)
    key_hint = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    expiry_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        """转换为字典（不含哈希）"""
        return {
            "id": str(self.id),
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "key_hint": self.key_hint,
            "is_active": self.is_active,
            "expiry_at": self.expiry_at.isoformat() if self.expiry_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, owner_id={self.owner_id}, name={self.name})>"


__all__ = ["ApiKey", "KEY_HASH_INDEX"]
