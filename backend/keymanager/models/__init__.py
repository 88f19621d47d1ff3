"""
SQLAlchemy ORM 模型
"""
from .base import Base
from .api_key import ApiKey
from .key_audit_log import KeyAuditLog

__all__ = [
    "Base",
    "ApiKey",
    "KeyAuditLog",
]
